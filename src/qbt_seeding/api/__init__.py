"""FastAPI application factory."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from .app_state import AppState


def create_app(app_state: AppState) -> FastAPI:
    """Create and configure FastAPI application."""
    app = FastAPI(
        title="qbt-seeding",
        version=__version__,
        docs_url="/api/docs",
        openapi_url="/api/openapi.json",
    )

    # Store app_state for dependency injection
    app.state.app_state = app_state

    # CORS for dashboards served from elsewhere
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from .routers import actions, status, torrents

    app.include_router(status.router, prefix="/api", tags=["status"])
    app.include_router(torrents.router, prefix="/api", tags=["torrents"])
    app.include_router(actions.router, prefix="/api", tags=["actions"])

    return app
