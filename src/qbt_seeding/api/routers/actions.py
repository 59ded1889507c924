"""Actions router for the qbt-seeding web API."""

import logging

from fastapi import APIRouter, HTTPException, Request

from ...errors import BackendUnavailableError
from ..app_state import AppState
from ..models import ActionResponse, ForceStopRequest

logger = logging.getLogger(__name__)

router = APIRouter()


def get_app_state(request: Request) -> AppState:
    """Retrieve the shared AppState from the application."""
    return request.app.state.app_state


@router.post("/seeding/force-stop", response_model=ActionResponse)
def force_stop(body: ForceStopRequest, request: Request) -> ActionResponse:
    """Pause torrents immediately regardless of their seeding budget.

    Returns HTTP 400 for an empty hash list and HTTP 503 if qBittorrent
    did not accept the pause (no torrent is marked stopped in that case).
    """
    service = get_app_state(request).service
    try:
        marked = service.force_stop_seeding(body.hashes)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except BackendUnavailableError as exc:
        raise HTTPException(status_code=503, detail=str(exc))

    logger.info(f"Force stop triggered via API for {len(body.hashes)} torrent(s)")
    return ActionResponse(
        success=True,
        message=f"Stopped seeding {len(body.hashes)} torrent(s)",
        details={"marked": marked},
    )


@router.post("/seeding/check", response_model=ActionResponse)
def trigger_check(request: Request) -> ActionResponse:
    """Run a seeding check now and report what it did."""
    app_state = get_app_state(request)
    result = app_state.service.check_now()
    app_state.update_after_check(result)
    logger.info("Manual seeding check triggered via API")

    if not result.fetched:
        return ActionResponse(
            success=False,
            message="Could not fetch torrents from qBittorrent",
        )

    return ActionResponse(
        success=True,
        message="Seeding check completed",
        details=app_state.get_check_status()["last_check_stats"],
    )
