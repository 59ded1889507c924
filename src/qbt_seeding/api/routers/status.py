"""Status and health-check router for the qbt-seeding web API."""

from __future__ import annotations

import logging
import time

from fastapi import APIRouter, Request

from ... import __version__
from ..app_state import AppState
from ..models import HealthResponse, SeedingStatusResponse

logger = logging.getLogger(__name__)

router = APIRouter()

_start_time = time.time()


def get_app_state(request: Request) -> AppState:
    """Retrieve the shared AppState from the application."""
    return request.app.state.app_state


@router.get("/health", response_model=HealthResponse)
def health(request: Request) -> HealthResponse:
    """Health-check endpoint."""
    app_state = get_app_state(request)
    return HealthResponse(
        status="ok",
        version=__version__,
        uptime_seconds=round(time.time() - _start_time, 2),
        service_running=app_state.service.is_running,
    )


@router.get("/seeding/status", response_model=SeedingStatusResponse)
def seeding_status(request: Request) -> SeedingStatusResponse:
    """Seeding status endpoint.

    Built from tracked records and the last torrent list fetched by the
    background check, so it answers even while qBittorrent is unreachable.
    """
    app_state = get_app_state(request)
    service = app_state.service
    seeding = app_state.config.seeding

    report = service.get_status().to_dict()
    check_status = app_state.get_check_status()

    return SeedingStatusResponse(
        **report,
        time_multiplier=seeding.time_multiplier,
        check_interval=seeding.check_interval,
        service_running=service.is_running,
        last_check_time=check_status["last_check_time"],
        last_check_stats=check_status["last_check_stats"],
    )
