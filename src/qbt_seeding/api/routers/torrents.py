"""Tracked torrents router for the qbt-seeding web API."""

from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, HTTPException, Request

from ...errors import TorrentNotTrackedError
from ..app_state import AppState
from ..models import ActionResponse, TorrentSeedingResponse, TrackRequest

logger = logging.getLogger(__name__)

router = APIRouter()


def get_app_state(request: Request) -> AppState:
    """Retrieve the shared AppState from the application."""
    return request.app.state.app_state


@router.get("/seeding/torrents", response_model=List[TorrentSeedingResponse])
def list_tracked(request: Request) -> List[TorrentSeedingResponse]:
    """List every tracked torrent with its seeding progress, soonest stop first."""
    report = get_app_state(request).service.get_status()
    details = sorted(
        report.details.values(),
        key=lambda d: (d.seeding_stop_time is None, d.seeding_stop_time or report.last_checked, d.name),
    )
    return [TorrentSeedingResponse(**detail.to_dict()) for detail in details]


@router.post("/seeding/track", response_model=ActionResponse)
def track_torrent(body: TrackRequest, request: Request) -> ActionResponse:
    """Start tracking a torrent. Tracking an already tracked torrent succeeds."""
    service = get_app_state(request).service
    created = service.start_tracking(body.hash, body.name or body.hash)

    return ActionResponse(
        success=True,
        message="Started tracking torrent" if created else "Torrent already tracked",
        details={"hash": body.hash, "created": created},
    )


@router.delete("/seeding/track/{torrent_hash}", response_model=ActionResponse)
def untrack_torrent(torrent_hash: str, request: Request) -> ActionResponse:
    """Stop tracking a torrent.

    Returns HTTP 404 if the torrent is not tracked.
    """
    service = get_app_state(request).service
    try:
        service.stop_tracking(torrent_hash)
    except TorrentNotTrackedError as exc:
        raise HTTPException(status_code=404, detail=str(exc))

    return ActionResponse(
        success=True,
        message="Stopped tracking torrent",
        details={"hash": torrent_hash},
    )
