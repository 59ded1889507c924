"""Pydantic request and response models for the qbt-seeding web API."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Response model for the health-check endpoint."""

    status: str = "ok"
    version: str
    uptime_seconds: float
    service_running: bool


class TorrentSeedingResponse(BaseModel):
    """Seeding status of one tracked torrent. Durations are in seconds."""

    hash: str
    name: str
    phase: str
    auto_stopped: bool
    download_duration: Optional[float] = None
    seeding_duration: Optional[float] = None
    seeding_limit: Optional[float] = None
    time_remaining: Optional[float] = None
    seeding_stop_time: Optional[str] = None
    is_overdue: bool = False
    current_state: Optional[str] = None


class SeedingStatusResponse(BaseModel):
    """Response model for the seeding status endpoint."""

    last_checked: str
    snapshot_time: Optional[str] = None
    tracked_torrents: int
    downloading: int
    active_seeding: int
    completed_seeding: int
    overdue_seeding: int
    total_download_time: float
    total_seeding_time: float
    time_multiplier: float
    check_interval: float
    service_running: bool
    last_check_time: Optional[str] = None
    last_check_stats: Optional[Dict[str, Any]] = None
    details: Dict[str, TorrentSeedingResponse] = Field(default_factory=dict)


class TrackRequest(BaseModel):
    """Request model for starting to track a torrent."""

    hash: str = Field(min_length=1)
    name: str = ""


class ForceStopRequest(BaseModel):
    """Request model for force-stopping torrents."""

    hashes: List[str]


class ActionResponse(BaseModel):
    """Response model for action endpoints (track, force-stop, check, etc.)."""

    success: bool
    message: str
    details: Optional[Dict[str, Any]] = None
