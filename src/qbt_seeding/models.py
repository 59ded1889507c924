#!/usr/bin/env python3
"""Data models for qBittorrent seeding management."""

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from .constants import STATE_DISPLAY_NAMES, TorrentState
from .utils import from_iso, to_iso


@dataclass
class SeedingRecord:
    """Lifecycle record for one tracked torrent."""
    hash: str
    name: str
    download_start_time: datetime
    created_at: datetime
    updated_at: datetime
    download_complete_time: Optional[datetime] = None
    download_duration: Optional[timedelta] = None
    seeding_stop_time: Optional[datetime] = None
    auto_stopped: bool = False

    @property
    def is_completed(self) -> bool:
        """Check if completion (and therefore the seeding budget) has been recorded."""
        return self.download_complete_time is not None

    @property
    def phase(self) -> str:
        """Lifecycle phase: downloading, seeding or stopped."""
        if self.auto_stopped:
            return "stopped"
        if self.is_completed:
            return "seeding"
        return "downloading"

    def copy(self) -> "SeedingRecord":
        """Return an independent copy safe to hand out of the store."""
        return replace(self)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON-compatible dictionary."""
        return {
            "hash": self.hash,
            "name": self.name,
            "download_start_time": to_iso(self.download_start_time),
            "download_complete_time": to_iso(self.download_complete_time),
            "download_duration": (
                self.download_duration.total_seconds()
                if self.download_duration is not None else None
            ),
            "seeding_stop_time": to_iso(self.seeding_stop_time),
            "auto_stopped": self.auto_stopped,
            "created_at": to_iso(self.created_at),
            "updated_at": to_iso(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SeedingRecord":
        """
        Build a record from its serialized form.

        Args:
            data: Dictionary produced by to_dict

        Returns:
            SeedingRecord instance

        Raises:
            KeyError: If a required field is missing
            ValueError: If a timestamp cannot be parsed
        """
        start = from_iso(data["download_start_time"])
        duration = data.get("download_duration")
        return cls(
            hash=data["hash"],
            name=data.get("name", ""),
            download_start_time=start,
            created_at=from_iso(data.get("created_at")) or start,
            updated_at=from_iso(data.get("updated_at")) or start,
            download_complete_time=from_iso(data.get("download_complete_time")),
            download_duration=timedelta(seconds=duration) if duration is not None else None,
            seeding_stop_time=from_iso(data.get("seeding_stop_time")),
            auto_stopped=bool(data.get("auto_stopped", False)),
        )


@dataclass
class LiveTorrent:
    """Live torrent information as reported by qBittorrent."""
    hash: str
    name: str
    progress: float
    state: str

    @property
    def is_completed(self) -> bool:
        """Check if the torrent has finished downloading."""
        return self.progress >= 1.0

    @property
    def is_seeding(self) -> bool:
        """Check if the torrent is currently seeding."""
        return self.state in TorrentState.seeding_states()

    @property
    def display_state(self) -> str:
        """Human readable state name."""
        try:
            return STATE_DISPLAY_NAMES[TorrentState(self.state)]
        except ValueError:
            return self.state


@dataclass
class SeedingTorrentStatus:
    """Seeding status of an individual tracked torrent.

    ``current_state`` is None when the torrent is not in the live snapshot.
    """
    hash: str
    name: str
    phase: str
    auto_stopped: bool
    download_duration: Optional[timedelta] = None
    seeding_duration: Optional[timedelta] = None
    seeding_limit: Optional[timedelta] = None
    time_remaining: Optional[timedelta] = None
    seeding_stop_time: Optional[datetime] = None
    is_overdue: bool = False
    current_state: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for JSON output (durations in seconds)."""
        def seconds(value: Optional[timedelta]) -> Optional[float]:
            return value.total_seconds() if value is not None else None

        return {
            "hash": self.hash,
            "name": self.name,
            "phase": self.phase,
            "auto_stopped": self.auto_stopped,
            "download_duration": seconds(self.download_duration),
            "seeding_duration": seconds(self.seeding_duration),
            "seeding_limit": seconds(self.seeding_limit),
            "time_remaining": seconds(self.time_remaining),
            "seeding_stop_time": to_iso(self.seeding_stop_time),
            "is_overdue": self.is_overdue,
            "current_state": self.current_state,
        }


@dataclass
class SeedingStatus:
    """Aggregate seeding report across all tracked torrents."""
    last_checked: datetime
    snapshot_time: Optional[datetime] = None
    tracked_torrents: int = 0
    downloading: int = 0
    active_seeding: int = 0
    completed_seeding: int = 0
    overdue_seeding: int = 0
    total_download_time: timedelta = field(default_factory=timedelta)
    total_seeding_time: timedelta = field(default_factory=timedelta)
    details: Dict[str, SeedingTorrentStatus] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for JSON output."""
        return {
            "last_checked": to_iso(self.last_checked),
            "snapshot_time": to_iso(self.snapshot_time),
            "tracked_torrents": self.tracked_torrents,
            "downloading": self.downloading,
            "active_seeding": self.active_seeding,
            "completed_seeding": self.completed_seeding,
            "overdue_seeding": self.overdue_seeding,
            "total_download_time": self.total_download_time.total_seconds(),
            "total_seeding_time": self.total_seeding_time.total_seconds(),
            "details": {h: d.to_dict() for h, d in self.details.items()},
        }


@dataclass
class TickResult:
    """Outcome of one reconciliation tick."""
    fetched: bool = False
    checked: int = 0
    completed: List[str] = field(default_factory=list)
    stopped: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        """Whether any record was mutated during the tick."""
        return bool(self.completed or self.stopped or self.removed)
