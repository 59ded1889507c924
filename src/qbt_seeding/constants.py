#!/usr/bin/env python3
"""Constants and enumerations for qBittorrent seeding management."""

from enum import Enum
from typing import Final

# Time constants
SECONDS_PER_DAY: Final[int] = 86400
SECONDS_PER_HOUR: Final[int] = 3600
SECONDS_PER_MINUTE: Final[int] = 60

# Network constants
DEFAULT_TIMEOUT: Final[int] = 30
MAX_RETRY_ATTEMPTS: Final[int] = 3
RETRY_DELAY: Final[float] = 5.0

# Seeding defaults
DEFAULT_TIME_MULTIPLIER: Final[float] = 10.0
DEFAULT_CHECK_INTERVAL: Final[int] = 300

# File paths
TRACKING_FILE: Final[str] = "/config/seeding_tracking.json"
SQLITE_SUFFIXES: Final[tuple] = (".db", ".sqlite", ".sqlite3")

# Web defaults
DEFAULT_WEB_PORT: Final[int] = 9090


class TorrentState(str, Enum):
    """qBittorrent torrent states."""
    ERROR = "error"
    MISSING_FILES = "missingFiles"
    UPLOADING = "uploading"
    PAUSED_UP = "pausedUP"
    STOPPED_UP = "stoppedUP"
    QUEUED_UP = "queuedUP"
    STALLED_UP = "stalledUP"
    CHECKING_UP = "checkingUP"
    FORCED_UP = "forcedUP"
    ALLOCATING = "allocating"
    DOWNLOADING = "downloading"
    META_DL = "metaDL"
    PAUSED_DL = "pausedDL"
    STOPPED_DL = "stoppedDL"
    QUEUED_DL = "queuedDL"
    STALLED_DL = "stalledDL"
    CHECKING_DL = "checkingDL"
    FORCED_DL = "forcedDL"
    CHECKING_RESUME = "checkingResumeData"
    MOVING = "moving"
    UNKNOWN = "unknown"

    @classmethod
    def seeding_states(cls) -> set:
        """Return set of states in which a torrent is seeding."""
        return {cls.UPLOADING, cls.STALLED_UP, cls.CHECKING_UP,
                cls.FORCED_UP, cls.QUEUED_UP}


STATE_DISPLAY_NAMES: Final[dict] = {
    TorrentState.ERROR: "Error",
    TorrentState.MISSING_FILES: "Missing Files",
    TorrentState.UPLOADING: "Seeding",
    TorrentState.PAUSED_UP: "Paused (Complete)",
    TorrentState.STOPPED_UP: "Paused (Complete)",
    TorrentState.QUEUED_UP: "Queued (Seeding)",
    TorrentState.STALLED_UP: "Stalled (Seeding)",
    TorrentState.CHECKING_UP: "Checking (Seeding)",
    TorrentState.FORCED_UP: "Forced Seeding",
    TorrentState.ALLOCATING: "Allocating",
    TorrentState.DOWNLOADING: "Downloading",
    TorrentState.META_DL: "Fetching Metadata",
    TorrentState.PAUSED_DL: "Paused (Downloading)",
    TorrentState.STOPPED_DL: "Paused (Downloading)",
    TorrentState.QUEUED_DL: "Queued (Downloading)",
    TorrentState.STALLED_DL: "Stalled (Downloading)",
    TorrentState.CHECKING_DL: "Checking (Downloading)",
    TorrentState.FORCED_DL: "Forced Downloading",
    TorrentState.CHECKING_RESUME: "Checking Resume Data",
    TorrentState.MOVING: "Moving",
    TorrentState.UNKNOWN: "Unknown",
}
