#!/usr/bin/env python3
"""Exception hierarchy for qBittorrent seeding management."""


class SeedingError(Exception):
    """Base class for all seeding management errors."""


class TorrentNotTrackedError(SeedingError, KeyError):
    """Raised when an operation references a hash that is not tracked."""

    def __init__(self, torrent_hash: str):
        self.torrent_hash = torrent_hash
        super().__init__(torrent_hash)

    def __str__(self) -> str:
        return f"torrent {self.torrent_hash} is not being tracked"


class BackendUnavailableError(SeedingError):
    """Raised when qBittorrent cannot be reached or rejects a request."""


class PersistenceError(SeedingError):
    """Raised when tracking data cannot be saved or loaded."""


class InvalidConfigurationError(SeedingError, ValueError):
    """Raised when configuration values are out of range."""
