#!/usr/bin/env python3
"""Thread-safe store for seeding records with persistent backing."""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta
from typing import Callable, Dict, Iterable, List, Optional

from .errors import PersistenceError, TorrentNotTrackedError
from .models import SeedingRecord
from .persistence import PersistenceBackend
from .utils import utcnow

logger = logging.getLogger(__name__)


class SeedingRecordStore:
    """Owns every SeedingRecord; all access goes through one exclusive lock.

    Records handed out by ``get`` and ``snapshot`` are copies, so callers
    can read them without holding the lock. Saves take a consistent
    snapshot under the lock and write it outside the lock; a second lock
    serializes writers so an older snapshot never overwrites a newer one.
    """

    def __init__(self, backend: PersistenceBackend,
                 clock: Callable[[], datetime] = utcnow) -> None:
        """
        Initialize the store.

        Args:
            backend: Persistence backend used by save/load
            clock: Source of "now"
        """
        self.backend = backend
        self._clock = clock
        self._records: Dict[str, SeedingRecord] = {}
        self._lock = threading.Lock()
        self._io_lock = threading.Lock()
        self._writer = ThreadPoolExecutor(max_workers=1, thread_name_prefix="seeding-save")
        self._save_pending = False

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def __contains__(self, torrent_hash: str) -> bool:
        with self._lock:
            return torrent_hash in self._records

    def add(self, torrent_hash: str, name: str) -> bool:
        """
        Start tracking a torrent.

        Args:
            torrent_hash: Torrent hash
            name: Display name

        Returns:
            True if a new record was created, False if already tracked
        """
        with self._lock:
            if torrent_hash in self._records:
                return False
            now = self._clock()
            self._records[torrent_hash] = SeedingRecord(
                hash=torrent_hash,
                name=name,
                download_start_time=now,
                created_at=now,
                updated_at=now,
            )
        self.request_save()
        return True

    def remove(self, torrent_hash: str) -> SeedingRecord:
        """
        Stop tracking a torrent.

        Args:
            torrent_hash: Torrent hash

        Returns:
            The removed record

        Raises:
            TorrentNotTrackedError: If the hash is not tracked
        """
        with self._lock:
            record = self._records.pop(torrent_hash, None)
        if record is None:
            raise TorrentNotTrackedError(torrent_hash)
        self.request_save()
        return record

    def get(self, torrent_hash: str) -> Optional[SeedingRecord]:
        """Return a copy of the record for a hash, or None."""
        with self._lock:
            record = self._records.get(torrent_hash)
            return record.copy() if record else None

    def snapshot(self) -> List[SeedingRecord]:
        """Return copies of all records."""
        with self._lock:
            return [record.copy() for record in self._records.values()]

    def mark_completed(self, torrent_hash: str, complete_time: datetime,
                       duration: timedelta, stop_time: datetime) -> bool:
        """
        Record download completion and the computed seeding stop time.

        Completion fields are write-once: a record that is already
        completed (or no longer tracked) is left alone.

        Returns:
            True if the record was updated
        """
        with self._lock:
            record = self._records.get(torrent_hash)
            if record is None or record.is_completed:
                return False
            record.download_complete_time = complete_time
            record.download_duration = duration
            record.seeding_stop_time = stop_time
            record.updated_at = self._clock()
            return True

    def mark_auto_stopped(self, torrent_hashes: Iterable[str]) -> List[str]:
        """
        Flag tracked torrents as stopped. Untracked hashes are ignored.

        Returns:
            Hashes whose flag changed from False to True
        """
        changed = []
        with self._lock:
            now = self._clock()
            for torrent_hash in torrent_hashes:
                record = self._records.get(torrent_hash)
                if record is None or record.auto_stopped:
                    continue
                record.auto_stopped = True
                record.updated_at = now
                changed.append(torrent_hash)
        return changed

    def save(self) -> None:
        """
        Persist the full table.

        Raises:
            PersistenceError: If the backend fails
        """
        with self._io_lock:
            records = self.snapshot()
            self.backend.save(records)
        logger.debug(f"Tracking data saved to {self.backend.location} ({len(records)} torrents)")

    def load(self) -> int:
        """
        Replace the in-memory table with the persisted one.

        Returns:
            Number of records loaded

        Raises:
            PersistenceError: If the backend fails
        """
        with self._io_lock:
            records = self.backend.load()
        with self._lock:
            self._records = {record.hash: record for record in records}
        logger.info(f"Tracking data loaded from {self.backend.location} ({len(records)} torrents)")
        return len(records)

    def request_save(self) -> None:
        """Schedule an asynchronous save; requests made while one is queued are merged."""
        with self._lock:
            if self._save_pending:
                return
            self._save_pending = True
        self._writer.submit(self._background_save)

    def _background_save(self) -> None:
        with self._lock:
            self._save_pending = False
        try:
            self.save()
        except PersistenceError as e:
            logger.error(f"Failed to save tracking data: {e}")

    def flush(self) -> None:
        """Block until every queued asynchronous save has finished."""
        self._writer.submit(lambda: None).result()
