#!/usr/bin/env python3
"""Reconciliation of tracked torrents against live qBittorrent state."""

import logging
import threading
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional, Tuple

from .client import TorrentController, TorrentProvider
from .errors import BackendUnavailableError, PersistenceError, TorrentNotTrackedError
from .models import LiveTorrent, SeedingRecord, TickResult
from .notifier import Notifier
from .policy import compute_stop_time, is_overdue
from .state import SeedingRecordStore
from .utils import format_duration, truncate_name, utcnow

logger = logging.getLogger(__name__)


class ReconciliationEngine:
    """Advances seeding records one tick at a time.

    A tick fetches the live torrent list, records completions with their
    seeding stop time, pauses torrents whose budget has elapsed and saves
    the table once if anything changed. The store lock is never held
    across a qBittorrent call: records are read as a snapshot and each
    mutation is committed separately and conditionally.
    """

    def __init__(
        self,
        store: SeedingRecordStore,
        provider: TorrentProvider,
        controller: TorrentController,
        multiplier: float,
        request_timeout: Optional[float] = None,
        missing_ticks: int = 0,
        notifier: Optional[Notifier] = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        """
        Initialize the engine.

        Args:
            store: Record store to reconcile
            provider: Source of live torrents
            controller: Used to pause torrents
            multiplier: Seeding time multiplier (validated by the caller)
            request_timeout: Deadline for each backend call, in seconds
            missing_ticks: Drop records absent for this many consecutive ticks (0 = never)
            notifier: Optional event notifier
            clock: Source of "now"
        """
        self.store = store
        self.provider = provider
        self.controller = controller
        self.multiplier = multiplier
        self.request_timeout = request_timeout
        self.missing_ticks = missing_ticks
        self.notifier = notifier
        self._clock = clock

        self._tick_lock = threading.Lock()
        self._snapshot_lock = threading.Lock()
        self._live: Dict[str, LiveTorrent] = {}
        self._snapshot_time: Optional[datetime] = None
        self._missing: Dict[str, int] = {}

    def live_snapshot(self) -> Tuple[Dict[str, LiveTorrent], Optional[datetime]]:
        """Latest live torrents seen by a tick and when they were fetched."""
        with self._snapshot_lock:
            return dict(self._live), self._snapshot_time

    def tick(self) -> TickResult:
        """
        Run one reconciliation pass.

        Backend failures are logged and leave all records untouched; a
        failure on one record never stops the others from being processed.

        Returns:
            What happened during the tick
        """
        with self._tick_lock:
            return self._tick()

    def _tick(self) -> TickResult:
        result = TickResult()

        try:
            torrents = self.provider.list_torrents(timeout=self.request_timeout)
        except BackendUnavailableError as e:
            logger.warning(f"[Seeding] Skipping check, could not fetch torrents: {e}")
            return result

        now = self._clock()
        live = {torrent.hash: torrent for torrent in torrents}
        with self._snapshot_lock:
            self._live = live
            self._snapshot_time = now
        result.fetched = True

        records = self.store.snapshot()
        result.checked = len(records)
        self._collect_missing(records, live, result)

        stopped_records: List[SeedingRecord] = []
        for record in records:
            torrent = live.get(record.hash)
            if torrent is None:
                continue
            try:
                if self._advance(record, torrent, now, result):
                    stopped_records.append(record)
            except Exception as e:
                result.failed.append(record.hash)
                logger.error(f"[Seeding] Error processing {record.hash[:8]}: {e}", exc_info=True)

        logger.debug(
            f"[Seeding] Check complete: checked={result.checked} completed={len(result.completed)} "
            f"stopped={len(result.stopped)} failed={len(result.failed)} removed={len(result.removed)}"
        )

        if result.changed:
            try:
                self.store.save()
            except PersistenceError as e:
                logger.error(f"Failed to save tracking data after seeding check: {e}")

        if stopped_records and self.notifier:
            self.notifier.notify_auto_stopped(stopped_records)

        return result

    def _advance(self, record: SeedingRecord, torrent: LiveTorrent,
                 now: datetime, result: TickResult) -> bool:
        """
        Move one record forward. ``record`` is a snapshot copy and is
        updated in place to mirror what was committed.

        Returns:
            True if the torrent was auto-stopped
        """
        if not record.is_completed:
            if not torrent.is_completed:
                return False
            self._complete(record, now, result)
            if not record.is_completed:
                return False

        if record.auto_stopped or not is_overdue(now, record.seeding_stop_time):
            return False

        if not torrent.is_seeding:
            logger.debug(
                f"[Seeding] {record.hash[:8]} is past its stop time but not seeding "
                f"(state={torrent.state})"
            )
            return False

        try:
            self.controller.pause([record.hash], timeout=self.request_timeout)
        except BackendUnavailableError as e:
            result.failed.append(record.hash)
            logger.error(f"[Seeding] Failed to pause {record.hash[:8]} for seeding limit: {e}")
            return False

        if not self.store.mark_auto_stopped([record.hash]):
            return False

        record.auto_stopped = True
        result.stopped.append(record.hash)
        logger.info(
            f"[Seeding] Stopped seeding {truncate_name(record.name, 50)} "
            f"after {format_duration(now - record.download_complete_time)} (time limit reached)"
        )
        return True

    def _complete(self, record: SeedingRecord, now: datetime, result: TickResult) -> None:
        # Clock adjustments must not produce a negative budget
        duration = max(now - record.download_start_time, timedelta(0))
        stop_time = compute_stop_time(now, duration, self.multiplier)

        if not self.store.mark_completed(record.hash, now, duration, stop_time):
            return

        record.download_complete_time = now
        record.download_duration = duration
        record.seeding_stop_time = stop_time
        result.completed.append(record.hash)

        logger.info(
            f"[Seeding] Download completed: {truncate_name(record.name, 50)} "
            f"in {format_duration(duration)}, seeding for {format_duration(stop_time - now)}"
        )
        if self.notifier:
            self.notifier.notify_completed(record)

    def _collect_missing(self, records: List[SeedingRecord],
                         live: Dict[str, LiveTorrent], result: TickResult) -> None:
        """Count consecutive absences and drop records past the threshold."""
        tracked = {record.hash for record in records}
        for torrent_hash in list(self._missing):
            if torrent_hash not in tracked:
                del self._missing[torrent_hash]

        for record in records:
            if record.hash in live:
                self._missing.pop(record.hash, None)
                continue

            count = self._missing.get(record.hash, 0) + 1
            self._missing[record.hash] = count
            logger.debug(f"[Seeding] Tracked torrent {record.hash[:8]} not found ({count} check(s))")

            if not self.missing_ticks or count < self.missing_ticks:
                continue

            try:
                self.store.remove(record.hash)
            except TorrentNotTrackedError:
                # Already removed by a concurrent stop_tracking
                pass
            else:
                result.removed.append(record.hash)
                logger.info(
                    f"[Seeding] Stopped tracking {truncate_name(record.name, 50)}: "
                    f"missing from qBittorrent for {count} checks"
                )
            del self._missing[record.hash]
