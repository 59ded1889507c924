#!/usr/bin/env python3
"""Seeding lifecycle service: public API plus the background check loop."""

import logging
import threading
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

from .client import TorrentController, TorrentProvider
from .config import SeedingConfig
from .engine import ReconciliationEngine
from .errors import BackendUnavailableError, PersistenceError
from .models import SeedingRecord, SeedingStatus, SeedingTorrentStatus, TickResult
from .notifier import Notifier
from .persistence import PersistenceBackend, create_backend
from .policy import is_overdue, seeding_budget
from .state import SeedingRecordStore
from .utils import truncate_name, utcnow

logger = logging.getLogger(__name__)


class SeedingService:
    """Automatic seeding time management.

    Tracks when torrents start and finish downloading, lets each one seed
    for ``time_multiplier`` times its download duration and then pauses
    it. Every public method is safe to call from any thread while the
    background loop is running.
    """

    def __init__(
        self,
        config: SeedingConfig,
        provider: TorrentProvider,
        controller: TorrentController,
        backend: Optional[PersistenceBackend] = None,
        notifier: Optional[Notifier] = None,
        request_timeout: Optional[float] = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        """
        Initialize the service.

        Args:
            config: Seeding configuration
            provider: Source of live torrents
            controller: Used to pause torrents
            backend: Persistence backend (defaults to one chosen from config.tracking_file)
            notifier: Optional event notifier
            request_timeout: Deadline for each backend call, in seconds
            clock: Source of "now"

        Raises:
            InvalidConfigurationError: If the multiplier or interval is not positive
        """
        config.validate()
        self.config = config
        self.controller = controller
        self.request_timeout = request_timeout
        self._clock = clock

        self.store = SeedingRecordStore(backend or create_backend(config.tracking_file), clock=clock)
        self.engine = ReconciliationEngine(
            self.store,
            provider,
            controller,
            multiplier=config.time_multiplier,
            request_timeout=request_timeout,
            missing_ticks=config.missing_ticks,
            notifier=notifier,
            clock=clock,
        )

        self._stop_event = threading.Event()
        self._wake_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._running_lock = threading.Lock()

    # Service lifecycle

    @property
    def is_running(self) -> bool:
        with self._running_lock:
            return self._thread is not None

    def start(self) -> None:
        """
        Load persisted tracking data and start the background loop.

        Raises:
            RuntimeError: If the service is already running
        """
        with self._running_lock:
            if self._thread is not None:
                raise RuntimeError("seeding service is already running")

            logger.info("Starting seeding management service")
            try:
                self.store.load()
            except PersistenceError as e:
                logger.warning(f"Failed to load tracking data, starting fresh: {e}")

            self._stop_event.clear()
            self._thread = threading.Thread(target=self._run, name="seeding-loop", daemon=True)
            self._thread.start()

        logger.info(
            f"Seeding management started (multiplier={self.config.time_multiplier:g}x, "
            f"interval={self.config.check_interval:g}s, tracking={self.store.backend.location}, "
            f"tracked={len(self.store)})"
        )

    def stop(self) -> None:
        """
        Stop the loop, wait for an in-flight check and save once more.

        Safe to call when the service is not running.
        """
        with self._running_lock:
            thread = self._thread
            if thread is None:
                return

            logger.info("Stopping seeding management service")
            self._stop_event.set()
            self._wake_event.set()

        # Lock released: is_running stays answerable until the in-flight check ends
        thread.join()
        with self._running_lock:
            if self._thread is thread:
                self._thread = None

        self.store.flush()
        try:
            self.store.save()
        except PersistenceError as e:
            logger.error(f"Failed to save tracking data during shutdown: {e}")
        logger.info("Seeding management service stopped")

    def wake(self) -> None:
        """Make the background loop run its next check immediately."""
        self._wake_event.set()

    def _run(self) -> None:
        logger.info("Background seeding processor started")
        interval = self.config.check_interval
        while True:
            self._wake_event.wait(timeout=interval)
            self._wake_event.clear()
            if self._stop_event.is_set():
                break
            try:
                self.engine.tick()
            except Exception as e:
                logger.error(f"Seeding check failed: {e}", exc_info=True)
        logger.info("Background seeding processor stopped")

    # Lifecycle API

    def start_tracking(self, torrent_hash: str, name: str) -> bool:
        """
        Begin tracking a newly added torrent. Calling again for the same
        hash is a no-op.

        Returns:
            True if tracking started, False if the torrent was already tracked
        """
        created = self.store.add(torrent_hash, name)
        if created:
            logger.info(f"Started tracking {truncate_name(name, 50)} ({torrent_hash[:8]})")
        else:
            logger.debug(f"Torrent {torrent_hash[:8]} already being tracked")
        return created

    def stop_tracking(self, torrent_hash: str) -> None:
        """
        Stop tracking a torrent (e.g. it was deleted).

        Raises:
            TorrentNotTrackedError: If the torrent is not tracked
        """
        record = self.store.remove(torrent_hash)
        logger.info(f"Stopped tracking {truncate_name(record.name, 50)} ({torrent_hash[:8]})")

    def force_stop_seeding(self, torrent_hashes: List[str]) -> List[str]:
        """
        Pause torrents now, ignoring their seeding budget.

        Args:
            torrent_hashes: Hashes to stop

        Returns:
            Tracked hashes newly marked as stopped

        Raises:
            ValueError: If no hashes were given
            BackendUnavailableError: If qBittorrent did not accept the pause;
                no record is changed in that case
        """
        if not torrent_hashes:
            raise ValueError("no torrent hashes provided")

        logger.info(f"Force stopping seeding for {len(torrent_hashes)} torrent(s)")
        try:
            self.controller.pause(list(torrent_hashes), timeout=self.request_timeout)
        except BackendUnavailableError as e:
            logger.error(f"Failed to force stop seeding: {e}")
            raise

        marked = self.store.mark_auto_stopped(torrent_hashes)
        if marked:
            self.store.request_save()
        logger.info(f"Force stopped seeding for {len(torrent_hashes)} torrent(s), {len(marked)} tracked")
        return marked

    def check_now(self) -> TickResult:
        """Run one reconciliation tick synchronously."""
        return self.engine.tick()

    def get_status(self) -> SeedingStatus:
        """
        Build a seeding report from tracked records and the latest live
        snapshot. Never contacts qBittorrent and never mutates state.
        """
        now = self._clock()
        live, snapshot_time = self.engine.live_snapshot()
        status = SeedingStatus(last_checked=now, snapshot_time=snapshot_time)

        for record in self.store.snapshot():
            torrent = live.get(record.hash)
            detail = self._record_status(record, now)
            detail.current_state = torrent.display_state if torrent else None

            status.details[record.hash] = detail
            status.tracked_torrents += 1
            if record.download_duration is not None:
                status.total_download_time += record.download_duration
            if detail.seeding_duration is not None:
                status.total_seeding_time += detail.seeding_duration

            if record.auto_stopped:
                status.completed_seeding += 1
            elif record.is_completed:
                status.active_seeding += 1
                if detail.is_overdue:
                    status.overdue_seeding += 1
            else:
                status.downloading += 1

        return status

    def _record_status(self, record: SeedingRecord, now: datetime) -> SeedingTorrentStatus:
        detail = SeedingTorrentStatus(
            hash=record.hash,
            name=record.name,
            phase=record.phase,
            auto_stopped=record.auto_stopped,
            download_duration=record.download_duration,
            seeding_stop_time=record.seeding_stop_time,
        )
        if not record.is_completed:
            return detail

        if record.auto_stopped:
            # Stopping is the last mutation a record receives
            detail.seeding_duration = max(record.updated_at - record.download_complete_time, timedelta(0))
        else:
            detail.seeding_duration = now - record.download_complete_time
        detail.seeding_limit = seeding_budget(record.download_duration, self.config.time_multiplier)
        detail.time_remaining = max(record.seeding_stop_time - now, timedelta(0))
        detail.is_overdue = not record.auto_stopped and is_overdue(now, record.seeding_stop_time)
        return detail

    # Helpers

    @property
    def tracked_count(self) -> int:
        return len(self.store)

    def tracked_torrents(self) -> Dict[str, SeedingRecord]:
        """Copies of all tracked records keyed by hash."""
        return {record.hash: record for record in self.store.snapshot()}
