"""Tests for service.py: the public seeding API and background loop."""

import threading
from datetime import timedelta

import pytest

from qbt_seeding.config import SeedingConfig
from qbt_seeding.errors import BackendUnavailableError, InvalidConfigurationError, TorrentNotTrackedError
from qbt_seeding.persistence import JsonFileBackend
from qbt_seeding.service import SeedingService

from conftest import T0, FakeClock, MemoryBackend


class TestConstruction:
    @pytest.mark.parametrize("multiplier,interval", [(0, 60), (-1, 60), (10, 0), (10, -5)])
    def test_rejects_invalid_config(self, provider, controller, backend, multiplier, interval):
        config = SeedingConfig(time_multiplier=multiplier, check_interval=interval,
                               tracking_file="unused.json", missing_ticks=0)
        with pytest.raises(InvalidConfigurationError):
            SeedingService(config, provider, controller, backend=backend)

    def test_invalid_config_is_value_error(self, provider, controller, backend):
        config = SeedingConfig(time_multiplier=0, check_interval=60,
                               tracking_file="unused.json", missing_ticks=0)
        with pytest.raises(ValueError):
            SeedingService(config, provider, controller, backend=backend)


class TestTracking:
    def test_start_tracking_is_idempotent(self, service):
        assert service.start_tracking("abc123", "Foo") is True
        assert service.start_tracking("abc123", "Foo") is False
        assert service.tracked_count == 1

    def test_stop_tracking_untracked(self, service):
        service.start_tracking("abc123", "Foo")

        with pytest.raises(TorrentNotTrackedError):
            service.stop_tracking("zzz999")

        assert list(service.tracked_torrents()) == ["abc123"]

    def test_stop_tracking(self, service):
        service.start_tracking("abc123", "Foo")
        service.stop_tracking("abc123")
        assert service.tracked_count == 0


class TestForceStop:
    def test_marks_before_completion(self, service, controller, clock):
        service.start_tracking("abc123", "Foo")
        clock.advance(minutes=5)

        marked = service.force_stop_seeding(["abc123"])

        assert marked == ["abc123"]
        assert controller.calls == [["abc123"]]
        record = service.tracked_torrents()["abc123"]
        assert record.auto_stopped
        assert not record.is_completed

    def test_pause_failure_marks_nothing(self, service, controller):
        service.start_tracking("abc123", "Foo")
        controller.fail = True

        with pytest.raises(BackendUnavailableError):
            service.force_stop_seeding(["abc123"])

        assert not service.tracked_torrents()["abc123"].auto_stopped

    def test_empty_list_rejected(self, service, controller):
        with pytest.raises(ValueError):
            service.force_stop_seeding([])
        assert controller.calls == []

    def test_untracked_hashes_are_paused_but_not_marked(self, service, controller):
        service.start_tracking("abc123", "Foo")

        marked = service.force_stop_seeding(["abc123", "other"])

        assert marked == ["abc123"]
        assert controller.calls == [["abc123", "other"]]
        assert service.tracked_count == 1

    def test_persisted(self, service, backend):
        service.start_tracking("abc123", "Foo")
        service.force_stop_seeding(["abc123"])
        service.store.flush()
        assert backend.records[0].auto_stopped

    def test_stopped_torrent_not_completed_later(self, service, provider, controller, clock):
        service.start_tracking("abc123", "Foo")
        service.force_stop_seeding(["abc123"])
        clock.advance(minutes=10)
        provider.seed("abc123")

        service.check_now()
        clock.advance(hours=5)
        result = service.check_now()

        assert result.stopped == []
        assert controller.calls == [["abc123"]]


class TestStatus:
    def _setup_overdue_with_failed_pause(self, service, provider, controller, clock):
        service.start_tracking("a", "Alpha")
        service.start_tracking("b", "Beta")
        clock.advance(minutes=10)
        provider.seed("a")
        provider.set("b")
        service.check_now()

        controller.fail = True
        clock.now = T0 + timedelta(minutes=111)
        service.check_now()

    def test_overdue_after_failed_pause(self, service, provider, controller, clock):
        self._setup_overdue_with_failed_pause(service, provider, controller, clock)

        status = service.get_status()

        assert status.tracked_torrents == 2
        assert status.overdue_seeding == 1
        assert status.completed_seeding == 0
        assert status.active_seeding == 1
        assert status.downloading == 1
        assert status.details["a"].is_overdue
        assert not status.details["a"].auto_stopped

    def test_durations(self, service, provider, clock):
        service.start_tracking("a", "Alpha")
        clock.advance(minutes=10)
        provider.seed("a")
        service.check_now()
        clock.advance(minutes=30)

        status = service.get_status()
        detail = status.details["a"]

        assert detail.download_duration == timedelta(minutes=10)
        assert detail.seeding_duration == timedelta(minutes=30)
        assert detail.seeding_limit == timedelta(minutes=100)
        assert detail.time_remaining == timedelta(minutes=70)
        assert detail.current_state == "Seeding"
        assert status.total_download_time == timedelta(minutes=10)
        assert status.total_seeding_time == timedelta(minutes=30)

    def test_auto_stopped_counts_as_completed(self, service, provider, clock):
        service.start_tracking("a", "Alpha")
        clock.advance(minutes=10)
        provider.seed("a")
        service.check_now()
        clock.now = T0 + timedelta(minutes=111)
        service.check_now()
        clock.advance(hours=10)

        status = service.get_status()
        detail = status.details["a"]

        assert status.completed_seeding == 1
        assert status.active_seeding == 0
        assert status.overdue_seeding == 0
        assert detail.phase == "stopped"
        assert detail.seeding_duration == timedelta(minutes=101)

    def test_does_not_contact_backend(self, service, provider):
        service.start_tracking("a", "Alpha")
        service.get_status()
        assert provider.calls == 0

    def test_untracked_torrents_excluded(self, service, provider):
        provider.seed("stranger")
        service.check_now()
        assert service.get_status().tracked_torrents == 0


class TestRestart:
    def test_records_survive_restart(self, seeding_config, provider, controller, clock):
        backend = MemoryBackend()
        first = SeedingService(seeding_config, provider, controller, backend=backend, clock=clock)
        first.start()
        for h, name in (("a", "Alpha"), ("b", "Beta"), ("c", "Gamma")):
            first.start_tracking(h, name)
        first.stop()
        before = first.tracked_torrents()

        second = SeedingService(seeding_config, provider, controller, backend=backend, clock=FakeClock())
        second.start()
        try:
            assert second.tracked_torrents() == before
        finally:
            second.stop()


class TestLifecycle:
    def test_double_start_rejected(self, service):
        service.start()
        with pytest.raises(RuntimeError):
            service.start()

    def test_stop_without_start_is_noop(self, service, backend):
        service.stop()
        assert backend.saves == 0

    def test_stop_saves(self, service, backend):
        service.start()
        saves = backend.saves
        service.stop()
        assert backend.saves > saves
        assert not service.is_running

    def test_load_failure_starts_empty(self, service, backend):
        backend.fail = True
        service.start()
        assert service.is_running
        assert service.tracked_count == 0

    def test_restart_after_stop(self, service):
        service.start()
        service.stop()
        service.start()
        assert service.is_running

    def test_wake_runs_check(self, service, provider):
        service.start()
        ticked = threading.Event()
        original = service.engine.tick

        def tick():
            result = original()
            ticked.set()
            return result

        service.engine.tick = tick
        service.wake()

        assert ticked.wait(timeout=5)
        assert provider.calls >= 1

    def test_concurrent_api_calls_during_checks(self, service, provider):
        service.start()
        errors = []

        def worker(n):
            try:
                for i in range(20):
                    h = f"{n}-{i}"
                    service.start_tracking(h, h)
                    provider.seed(h)
                    service.wake()
                    service.get_status()
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(5)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert service.tracked_count == 100

    def test_is_running_answers_while_stopping(self, service):
        entered = threading.Event()
        release = threading.Event()

        def tick():
            entered.set()
            release.wait(timeout=5)

        service.engine.tick = tick
        service.start()
        service.wake()
        assert entered.wait(timeout=5)

        stopper = threading.Thread(target=service.stop)
        stopper.start()
        assert service._stop_event.wait(timeout=5)

        answers = []
        reader = threading.Thread(target=lambda: answers.append(service.is_running))
        reader.start()
        reader.join(timeout=2)
        assert answers == [True]

        release.set()
        stopper.join(timeout=5)
        assert not service.is_running


class TestUnreadableTrackingData:
    def test_undecodable_json_file_starts_empty(self, tmp_path, seeding_config, provider, controller):
        path = tmp_path / "tracking.json"
        path.write_bytes(b"\xff\xfe\x00garbage")
        service = SeedingService(seeding_config, provider, controller, backend=JsonFileBackend(str(path)))

        service.start()
        try:
            assert service.is_running
            assert service.tracked_count == 0
        finally:
            service.stop()

    def test_unusable_sqlite_path_does_not_block_startup(self, tmp_path, provider, controller):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("")
        config = SeedingConfig(time_multiplier=10.0, check_interval=60.0,
                               tracking_file=str(blocker / "sub" / "tracking.db"), missing_ticks=0)

        service = SeedingService(config, provider, controller)
        service.start()
        try:
            assert service.is_running
            assert service.start_tracking("abc123", "Foo") is True
        finally:
            service.stop()
