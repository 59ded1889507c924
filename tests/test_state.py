"""Tests for state.py: the seeding record store."""

import threading
from datetime import timedelta

import pytest

from qbt_seeding.errors import PersistenceError, TorrentNotTrackedError
from qbt_seeding.persistence import JsonFileBackend
from qbt_seeding.state import SeedingRecordStore

from conftest import T0, FakeClock


class TestAdd:
    def test_creates_record(self, store):
        assert store.add("abc123", "Foo") is True
        record = store.get("abc123")
        assert record.name == "Foo"
        assert record.download_start_time == T0
        assert record.created_at == T0
        assert not record.is_completed
        assert not record.auto_stopped

    def test_second_add_is_noop(self, store, clock):
        store.add("abc123", "Foo")
        clock.advance(minutes=5)
        assert store.add("abc123", "Renamed") is False
        record = store.get("abc123")
        assert record.name == "Foo"
        assert record.download_start_time == T0

    def test_concurrent_adds_create_one_record(self, store):
        barrier = threading.Barrier(20)
        results = []

        def worker():
            barrier.wait()
            results.append(store.add("abc123", "Foo"))

        threads = [threading.Thread(target=worker) for _ in range(20)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(store) == 1
        assert results.count(True) == 1

    def test_schedules_save(self, store, backend):
        store.add("abc123", "Foo")
        store.flush()
        assert [r.hash for r in backend.records] == ["abc123"]


class TestRemove:
    def test_removes_record(self, store):
        store.add("abc123", "Foo")
        removed = store.remove("abc123")
        assert removed.hash == "abc123"
        assert "abc123" not in store

    def test_untracked_raises(self, store):
        store.add("abc123", "Foo")
        with pytest.raises(TorrentNotTrackedError) as exc_info:
            store.remove("zzz999")
        assert exc_info.value.torrent_hash == "zzz999"
        assert len(store) == 1


class TestSnapshot:
    def test_returns_copies(self, store):
        store.add("abc123", "Foo")
        snapshot = store.snapshot()
        snapshot[0].auto_stopped = True
        assert store.get("abc123").auto_stopped is False

    def test_get_missing(self, store):
        assert store.get("nope") is None


class TestMarkCompleted:
    def test_sets_completion_fields_once(self, store, clock):
        store.add("abc123", "Foo")
        done = T0 + timedelta(minutes=10)
        assert store.mark_completed("abc123", done, timedelta(minutes=10), done + timedelta(minutes=100))

        later = done + timedelta(hours=1)
        assert not store.mark_completed("abc123", later, timedelta(hours=1), later)
        record = store.get("abc123")
        assert record.download_complete_time == done
        assert record.download_duration == timedelta(minutes=10)
        assert record.seeding_stop_time == done + timedelta(minutes=100)

    def test_untracked_is_ignored(self, store):
        assert not store.mark_completed("nope", T0, timedelta(0), T0)


class TestMarkAutoStopped:
    def test_only_reports_changes(self, store):
        store.add("a", "A")
        store.add("b", "B")
        assert store.mark_auto_stopped(["a", "missing"]) == ["a"]
        assert store.mark_auto_stopped(["a", "b"]) == ["b"]
        assert store.get("a").auto_stopped and store.get("b").auto_stopped

    def test_updates_timestamp(self, store, clock):
        store.add("a", "A")
        clock.advance(hours=2)
        store.mark_auto_stopped(["a"])
        assert store.get("a").updated_at == T0 + timedelta(hours=2)


class TestPersistence:
    def test_round_trip_through_json_file(self, tmp_path):
        clock = FakeClock()
        path = tmp_path / "tracking.json"
        store = SeedingRecordStore(JsonFileBackend(str(path)), clock=clock)
        store.add("a", "Alpha")
        store.add("b", "Beta")
        store.add("c", "Gamma")
        done = T0 + timedelta(minutes=10)
        store.mark_completed("b", done, timedelta(minutes=10), done + timedelta(minutes=100))
        store.mark_auto_stopped(["c"])
        store.save()
        before = {r.hash: r for r in store.snapshot()}

        restored = SeedingRecordStore(JsonFileBackend(str(path)), clock=clock)
        assert restored.load() == 3
        after = {r.hash: r for r in restored.snapshot()}
        assert after == before

    def test_load_missing_file_is_empty(self, tmp_path):
        store = SeedingRecordStore(JsonFileBackend(str(tmp_path / "absent.json")))
        assert store.load() == 0
        assert len(store) == 0

    def test_load_replaces_table(self, store, backend):
        store.add("old", "Old")
        store.flush()
        backend.records = []
        store.load()
        assert len(store) == 0

    def test_save_failure_propagates(self, store, backend):
        backend.fail = True
        with pytest.raises(PersistenceError):
            store.save()

    def test_background_save_failure_keeps_memory(self, store, backend):
        backend.fail = True
        store.add("abc123", "Foo")
        store.flush()
        assert "abc123" in store
