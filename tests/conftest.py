"""Shared fixtures and fakes for seeding manager tests."""

import threading
from datetime import datetime, timedelta, timezone

import pytest

from qbt_seeding.client import TorrentController, TorrentProvider
from qbt_seeding.config import SeedingConfig
from qbt_seeding.engine import ReconciliationEngine
from qbt_seeding.errors import BackendUnavailableError, PersistenceError
from qbt_seeding.models import LiveTorrent
from qbt_seeding.persistence import PersistenceBackend
from qbt_seeding.service import SeedingService
from qbt_seeding.state import SeedingRecordStore

T0 = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Controllable source of "now"."""

    def __init__(self, start=T0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


class FakeProvider(TorrentProvider):
    def __init__(self):
        self.torrents = {}
        self.fail = False
        self.calls = 0
        self._lock = threading.Lock()

    def set(self, torrent_hash, progress=0.5, state="downloading", name=None):
        with self._lock:
            self.torrents[torrent_hash] = LiveTorrent(torrent_hash, name or torrent_hash, progress, state)

    def seed(self, torrent_hash):
        self.set(torrent_hash, progress=1.0, state="uploading")

    def list_torrents(self, timeout=None):
        self.calls += 1
        if self.fail:
            raise BackendUnavailableError("connection refused")
        with self._lock:
            return list(self.torrents.values())


class FakeController(TorrentController):
    def __init__(self):
        self.calls = []
        self.fail = False
        self.fail_hashes = set()

    def pause(self, torrent_hashes, timeout=None):
        self.calls.append(list(torrent_hashes))
        if self.fail or self.fail_hashes.intersection(torrent_hashes):
            raise BackendUnavailableError("pause rejected")


class MemoryBackend(PersistenceBackend):
    def __init__(self):
        self.records = []
        self.saves = 0
        self.fail = False
        self._lock = threading.Lock()

    @property
    def location(self):
        return "memory"

    def save(self, records):
        with self._lock:
            if self.fail:
                raise PersistenceError("disk full")
            self.records = [r.copy() for r in records]
            self.saves += 1

    def load(self):
        with self._lock:
            if self.fail:
                raise PersistenceError("unreadable")
            return [r.copy() for r in self.records]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def controller():
    return FakeController()


@pytest.fixture
def backend():
    return MemoryBackend()


@pytest.fixture
def store(backend, clock):
    return SeedingRecordStore(backend, clock=clock)


@pytest.fixture
def engine(store, provider, controller, clock):
    return ReconciliationEngine(store, provider, controller, multiplier=10.0, clock=clock)


@pytest.fixture
def seeding_config():
    return SeedingConfig(time_multiplier=10.0, check_interval=60.0,
                         tracking_file="unused.json", missing_ticks=0)


@pytest.fixture
def service(seeding_config, provider, controller, backend, clock):
    svc = SeedingService(seeding_config, provider, controller, backend=backend, clock=clock)
    yield svc
    svc.stop()
