import random

import pytest

from mneme.application.persistence import QueueSnapshotRepository
from mneme.application.queue_manager import WordQueueManager
from mneme.infrastructure.storage import MemoryStore


class FakeClock:
    """Epoch-millisecond clock that advances one second per reading."""

    def __init__(self, start: int = 1_000_000, step: int = 1_000):
        self.now = start
        self.step = step

    def __call__(self) -> int:
        self.now += self.step
        return self.now


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_queue(store, clock):
    """Factory building a WordQueueManager over the shared store."""

    def _make(**kwargs) -> WordQueueManager:
        kwargs.setdefault("clock", clock)
        kwargs.setdefault("rng", random.Random(42))
        return WordQueueManager(snapshots=QueueSnapshotRepository(store), **kwargs)

    return _make


@pytest.fixture
def queue(make_queue):
    return make_queue()


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir."""
    home = tmp_path / "home"
    home.mkdir()

    # Mocking HOME to a temp directory to isolate config/data
    monkeypatch.setenv("HOME", str(home))
    for var in ("MNEME_BATCH_SIZE", "MNEME_DATA_DIR", "MNEME_STORAGE", "MNEME_STORAGE_FILE"):
        monkeypatch.delenv(var, raising=False)
    return home
