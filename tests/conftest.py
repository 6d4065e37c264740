"""Shared pytest fixtures and fakes for the sound monitor test suite."""

import threading

import numpy as np
import pytest

from audio_classification.gateway import ClassificationGateway
from audio_classification.model import ClassifierLoaded, ClassifierUnavailable
from monitor.errors import SourceExhausted, StorageWriteError
from monitor.events import Alert, LevelUpdate


# =============================================================================
# Fakes
# =============================================================================


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class FakeClassifier:
    """Returns fixed scores and counts invocations."""

    def __init__(self, labels=None, scores=None):
        self.labels = labels or ["Speech", "Siren", "Dog"]
        self.scores = np.asarray(scores if scores is not None else [0.1, 0.7, 0.2], dtype=np.float32)
        self.calls = 0
        self.windows = []
        self._lock = threading.Lock()

    def infer(self, window):
        with self._lock:
            self.calls += 1
            self.windows.append(window)
        return self.scores


class ExplodingClassifier:
    labels = ["Speech"]

    def infer(self, window):
        raise RuntimeError("inference backend crashed")


class BlockSource:
    """
    Finite audio source: delivers the given blocks, advancing a fake clock by
    each block's duration, then raises SourceExhausted.
    """

    def __init__(self, blocks, sample_rate: int, clock: FakeClock | None = None):
        self.sample_rate = sample_rate
        self._blocks = list(blocks)
        self._clock = clock
        self.started = False
        self.stopped = 0

    def start(self):
        self.started = True

    def stop(self):
        self.stopped += 1

    def read_block(self):
        if not self._blocks:
            raise SourceExhausted("no more blocks")
        block = self._blocks.pop(0)
        if self._clock is not None:
            self._clock.advance(len(block) / self.sample_rate)
        return block


class MemoryStorage:
    def __init__(self):
        self.items = {}
        self._lock = threading.Lock()

    def store(self, folder, name, payload):
        with self._lock:
            self.items[f"{folder}/{name}"] = payload
        return f"memory://{folder}/{name}"


class FailingStorage:
    def __init__(self):
        self.attempts = 0

    def store(self, folder, name, payload):
        self.attempts += 1
        raise StorageWriteError("disk full")


class RecordingListener:
    def __init__(self):
        self.events = []
        self._lock = threading.Lock()

    def handle_event(self, event):
        with self._lock:
            self.events.append(event)

    @property
    def alerts(self):
        return [e for e in self.events if isinstance(e, Alert)]

    @property
    def level_updates(self):
        return [e for e in self.events if isinstance(e, LevelUpdate)]


# =============================================================================
# Signal helpers
# =============================================================================


def tone(seconds: float, sample_rate: int, amplitude: int = 10000, freq: float = 440.0) -> np.ndarray:
    t = np.arange(int(seconds * sample_rate)) / sample_rate
    return (amplitude * np.sin(2 * np.pi * freq * t)).astype(np.int16)


def split_blocks(samples: np.ndarray, block_size: int) -> list[np.ndarray]:
    return [samples[i : i + block_size] for i in range(0, len(samples), block_size)]


# =============================================================================
# Shared Fixtures
# =============================================================================


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_classifier() -> FakeClassifier:
    return FakeClassifier()


@pytest.fixture
def gateway(fake_classifier) -> ClassificationGateway:
    return ClassificationGateway(ClassifierLoaded(fake_classifier))


@pytest.fixture
def unavailable_gateway() -> ClassificationGateway:
    return ClassificationGateway(ClassifierUnavailable("model missing"))


@pytest.fixture
def memory_storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def listener() -> RecordingListener:
    return RecordingListener()
