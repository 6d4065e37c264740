"""
Defines the protocols for the collaborators of the sound monitor.

The monitor core only talks to these contracts. It knows nothing about
'sounddevice', TensorFlow or boto3.

Author: Daniel Collier
GitHub: https://github.com/danielfcollier
Year: 2025
"""

from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import numpy as np


@runtime_checkable
class AudioSource(Protocol):
    """
    Delivers mono int16 blocks at a fixed sample rate.
    read_block() may return an empty array on a transient error and raises
    SourceExhausted when a finite source has nothing left.
    """

    sample_rate: int

    def start(self) -> None: ...

    def stop(self) -> None: ...

    def read_block(self) -> np.ndarray: ...


@runtime_checkable
class Classifier(Protocol):
    """
    Opaque sound classifier.
    infer() takes a fixed-length float32 window in [-1, 1] and returns one score per label.
    """

    labels: list[str]

    def infer(self, window: np.ndarray) -> np.ndarray: ...


@runtime_checkable
class EventListener(Protocol):
    """Consumes LevelUpdate and Alert events (UI, logs, metrics)."""

    def handle_event(self, event: Any) -> None: ...


@runtime_checkable
class StorageSink(Protocol):
    """
    Persists a named payload under a logical folder.
    Returns the stored location; raises StorageWriteError on failure.
    """

    def store(self, folder: str, name: str, payload: bytes) -> Path | str: ...


@runtime_checkable
class PowerLock(Protocol):
    """Host resource held while monitoring (e.g. a wake lock)."""

    def acquire(self) -> None: ...

    def release(self) -> None: ...
