"""
Ring Buffer.
Fixed-capacity circular store for the most recent int16 audio samples.
Provides the pre-roll audio that is classified and saved when an alert fires.

Author: Daniel Collier
GitHub: https://github.com/danielfcollier
Year: 2026
"""

import logging
import threading

import numpy as np

logger = logging.getLogger(__name__)


class RingBuffer:
    """
    Circular sample store backed by a single pre-allocated numpy array.

    Writes never allocate: a push is at most two slice copies (up to the end of
    storage, then wrapping to the start). Snapshots are taken under a lock, so
    a reader never observes a push half-applied.
    """

    def __init__(self, capacity: int, dtype=np.int16):
        """
        :param capacity: Number of samples retained (e.g. retention_seconds * sample_rate).
        :param dtype: Sample type of the backing storage.
        """
        if capacity <= 0:
            raise ValueError(f"RingBuffer capacity must be positive, got {capacity}")

        self._capacity = int(capacity)
        self._buffer = np.zeros(self._capacity, dtype=dtype)
        self._write_cursor = 0
        self._wrapped = False
        self._lock = threading.Lock()

        logger.debug(f"RingBuffer initialized: capacity={self._capacity} samples")

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        with self._lock:
            return self._capacity if self._wrapped else self._write_cursor

    def push(self, samples: np.ndarray) -> None:
        """
        Appends samples, overwriting the oldest data once capacity is exceeded.

        :param samples: 1-D array of samples in chronological order.
        """
        count = len(samples)
        if count == 0:
            return

        # Only the newest `capacity` samples can survive this push.
        if count >= self._capacity:
            samples = samples[-self._capacity :]
            with self._lock:
                self._buffer[:] = samples
                self._write_cursor = 0
                self._wrapped = True
            return

        with self._lock:
            start = self._write_cursor
            first = min(count, self._capacity - start)
            self._buffer[start : start + first] = samples[:first]

            remaining = count - first
            if remaining:
                self._buffer[:remaining] = samples[first:]

            end = start + count
            if end >= self._capacity:
                self._wrapped = True
            self._write_cursor = end % self._capacity

    def snapshot(self) -> np.ndarray:
        """
        Returns a copy of the held samples, oldest first.

        :return: New array of length min(capacity, total samples pushed).
        """
        with self._lock:
            if not self._wrapped:
                return self._buffer[: self._write_cursor].copy()
            # Oldest data starts at the cursor: tail segment, then head segment.
            return np.concatenate((self._buffer[self._write_cursor :], self._buffer[: self._write_cursor]))

    def clear(self) -> None:
        """Drops all held samples. Capacity is unchanged."""
        with self._lock:
            self._write_cursor = 0
            self._wrapped = False
