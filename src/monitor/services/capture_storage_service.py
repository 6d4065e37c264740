"""
Capture Storage Service.
Background writer for evidence recordings:
1. Encodes the pre-roll snapshot as WAV (in RAM).
2. Stores it through the primary provider (local disk or S3).
3. Falls back to local disk if the primary provider fails.

Failures are logged and counted, never retried and never raised into the monitor.

Author: Daniel Collier
GitHub: https://github.com/danielfcollier
Year: 2026
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime

import numpy as np

from domain.interfaces import StorageSink

from .. import capture_encoder
from ..errors import StorageWriteError
from .queue_worker import QueueWorker

logger = logging.getLogger(__name__)

CAPTURE_QUEUE_SIZE = 8


@dataclass(frozen=True)
class CaptureRequest:
    samples: np.ndarray
    sample_rate: int
    label: str
    created_at: datetime = field(default_factory=datetime.now)


class CaptureStorageService:
    """
    Owns the capture write queue. `submit` is safe to call from any thread and never blocks.
    """

    def __init__(
        self,
        provider: StorageSink,
        folder: str,
        fallback: StorageSink | None = None,
        queue_size: int = CAPTURE_QUEUE_SIZE,
    ):
        """
        :param provider: Primary storage destination.
        :param folder: Logical folder the captures are grouped under.
        :param fallback: Optional local provider used when the primary one fails.
        """
        self._provider = provider
        self._fallback = fallback
        self._folder = folder
        self._worker = QueueWorker("CaptureWriter", self._write, maxsize=queue_size)

        self.saved: list[str] = []
        self.failed = 0

    def start(self):
        self._worker.start()
        logger.info(f"💾 Capture Storage Started. Folder: '{self._folder}'")

    def stop(self, timeout: float | None = None):
        self._worker.stop(timeout)

    def wait_idle(self, timeout: float | None = None) -> bool:
        return self._worker.wait_idle(timeout)

    def submit(self, samples: np.ndarray, sample_rate: int, label: str) -> bool:
        """Queues a capture for encoding and storage. Returns False if it was dropped."""
        return self._worker.submit(CaptureRequest(samples=samples, sample_rate=sample_rate, label=label))

    def save(self, request: CaptureRequest) -> str | None:
        """
        Encodes and stores one capture synchronously.

        :return: Location of the stored artifact, or None if it was lost.
        """
        name = capture_encoder.capture_filename(request.label, request.created_at)

        try:
            payload = capture_encoder.encode(request.samples, request.sample_rate)
        except Exception as e:
            self.failed += 1
            logger.error(f"❌ Audio Conversion Failed for {name}: {e}")
            return None

        try:
            location = str(self._provider.store(self._folder, name, payload))
        except StorageWriteError as e:
            if self._fallback is None:
                self.failed += 1
                logger.error(f"❌ Capture Save Failed! Evidence Lost: {e}")
                return None

            logger.warning(f"☁️ Primary storage failed ({e}). Saving locally.")
            try:
                location = str(self._fallback.store(self._folder, name, payload))
            except StorageWriteError as fallback_error:
                self.failed += 1
                logger.error(f"❌ Disk Save Failed! Evidence Lost: {fallback_error}")
                return None

        duration = len(request.samples) / request.sample_rate
        self.saved.append(location)
        logger.info(f"💾 Capture Saved: {location} ({duration:.1f}s)")
        return location

    def _write(self, request: CaptureRequest):
        self.save(request)
