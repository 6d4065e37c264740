"""
Alert Engine.
The orchestrator of the sound monitor:
- Capture worker: reads blocks, feeds the pre-roll RingBuffer and the LevelEstimator.
- Once per cadence tick (~1s): publishes a LevelUpdate and checks the threshold.
- On a debounced crossing: snapshots the pre-roll and hands it to the alert worker,
  which classifies it, queues the evidence capture and publishes the Alert.

Only the block read may block the capture worker. Everything slow (inference,
file I/O, listeners) runs on other threads behind bounded queues.

Author: Daniel Collier
GitHub: https://github.com/danielfcollier
Year: 2026
"""

import logging
import threading
import time
from dataclasses import dataclass
from enum import Enum

import numpy as np

from audio_classification.gateway import UNKNOWN_LABEL, ClassificationGateway
from domain.interfaces import AudioSource, PowerLock

from .context import ThresholdState
from .errors import DeviceUnavailableError, SourceExhausted
from .events import Alert, EventBus, LevelUpdate
from .level_estimator import LevelEstimator, LoudnessSample
from .ring_buffer import RingBuffer
from .services.capture_storage_service import CaptureStorageService
from .services.queue_worker import QueueWorker
from .settings import MonitorConfig

logger = logging.getLogger(__name__)

ALERT_QUEUE_SIZE = 4


class MonitorState(Enum):
    IDLE = "idle"
    MONITORING = "monitoring"
    STOPPED = "stopped"


@dataclass(frozen=True)
class AlertJob:
    snapshot: np.ndarray
    loudness: LoudnessSample
    threshold: float


class AlertEngine:
    """
    State machine: IDLE -> MONITORING -> STOPPED. stop() is idempotent.
    """

    def __init__(
        self,
        config: MonitorConfig,
        source: AudioSource,
        gateway: ClassificationGateway,
        storage: CaptureStorageService | None = None,
        events: EventBus | None = None,
        estimator: LevelEstimator | None = None,
        clock=time.monotonic,
        power_lock: PowerLock | None = None,
    ):
        """
        :param config: Immutable loop parameters (rate, block size, retention, cooldown, threshold).
        :param source: AudioSource delivering int16 mono blocks at config.sample_rate.
        :param gateway: Classification gateway (may wrap an unavailable classifier).
        :param storage: Capture writer; None disables evidence recording.
        :param events: Bus the LevelUpdate/Alert events are published on.
        :param clock: Monotonic time source in seconds, injectable for tests.
        :param power_lock: Optional host resource acquired while monitoring.
        """
        self._config = config
        self._source = source
        self._gateway = gateway
        self._storage = storage
        self._events = events or EventBus()
        self._estimator = estimator or LevelEstimator()
        self._clock = clock
        self._power_lock = power_lock
        self._power_lock_held = False

        self._buffer = RingBuffer(config.ring_capacity)
        self._state = ThresholdState(config.default_threshold_db, config.alert_cooldown_seconds)
        self._alert_worker = QueueWorker("AlertWorker", self._handle_alert, maxsize=ALERT_QUEUE_SIZE)

        # Cadence
        self._blocks_per_tick = config.blocks_per_tick
        self._block_counter = 0

        # Lifecycle
        self._status = MonitorState.IDLE
        self._status_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

        self.last_loudness: LoudnessSample | None = None
        self.alerts_dispatched = 0
        self.source_error: Exception | None = None

        logger.info(
            f"🧠 Alert Engine Initialized. Threshold: {config.default_threshold_db:.0f} dB | "
            f"Cooldown: {config.alert_cooldown_seconds:.0f}s | Pre-roll: {config.retention_seconds:.1f}s"
        )

    # --- Properties ---

    @property
    def status(self) -> MonitorState:
        with self._status_lock:
            return self._status

    @property
    def threshold(self) -> float:
        return self._state.threshold

    @property
    def last_class_label(self) -> str | None:
        return self._state.last_class_label

    @property
    def buffer(self) -> RingBuffer:
        return self._buffer

    @property
    def events(self) -> EventBus:
        return self._events

    @property
    def is_capturing(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    # --- Control Path ---

    def set_threshold(self, value: float) -> None:
        """
        Applies a new threshold from any thread; the next evaluation uses it.
        The value must already be validated (see context.validate_threshold).
        """
        self._state.threshold = value
        logger.info(f"🎚️ Threshold updated to {value:.0f} dB")

    def start(self) -> None:
        """
        Starts the workers, the audio source and the capture thread.

        :raises DeviceUnavailableError: If the source cannot start. The engine is then STOPPED.
        """
        with self._status_lock:
            if self._status is not MonitorState.IDLE:
                raise RuntimeError(f"AlertEngine cannot start from state '{self._status.value}'")

        self._events.start()
        self._alert_worker.start()
        if self._storage is not None:
            self._storage.start()

        try:
            self._source.start()
        except DeviceUnavailableError as e:
            logger.error(f"❌ Monitoring cannot start: {e}")
            with self._status_lock:
                self._status = MonitorState.STOPPED
            self._stop_workers(self._config.shutdown_timeout_seconds)
            raise

        if self._power_lock is not None:
            self._power_lock.acquire()
            self._power_lock_held = True

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._capture_loop, args=(self._stop_event,), name="SoundLevelMonitor", daemon=True
        )
        with self._status_lock:
            self._status = MonitorState.MONITORING
        self._thread.start()
        logger.info("🔴 Monitoring started.")

    def wait(self, timeout: float | None = None) -> bool:
        """
        Waits for the capture thread to finish (e.g. a replayed file ran out).

        :return: True if the capture thread is no longer running.
        """
        if self._thread is not None:
            self._thread.join(timeout)
        return not self.is_capturing

    def wait_idle(self, timeout: float | None = None) -> bool:
        """Waits until pending alert jobs, capture writes and event deliveries are done."""
        idle = self._alert_worker.wait_idle(timeout)
        if self._storage is not None:
            idle = self._storage.wait_idle(timeout) and idle
        return self._events.flush(timeout) and idle

    def stop(self, timeout: float | None = None) -> None:
        """
        Requests the capture thread to stop, joins it with a bounded wait, then
        releases the source and the power lock. Calling it again is a no-op.
        """
        with self._status_lock:
            if self._status is MonitorState.STOPPED:
                return
            was_started = self._status is MonitorState.MONITORING
            self._status = MonitorState.STOPPED

        timeout = self._config.shutdown_timeout_seconds if timeout is None else timeout

        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            if self._thread.is_alive():
                logger.warning(f"⚠️ Capture thread did not stop within {timeout}s.")
            self._thread = None

        if was_started:
            try:
                self._source.stop()
            except Exception as e:
                logger.error(f"❌ Failed to release audio source: {e}")

        if self._power_lock_held:
            self._power_lock.release()
            self._power_lock_held = False

        if was_started:
            self.wait_idle(timeout)
        self._stop_workers(timeout)
        logger.info("🛑 Monitoring stopped.")

    def _stop_workers(self, timeout: float):
        self._alert_worker.stop(timeout)
        if self._storage is not None:
            self._storage.stop(timeout)
        self._events.stop(timeout)

    # --- Capture Path ---

    def _capture_loop(self, stop_event: threading.Event):
        while not stop_event.is_set():
            try:
                block = self._source.read_block()
            except SourceExhausted as e:
                logger.info(f"📭 Audio source exhausted: {e}")
                break
            except Exception as e:
                self.source_error = e
                logger.error(f"❌ Audio source failed. Capture loop ends: {e}", exc_info=True)
                break

            self.process_block(block)

    def process_block(self, block: np.ndarray) -> LoudnessSample | None:
        """
        Per-block step: pre-roll, loudness, and the evaluation on cadence ticks.
        Runs on the capture thread; never blocks.

        :return: The block's loudness, or None for an empty block.
        """
        if block is None or len(block) == 0:
            return None

        self._buffer.push(block)
        loudness = self._estimator.compute(block)
        self.last_loudness = loudness

        self._block_counter += 1
        if self._block_counter >= self._blocks_per_tick:
            self._block_counter = 0
            self._evaluate(loudness, self._clock())

        return loudness

    def _evaluate(self, loudness: LoudnessSample, now: float):
        threshold = self._state.threshold
        above = loudness.db >= threshold

        self._events.publish(
            LevelUpdate(
                db_value=loudness.db,
                category_label=loudness.label,
                above_threshold=above,
                last_class_label=self._state.last_class_label,
            )
        )

        if not above:
            return

        if not self._state.try_begin_alert(now):
            remaining = self._state.cooldown_remaining(now)
            logger.debug(f"   ⏳ {loudness.db:.0f} dB over threshold, cooldown active ({remaining:.1f}s remaining).")
            return

        snapshot = self._buffer.snapshot()
        logger.info(
            f"🚨 {loudness.db:.0f} dB exceeds threshold of {threshold:.0f} dB "
            f"({len(snapshot) / self._config.sample_rate:.1f}s pre-roll)"
        )
        if self._alert_worker.submit(AlertJob(snapshot=snapshot, loudness=loudness, threshold=threshold)):
            self.alerts_dispatched += 1

    # --- Alert Path (AlertWorker thread) ---

    def _handle_alert(self, job: AlertJob):
        result = self._gateway.classify(job.snapshot, self._config.sample_rate)
        label = result.label if result else UNKNOWN_LABEL
        confidence = result.confidence if result else 0.0

        self._state.last_class_label = label

        if self._storage is not None:
            self._storage.submit(job.snapshot, self._config.sample_rate, label)

        self._events.publish(
            Alert(
                db_value=job.loudness.db,
                class_label=label,
                confidence=confidence,
                threshold=job.threshold,
                top_results=result.top_results if result else (),
            )
        )
