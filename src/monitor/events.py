"""
Monitor events and the non-blocking event bus.

The capture loop publishes `LevelUpdate` about once per second and `Alert`
whenever a debounced threshold crossing has been classified. Each listener gets
its own bounded queue and delivery thread, so a slow or stuck listener only
loses its own events and never blocks the capture loop.

Author: Daniel Collier
GitHub: https://github.com/danielfcollier
Year: 2026
"""

import logging
import time
from dataclasses import dataclass, field

from .services.queue_worker import QueueWorker

logger = logging.getLogger(__name__)

LISTENER_QUEUE_SIZE = 64


@dataclass(frozen=True)
class LevelUpdate:
    db_value: float
    category_label: str
    above_threshold: bool
    last_class_label: str | None
    timestamp: float = field(default_factory=time.time)


@dataclass(frozen=True)
class Alert:
    db_value: float
    class_label: str
    confidence: float
    threshold: float = 0.0
    top_results: tuple[tuple[str, float], ...] = ()
    timestamp: float = field(default_factory=time.time)


MonitorEvent = LevelUpdate | Alert


class EventBus:
    """
    Fire-and-forget publisher. `publish` returns immediately; delivery happens on
    one worker thread per listener.
    """

    def __init__(self, queue_size: int = LISTENER_QUEUE_SIZE):
        self._queue_size = queue_size
        self._channels: list[QueueWorker] = []
        self._started = False

    def subscribe(self, listener) -> None:
        """
        :param listener: Object exposing handle_event(event), or a plain callable.
        """
        handler = getattr(listener, "handle_event", listener)
        name = f"EventListener-{type(listener).__name__}"
        channel = QueueWorker(name, handler, maxsize=self._queue_size)
        self._channels.append(channel)
        if self._started:
            channel.start()

    @property
    def listener_count(self) -> int:
        return len(self._channels)

    @property
    def dropped(self) -> int:
        return sum(channel.dropped for channel in self._channels)

    def start(self):
        self._started = True
        for channel in self._channels:
            channel.start()

    def publish(self, event: MonitorEvent) -> None:
        for channel in self._channels:
            channel.submit(event)

    def flush(self, timeout: float | None = None) -> bool:
        """Waits until every listener has handled everything published so far."""
        return all(channel.wait_idle(timeout) for channel in self._channels)

    def stop(self, timeout: float | None = None):
        self._started = False
        for channel in self._channels:
            channel.stop(timeout)
