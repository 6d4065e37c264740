"""
Queue Worker.
A single background thread consuming a bounded queue. Producers never block:
when the queue is full the item is dropped and counted.

Used for alert jobs, capture writes and per-listener event delivery, so that
none of them can stall the capture loop.

Author: Daniel Collier
GitHub: https://github.com/danielfcollier
Year: 2026
"""

import logging
import queue
import threading
from typing import Any, Callable

logger = logging.getLogger(__name__)

WORKER_TIMEOUT_SECONDS = 0.25
DEFAULT_QUEUE_SIZE = 16


class QueueWorker:
    def __init__(self, name: str, handler: Callable[[Any], None], maxsize: int = DEFAULT_QUEUE_SIZE):
        """
        :param name: Thread name, also used in log messages.
        :param handler: Called on the worker thread for every item. Exceptions are logged, not raised.
        :param maxsize: Queue bound; items beyond it are dropped.
        """
        self.name = name
        self._handler = handler
        self._queue: queue.Queue = queue.Queue(maxsize=maxsize)
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self.dropped = 0
        self.failed = 0

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self):
        """Spawns the background worker thread."""
        if self.running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._worker, name=self.name, daemon=True)
        self._thread.start()

    def submit(self, item) -> bool:
        """
        Queues an item without blocking.

        :return: False if the queue was full and the item was dropped.
        """
        try:
            self._queue.put_nowait(item)
            return True
        except queue.Full:
            self.dropped += 1
            logger.warning(f"⚠️ {self.name} queue full. Dropping item ({self.dropped} dropped so far).")
            return False

    def wait_idle(self, timeout: float | None = None) -> bool:
        """
        Blocks until every queued item has been handled.

        :return: True if the queue drained within the timeout.
        """
        with self._queue.all_tasks_done:
            return self._queue.all_tasks_done.wait_for(lambda: self._queue.unfinished_tasks == 0, timeout)

    def stop(self, timeout: float | None = None):
        """Signals the worker to stop and waits up to `timeout` for it to exit."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            if self._thread.is_alive():
                logger.warning(f"⚠️ {self.name} did not stop within {timeout}s.")
            self._thread = None

    def _worker(self):
        while not self._stop_event.is_set():
            try:
                item = self._queue.get(timeout=WORKER_TIMEOUT_SECONDS)
            except queue.Empty:
                continue

            try:
                self._handler(item)
            except Exception as e:
                self.failed += 1
                logger.error(f"❌ {self.name} handler failed: {e}", exc_info=True)
            finally:
                self._queue.task_done()
