"""
Defines the state shared between the capture worker, the alert worker and the
control path (threshold updates).

Author: Daniel Collier
GitHub: https://github.com/danielfcollier
Year: 2026
"""

import threading

from .errors import InvalidThresholdError

MIN_THRESHOLD_DB = 1.0
MAX_THRESHOLD_DB = 130.0


def validate_threshold(value) -> float:
    """
    Control-boundary check for user supplied thresholds. The engine assumes
    its input already passed through here.

    :raises InvalidThresholdError: If the value is not a number in [1, 130].
    """
    try:
        threshold = float(value)
    except (TypeError, ValueError):
        raise InvalidThresholdError(f"Threshold must be a number, got {value!r}")

    if not (MIN_THRESHOLD_DB <= threshold <= MAX_THRESHOLD_DB):
        raise InvalidThresholdError(
            f"Enter a value between {MIN_THRESHOLD_DB:.0f} and {MAX_THRESHOLD_DB:.0f} dB (got {threshold:g})"
        )
    return threshold


class ThresholdState:
    """
    Threshold, cooldown bookkeeping and the sticky classification label.
    All fields are read and written under one lock.
    """

    def __init__(self, threshold: float, cooldown_seconds: float):
        self._lock = threading.Lock()
        self._threshold = float(threshold)
        self._cooldown = float(cooldown_seconds)
        self._last_alert_time: float | None = None
        self._last_class_label: str | None = None

    @property
    def threshold(self) -> float:
        with self._lock:
            return self._threshold

    @threshold.setter
    def threshold(self, value: float):
        with self._lock:
            self._threshold = float(value)

    @property
    def cooldown_seconds(self) -> float:
        return self._cooldown

    @property
    def last_alert_time(self) -> float | None:
        with self._lock:
            return self._last_alert_time

    @property
    def last_class_label(self) -> str | None:
        with self._lock:
            return self._last_class_label

    @last_class_label.setter
    def last_class_label(self, label: str | None):
        with self._lock:
            self._last_class_label = label

    def try_begin_alert(self, now: float) -> bool:
        """
        Records `now` as the last alert time if the cooldown has elapsed.
        Check and update happen atomically, so concurrent evaluations cannot both fire.

        :return: True if an alert may be dispatched.
        """
        with self._lock:
            if self._last_alert_time is not None and (now - self._last_alert_time) <= self._cooldown:
                return False
            self._last_alert_time = now
            return True

    def cooldown_remaining(self, now: float) -> float:
        with self._lock:
            if self._last_alert_time is None:
                return 0.0
            return max(0.0, self._cooldown - (now - self._last_alert_time))
