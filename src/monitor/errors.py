"""
Exception hierarchy for the sound monitor.

Only device and configuration errors are fatal. Classification and storage
failures are caught by their background workers and logged.

Author: Daniel Collier
GitHub: https://github.com/danielfcollier
Year: 2026
"""


class MonitorError(Exception):
    """Base class for sound monitor errors."""


class ConfigurationError(MonitorError):
    """Raised when the YAML configuration cannot be parsed or validated."""


class DeviceUnavailableError(MonitorError):
    """Raised when the audio input device cannot be opened or started."""


class SourceExhausted(MonitorError):
    """Raised by finite audio sources (e.g. WAV replay) when no blocks remain."""


class StorageWriteError(MonitorError):
    """Raised by a storage sink when a capture could not be persisted."""


class InvalidThresholdError(MonitorError, ValueError):
    """Raised at the control boundary for thresholds outside the accepted range."""
