"""
Capture Encoder.
Serialises an int16 mono snapshot into a standard 44-byte-header PCM WAV
container and names the resulting evidence file.

Author: Daniel Collier
GitHub: https://github.com/danielfcollier
Year: 2026
"""

import io
import re
from datetime import datetime

import numpy as np
from scipy.io import wavfile

# --- File & Path Templates ---
FILENAME_CAPTURE = "capture_{label_part}{timestamp}.wav"
TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S-%f"
MAX_LABEL_LENGTH = 30

WAV_HEADER_SIZE = 44
_UNSAFE_LABEL_CHARS = re.compile(r"[^a-zA-Z0-9_-]")


def sanitize_label(label: str | None) -> str:
    """Replaces characters unsafe in filenames with '_' and bounds the length."""
    if not label:
        return ""
    return _UNSAFE_LABEL_CHARS.sub("_", label)[:MAX_LABEL_LENGTH]


def capture_filename(label: str | None, now: datetime | None = None) -> str:
    """
    Builds 'capture_<label>_<yyyy-MM-dd_HH-mm-ss-SSS>.wav'.
    The label part is omitted when it sanitises to an empty string.
    """
    now = now or datetime.now()
    timestamp = now.strftime(TIMESTAMP_FORMAT)[:-3]  # microseconds -> milliseconds
    sanitized = sanitize_label(label)
    label_part = f"{sanitized}_" if sanitized else ""
    return FILENAME_CAPTURE.format(label_part=label_part, timestamp=timestamp)


def encode(samples: np.ndarray, sample_rate: int) -> bytes:
    """
    Encodes mono int16 samples as RIFF/WAVE PCM.

    Layout: 'RIFF' <size-8> 'WAVE' | 'fmt ' 16, PCM(1), 1 ch, rate, rate*2, 2, 16 |
    'data' <2*N> followed by little-endian samples.
    """
    data = np.asarray(samples, dtype=np.int16).ravel()
    wav_buffer = io.BytesIO()
    wavfile.write(wav_buffer, int(sample_rate), data)
    return wav_buffer.getvalue()


def decode(payload: bytes) -> tuple[int, np.ndarray]:
    """
    Reads back a capture produced by encode().

    :return: (sample_rate, int16 samples)
    """
    sample_rate, data = wavfile.read(io.BytesIO(payload))
    return sample_rate, np.asarray(data, dtype=np.int16)
