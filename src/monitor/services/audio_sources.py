"""
Audio Sources.
Thin adapters that deliver mono int16 blocks to the AlertEngine:
- SoundDeviceSource: live microphone via PortAudio ('sounddevice').
- WavFileSource: replays a WAV file block by block (offline analysis / demos).

Author: Daniel Collier
GitHub: https://github.com/danielfcollier
Year: 2026
"""

import logging
import time
from pathlib import Path

import numpy as np
from scipy.io import wavfile

from ..errors import DeviceUnavailableError, SourceExhausted

logger = logging.getLogger(__name__)

EMPTY_BLOCK = np.zeros(0, dtype=np.int16)


def to_int16_mono(data: np.ndarray) -> np.ndarray:
    """Converts any scipy-readable WAV payload to mono int16 (first channel)."""
    if data.ndim > 1:
        data = data[:, 0]

    if data.dtype == np.int16:
        return data
    if data.dtype == np.uint8:
        return ((data.astype(np.int16) - 128) << 8).astype(np.int16)
    if data.dtype == np.int32:
        return (data >> 16).astype(np.int16)
    if np.issubdtype(data.dtype, np.floating):
        return (np.clip(data, -1.0, 1.0) * 32767).astype(np.int16)
    raise ValueError(f"Unsupported WAV sample type: {data.dtype}")


class SoundDeviceSource:
    """Blocking reads from a PortAudio input stream (mono, 16-bit)."""

    def __init__(self, sample_rate: int, block_size: int, device: int | str | None = None):
        self.sample_rate = sample_rate
        self._block_size = block_size
        self._device = device
        self._stream = None
        self._sd = None

    @staticmethod
    def list_devices():
        import sounddevice as sd

        return sd.query_devices()

    def start(self) -> None:
        """
        Opens and starts the input stream.

        :raises DeviceUnavailableError: If PortAudio or the device cannot be opened.
        """
        try:
            import sounddevice as sd

            self._sd = sd
            self._stream = sd.InputStream(
                samplerate=self.sample_rate,
                blocksize=self._block_size,
                device=self._device,
                channels=1,
                dtype="int16",
            )
            self._stream.start()
        except Exception as e:
            self._stream = None
            raise DeviceUnavailableError(f"Cannot open audio input (device={self._device}): {e}") from e

        logger.info(f"🎤 Microphone stream started: {self.sample_rate}Hz, block={self._block_size}")

    def read_block(self) -> np.ndarray:
        """Blocks until the next block is available. Returns an empty block on a transient read error."""
        if self._stream is None:
            return EMPTY_BLOCK

        try:
            data, overflowed = self._stream.read(self._block_size)
        except self._sd.PortAudioError as e:
            logger.warning(f"⚠️ Audio read failed: {e}")
            return EMPTY_BLOCK

        if overflowed:
            logger.debug("Input overflow: samples were lost by the driver.")
        return data[:, 0].copy()

    def stop(self) -> None:
        if self._stream is None:
            return
        try:
            self._stream.stop()
            self._stream.close()
        except Exception as e:
            logger.warning(f"⚠️ Error while closing audio stream: {e}")
        finally:
            self._stream = None
        logger.info("🎤 Microphone stream released.")


class WavFileSource:
    """
    Replays a WAV file as if it were a live input.
    With realtime=True, each read waits for the block's duration.
    """

    def __init__(self, path: str | Path, block_size: int, realtime: bool = False):
        self._path = Path(path)
        self._block_size = block_size
        self._realtime = realtime
        self._cursor = 0

        try:
            self.sample_rate, data = wavfile.read(self._path)
            self._samples = to_int16_mono(np.asarray(data))
        except (OSError, ValueError) as e:
            raise DeviceUnavailableError(f"Cannot read WAV input '{self._path}': {e}") from e

    @property
    def duration_seconds(self) -> float:
        return len(self._samples) / self.sample_rate

    def start(self) -> None:
        self._cursor = 0
        logger.info(f"📂 Replaying '{self._path.name}' ({self.duration_seconds:.1f}s @ {self.sample_rate}Hz)")

    def read_block(self) -> np.ndarray:
        """
        :raises SourceExhausted: Once the whole file has been delivered.
        """
        if self._cursor >= len(self._samples):
            raise SourceExhausted(f"End of '{self._path.name}'")

        block = self._samples[self._cursor : self._cursor + self._block_size]
        self._cursor += len(block)

        if self._realtime:
            time.sleep(len(block) / self.sample_rate)
        return block

    def stop(self) -> None:
        self._cursor = len(self._samples)
