import numpy as np
import pytest
from scipy.io import wavfile

from monitor.errors import DeviceUnavailableError, SourceExhausted
from monitor.services.audio_sources import WavFileSource, to_int16_mono


def test_wav_source_delivers_blocks_then_exhausts(tmp_path) -> None:
    samples = np.arange(1000, dtype=np.int16)
    path = tmp_path / "input.wav"
    wavfile.write(path, 8000, samples)

    source = WavFileSource(path, block_size=400)
    source.start()
    assert source.sample_rate == 8000

    blocks = [source.read_block() for _ in range(3)]
    assert [len(b) for b in blocks] == [400, 400, 200]
    np.testing.assert_array_equal(np.concatenate(blocks), samples)

    with pytest.raises(SourceExhausted):
        source.read_block()


def test_missing_wav_is_device_unavailable(tmp_path) -> None:
    with pytest.raises(DeviceUnavailableError):
        WavFileSource(tmp_path / "missing.wav", block_size=400)


def test_stereo_float_is_reduced_to_mono_int16() -> None:
    stereo = np.array([[0.5, -1.0], [-2.0, 0.0], [1.0, 1.0]], dtype=np.float32)
    mono = to_int16_mono(stereo)
    assert mono.dtype == np.int16
    assert mono.tolist() == [16383, -32767, 32767]


def test_int32_is_scaled_down() -> None:
    data = np.array([1 << 30, -(1 << 31)], dtype=np.int32)
    assert to_int16_mono(data).tolist() == [1 << 14, -(1 << 15)]
