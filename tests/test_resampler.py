import numpy as np
import pytest

from audio_classification.resampler import resample


def test_equal_rates_return_input_unchanged() -> None:
    samples = np.array([1, -2, 3], dtype=np.int16)
    assert resample(samples, 16000, 16000) is samples


def test_output_length_follows_rate_ratio() -> None:
    samples = np.zeros(44100, dtype=np.int16)
    assert len(resample(samples, 44100, 16000)) == 16000
    assert len(resample(np.zeros(10, dtype=np.int16), 44100, 16000)) == 3


def test_upsampling_interpolates_midpoints() -> None:
    ramp = np.array([0, 100, 200, 300], dtype=np.int16)
    out = resample(ramp, 1, 2)
    assert out.tolist() == [0, 50, 100, 150, 200, 250, 300, 300]
    assert out.dtype == np.int16


def test_downsampling_picks_every_other_sample() -> None:
    samples = np.arange(10, dtype=np.int16)
    assert resample(samples, 2, 1).tolist() == [0, 2, 4, 6, 8]


def test_integer_results_truncate_toward_zero() -> None:
    samples = np.array([0, -3], dtype=np.int16)
    # Midpoint is -1.5, truncated to -1 (not floored to -2)
    assert resample(samples, 1, 2).tolist() == [0, -1, -3, -3]


def test_float_input_keeps_fraction() -> None:
    samples = np.array([0.0, 1.0], dtype=np.float32)
    np.testing.assert_allclose(resample(samples, 1, 2), [0.0, 0.5, 1.0, 1.0])


def test_empty_input() -> None:
    assert len(resample(np.zeros(0, dtype=np.int16), 44100, 16000)) == 0


@pytest.mark.parametrize("src, dst", [(0, 16000), (44100, 0), (-1, 16000)])
def test_non_positive_rates_are_rejected(src, dst) -> None:
    with pytest.raises(ValueError):
        resample(np.zeros(4, dtype=np.int16), src, dst)
