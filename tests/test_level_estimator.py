import numpy as np
import pytest

from monitor.level_estimator import LevelEstimator, LoudnessCategory, categorize


@pytest.mark.parametrize(
    "db_value, expected",
    [
        (0.0, LoudnessCategory.QUIET),
        (39.9, LoudnessCategory.QUIET),
        (40.0, LoudnessCategory.MODERATE),
        (59.9, LoudnessCategory.MODERATE),
        (60.0, LoudnessCategory.NOISY),
        (74.9, LoudnessCategory.NOISY),
        (75.0, LoudnessCategory.LOUD),
        (85.0, LoudnessCategory.VERY_LOUD),
        (99.9, LoudnessCategory.VERY_LOUD),
        (100.0, LoudnessCategory.DANGEROUS),
        (130.0, LoudnessCategory.DANGEROUS),
    ],
)
def test_category_boundaries(db_value, expected) -> None:
    assert categorize(db_value) is expected


def test_digital_silence_maps_to_calibration_offset() -> None:
    sample = LevelEstimator().compute(np.zeros(4096, dtype=np.int16))
    assert sample.db == pytest.approx(20.0)
    assert sample.label == "Quiet"


def test_constant_amplitude_is_independent_of_block_length() -> None:
    estimator = LevelEstimator()
    short = estimator.compute(np.full(100, 1000, dtype=np.int16))
    long = estimator.compute(np.full(10000, -1000, dtype=np.int16))

    # 20*log10(1000) = 60 -> 60 * 0.9 + 20 = 74
    assert short.db == pytest.approx(74.0)
    assert long.db == pytest.approx(short.db)
    assert short.category is LoudnessCategory.NOISY


def test_full_scale_is_clamped_to_ceiling() -> None:
    estimator = LevelEstimator(gain=2.0)
    sample = estimator.compute(np.full(64, 32767, dtype=np.int16))
    assert sample.db == 130.0
    assert sample.label == "DANGEROUS"


def test_rms_does_not_overflow_int16() -> None:
    block = np.array([32767, -32768] * 8, dtype=np.int16)
    assert LevelEstimator.rms(block) == pytest.approx(32767.5, rel=1e-4)


def test_custom_calibration() -> None:
    estimator = LevelEstimator(gain=1.0, offset_db=0.0)
    assert estimator.calibrate(60.0) == 60.0
    assert estimator.calibrate(-10.0) == 0.0


def test_empty_block_is_rejected() -> None:
    with pytest.raises(ValueError):
        LevelEstimator().compute(np.zeros(0, dtype=np.int16))
