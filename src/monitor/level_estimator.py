"""
Level Estimator.
Converts a block of int16 samples into an approximate dB SPL value and a
loudness category.

The affine mapping (raw * 0.9 + 20, clamped to 0..130) is an empirical
calibration for an uncalibrated phone/USB microphone. It is NOT a measured
acoustic model; adjust it per device if real SPL accuracy matters.

Author: Daniel Collier
GitHub: https://github.com/danielfcollier
Year: 2026
"""

import math
from dataclasses import dataclass
from enum import Enum

import numpy as np

# --- Calibration Constants (tunable) ---
CALIBRATION_GAIN = 0.9
CALIBRATION_OFFSET_DB = 20.0
DB_FLOOR = 0.0
DB_CEILING = 130.0

# Relative dB reported when the block is digital silence (rms == 0)
SILENCE_RAW_DB = 0.0


class LoudnessCategory(Enum):
    """Loudness buckets. Each value is (upper bound exclusive, display label)."""

    QUIET = (40.0, "Quiet")
    MODERATE = (60.0, "Moderate")
    NOISY = (75.0, "Noisy")
    LOUD = (85.0, "Loud")
    VERY_LOUD = (100.0, "Very Loud")
    DANGEROUS = (math.inf, "DANGEROUS")

    @property
    def upper_bound(self) -> float:
        return self.value[0]

    @property
    def label(self) -> str:
        return self.value[1]


def categorize(db_value: float) -> LoudnessCategory:
    """
    Maps a calibrated dB value to its bucket. A value strictly below a
    bucket's upper bound stays in that bucket (39.9 -> QUIET, 40.0 -> MODERATE).
    """
    for category in LoudnessCategory:
        if db_value < category.upper_bound:
            return category
    return LoudnessCategory.DANGEROUS


@dataclass(frozen=True)
class LoudnessSample:
    db: float
    category: LoudnessCategory

    @property
    def label(self) -> str:
        return self.category.label


class LevelEstimator:
    """
    Stateless RMS -> dB -> calibrated SPL converter.
    The calibration constants default to the module values and may be overridden per device.
    """

    def __init__(
        self,
        gain: float = CALIBRATION_GAIN,
        offset_db: float = CALIBRATION_OFFSET_DB,
        floor_db: float = DB_FLOOR,
        ceiling_db: float = DB_CEILING,
    ):
        self._gain = gain
        self._offset_db = offset_db
        self._floor_db = floor_db
        self._ceiling_db = ceiling_db

    @staticmethod
    def rms(block: np.ndarray) -> float:
        """Root-mean-square amplitude of the block, in raw sample units."""
        samples = np.asarray(block, dtype=np.float64)
        return float(np.sqrt(np.mean(samples * samples)))

    @staticmethod
    def relative_db(rms: float) -> float:
        """20*log10(rms), or the silence floor for an all-zero block."""
        if rms > 0:
            return 20.0 * math.log10(rms)
        return SILENCE_RAW_DB

    def calibrate(self, raw_db: float) -> float:
        """Applies the affine calibration and clamps to the reporting range."""
        spl = raw_db * self._gain + self._offset_db
        return min(max(spl, self._floor_db), self._ceiling_db)

    def compute(self, block: np.ndarray) -> LoudnessSample:
        """
        :param block: Non-empty 1-D array of int16 samples.
        :return: Calibrated loudness and its category.
        :raises ValueError: If the block is empty.
        """
        if len(block) == 0:
            raise ValueError("Cannot estimate loudness of an empty block")

        db = self.calibrate(self.relative_db(self.rms(block)))
        return LoudnessSample(db=db, category=categorize(db))
