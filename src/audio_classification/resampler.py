"""
Linear-interpolation resampler.

Adapts captured audio (e.g. 44.1 kHz) to the classifier input rate (16 kHz).
Linear interpolation is cheap and deterministic, which matters more here than
band-limited quality: the output only feeds a coarse sound classifier.

Author: Daniel Collier
GitHub: https://github.com/danielfcollier
Year: 2026
"""

import numpy as np


def resample(samples: np.ndarray, src_rate: int, dst_rate: int) -> np.ndarray:
    """
    Converts samples from src_rate to dst_rate by linear interpolation.

    For output index i the source position is i * (src_rate / dst_rate); the
    value is interpolated between the sample at floor(position) and the next one
    (clamped to the last sample). Results keep the input dtype, truncating
    toward zero for integer types.

    :param samples: 1-D array in chronological order.
    :param src_rate: Rate the samples were captured at (Hz).
    :param dst_rate: Desired output rate (Hz).
    :return: The input itself when the rates match, otherwise a new array of
        length floor(len(samples) * dst_rate / src_rate).
    """
    if src_rate <= 0 or dst_rate <= 0:
        raise ValueError(f"Sample rates must be positive (got {src_rate} -> {dst_rate})")

    if src_rate == dst_rate:
        return samples

    samples = np.asarray(samples)
    output_length = (len(samples) * dst_rate) // src_rate
    if output_length == 0:
        return np.zeros(0, dtype=samples.dtype)

    ratio = src_rate / dst_rate
    positions = np.arange(output_length, dtype=np.float64) * ratio
    lower = np.minimum(positions.astype(np.int64), len(samples) - 1)
    upper = np.minimum(lower + 1, len(samples) - 1)
    fraction = positions - lower

    source = samples.astype(np.float64)
    values = source[lower] + fraction * (source[upper] - source[lower])

    if np.issubdtype(samples.dtype, np.integer):
        values = np.trunc(values)
    return values.astype(samples.dtype)
