"""
Statistics Utilities

Small pure functions shared by every detector. All take plain sequences
(or numpy arrays) and return Python floats so results compare exactly
across repeated calls.

Variance convention:
    Population variance (denominator n) is used throughout the package.
    Pass ddof=1 for the sample estimator; it only matters for small windows.
"""
import math
from typing import Iterable, Sequence

import numpy as np

from .samples import Sample


def magnitude(x: float, y: float, z: float) -> float:
    """Euclidean norm of a 3-vector."""
    return math.sqrt(x * x + y * y + z * z)


def mean(values: Sequence[float]) -> float:
    """Arithmetic mean; 0.0 for empty input."""
    if len(values) == 0:
        return 0.0
    return float(np.mean(np.asarray(values, dtype=np.float64)))


def variance(values: Sequence[float], ddof: int = 0) -> float:
    """
    Variance of a sequence.

    Args:
        values: Input values
        ddof: Delta degrees of freedom (0 = population, 1 = sample)

    Returns:
        Variance, or 0.0 when there are not more than ``ddof`` values
    """
    if len(values) <= ddof:
        return 0.0
    return float(np.var(np.asarray(values, dtype=np.float64), ddof=ddof))


def std(values: Sequence[float], ddof: int = 0) -> float:
    """Standard deviation; square root of :func:`variance`."""
    return math.sqrt(variance(values, ddof=ddof))


def accel_magnitudes(window: Iterable[Sample]) -> np.ndarray:
    """Per-sample acceleration magnitude over a window."""
    return np.array([s.accel_magnitude for s in window], dtype=np.float64)


def gyro_magnitudes(window: Iterable[Sample]) -> np.ndarray:
    """Per-sample rotation-rate magnitude over a window."""
    return np.array([s.gyro_magnitude for s in window], dtype=np.float64)


def axis_values(window: Iterable[Sample], axis: str) -> np.ndarray:
    """Values of one named axis over a window."""
    return np.array([getattr(s, axis) for s in window], dtype=np.float64)
