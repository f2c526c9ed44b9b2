"""Small NaN-safe statistics helpers."""

from __future__ import annotations

import math
from collections.abc import Iterable

import numpy as np


def clamp(value: float, low: float, high: float) -> float:
    """Bound a value to [low, high], mapping NaN to ``low``."""
    if math.isnan(value):
        return low
    return max(low, min(high, value))


def finite_or(value: float, default: float) -> float:
    """Return ``value`` when finite, otherwise ``default``."""
    return value if math.isfinite(value) else default


def variance(values: Iterable[float], ddof: int = 0) -> float:
    """Variance of a sequence.

    Args:
        values: Input values
        ddof: Delta degrees of freedom (1 for sample variance)

    Returns:
        Variance, or 0.0 when there are not enough values
    """
    data = np.asarray(list(values), dtype=np.float64)
    if data.size <= ddof or data.size == 0:
        return 0.0
    return finite_or(float(np.var(data, ddof=ddof)), 0.0)


def coefficient_of_variation(values: Iterable[float]) -> float:
    """Standard deviation divided by the mean, 0.0 for a zero mean."""
    data = np.asarray(list(values), dtype=np.float64)
    if data.size < 2:
        return 0.0

    mean = float(np.mean(data))
    if abs(mean) < 1e-12:
        return 0.0
    return finite_or(float(np.std(data)) / abs(mean), 0.0)
