"""Numeric building blocks: statistics, smoothing filters and spectral features."""

from ruck_analytics.processing.filters import ExponentialFilter, SmoothingFilter
from ruck_analytics.processing.spectral import (
    band_powers,
    detect_peaks,
    dominant_frequency,
    interval_statistics,
)
from ruck_analytics.processing.stats import clamp, coefficient_of_variation, variance

__all__ = [
    "SmoothingFilter",
    "ExponentialFilter",
    "band_powers",
    "dominant_frequency",
    "detect_peaks",
    "interval_statistics",
    "variance",
    "coefficient_of_variation",
    "clamp",
]
