"""Spectral and periodicity features for inertial signals.

This module is pure logic with NO I/O.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy.signal import find_peaks

# Signals with less spread than this are treated as constant
MIN_SIGNAL_STD = 1e-9

# Minimum FFT length used when locating the dominant frequency
MIN_FFT_SIZE = 512

# Peak prominence relative to the smoothed signal's standard deviation
PEAK_PROMINENCE_FACTOR = 0.5

# Smoothing kernel length as a fraction of the sample rate
PEAK_SMOOTHING_SECONDS = 0.1


def _centered(signal: ArrayLike) -> NDArray[np.float64]:
    """Mean-removed copy rescaled to unit peak, or an empty array for constant input."""
    data = np.asarray(signal, dtype=np.float64)
    if data.size < 2 or not np.all(np.isfinite(data)):
        return np.zeros(0, dtype=np.float64)

    centered = data - np.mean(data)
    peak = float(np.max(np.abs(centered)))
    if peak < MIN_SIGNAL_STD:
        return np.zeros(0, dtype=np.float64)

    # Only relative power matters; unit scaling keeps squares finite
    return centered / peak


def band_powers(
    signal: ArrayLike,
    sample_rate: float,
    bands: Sequence[tuple[float, float]],
) -> tuple[float, ...]:
    """Relative spectral power per frequency band.

    The signal is mean-removed and Hann-windowed before a real FFT. The
    last band includes its upper edge so the Nyquist bin is counted.

    Args:
        signal: Evenly sampled signal
        sample_rate: Sampling rate in Hz
        bands: (low, high) band edges in Hz, ordered low to high

    Returns:
        Non-negative powers normalized to sum to 1, or all zeros when the
        signal carries no energy in any band
    """
    zeros = tuple(0.0 for _ in bands)
    centered = _centered(signal)
    if centered.size == 0:
        return zeros

    windowed = centered * np.hanning(centered.size)
    power = np.abs(np.fft.rfft(windowed)) ** 2
    freqs = np.fft.rfftfreq(centered.size, d=1.0 / sample_rate)

    powers: list[float] = []
    for index, (low, high) in enumerate(bands):
        if index == len(bands) - 1:
            mask = (freqs >= low) & (freqs <= high)
        else:
            mask = (freqs >= low) & (freqs < high)
        powers.append(float(np.sum(power[mask])))

    total = sum(powers)
    if total <= 0.0 or not np.isfinite(total):
        return zeros

    return tuple(p / total for p in powers)


def dominant_frequency(
    signal: ArrayLike,
    sample_rate: float,
    low: float,
    high: float,
) -> float:
    """Frequency of the strongest spectral peak inside [low, high].

    The spectrum is zero-padded to at least ``MIN_FFT_SIZE`` bins so the
    estimate is finer than the raw window resolution.

    Returns:
        Frequency in Hz, or 0.0 for a constant signal
    """
    centered = _centered(signal)
    if centered.size == 0:
        return 0.0

    n_fft = max(MIN_FFT_SIZE, 1 << (4 * centered.size - 1).bit_length())
    windowed = centered * np.hanning(centered.size)
    power = np.abs(np.fft.rfft(windowed, n=n_fft)) ** 2
    freqs = np.fft.rfftfreq(n_fft, d=1.0 / sample_rate)

    mask = (freqs >= low) & (freqs <= high)
    if not np.any(mask):
        return 0.0

    band_power = power[mask]
    if float(np.max(band_power)) <= 0.0:
        return 0.0

    return float(freqs[mask][int(np.argmax(band_power))])


def smooth_signal(signal: ArrayLike, sample_rate: float) -> NDArray[np.float64]:
    """Short moving average used to suppress sensor jitter before peak picking."""
    data = np.asarray(signal, dtype=np.float64)
    kernel_size = max(1, int(round(sample_rate * PEAK_SMOOTHING_SECONDS)))
    if kernel_size == 1 or data.size < kernel_size:
        return data.copy()

    kernel = np.ones(kernel_size) / kernel_size
    return np.asarray(np.convolve(data, kernel, mode="same"), dtype=np.float64)


def detect_peaks(
    signal: ArrayLike,
    sample_rate: float,
    max_frequency: float,
) -> tuple[NDArray[np.intp], NDArray[np.float64]]:
    """Locate step peaks in an acceleration magnitude signal.

    Args:
        signal: Acceleration magnitude samples
        sample_rate: Sampling rate in Hz
        max_frequency: Highest plausible step rate in Hz; sets the minimum
            spacing between peaks

    Returns:
        Tuple of (peak indices, smoothed signal)
    """
    data = np.asarray(signal, dtype=np.float64)
    empty: NDArray[np.intp] = np.zeros(0, dtype=np.intp)
    if data.size < 3 or not np.all(np.isfinite(data)):
        return empty, data

    smoothed = smooth_signal(data - np.mean(data), sample_rate)
    spread = float(np.std(smoothed))
    if spread < MIN_SIGNAL_STD:
        return empty, smoothed

    min_spacing = max(1, int(sample_rate / max_frequency))
    peaks, _ = find_peaks(
        smoothed,
        distance=min_spacing,
        prominence=PEAK_PROMINENCE_FACTOR * spread,
    )
    return np.asarray(peaks, dtype=np.intp), smoothed


def interval_statistics(peaks: NDArray[Any]) -> tuple[float, float]:
    """Mean and coefficient of variation of inter-peak intervals.

    Returns:
        (mean interval in samples, CV); (0.0, 0.0) with fewer than two intervals
    """
    if peaks.size < 3:
        return 0.0, 0.0

    intervals = np.diff(peaks).astype(np.float64)
    mean = float(np.mean(intervals))
    if mean <= 0.0:
        return 0.0, 0.0
    return mean, float(np.std(intervals)) / mean
