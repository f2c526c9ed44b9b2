"""Sliding-window motion analysis for terrain classification.

This module is pure logic with NO I/O.
"""

from __future__ import annotations

import math
import threading
import time
from collections import deque
from collections.abc import Callable, Sequence

import numpy as np
from numpy.typing import NDArray

from ruck_analytics.analysis.terrain import classify
from ruck_analytics.core.config import MotionSettings
from ruck_analytics.core.exceptions import InvalidSampleError
from ruck_analytics.core.logging import get_logger
from ruck_analytics.core.types import (
    MotionAnalysisDetails,
    MotionAnalysisResult,
    MotionSample,
    TerrainType,
)
from ruck_analytics.processing.spectral import (
    band_powers,
    detect_peaks,
    dominant_frequency,
    interval_statistics,
)
from ruck_analytics.processing.stats import clamp, coefficient_of_variation, variance

logger = get_logger(__name__)

# Frequency bands (Hz) of the power profile, low to high
FREQUENCY_BANDS: tuple[tuple[float, float], ...] = (
    (0.5, 2.0),
    (2.0, 4.0),
    (4.0, 8.0),
    (8.0, 15.0),
)

# Regularity falls off as exp(-k * CV) of the step intervals
REGULARITY_DECAY = 2.5

MAX_IMPACT_INTENSITY = 10.0

# Estimated sample rates are bounded to this factor of the nominal rate
SAMPLE_RATE_TOLERANCE = 4.0


class MotionPatternAnalyzer:
    """Classify terrain from a sliding window of inertial samples.

    Samples enter a fixed-capacity FIFO window; the oldest sample is evicted
    once the window is full. Analysis runs on demand over the whole window.
    The reported confidence of the latest classification decays to zero
    as it goes stale.

    All state is guarded by a lock, so samples may be added from several
    threads while another thread analyzes.
    """

    def __init__(
        self,
        settings: MotionSettings | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize analyzer.

        Args:
            settings: Window and spectral parameters (uses defaults if None)
            clock: Monotonic time source in seconds
        """
        self.settings = settings or MotionSettings()
        self._clock = clock
        self._lock = threading.Lock()
        self._samples: deque[MotionSample] = deque(maxlen=self.settings.window_size)
        self._last_analysis_time: float | None = None
        self._last_confidence = 0.0
        self._last_result: MotionAnalysisResult | None = None

    @property
    def window_size(self) -> int:
        """Configured window capacity."""
        return self.settings.window_size

    @property
    def sample_count(self) -> int:
        """Number of buffered samples."""
        with self._lock:
            return len(self._samples)

    @property
    def last_result(self) -> MotionAnalysisResult | None:
        """Most recent classification, if any."""
        with self._lock:
            return self._last_result

    @property
    def time_since_last_analysis(self) -> float | None:
        """Seconds since the last successful analysis, None if there was none."""
        with self._lock:
            return self._elapsed_since_analysis()

    def add_motion_sample(self, sample: MotionSample) -> None:
        """Append a sample, evicting the oldest when the window is full.

        Raises:
            InvalidSampleError: If any component is not a finite number
        """
        if not (
            math.isfinite(sample.timestamp)
            and sample.acceleration.is_finite
            and sample.rotation_rate.is_finite
        ):
            raise InvalidSampleError(f"Non-finite motion sample at t={sample.timestamp!r}")

        with self._lock:
            self._samples.append(sample)

    def analyze_motion_pattern(self) -> MotionAnalysisResult | None:
        """Extract features from the window and classify the terrain.

        Returns:
            MotionAnalysisResult, or None while fewer than ``min_samples``
            samples are buffered
        """
        with self._lock:
            samples = list(self._samples)
            if len(samples) < self.settings.min_samples:
                return None

            details = self._extract_features(samples)
            terrain, confidence = classify(
                details, unknown_threshold=self.settings.unknown_score_threshold
            )
            result = MotionAnalysisResult(
                terrain_type=terrain,
                confidence=confidence,
                timestamp=samples[-1].timestamp,
                details=details,
            )

            self._last_result = result
            self._last_confidence = confidence
            self._last_analysis_time = self._clock()

        logger.debug(
            "Terrain %s (confidence %.2f, cadence %.2f Hz, regularity %.2f, variance %.4f)",
            terrain.display_name,
            confidence,
            details.step_frequency,
            details.step_regularity,
            details.acceleration_variance,
        )
        return result

    def current_confidence(self) -> float:
        """Confidence of the last classification after staleness decay.

        Falls linearly from the analyzed confidence to 0.0 over
        ``confidence_decay_s`` seconds.
        """
        with self._lock:
            return self._decayed_confidence(self._elapsed_since_analysis())

    def debug_info(self) -> str:
        """Human-readable snapshot of the analyzer state."""
        with self._lock:
            count = len(self._samples)
            elapsed = self._elapsed_since_analysis()
            confidence = self._decayed_confidence(elapsed)
            last = self._last_result

        terrain = last.terrain_type if last is not None else TerrainType.UNKNOWN

        elapsed_text = "never" if elapsed is None else f"{elapsed:.1f}s"
        return "\n".join(
            [
                "Motion Pattern Analyzer",
                f"Sample Count: {count}/{self.settings.window_size}",
                f"Terrain: {terrain.display_name}",
                f"Analysis Confidence: {confidence:.2f}",
                f"Time Since Last Analysis: {elapsed_text}",
                f"Window Size: {self.settings.window_size}",
                f"Sample Rate: {self.settings.sample_rate_hz:.1f} Hz",
            ]
        )

    def reset(self) -> None:
        """Clear the window, last analysis time and cached confidence."""
        with self._lock:
            self._samples.clear()
            self._last_analysis_time = None
            self._last_confidence = 0.0
            self._last_result = None

    def _elapsed_since_analysis(self) -> float | None:
        if self._last_analysis_time is None:
            return None
        return max(0.0, self._clock() - self._last_analysis_time)

    def _decayed_confidence(self, elapsed: float | None) -> float:
        if elapsed is None:
            return 0.0
        remaining = 1.0 - elapsed / self.settings.confidence_decay_s
        return clamp(self._last_confidence * remaining, 0.0, 1.0)

    def _estimate_sample_rate(self, timestamps: NDArray[np.float64]) -> float:
        """Sample rate from timestamps, bounded around the nominal rate."""
        nominal = self.settings.sample_rate_hz
        if timestamps.size < 2:
            return nominal

        span = float(timestamps[-1] - timestamps[0])
        if not math.isfinite(span) or span <= 0.0:
            return nominal

        rate = (timestamps.size - 1) / span
        return clamp(rate, nominal / SAMPLE_RATE_TOLERANCE, nominal * SAMPLE_RATE_TOLERANCE)

    def _extract_features(self, samples: Sequence[MotionSample]) -> MotionAnalysisDetails:
        timestamps = np.array([s.timestamp for s in samples], dtype=np.float64)
        accel = np.array([s.acceleration.as_tuple() for s in samples], dtype=np.float64)
        gyro = np.array([s.rotation_rate.as_tuple() for s in samples], dtype=np.float64)

        magnitude = np.linalg.norm(accel, axis=1)
        gyro_magnitude = np.linalg.norm(gyro, axis=1)
        sample_rate = self._estimate_sample_rate(timestamps)

        step_frequency = dominant_frequency(
            magnitude,
            sample_rate,
            self.settings.min_step_frequency_hz,
            self.settings.max_step_frequency_hz,
        )

        return MotionAnalysisDetails(
            step_frequency=step_frequency,
            step_regularity=self._step_regularity(magnitude, sample_rate),
            acceleration_variance=variance(magnitude, ddof=1),
            vertical_ratio=_vertical_ratio(accel),
            impact_intensity=_impact_intensity(magnitude),
            frequency_profile=band_powers(magnitude, sample_rate, FREQUENCY_BANDS),  # type: ignore[arg-type]
            gyroscope_variance=variance(gyro_magnitude, ddof=1),
        )

    def _step_regularity(self, magnitude: NDArray[np.float64], sample_rate: float) -> float:
        """Consistency of step timing and step strength in [0, 1]."""
        peaks, smoothed = detect_peaks(
            magnitude, sample_rate, self.settings.max_step_frequency_hz
        )
        if peaks.size < 3:
            return 0.0
        _, interval_cv = interval_statistics(peaks)

        # Peak heights above the trough, so the gravity offset does not mask variation
        heights = smoothed[peaks] - float(np.min(smoothed))
        amplitude_cv = coefficient_of_variation(heights)

        regularity = math.exp(-REGULARITY_DECAY * interval_cv) / (1.0 + amplitude_cv)
        return clamp(regularity, 0.0, 1.0)


def _vertical_ratio(accel: NDArray[np.float64]) -> float:
    """Share of dynamic (mean-removed) acceleration energy on the z axis."""
    dynamic = accel - np.mean(accel, axis=0)
    energy = np.sum(dynamic**2, axis=0)
    total = float(np.sum(energy))
    if not math.isfinite(total) or total <= 0.0:
        return 0.0
    return clamp(float(energy[2]) / total, 0.0, 1.0)


def _impact_intensity(magnitude: NDArray[np.float64]) -> float:
    """Peak magnitude excess over the window mean, relative to the mean."""
    mean = float(np.mean(magnitude))
    if not math.isfinite(mean) or mean <= 1e-9:
        return 0.0
    return clamp((float(np.max(magnitude)) - mean) / mean, 0.0, MAX_IMPACT_INTENSITY)
