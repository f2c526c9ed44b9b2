"""Grade (slope) estimation with smoothing, elevation accounting and trends.

This module is pure logic with NO I/O.
"""

from __future__ import annotations

import math
import threading
from collections import deque
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from ruck_analytics.core.config import GradePreset, GradeSettings
from ruck_analytics.core.exceptions import InvalidParameterError
from ruck_analytics.core.logging import get_logger
from ruck_analytics.core.types import GradeResult, GradeTrend, TrackPoint
from ruck_analytics.geo.distance import haversine_distance
from ruck_analytics.processing.filters import ExponentialFilter, SmoothingFilter
from ruck_analytics.processing.stats import clamp, variance

logger = get_logger(__name__)

# Metabolic multiplier: 1 + a*g + b*g^2 with g = |grade| in percent
UPHILL_LINEAR = 0.03
UPHILL_QUADRATIC = 0.001
DOWNHILL_LINEAR = 0.0152
DOWNHILL_QUADRATIC = 0.00128
MULTIPLIER_GRADE_LIMIT = 40.0

# Unknown accuracy (negative or non-finite) scores this factor
UNKNOWN_ACCURACY_FACTOR = 0.5
ELEVATION_CONFIDENCE_FLOOR = 0.1

# (upper bound in meters, factor), checked in order
VERTICAL_ACCURACY_FACTORS = ((1.0, 1.0), (5.0, 0.8), (10.0, 0.6))
VERTICAL_ACCURACY_FALLBACK = 0.3
HORIZONTAL_ACCURACY_FACTORS = ((5.0, 1.0), (10.0, 0.9), (20.0, 0.7))
HORIZONTAL_ACCURACY_FALLBACK = 0.5


@dataclass(frozen=True)
class GradeConfiguration:
    """Smoothing and noise parameters fixed by a preset.

    Attributes:
        smoothing_window: Number of recent instantaneous grades averaged
        noise_floor: Elevation deltas smaller than this (m) are jitter
        min_distance: Segments shorter than this (m) are degenerate
        full_confidence_distance: Segment length (m) that earns full distance confidence
        smoothing_alpha: Exponential blend weight of each new window average
        precision_target: Allowed standard error (percentage points) of a batch grade
    """

    smoothing_window: int
    noise_floor: float
    min_distance: float
    full_confidence_distance: float
    smoothing_alpha: float
    precision_target: float

    @classmethod
    def from_preset(cls, preset: GradePreset | str) -> GradeConfiguration:
        """Look up the configuration for a named preset."""
        try:
            return PRESETS[GradePreset(preset)]
        except ValueError as exc:
            raise InvalidParameterError(f"Unknown grade preset: {preset!r}") from exc


PRESETS: dict[GradePreset, GradeConfiguration] = {
    GradePreset.STANDARD: GradeConfiguration(
        smoothing_window=3,
        noise_floor=0.25,
        min_distance=10.0,
        full_confidence_distance=20.0,
        smoothing_alpha=0.6,
        precision_target=1.0,
    ),
    GradePreset.PRECISE: GradeConfiguration(
        smoothing_window=5,
        noise_floor=0.1,
        min_distance=5.0,
        full_confidence_distance=10.0,
        smoothing_alpha=0.4,
        precision_target=0.5,
    ),
    GradePreset.FAST: GradeConfiguration(
        smoothing_window=1,
        noise_floor=0.5,
        min_distance=20.0,
        full_confidence_distance=40.0,
        smoothing_alpha=1.0,
        precision_target=2.0,
    ),
}


@dataclass(frozen=True)
class GradeStatistics:
    """Summary of recent instantaneous grades."""

    minimum: float
    maximum: float
    average: float
    variance: float


@dataclass(frozen=True)
class ElevationProfilePoint:
    """One sample of the running elevation profile."""

    distance: float  # cumulative horizontal meters
    elevation: float
    grade: float  # smoothed grade at this point


def grade_multiplier(grade: float) -> float:
    """Metabolic cost multiplier for walking at a grade.

    Uphill is more expensive than downhill at the same magnitude. Grades
    beyond +/-40% use the 40% value.

    Args:
        grade: Signed grade in percent

    Returns:
        Multiplier, exactly 1.0 on the flat
    """
    if not math.isfinite(grade) or grade == 0.0:
        return 1.0

    magnitude = min(abs(grade), MULTIPLIER_GRADE_LIMIT)
    if grade > 0:
        return 1.0 + UPHILL_LINEAR * magnitude + UPHILL_QUADRATIC * magnitude**2
    return 1.0 + DOWNHILL_LINEAR * magnitude + DOWNHILL_QUADRATIC * magnitude**2


def classify_trend(
    grades: Sequence[float],
    window: int,
    min_run: int,
    flat_threshold: float,
) -> GradeTrend:
    """Classify the direction of a grade history.

    Only the trailing run of same-signed grades beyond the flat threshold
    counts, so a single noisy value never flips the classification.
    """
    recent = list(grades)[-window:]
    if len(recent) < min_run:
        return GradeTrend.FLAT

    last = recent[-1]
    if last > flat_threshold:
        run = _trailing_run(recent, lambda g: g > flat_threshold)
        if run >= min_run:
            return GradeTrend.ASCENDING
    elif last < -flat_threshold:
        run = _trailing_run(recent, lambda g: g < -flat_threshold)
        if run >= min_run:
            return GradeTrend.DESCENDING

    return GradeTrend.FLAT


def _trailing_run(values: Sequence[float], predicate: Callable[[float], bool]) -> int:
    run = 0
    for value in reversed(values):
        if not predicate(value):
            break
        run += 1
    return run


def _accuracy_factor(
    accuracy: float,
    table: tuple[tuple[float, float], ...],
    fallback: float,
) -> float:
    if not math.isfinite(accuracy) or accuracy < 0:
        return UNKNOWN_ACCURACY_FACTOR
    for bound, factor in table:
        if accuracy <= bound:
            return factor
    return fallback


class GradeCalculator:
    """Stateful grade estimator for consecutive track points.

    Maintains, for the lifetime of the instance:
    - Cumulative noise-filtered elevation gain and loss
    - A bounded history of recent instantaneous and smoothed grades
    - The exponential smoothing state carried between segments
    - A bounded elevation profile

    All state is guarded by a lock; every public method observes and
    mutates it atomically.
    """

    def __init__(
        self,
        configuration: GradeConfiguration | GradePreset | str | None = None,
        settings: GradeSettings | None = None,
    ) -> None:
        """Initialize calculator.

        Args:
            configuration: Preset name or explicit configuration (defaults to
                the settings' preset)
            settings: History, trend and clamping parameters (uses defaults if None)
        """
        self.settings = settings or GradeSettings()

        if configuration is None:
            configuration = self.settings.preset
        if not isinstance(configuration, GradeConfiguration):
            configuration = GradeConfiguration.from_preset(configuration)
        self.configuration = configuration

        self._lock = threading.Lock()
        self._window = SmoothingFilter(configuration.smoothing_window, recency_weighted=True)
        self._smoother = ExponentialFilter(configuration.smoothing_alpha)
        self._instant_history: deque[float] = deque(maxlen=self.settings.history_size)
        self._smoothed_history: deque[float] = deque(maxlen=self.settings.history_size)
        self._profile: deque[ElevationProfilePoint] = deque(maxlen=self.settings.profile_size)
        self._cumulative_gain = 0.0
        self._cumulative_loss = 0.0
        self._cumulative_distance = 0.0
        self._last_instant = 0.0

    @property
    def elevation_metrics(self) -> tuple[float, float]:
        """Cumulative (gain, loss) in meters."""
        with self._lock:
            return self._cumulative_gain, self._cumulative_loss

    @property
    def current_grade_metrics(self) -> tuple[float, float]:
        """Latest (instantaneous, smoothed) grade in percent."""
        with self._lock:
            smoothed = self._smoother.value
            return self._last_instant, 0.0 if smoothed is None else smoothed

    @property
    def recent_grade_history(self) -> list[float]:
        """Recent smoothed grades, oldest first."""
        with self._lock:
            return list(self._smoothed_history)

    @property
    def profile_data(self) -> list[ElevationProfilePoint]:
        """Elevation profile recorded so far, oldest first."""
        with self._lock:
            return list(self._profile)

    def calculate_grade(self, start: TrackPoint, end: TrackPoint) -> GradeResult:
        """Estimate the grade of the segment between two consecutive points.

        Args:
            start: Earlier point
            end: Later point

        Returns:
            GradeResult for this segment; degenerate (too short) segments
            return zero grades, zero confidence and a 1.0 multiplier without
            touching the running state
        """
        distance = haversine_distance(start.latitude, start.longitude, end.latitude, end.longitude)
        elevation_change = end.altitude - start.altitude

        if not self._is_usable_segment(distance, elevation_change):
            return self._degenerate_result(distance, end.timestamp)

        instant = self._instantaneous_grade(elevation_change, distance)
        confidence = self._confidence(start, end, distance)
        gain, loss = self._filtered_gain_loss(elevation_change)

        with self._lock:
            window_average = self._window.update(instant, weight=confidence * distance)
            smoothed = self._smoother.update(window_average)

            self._last_instant = instant
            self._instant_history.append(instant)
            self._smoothed_history.append(smoothed)
            self._cumulative_gain += gain
            self._cumulative_loss += loss
            self._cumulative_distance += distance
            self._profile.append(
                ElevationProfilePoint(
                    distance=self._cumulative_distance,
                    elevation=end.altitude,
                    grade=smoothed,
                )
            )

            trend = classify_trend(
                self._smoothed_history,
                self.settings.trend_window,
                self.settings.trend_min_run,
                self.settings.trend_flat_threshold,
            )

        return GradeResult(
            elevation_gain=gain,
            elevation_loss=loss,
            instantaneous_grade=instant,
            smoothed_grade=smoothed,
            confidence=confidence,
            grade_multiplier=grade_multiplier(smoothed),
            trend=trend,
            distance=distance,
            elevation_change=elevation_change,
            timestamp=end.timestamp,
        )

    def calculate_average_grade(self, points: Sequence[TrackPoint]) -> GradeResult | None:
        """Aggregate grade over a whole span of points.

        The running state of the calculator is left untouched.

        Args:
            points: Temporally ordered points

        Returns:
            Aggregate GradeResult, or None for fewer than two points
        """
        if len(points) < 2:
            return None

        total_distance = 0.0
        total_change = 0.0
        total_gain = 0.0
        total_loss = 0.0
        weighted_confidence = 0.0
        segment_grades: list[float] = []

        for start, end in zip(points, points[1:]):
            distance = haversine_distance(
                start.latitude, start.longitude, end.latitude, end.longitude
            )
            change = end.altitude - start.altitude
            if not self._is_usable_segment(distance, change):
                continue

            gain, loss = self._filtered_gain_loss(change)
            total_distance += distance
            total_change += change
            total_gain += gain
            total_loss += loss
            weighted_confidence += self._confidence(start, end, distance) * distance
            segment_grades.append(self._instantaneous_grade(change, distance))

        if not segment_grades or total_distance <= 0.0:
            return self._degenerate_result(total_distance, points[-1].timestamp)

        grade = self._instantaneous_grade(total_change, total_distance)
        confidence = clamp(weighted_confidence / total_distance, 0.0, 1.0)

        # Standard error of the segment grades around their mean
        standard_error = math.sqrt(variance(segment_grades) / len(segment_grades))
        meets_target = (
            confidence >= self.settings.precision_confidence_threshold
            and standard_error <= self.configuration.precision_target
        )

        trend = classify_trend(
            segment_grades,
            self.settings.trend_window,
            self.settings.trend_min_run,
            self.settings.trend_flat_threshold,
        )

        logger.debug(
            "Average grade over %d segments: %.2f%% (confidence %.2f, stderr %.3f)",
            len(segment_grades),
            grade,
            confidence,
            standard_error,
        )

        return GradeResult(
            elevation_gain=total_gain,
            elevation_loss=total_loss,
            instantaneous_grade=grade,
            smoothed_grade=grade,
            confidence=confidence,
            grade_multiplier=grade_multiplier(grade),
            trend=trend,
            distance=total_distance,
            elevation_change=total_change,
            timestamp=points[-1].timestamp,
            meets_precision_target=meets_target,
        )

    def grade_statistics(self) -> GradeStatistics:
        """Min, max, mean and variance of recent instantaneous grades."""
        with self._lock:
            grades = list(self._instant_history)

        if not grades:
            return GradeStatistics(minimum=0.0, maximum=0.0, average=0.0, variance=0.0)

        return GradeStatistics(
            minimum=min(grades),
            maximum=max(grades),
            average=sum(grades) / len(grades),
            variance=variance(grades),
        )

    def reset(self) -> None:
        """Clear accumulators, history and smoothing state."""
        with self._lock:
            self._window.reset()
            self._smoother.reset()
            self._instant_history.clear()
            self._smoothed_history.clear()
            self._profile.clear()
            self._cumulative_gain = 0.0
            self._cumulative_loss = 0.0
            self._cumulative_distance = 0.0
            self._last_instant = 0.0

    def _is_usable_segment(self, distance: float, elevation_change: float) -> bool:
        min_distance = max(self.configuration.min_distance, self.settings.degenerate_distance_m)
        return (
            math.isfinite(distance)
            and math.isfinite(elevation_change)
            and distance >= min_distance
        )

    def _instantaneous_grade(self, elevation_change: float, distance: float) -> float:
        limit = self.settings.max_grade_percent
        return clamp(elevation_change / distance * 100.0, -limit, limit)

    def _filtered_gain_loss(self, elevation_change: float) -> tuple[float, float]:
        """Split a vertical delta into (gain, loss) after dropping jitter."""
        if abs(elevation_change) < self.configuration.noise_floor:
            return 0.0, 0.0
        if elevation_change > 0:
            return elevation_change, 0.0
        return 0.0, -elevation_change

    def _confidence(self, start: TrackPoint, end: TrackPoint, distance: float) -> float:
        """Segment reliability in (0, 1] for a non-degenerate segment."""
        distance_factor = min(1.0, distance / self.configuration.full_confidence_distance)

        vertical_factor = _accuracy_factor(
            max(start.vertical_accuracy, end.vertical_accuracy),
            VERTICAL_ACCURACY_FACTORS,
            VERTICAL_ACCURACY_FALLBACK,
        )
        horizontal_factor = _accuracy_factor(
            max(start.horizontal_accuracy, end.horizontal_accuracy),
            HORIZONTAL_ACCURACY_FACTORS,
            HORIZONTAL_ACCURACY_FALLBACK,
        )

        reported = [
            c
            for c in (start.elevation_confidence, end.elevation_confidence)
            if c is not None and math.isfinite(c)
        ]
        elevation_factor = (
            clamp(sum(reported) / len(reported), ELEVATION_CONFIDENCE_FLOOR, 1.0)
            if reported
            else 1.0
        )

        confidence = distance_factor * vertical_factor * horizontal_factor * elevation_factor
        return clamp(confidence, 0.0, 1.0)

    def _degenerate_result(self, distance: float, timestamp: float) -> GradeResult:
        return GradeResult(
            elevation_gain=0.0,
            elevation_loss=0.0,
            instantaneous_grade=0.0,
            smoothed_grade=0.0,
            confidence=0.0,
            grade_multiplier=1.0,
            trend=GradeTrend.FLAT,
            distance=distance if math.isfinite(distance) else 0.0,
            elevation_change=0.0,
            timestamp=timestamp,
        )
