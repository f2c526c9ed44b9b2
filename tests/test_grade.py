"""Tests for grade calculation."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pytest

from conftest import LAT_STEP, graded_track, make_point, straight_track
from ruck_analytics.analysis.grade import (
    GradeCalculator,
    GradeConfiguration,
    classify_trend,
    grade_multiplier,
)
from ruck_analytics.core.config import GradePreset, GradeSettings
from ruck_analytics.core.exceptions import InvalidParameterError
from ruck_analytics.core.types import GradeTrend, TrackPoint


def feed(calculator: GradeCalculator, points: list[TrackPoint]) -> list:
    """Run every consecutive segment through the calculator."""
    return [calculator.calculate_grade(a, b) for a, b in zip(points, points[1:])]


class TestGradeMultiplier:
    """Tests for the metabolic grade multiplier."""

    @pytest.mark.parametrize(
        ("grade", "expected"),
        [
            (0.0, 1.0),
            (5.0, 1.175),
            (10.0, 1.4),
            (-5.0, 1.108),
            (-10.0, 1.28),
        ],
    )
    def test_calibration_table(self, grade: float, expected: float) -> None:
        """Reference calibration points are reproduced."""
        assert grade_multiplier(grade) == pytest.approx(expected, abs=0.1)

    def test_flat_is_exactly_one(self) -> None:
        """Zero grade has no extra cost."""
        assert grade_multiplier(0.0) == 1.0

    def test_uphill_costs_more_than_downhill(self) -> None:
        """Climbing is more expensive than descending the same grade."""
        for grade in (2.0, 5.0, 10.0, 20.0):
            assert grade_multiplier(grade) > grade_multiplier(-grade)

    def test_monotonic_in_magnitude(self) -> None:
        """Steeper grades never cost less."""
        grades = np.linspace(0.0, 40.0, 41)
        uphill = [grade_multiplier(g) for g in grades]
        downhill = [grade_multiplier(-g) for g in grades]

        assert all(a <= b for a, b in zip(uphill, uphill[1:]))
        assert all(a <= b for a, b in zip(downhill, downhill[1:]))

    def test_extreme_grades_are_capped(self) -> None:
        """Beyond 40% the multiplier stops growing."""
        assert grade_multiplier(90.0) == grade_multiplier(40.0)
        assert grade_multiplier(float("nan")) == 1.0


class TestGradeConfiguration:
    """Tests for preset lookup."""

    def test_presets_differ(self) -> None:
        """Precise smooths more and trusts shorter segments than fast."""
        precise = GradeConfiguration.from_preset(GradePreset.PRECISE)
        fast = GradeConfiguration.from_preset("fast")

        assert precise.smoothing_window > fast.smoothing_window
        assert precise.noise_floor < fast.noise_floor
        assert precise.min_distance < fast.min_distance

    def test_unknown_preset_raises(self) -> None:
        """Unknown preset names are parameter errors."""
        with pytest.raises(InvalidParameterError):
            GradeConfiguration.from_preset("turbo")


class TestDegenerateSegments:
    """Tests for segments too short to measure."""

    def test_zero_distance(self) -> None:
        """Identical positions give zero grade, zero confidence and unit multiplier."""
        a = make_point(47.0, 8.0, altitude=100.0)
        b = make_point(47.0, 8.0, altitude=105.0, timestamp=1.0)

        result = GradeCalculator().calculate_grade(a, b)

        assert result.instantaneous_grade == 0.0
        assert result.smoothed_grade == 0.0
        assert result.confidence == 0.0
        assert result.grade_multiplier == 1.0
        assert result.trend == GradeTrend.FLAT
        assert result.elevation_gain == 0.0

    def test_degenerate_leaves_state_untouched(self) -> None:
        """Skipped segments do not enter history or accumulators."""
        calculator = GradeCalculator()
        a = make_point(47.0, 8.0, altitude=100.0)
        b = make_point(47.0, 8.0, altitude=105.0)
        calculator.calculate_grade(a, b)

        assert calculator.elevation_metrics == (0.0, 0.0)
        assert calculator.recent_grade_history == []
        assert calculator.profile_data == []

    def test_below_min_distance(self) -> None:
        """Segments shorter than the preset minimum are degenerate."""
        a = make_point(47.0, 8.0, altitude=100.0)
        # ~5.5 m north, below the 10 m standard minimum
        b = make_point(47.00005, 8.0, altitude=101.0)

        result = GradeCalculator(GradePreset.STANDARD).calculate_grade(a, b)

        assert result.confidence == 0.0
        assert result.grade_multiplier == 1.0


class TestCalculateGrade:
    """Tests for per-segment grade estimation."""

    def test_uniform_climb(self) -> None:
        """A steady 8% climb reads as 8%."""
        calculator = GradeCalculator(GradePreset.STANDARD)
        results = feed(calculator, graded_track(10, 8.0))

        assert results[-1].instantaneous_grade == pytest.approx(8.0, abs=1e-6)
        assert results[-1].smoothed_grade == pytest.approx(8.0, abs=1e-6)
        assert results[-1].grade_multiplier > 1.0

    def test_instantaneous_grade_is_clamped(self) -> None:
        """Implausible slopes are bounded."""
        a = make_point(47.0, 8.0, altitude=100.0)
        b = make_point(47.0 + LAT_STEP, 8.0, altitude=200.0)

        result = GradeCalculator().calculate_grade(a, b)

        assert result.instantaneous_grade == 60.0

    def test_confidence_bounds(self) -> None:
        """Confidence stays in [0, 1] for good and terrible fixes."""
        calculator = GradeCalculator()
        good = feed(calculator, graded_track(5, 3.0))
        poor_a = make_point(47.0, 8.0, horizontal_accuracy=80.0, vertical_accuracy=-1.0)
        poor_b = make_point(47.0 + LAT_STEP, 8.0, horizontal_accuracy=80.0, vertical_accuracy=40.0)
        poor = calculator.calculate_grade(poor_a, poor_b)

        for result in [*good, poor]:
            assert 0.0 <= result.confidence <= 1.0
        assert poor.confidence < good[-1].confidence

    def test_elevation_confidence_scales_confidence(self) -> None:
        """Low reported elevation confidence lowers segment confidence."""
        a = make_point(47.0, 8.0)
        b = make_point(47.0 + LAT_STEP, 8.0, altitude=101.0)
        trusted = GradeCalculator().calculate_grade(a, b)

        doubtful_b = TrackPoint(
            timestamp=1.0,
            latitude=b.latitude,
            longitude=b.longitude,
            altitude=b.altitude,
            horizontal_accuracy=3.0,
            vertical_accuracy=0.5,
            elevation_confidence=0.2,
        )
        doubtful = GradeCalculator().calculate_grade(a, doubtful_b)

        assert doubtful.confidence < trusted.confidence

    def test_noise_floor_filters_gain(self) -> None:
        """Sub-floor jitter is not counted as climbing."""
        calculator = GradeCalculator(GradePreset.STANDARD)
        a = make_point(47.0, 8.0, altitude=100.0)
        b = make_point(47.0 + LAT_STEP, 8.0, altitude=100.1)
        c = make_point(47.0 + 2 * LAT_STEP, 8.0, altitude=102.1)
        d = make_point(47.0 + 3 * LAT_STEP, 8.0, altitude=101.1)

        first = calculator.calculate_grade(a, b)
        calculator.calculate_grade(b, c)
        calculator.calculate_grade(c, d)

        assert first.elevation_gain == 0.0
        assert first.instantaneous_grade > 0.0
        gain, loss = calculator.elevation_metrics
        assert gain == pytest.approx(2.0)
        assert loss == pytest.approx(1.0)

    def test_smoothing_reduces_noise_variance(self) -> None:
        """Smoothed grades vary less than instantaneous ones on a noisy climb."""
        calculator = GradeCalculator(GradePreset.STANDARD)
        results = feed(calculator, graded_track(60, 4.0, noise=0.1))

        instantaneous = np.var([r.instantaneous_grade for r in results])
        smoothed = np.var([r.smoothed_grade for r in results])

        assert smoothed < instantaneous

    def test_profile_accumulates_distance(self) -> None:
        """Profile points carry cumulative distance and elevation."""
        calculator = GradeCalculator()
        points = graded_track(6, 2.0)
        feed(calculator, points)
        profile = calculator.profile_data

        assert len(profile) == 5
        assert all(a.distance < b.distance for a, b in zip(profile, profile[1:]))
        assert profile[-1].elevation == pytest.approx(points[-1].altitude)

    def test_history_is_bounded(self) -> None:
        """Recent history never exceeds its configured size."""
        calculator = GradeCalculator(settings=GradeSettings(history_size=10))
        feed(calculator, graded_track(30, 1.0))

        assert len(calculator.recent_grade_history) == 10

    def test_grade_statistics(self) -> None:
        """Statistics summarize recent instantaneous grades."""
        calculator = GradeCalculator(GradePreset.FAST)
        feed(calculator, graded_track(6, 5.0))
        stats = calculator.grade_statistics()

        assert stats.minimum == pytest.approx(5.0, abs=1e-6)
        assert stats.maximum == pytest.approx(5.0, abs=1e-6)
        assert stats.average == pytest.approx(5.0, abs=1e-6)
        assert stats.variance == pytest.approx(0.0, abs=1e-9)

    def test_grade_statistics_empty(self) -> None:
        """No history gives zero statistics."""
        stats = GradeCalculator().grade_statistics()

        assert (stats.minimum, stats.maximum, stats.average, stats.variance) == (0, 0, 0, 0)


class TestTrend:
    """Tests for trend classification."""

    def test_sustained_climb_is_ascending(self) -> None:
        """Several steep segments in a row read as ascending."""
        calculator = GradeCalculator()
        results = feed(calculator, graded_track(8, 6.0))

        assert results[-1].trend == GradeTrend.ASCENDING

    def test_sustained_descent_is_descending(self) -> None:
        """Several downhill segments in a row read as descending."""
        calculator = GradeCalculator()
        results = feed(calculator, graded_track(8, -6.0))

        assert results[-1].trend == GradeTrend.DESCENDING

    def test_flat_ground_is_flat(self) -> None:
        """Level ground is flat."""
        results = feed(GradeCalculator(), straight_track(8))

        assert results[-1].trend == GradeTrend.FLAT

    def test_isolated_spike_does_not_flip_trend(self) -> None:
        """A single steep segment on level ground stays flat."""
        points = straight_track(8)
        spike = points[6]
        points[6] = make_point(spike.latitude, spike.longitude, altitude=103.0, timestamp=spike.timestamp)
        points[7] = make_point(points[7].latitude, points[7].longitude, altitude=103.0, timestamp=7.0)

        results = feed(GradeCalculator(GradePreset.FAST), points)

        assert results[-2].instantaneous_grade > 1.0
        assert all(r.trend == GradeTrend.FLAT for r in results)

    def test_short_history_is_flat(self) -> None:
        """Fewer values than the minimum run cannot form a trend."""
        assert classify_trend([5.0, 5.0], window=5, min_run=3, flat_threshold=1.0) == GradeTrend.FLAT

    def test_trailing_run_only(self) -> None:
        """Older steep values do not count once the run breaks."""
        grades = [5.0, 5.0, 5.0, 0.0, 5.0]

        assert classify_trend(grades, window=5, min_run=3, flat_threshold=1.0) == GradeTrend.FLAT


class TestAverageGrade:
    """Tests for batch grade aggregation."""

    @pytest.mark.parametrize("count", [0, 1])
    def test_too_few_points(self, count: int) -> None:
        """Fewer than two points give no result."""
        assert GradeCalculator().calculate_average_grade(straight_track(count)) is None

    def test_precise_uniform_grade_meets_target(self) -> None:
        """A clean 5% climb meets the precise configuration's target."""
        calculator = GradeCalculator(GradePreset.PRECISE)
        result = calculator.calculate_average_grade(graded_track(15, 5.0))

        assert result is not None
        assert abs(result.smoothed_grade - 5.0) <= 0.5
        assert result.meets_precision_target
        assert result.trend == GradeTrend.ASCENDING

    def test_noisy_grade_misses_target(self) -> None:
        """Strong altitude noise breaks the precision target."""
        calculator = GradeCalculator(GradePreset.PRECISE)
        result = calculator.calculate_average_grade(graded_track(15, 5.0, noise=3.0))

        assert result is not None
        assert not result.meets_precision_target

    def test_does_not_touch_running_state(self) -> None:
        """Batch aggregation leaves accumulators and history alone."""
        calculator = GradeCalculator()
        calculator.calculate_average_grade(graded_track(10, 5.0))

        assert calculator.elevation_metrics == (0.0, 0.0)
        assert calculator.recent_grade_history == []

    def test_all_degenerate_segments(self) -> None:
        """A span with no measurable distance aggregates to a degenerate result."""
        points = [make_point(47.0, 8.0, altitude=100.0 + i, timestamp=float(i)) for i in range(4)]
        result = GradeCalculator().calculate_average_grade(points)

        assert result is not None
        assert result.confidence == 0.0
        assert result.grade_multiplier == 1.0


class TestReset:
    """Tests for clearing calculator state."""

    def test_reset_restores_initial_state(self) -> None:
        """All accessors return to their construction values."""
        calculator = GradeCalculator()
        initial = (
            calculator.elevation_metrics,
            calculator.current_grade_metrics,
            calculator.recent_grade_history,
            calculator.profile_data,
        )
        feed(calculator, graded_track(10, 6.0))
        calculator.reset()

        assert (
            calculator.elevation_metrics,
            calculator.current_grade_metrics,
            calculator.recent_grade_history,
            calculator.profile_data,
        ) == initial

    def test_reset_restarts_smoothing(self) -> None:
        """The first segment after reset is not blended with old values."""
        calculator = GradeCalculator()
        feed(calculator, graded_track(10, 10.0))
        calculator.reset()

        result = feed(calculator, graded_track(2, -4.0))[0]

        assert result.smoothed_grade == pytest.approx(-4.0, abs=1e-6)


class TestConcurrency:
    """Tests for concurrent use of one calculator."""

    def test_concurrent_updates_are_not_lost(self) -> None:
        """Every segment's gain is counted exactly once."""
        calculator = GradeCalculator()
        a = make_point(47.0, 8.0, altitude=100.0)
        b = make_point(47.0 + LAT_STEP, 8.0, altitude=101.0)

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(lambda _: calculator.calculate_grade(a, b), range(400)))

        gain, loss = calculator.elevation_metrics
        assert gain == 400.0
        assert loss == 0.0
        assert len(calculator.recent_grade_history) == 100
