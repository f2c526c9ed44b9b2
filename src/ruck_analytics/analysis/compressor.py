"""GPS track compression with elevation and kinematic key points.

This module is pure logic with NO I/O.
"""

from __future__ import annotations

import math
import time
from collections.abc import Sequence
from dataclasses import dataclass, replace

import numpy as np

from ruck_analytics.core.config import CompressionSettings
from ruck_analytics.core.exceptions import InvalidParameterError
from ruck_analytics.core.logging import get_logger
from ruck_analytics.core.types import TrackPoint
from ruck_analytics.geo.distance import (
    chord_distances,
    elevation_gain_loss,
    haversine_distance,
    initial_bearing,
    track_distance,
    turn_angle,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class CompressionResult:
    """Compressed track plus summary counts.

    Attributes:
        points: Retained points, each marked as a key point
        original_count: Number of input points
        compressed_count: Number of retained points
        compression_ratio: 1 - compressed / original, 0.0 for empty input
        preserved_key_points: Points retained because a key-point rule flagged
            them. Endpoints count once each, so a single-point track reports 1
            and any longer track at least 2.
    """

    points: list[TrackPoint]
    original_count: int
    compressed_count: int
    compression_ratio: float
    preserved_key_points: int


@dataclass(frozen=True)
class ValidationResult:
    """Fidelity of a compressed track against its original."""

    distance_error: float  # meters
    distance_error_percentage: float
    elevation_error: float  # meters of gain + loss
    elevation_error_percentage: float
    is_valid: bool


class TrackCompressor:
    """Douglas-Peucker track simplification with domain key points.

    A point survives compression when any of these hold:
    - Planar: it deviates more than ``epsilon`` meters from the chord of
      its flanking retained points
    - Elevation: it is a zig-zag pivot of the altitude profile at least
      ``elevation_threshold`` away from its neighbouring pivots
    - Turn: the path bearing changes by at least the turn threshold
    - Speed: its speed differs from the previous point's by at least the
      speed threshold
    - Endpoint: it is the first or last point

    The compressor holds no per-call state and is safe to share.
    """

    def __init__(self, settings: CompressionSettings | None = None) -> None:
        """Initialize compressor with settings.

        Args:
            settings: Compression defaults (uses defaults if None)
        """
        self.settings = settings or CompressionSettings()

    def compress(
        self,
        points: Sequence[TrackPoint],
        epsilon: float | None = None,
        preserve_elevation_changes: bool | None = None,
        elevation_threshold: float | None = None,
    ) -> list[TrackPoint]:
        """Compress a track, marking every retained point as a key point.

        Args:
            points: Temporally ordered track points
            epsilon: Maximum chord deviation in meters
            preserve_elevation_changes: Keep significant elevation extrema
            elevation_threshold: Minimum pivot-to-pivot elevation change in meters

        Returns:
            Retained points in input order, each with ``is_key_point=True``
        """
        indices = self.compress_to_indices(
            points,
            epsilon=epsilon,
            preserve_elevation_changes=preserve_elevation_changes,
            elevation_threshold=elevation_threshold,
        )
        return [replace(points[i], is_key_point=True) for i in indices]

    def compress_to_indices(
        self,
        points: Sequence[TrackPoint],
        epsilon: float | None = None,
        preserve_elevation_changes: bool | None = None,
        elevation_threshold: float | None = None,
    ) -> list[int]:
        """Compress a track and return the sorted indices of retained points."""
        kept, _ = self._select(points, epsilon, preserve_elevation_changes, elevation_threshold)
        return kept

    def compress_with_result(
        self,
        points: Sequence[TrackPoint],
        epsilon: float | None = None,
        preserve_elevation_changes: bool | None = None,
        elevation_threshold: float | None = None,
    ) -> CompressionResult:
        """Compress a track and report compression counts.

        Returns:
            CompressionResult with the retained points and summary counts
        """
        kept, key_points = self._select(
            points, epsilon, preserve_elevation_changes, elevation_threshold
        )
        compressed = [replace(points[i], is_key_point=True) for i in kept]

        original_count = len(points)
        compressed_count = len(compressed)
        ratio = 1.0 - compressed_count / original_count if original_count else 0.0

        return CompressionResult(
            points=compressed,
            original_count=original_count,
            compressed_count=compressed_count,
            compression_ratio=ratio,
            preserved_key_points=len(key_points),
        )

    def validate_compression_result(
        self,
        original: Sequence[TrackPoint],
        compressed: Sequence[TrackPoint],
    ) -> ValidationResult:
        """Compare distance and elevation totals of a compressed track.

        Args:
            original: Uncompressed track
            compressed: Output of ``compress`` for the same track

        Returns:
            ValidationResult with absolute and percentage errors
        """
        original_distance = track_distance(original)
        compressed_distance = track_distance(compressed)
        distance_error = abs(original_distance - compressed_distance)
        distance_pct = distance_error / original_distance * 100.0 if original_distance > 0 else 0.0

        original_gain, original_loss = elevation_gain_loss(original)
        compressed_gain, compressed_loss = elevation_gain_loss(compressed)
        elevation_error = abs(original_gain - compressed_gain) + abs(original_loss - compressed_loss)
        original_total = original_gain + original_loss
        elevation_pct = elevation_error / original_total * 100.0 if original_total > 0 else 0.0

        is_valid = (
            elevation_pct <= self.settings.max_elevation_error_percent
            and distance_pct <= self.settings.max_distance_error_percent
        )

        return ValidationResult(
            distance_error=distance_error,
            distance_error_percentage=distance_pct,
            elevation_error=elevation_error,
            elevation_error_percentage=elevation_pct,
            is_valid=is_valid,
        )

    def _select(
        self,
        points: Sequence[TrackPoint],
        epsilon: float | None,
        preserve_elevation_changes: bool | None,
        elevation_threshold: float | None,
    ) -> tuple[list[int], set[int]]:
        """Run every retention rule.

        Returns:
            Tuple of (sorted retained indices, indices flagged by key-point rules)
        """
        epsilon = self.settings.epsilon_m if epsilon is None else epsilon
        threshold = (
            self.settings.elevation_threshold_m
            if elevation_threshold is None
            else elevation_threshold
        )
        preserve_elevation = (
            self.settings.preserve_elevation_changes
            if preserve_elevation_changes is None
            else preserve_elevation_changes
        )
        _validate_non_negative("epsilon", epsilon)
        _validate_non_negative("elevation_threshold", threshold)

        count = len(points)
        if count <= 2:
            every = list(range(count))
            return every, set(every)

        start_time = time.perf_counter()

        key_points = self._mark_key_points(points, preserve_elevation, threshold)
        retained = key_points | self._douglas_peucker(points, epsilon)
        kept = sorted(retained)

        logger.info(
            "Track compression: %d -> %d points (ratio %.1f%%, epsilon %.2fm, %.3fs)",
            count,
            len(kept),
            (1.0 - len(kept) / count) * 100.0,
            epsilon,
            time.perf_counter() - start_time,
        )
        return kept, key_points

    def _mark_key_points(
        self,
        points: Sequence[TrackPoint],
        preserve_elevation: bool,
        threshold: float,
    ) -> set[int]:
        """Collect indices that must survive regardless of epsilon."""
        key_points = {0, len(points) - 1}

        if preserve_elevation:
            key_points.update(_elevation_pivots([p.altitude for p in points], threshold))

        if self.settings.preserve_turns:
            key_points.update(self._turn_points(points))

        if self.settings.preserve_speed_changes:
            key_points.update(self._speed_change_points(points))

        return key_points

    def _turn_points(self, points: Sequence[TrackPoint]) -> list[int]:
        """Interior points where the bearing changes past the turn threshold."""
        threshold = self.settings.turn_angle_threshold_deg
        min_leg = self.settings.min_turn_segment_m
        turns: list[int] = []

        for i in range(1, len(points) - 1):
            prev, curr, nxt = points[i - 1], points[i], points[i + 1]

            # Bearings of very short legs are dominated by GPS jitter
            leg_in = haversine_distance(prev.latitude, prev.longitude, curr.latitude, curr.longitude)
            leg_out = haversine_distance(curr.latitude, curr.longitude, nxt.latitude, nxt.longitude)
            if leg_in < min_leg or leg_out < min_leg:
                continue

            bearing_in = initial_bearing(prev.latitude, prev.longitude, curr.latitude, curr.longitude)
            bearing_out = initial_bearing(curr.latitude, curr.longitude, nxt.latitude, nxt.longitude)
            if abs(turn_angle(bearing_in, bearing_out)) >= threshold:
                turns.append(i)

        return turns

    def _speed_change_points(self, points: Sequence[TrackPoint]) -> list[int]:
        """Points whose speed jumps relative to the previous point."""
        threshold = self.settings.speed_change_threshold_mps
        changes: list[int] = []

        for i in range(1, len(points)):
            prev_speed = points[i - 1].speed
            speed = points[i].speed
            if prev_speed < 0 or speed < 0:
                continue
            if abs(speed - prev_speed) >= threshold:
                changes.append(i)

        return changes

    def _douglas_peucker(self, points: Sequence[TrackPoint], epsilon: float) -> set[int]:
        """Iterative Douglas-Peucker over the full sequence.

        An explicit stack of (start, end) index pairs bounds memory use on
        adversarial input such as long zig-zags.
        """
        lats = np.fromiter((p.latitude for p in points), dtype=np.float64, count=len(points))
        lons = np.fromiter((p.longitude for p in points), dtype=np.float64, count=len(points))

        retained = {0, len(points) - 1}
        stack = [(0, len(points) - 1)]

        while stack:
            start, end = stack.pop()
            if end <= start + 1:
                continue

            distances = chord_distances(
                lats[start + 1 : end],
                lons[start + 1 : end],
                (float(lats[start]), float(lons[start])),
                (float(lats[end]), float(lons[end])),
            )
            offset = int(np.argmax(distances))
            if distances[offset] > epsilon:
                split = start + 1 + offset
                retained.add(split)
                stack.append((start, split))
                stack.append((split, end))

        return retained


def _validate_non_negative(name: str, value: float) -> None:
    """Fail fast on negative or non-finite tuning parameters."""
    if not math.isfinite(value) or value < 0:
        raise InvalidParameterError(f"{name} must be a finite, non-negative number, got {value!r}")


def _elevation_pivots(altitudes: Sequence[float], threshold: float) -> list[int]:
    """Zig-zag pivots of an altitude profile.

    A pivot is a local extremum that differs by at least ``threshold`` from
    both the previous and the next pivot, so plateaus and sub-threshold
    wiggles never qualify while slow climbs to a summit still do.

    Args:
        altitudes: Altitude per point, in track order
        threshold: Minimum swing in meters between consecutive pivots

    Returns:
        Interior pivot indices in ascending order
    """
    count = len(altitudes)
    if count < 3:
        return []

    # Zero threshold would make every jitter a pivot
    threshold = max(threshold, 1e-9)
    pivots: list[int] = []

    direction = 0  # +1 rising, -1 falling, 0 undecided
    low_idx = high_idx = 0
    candidate = 0

    for i in range(1, count):
        altitude = altitudes[i]

        if direction == 0:
            if altitude > altitudes[high_idx]:
                high_idx = i
            if altitude < altitudes[low_idx]:
                low_idx = i

            if altitudes[high_idx] - altitudes[low_idx] >= threshold:
                # Whichever extreme came first is the opening pivot
                if low_idx < high_idx:
                    direction, opening, candidate = 1, low_idx, high_idx
                else:
                    direction, opening, candidate = -1, high_idx, low_idx
                if opening != 0:
                    pivots.append(opening)

        elif direction > 0:
            if altitude > altitudes[candidate]:
                candidate = i
            elif altitudes[candidate] - altitude >= threshold:
                pivots.append(candidate)
                direction, candidate = -1, i

        else:
            if altitude < altitudes[candidate]:
                candidate = i
            elif altitude - altitudes[candidate] >= threshold:
                pivots.append(candidate)
                direction, candidate = 1, i

    # The running candidate is only confirmed by a later reversal; the final
    # point is an endpoint and kept anyway
    return [p for p in pivots if 0 < p < count - 1]
