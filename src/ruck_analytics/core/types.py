"""Core data types and structures."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum, auto

from ruck_analytics.geo.distance import haversine_distance, initial_bearing

# Plausibility clamp for point-to-point grades
POINT_GRADE_LIMIT = 20.0


@dataclass(frozen=True, slots=True)
class TrackPoint:
    """A single geolocation fix with a fused altitude.

    Attributes:
        timestamp: Fix time in seconds
        latitude: Latitude in decimal degrees
        longitude: Longitude in decimal degrees
        altitude: Best-known (already fused) altitude in meters
        horizontal_accuracy: Horizontal accuracy radius in meters (negative = unknown)
        vertical_accuracy: Vertical accuracy in meters (negative = unknown)
        speed: Ground speed in m/s (negative = unknown)
        course: Course over ground in degrees
        grade: Optional precomputed grade in percent
        elevation_confidence: Optional confidence of the altitude value [0, 1]
        is_key_point: Set by track compression on every retained point
    """

    timestamp: float
    latitude: float
    longitude: float
    altitude: float
    horizontal_accuracy: float = 5.0
    vertical_accuracy: float = 3.0
    speed: float = 0.0
    course: float = 0.0
    grade: float | None = None
    elevation_confidence: float | None = None
    is_key_point: bool = False

    @property
    def is_accurate(self) -> bool:
        """Whether the horizontal fix is within 10 meters."""
        return 0.0 < self.horizontal_accuracy <= 10.0

    def distance_to(self, other: TrackPoint) -> float:
        """Great-circle distance to another point in meters."""
        return haversine_distance(self.latitude, self.longitude, other.latitude, other.longitude)

    def bearing_to(self, other: TrackPoint) -> float:
        """Initial bearing to another point in degrees [0, 360)."""
        return initial_bearing(self.latitude, self.longitude, other.latitude, other.longitude)

    def elevation_change_to(self, other: TrackPoint) -> float:
        """Altitude difference from this point to another (positive = climbing)."""
        return other.altitude - self.altitude

    def grade_to(self, other: TrackPoint) -> float:
        """Grade in percent to another point, clamped to a plausible range."""
        distance = self.distance_to(other)
        if distance <= 0.0:
            return 0.0

        grade = self.elevation_change_to(other) / distance * 100.0
        return max(-POINT_GRADE_LIMIT, min(POINT_GRADE_LIMIT, grade))


class GradeTrend(Enum):
    """Direction of the recent smoothed grade."""

    ASCENDING = auto()
    DESCENDING = auto()
    FLAT = auto()


@dataclass(frozen=True, slots=True)
class GradeResult:
    """Grade estimate for a single segment or an aggregate span.

    Attributes:
        elevation_gain: Noise-filtered climb in meters (>= 0)
        elevation_loss: Noise-filtered descent in meters (>= 0)
        instantaneous_grade: Raw clamped grade in percent
        smoothed_grade: Filtered grade in percent
        confidence: Reliability of the estimate [0, 1]
        grade_multiplier: Metabolic cost multiplier for the smoothed grade
        trend: Recent grade direction
        distance: Horizontal distance in meters
        elevation_change: Raw vertical delta in meters
        timestamp: Timestamp of the segment end point
        meets_precision_target: Aggregate consistency flag (batch results only)
    """

    elevation_gain: float
    elevation_loss: float
    instantaneous_grade: float
    smoothed_grade: float
    confidence: float
    grade_multiplier: float
    trend: GradeTrend
    distance: float = 0.0
    elevation_change: float = 0.0
    timestamp: float = 0.0
    meets_precision_target: bool = False


@dataclass(frozen=True, slots=True)
class Vector3:
    """A 3-axis sensor reading."""

    x: float
    y: float
    z: float

    @property
    def magnitude(self) -> float:
        """Euclidean norm of the vector."""
        return math.sqrt(self.x * self.x + self.y * self.y + self.z * self.z)

    @property
    def is_finite(self) -> bool:
        """Whether all components are finite numbers."""
        return math.isfinite(self.x) and math.isfinite(self.y) and math.isfinite(self.z)

    def as_tuple(self) -> tuple[float, float, float]:
        """Components as an (x, y, z) tuple."""
        return self.x, self.y, self.z


@dataclass(frozen=True, slots=True)
class MotionSample:
    """Paired accelerometer and gyroscope reading.

    Attributes:
        timestamp: Sample time in seconds
        acceleration: User acceleration including gravity, in g
        rotation_rate: Rotation rate in rad/s
    """

    timestamp: float
    acceleration: Vector3
    rotation_rate: Vector3

    @property
    def magnitude(self) -> float:
        """Acceleration magnitude in g."""
        return self.acceleration.magnitude


class TerrainType(Enum):
    """Closed set of surfaces the motion classifier can report."""

    PAVED_ROAD = "paved_road"
    TRAIL = "trail"
    GRAVEL = "gravel"
    SAND = "sand"
    MUD = "mud"
    SNOW = "snow"
    STAIRS = "stairs"
    GRASS = "grass"
    UNKNOWN = "unknown"

    @property
    def display_name(self) -> str:
        """Human-readable surface name."""
        return self.value.replace("_", " ").title()

    @property
    def terrain_factor(self) -> float:
        """Metabolic cost coefficient relative to paved road."""
        return _TERRAIN_FACTORS[self]


_TERRAIN_FACTORS: dict[TerrainType, float] = {
    TerrainType.PAVED_ROAD: 1.0,
    TerrainType.TRAIL: 1.2,
    TerrainType.GRAVEL: 1.3,
    TerrainType.SAND: 1.5,
    TerrainType.MUD: 1.8,
    TerrainType.SNOW: 2.1,
    TerrainType.STAIRS: 1.8,
    TerrainType.GRASS: 1.2,
    TerrainType.UNKNOWN: 1.0,
}


@dataclass(frozen=True, slots=True)
class MotionAnalysisDetails:
    """Feature vector extracted from one motion window.

    Attributes:
        step_frequency: Dominant step cadence in Hz
        step_regularity: Consistency of inter-step intervals [0, 1]
        acceleration_variance: Sample variance of acceleration magnitude
        vertical_ratio: Share of dynamic acceleration energy on the vertical axis [0, 1]
        impact_intensity: Peak magnitude excess over the window mean, relative to the mean
        frequency_profile: Relative power in four bands, low to high
        gyroscope_variance: Sample variance of rotation-rate magnitude
    """

    step_frequency: float
    step_regularity: float
    acceleration_variance: float
    vertical_ratio: float
    impact_intensity: float
    frequency_profile: tuple[float, float, float, float]
    gyroscope_variance: float = 0.0


@dataclass(frozen=True, slots=True)
class MotionAnalysisResult:
    """Terrain classification for the current motion window."""

    terrain_type: TerrainType
    confidence: float
    timestamp: float
    details: MotionAnalysisDetails
