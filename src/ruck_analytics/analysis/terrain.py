"""Rule-based terrain classification from motion features.

Each terrain has a signature of expected feature ranges. A feature vector
is scored against every signature with trapezoid memberships and the best
match wins, unless it is too weak to trust.

This module is pure logic with NO I/O.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from ruck_analytics.core.types import MotionAnalysisDetails, TerrainType
from ruck_analytics.processing.stats import clamp

Range = tuple[float, float]

# Bounds applied to raw features before scoring
FEATURE_LIMITS: dict[str, Range] = {
    "step_frequency": (0.0, 5.0),
    "acceleration_variance": (0.0, 2.0),
    "vertical_ratio": (0.0, 1.0),
    "step_regularity": (0.0, 1.0),
    "impact_intensity": (0.0, 5.0),
    "gyroscope_variance": (0.0, 1.0),
}

FEATURE_WEIGHTS: dict[str, float] = {
    "step_frequency": 0.2,
    "acceleration_variance": 0.25,
    "vertical_ratio": 0.1,
    "step_regularity": 0.25,
    "impact_intensity": 0.1,
    "gyroscope_variance": 0.05,
    "frequency_profile": 0.05,
}

UNKNOWN_SCORE_THRESHOLD = 0.4

# Windows calmer than this (g^2) carry no gait to classify
MIN_GAIT_VARIANCE = 1e-4

# Narrow ranges still decay over at least this width
MIN_RANGE_WIDTH = 0.01


@dataclass(frozen=True)
class TerrainSignature:
    """Expected feature ranges for one surface."""

    step_frequency: Range
    acceleration_variance: Range
    vertical_ratio: Range
    step_regularity: Range
    gyroscope_variance: Range
    impact_intensity: Range
    frequency_profile: tuple[Range, Range, Range, Range]


SIGNATURES: dict[TerrainType, TerrainSignature] = {
    TerrainType.PAVED_ROAD: TerrainSignature(
        step_frequency=(1.6, 2.2),
        acceleration_variance=(0.0, 0.03),
        vertical_ratio=(0.5, 0.9),
        step_regularity=(0.8, 1.0),
        gyroscope_variance=(0.0, 0.01),
        impact_intensity=(0.05, 0.2),
        frequency_profile=((0.6, 1.0), (0.0, 0.3), (0.0, 0.1), (0.0, 0.05)),
    ),
    TerrainType.TRAIL: TerrainSignature(
        step_frequency=(1.3, 1.9),
        acceleration_variance=(0.02, 0.08),
        vertical_ratio=(0.7, 1.0),
        step_regularity=(0.55, 0.85),
        gyroscope_variance=(0.005, 0.03),
        impact_intensity=(0.1, 0.35),
        frequency_profile=((0.4, 0.9), (0.05, 0.4), (0.0, 0.2), (0.0, 0.1)),
    ),
    TerrainType.GRAVEL: TerrainSignature(
        step_frequency=(1.3, 1.8),
        acceleration_variance=(0.04, 0.12),
        vertical_ratio=(0.6, 0.95),
        step_regularity=(0.5, 0.75),
        gyroscope_variance=(0.01, 0.05),
        impact_intensity=(0.15, 0.45),
        frequency_profile=((0.3, 0.8), (0.1, 0.4), (0.05, 0.3), (0.0, 0.15)),
    ),
    TerrainType.SAND: TerrainSignature(
        step_frequency=(0.9, 1.4),
        acceleration_variance=(0.12, 0.5),
        vertical_ratio=(0.5, 0.9),
        step_regularity=(0.0, 0.6),
        gyroscope_variance=(0.02, 0.1),
        impact_intensity=(0.3, 1.0),
        frequency_profile=((0.3, 0.9), (0.0, 0.4), (0.0, 0.3), (0.0, 0.3)),
    ),
    TerrainType.MUD: TerrainSignature(
        step_frequency=(0.7, 1.2),
        acceleration_variance=(0.1, 0.4),
        vertical_ratio=(0.5, 0.9),
        step_regularity=(0.0, 0.45),
        gyroscope_variance=(0.03, 0.12),
        impact_intensity=(0.1, 0.4),
        frequency_profile=((0.5, 1.0), (0.0, 0.3), (0.0, 0.2), (0.0, 0.1)),
    ),
    TerrainType.SNOW: TerrainSignature(
        step_frequency=(0.8, 1.4),
        acceleration_variance=(0.04, 0.15),
        vertical_ratio=(0.4, 0.8),
        step_regularity=(0.4, 0.7),
        gyroscope_variance=(0.01, 0.06),
        impact_intensity=(0.0, 0.2),
        frequency_profile=((0.5, 1.0), (0.0, 0.3), (0.0, 0.15), (0.0, 0.05)),
    ),
    TerrainType.STAIRS: TerrainSignature(
        step_frequency=(0.5, 1.0),
        acceleration_variance=(0.1, 0.4),
        vertical_ratio=(0.85, 1.0),
        step_regularity=(0.3, 0.6),
        gyroscope_variance=(0.05, 0.2),
        impact_intensity=(0.3, 0.8),
        frequency_profile=((0.5, 1.0), (0.0, 0.4), (0.0, 0.2), (0.0, 0.1)),
    ),
    TerrainType.GRASS: TerrainSignature(
        step_frequency=(1.5, 2.0),
        acceleration_variance=(0.01, 0.05),
        vertical_ratio=(0.5, 0.9),
        step_regularity=(0.7, 0.95),
        gyroscope_variance=(0.003, 0.02),
        impact_intensity=(0.08, 0.25),
        frequency_profile=((0.5, 0.95), (0.05, 0.35), (0.0, 0.15), (0.0, 0.05)),
    ),
}


def membership(value: float, bounds: Range) -> float:
    """Trapezoid membership of a value in a range.

    1.0 inside the range, falling linearly to 0.0 one range-width outside
    either edge.
    """
    low, high = bounds
    if low <= value <= high:
        return 1.0

    width = max(high - low, MIN_RANGE_WIDTH)
    outside = low - value if value < low else value - high
    return clamp(1.0 - outside / width, 0.0, 1.0)


def bounded_features(details: MotionAnalysisDetails) -> dict[str, float]:
    """Clamp every scalar feature into its scoring range; NaN maps to the lower bound."""
    return {
        name: clamp(float(getattr(details, name)), low, high)
        for name, (low, high) in FEATURE_LIMITS.items()
    }


def score_signature(
    features: Mapping[str, float],
    profile: Sequence[float],
    signature: TerrainSignature,
) -> float:
    """Weighted membership score of a feature vector in [0, 1]."""
    score = 0.0
    for name, weight in FEATURE_WEIGHTS.items():
        if name == "frequency_profile":
            memberships = [
                membership(power, bounds)
                for power, bounds in zip(profile, signature.frequency_profile)
            ]
            fit = sum(memberships) / len(memberships) if memberships else 0.0
        else:
            fit = membership(features[name], getattr(signature, name))
        score += weight * fit

    return clamp(score / sum(FEATURE_WEIGHTS.values()), 0.0, 1.0)


def classify(
    details: MotionAnalysisDetails,
    signatures: Mapping[TerrainType, TerrainSignature] | None = None,
    unknown_threshold: float = UNKNOWN_SCORE_THRESHOLD,
) -> tuple[TerrainType, float]:
    """Pick the terrain whose signature best matches the features.

    Args:
        details: Extracted motion features
        signatures: Signatures to score against (defaults to SIGNATURES)
        unknown_threshold: Best scores below this report UNKNOWN

    Returns:
        Tuple of (terrain type, confidence in [0, 1]); windows without a
        step cadence or with less than ``MIN_GAIT_VARIANCE`` are UNKNOWN
    """
    signatures = SIGNATURES if signatures is None else signatures
    if not signatures:
        return TerrainType.UNKNOWN, 0.0

    features = bounded_features(details)

    # Standing still or a flat signal has no cadence to match
    if (
        features["step_frequency"] <= 0.0
        or features["acceleration_variance"] < MIN_GAIT_VARIANCE
    ):
        return TerrainType.UNKNOWN, 0.0

    profile = [clamp(float(p), 0.0, 1.0) for p in details.frequency_profile]

    scores = sorted(
        ((score_signature(features, profile, sig), terrain) for terrain, sig in signatures.items()),
        key=lambda item: item[0],
        reverse=True,
    )
    best_score, best_terrain = scores[0]
    runner_up = scores[1][0] if len(scores) > 1 else 0.0

    if best_score <= 0.0:
        return TerrainType.UNKNOWN, 0.0

    # Scores close to the runner-up sit near a decision boundary
    separation = clamp((best_score - runner_up) / best_score, 0.0, 1.0)
    confidence = clamp(best_score * (0.5 + 0.5 * separation), 0.0, 1.0)

    if best_score < unknown_threshold:
        return TerrainType.UNKNOWN, confidence
    return best_terrain, confidence
