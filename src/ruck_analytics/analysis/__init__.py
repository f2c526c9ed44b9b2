"""Pure analysis logic: track compression, grade estimation and terrain classification.

This module contains NO I/O operations.
All engines operate on typed dataclasses and return immutable results.
"""

from ruck_analytics.analysis.compressor import (
    CompressionResult,
    TrackCompressor,
    ValidationResult,
)
from ruck_analytics.analysis.grade import (
    ElevationProfilePoint,
    GradeCalculator,
    GradeConfiguration,
    GradeStatistics,
    grade_multiplier,
)
from ruck_analytics.analysis.motion import MotionPatternAnalyzer
from ruck_analytics.analysis.terrain import SIGNATURES, TerrainSignature, classify

__all__ = [
    "TrackCompressor",
    "CompressionResult",
    "ValidationResult",
    "GradeCalculator",
    "GradeConfiguration",
    "GradeStatistics",
    "ElevationProfilePoint",
    "grade_multiplier",
    "MotionPatternAnalyzer",
    "TerrainSignature",
    "SIGNATURES",
    "classify",
]
