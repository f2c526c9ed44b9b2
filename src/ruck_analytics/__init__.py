"""Ruck Analytics - track compression, grade and terrain analysis for rucking sessions."""

from ruck_analytics.analysis import (
    GradeCalculator,
    MotionPatternAnalyzer,
    TrackCompressor,
)
from ruck_analytics.core import (
    GradePreset,
    GradeResult,
    GradeTrend,
    MotionAnalysisResult,
    MotionSample,
    TerrainType,
    TrackPoint,
    Vector3,
    setup_logging,
)

__version__ = "0.1.0"

__all__ = [
    "TrackCompressor",
    "GradeCalculator",
    "MotionPatternAnalyzer",
    "GradePreset",
    "TrackPoint",
    "GradeResult",
    "GradeTrend",
    "Vector3",
    "MotionSample",
    "MotionAnalysisResult",
    "TerrainType",
    "setup_logging",
]
