"""Core infrastructure: config, types, exceptions, and logging."""

from ruck_analytics.core.config import (
    CompressionSettings,
    GradePreset,
    GradeSettings,
    MotionSettings,
    Settings,
    get_settings,
)
from ruck_analytics.core.exceptions import (
    InvalidParameterError,
    InvalidSampleError,
    RuckAnalyticsError,
)
from ruck_analytics.core.logging import get_logger, setup_logging
from ruck_analytics.core.types import (
    GradeResult,
    GradeTrend,
    MotionAnalysisDetails,
    MotionAnalysisResult,
    MotionSample,
    TerrainType,
    TrackPoint,
    Vector3,
)

__all__ = [
    # Config
    "Settings",
    "CompressionSettings",
    "GradeSettings",
    "GradePreset",
    "MotionSettings",
    "get_settings",
    # Types
    "TrackPoint",
    "GradeTrend",
    "GradeResult",
    "Vector3",
    "MotionSample",
    "TerrainType",
    "MotionAnalysisDetails",
    "MotionAnalysisResult",
    # Exceptions
    "RuckAnalyticsError",
    "InvalidParameterError",
    "InvalidSampleError",
    # Logging
    "setup_logging",
    "get_logger",
]
