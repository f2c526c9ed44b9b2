"""Library configuration via Pydantic Settings."""

from enum import Enum
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class GradePreset(str, Enum):
    """Named grade smoothing presets."""

    STANDARD = "standard"
    PRECISE = "precise"
    FAST = "fast"


class CompressionSettings(BaseSettings):
    """Track compression defaults and retention heuristics."""

    model_config = SettingsConfigDict(env_prefix="COMPRESSION_")

    epsilon_m: float = Field(default=5.0, ge=0.0)
    elevation_threshold_m: float = Field(default=2.0, ge=0.0)
    preserve_elevation_changes: bool = True
    preserve_turns: bool = True
    turn_angle_threshold_deg: float = 30.0
    min_turn_segment_m: float = 1.0
    preserve_speed_changes: bool = True
    speed_change_threshold_mps: float = 2.0
    max_elevation_error_percent: float = 5.0
    max_distance_error_percent: float = 2.0


class GradeSettings(BaseSettings):
    """Grade calculator history, trend and clamping parameters."""

    model_config = SettingsConfigDict(env_prefix="GRADE_")

    preset: GradePreset = GradePreset.STANDARD
    history_size: int = Field(default=100, ge=1)
    profile_size: int = Field(default=2000, ge=1)
    trend_window: int = Field(default=5, ge=1)
    trend_min_run: int = Field(default=3, ge=1)
    trend_flat_threshold: float = 1.0
    max_grade_percent: float = 60.0
    degenerate_distance_m: float = 0.01
    precision_confidence_threshold: float = 0.8


class MotionSettings(BaseSettings):
    """Motion pattern window and spectral analysis parameters."""

    model_config = SettingsConfigDict(env_prefix="MOTION_")

    sample_rate_hz: float = Field(default=30.0, gt=0.0)
    window_size: int = Field(default=150, ge=2)
    min_samples: int = Field(default=30, ge=2)
    confidence_decay_s: float = Field(default=5.0, gt=0.0)
    min_step_frequency_hz: float = 0.5
    max_step_frequency_hz: float = 3.0
    unknown_score_threshold: float = 0.4


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: str = "INFO"
    file: str | None = None


class Settings(BaseSettings):
    """Root settings aggregating all configuration sections."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    compression: CompressionSettings = Field(default_factory=CompressionSettings)
    grade: GradeSettings = Field(default_factory=GradeSettings)
    motion: MotionSettings = Field(default_factory=MotionSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
