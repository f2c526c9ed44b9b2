"""Pytest fixtures for Ruck Analytics tests."""

from __future__ import annotations

import math

import numpy as np
import pytest

from ruck_analytics.core.config import (
    CompressionSettings,
    GradePreset,
    GradeSettings,
    MotionSettings,
)
from ruck_analytics.core.types import MotionSample, TrackPoint, Vector3
from ruck_analytics.geo.distance import haversine_distance

SAMPLE_RATE = 30.0

# Roughly 22 m of northward travel per step
LAT_STEP = 0.0002


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 100.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_point(
    lat: float,
    lon: float,
    altitude: float = 100.0,
    timestamp: float = 0.0,
    speed: float = 1.5,
    horizontal_accuracy: float = 3.0,
    vertical_accuracy: float = 0.5,
) -> TrackPoint:
    """Create a track point with good accuracy."""
    return TrackPoint(
        timestamp=timestamp,
        latitude=lat,
        longitude=lon,
        altitude=altitude,
        horizontal_accuracy=horizontal_accuracy,
        vertical_accuracy=vertical_accuracy,
        speed=speed,
    )


def straight_track(count: int, altitude: float = 100.0) -> list[TrackPoint]:
    """Points due north at constant altitude and speed."""
    return [
        make_point(47.0 + i * LAT_STEP, 8.0, altitude=altitude, timestamp=float(i))
        for i in range(count)
    ]


def graded_track(count: int, grade_percent: float, noise: float = 0.0, seed: int = 7) -> list[TrackPoint]:
    """Points due north climbing at a constant grade, with optional altitude noise."""
    rng = np.random.default_rng(seed)
    points: list[TrackPoint] = []
    altitude = 100.0
    for i in range(count):
        lat = 47.0 + i * LAT_STEP
        if i > 0:
            step = haversine_distance(lat - LAT_STEP, 8.0, lat, 8.0)
            altitude += step * grade_percent / 100.0
        jitter = float(rng.uniform(-noise, noise)) if noise > 0 else 0.0
        points.append(make_point(lat, 8.0, altitude=altitude + jitter, timestamp=float(i)))
    return points


def gait_samples(
    count: int = 150,
    frequency: float = 1.8,
    noise: float = 0.01,
    seed: int = 42,
) -> list[MotionSample]:
    """Regular walking signal on a hard surface."""
    rng = np.random.default_rng(seed)
    samples = []
    for i in range(count):
        t = i / SAMPLE_RATE
        phase = math.sin(2 * math.pi * frequency * t)
        accel = Vector3(
            x=0.1 + 0.05 * phase + float(rng.uniform(-noise, noise)),
            y=0.1 + float(rng.uniform(-noise, noise)),
            z=0.9 + 0.1 * phase + float(rng.uniform(-noise, noise)),
        )
        gyro = Vector3(
            x=float(rng.uniform(-noise, noise)),
            y=float(rng.uniform(-noise, noise)),
            z=float(rng.uniform(-noise, noise)),
        )
        samples.append(MotionSample(timestamp=t, acceleration=accel, rotation_rate=gyro))
    return samples


def sand_samples(count: int = 150, seed: int = 3) -> list[MotionSample]:
    """Irregular, heavy-variance signal of strides sinking into sand."""
    rng = np.random.default_rng(seed)

    # Half-sine bumps of random length and strength
    bumps: list[float] = []
    while len(bumps) < count:
        duration = int(rng.integers(10, 46))
        amplitude = float(rng.uniform(0.3, 0.9))
        bumps.extend(amplitude * math.sin(math.pi * k / duration) for k in range(duration))

    samples = []
    for i in range(count):
        accel = Vector3(
            x=float(rng.normal(0.0, 0.2)),
            y=float(rng.normal(0.0, 0.2)),
            z=1.0 + bumps[i] + float(rng.normal(0.0, 0.4)),
        )
        gyro = Vector3(
            x=float(rng.normal(0.0, 0.2)),
            y=float(rng.normal(0.0, 0.2)),
            z=float(rng.normal(0.0, 0.2)),
        )
        samples.append(
            MotionSample(timestamp=i / SAMPLE_RATE, acceleration=accel, rotation_rate=gyro)
        )
    return samples


@pytest.fixture
def fake_clock() -> FakeClock:
    """Create a controllable clock."""
    return FakeClock()


@pytest.fixture
def compression_settings() -> CompressionSettings:
    """Create compression settings for testing."""
    return CompressionSettings()


@pytest.fixture
def grade_settings() -> GradeSettings:
    """Create grade settings for testing."""
    return GradeSettings(preset=GradePreset.STANDARD)


@pytest.fixture
def motion_settings() -> MotionSettings:
    """Create motion settings for testing."""
    return MotionSettings()


@pytest.fixture
def straight_line() -> list[TrackPoint]:
    """Create a 20-point straight track."""
    return straight_track(20)


@pytest.fixture
def spike_track() -> list[TrackPoint]:
    """Create a straight track with a single 10 m elevation spike."""
    points = straight_track(21)
    spike = points[10]
    points[10] = make_point(spike.latitude, spike.longitude, altitude=110.0, timestamp=spike.timestamp)
    return points


@pytest.fixture
def paved_gait() -> list[MotionSample]:
    """Create a regular 1.8 Hz gait window."""
    return gait_samples()


@pytest.fixture
def sand_gait() -> list[MotionSample]:
    """Create an irregular sand-like window."""
    return sand_samples()
