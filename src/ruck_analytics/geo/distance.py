"""Geodesic distance and bearing helpers.

Haversine great-circle distance is the single distance metric of the
library: compression, compression validation, grade calculation and
``TrackPoint.distance_to`` all go through this module.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

import numpy as np
from numpy.typing import NDArray

if TYPE_CHECKING:
    from ruck_analytics.core.types import TrackPoint

EARTH_RADIUS_M = 6_371_000.0


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two coordinates.

    Args:
        lat1: Latitude of the first point in degrees
        lon1: Longitude of the first point in degrees
        lat2: Latitude of the second point in degrees
        lon2: Longitude of the second point in degrees

    Returns:
        Distance in meters
    """
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = phi2 - phi1
    d_lam = math.radians(lon2 - lon1)

    h = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lam / 2) ** 2
    # Rounding can push h marginally past 1 for antipodal input
    h = min(1.0, max(0.0, h))
    return 2 * EARTH_RADIUS_M * math.asin(math.sqrt(h))


def haversine_distances(
    lats: NDArray[np.floating[Any]],
    lons: NDArray[np.floating[Any]],
    lat0: NDArray[np.floating[Any]] | float,
    lon0: NDArray[np.floating[Any]] | float,
) -> NDArray[np.float64]:
    """Vectorized great-circle distances in meters."""
    phi1 = np.radians(lats)
    phi2 = np.radians(lat0)
    d_phi = phi2 - phi1
    d_lam = np.radians(np.asarray(lon0) - lons)

    h = np.sin(d_phi / 2) ** 2 + np.cos(phi1) * np.cos(phi2) * np.sin(d_lam / 2) ** 2
    h = np.clip(h, 0.0, 1.0)
    return np.asarray(2 * EARTH_RADIUS_M * np.arcsin(np.sqrt(h)), dtype=np.float64)


def initial_bearing(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Initial great-circle bearing from the first to the second coordinate.

    Returns:
        Bearing in degrees, normalized to [0, 360)
    """
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_lam = math.radians(lon2 - lon1)

    y = math.sin(d_lam) * math.cos(phi2)
    x = math.cos(phi1) * math.sin(phi2) - math.sin(phi1) * math.cos(phi2) * math.cos(d_lam)

    return math.degrees(math.atan2(y, x)) % 360.0


def turn_angle(bearing_in: float, bearing_out: float) -> float:
    """Signed heading change between two bearings, in [-180, 180]."""
    angle = (bearing_out - bearing_in) % 360.0
    if angle > 180.0:
        angle -= 360.0
    return angle


def chord_distances(
    lats: NDArray[np.floating[Any]],
    lons: NDArray[np.floating[Any]],
    start: tuple[float, float],
    end: tuple[float, float],
) -> NDArray[np.float64]:
    """Distance from each coordinate to the chord between two anchors.

    The closest point on the chord is located in a local frame where
    longitude is scaled by the cosine of the chord's mean latitude, clamped
    to the segment, and then measured with haversine.

    Args:
        lats: Latitudes of the candidate points in degrees
        lons: Longitudes of the candidate points in degrees
        start: (lat, lon) of the chord start
        end: (lat, lon) of the chord end

    Returns:
        Distances in meters, one per candidate point
    """
    lat_a, lon_a = start
    lat_b, lon_b = end

    scale = math.cos(math.radians((lat_a + lat_b) / 2.0))

    # Local planar offsets (degrees, longitude rescaled)
    px = (lons - lon_a) * scale
    py = lats - lat_a
    cx = (lon_b - lon_a) * scale
    cy = lat_b - lat_a

    length_sq = cx * cx + cy * cy
    if length_sq == 0.0:
        return haversine_distances(lats, lons, lat_a, lon_a)

    t = np.clip((px * cx + py * cy) / length_sq, 0.0, 1.0)
    closest_lat = lat_a + t * cy
    closest_lon = lon_a + t * (lon_b - lon_a)

    return haversine_distances(lats, lons, closest_lat, closest_lon)


def track_distance(points: Sequence[TrackPoint]) -> float:
    """Total path length of an ordered point sequence in meters."""
    total = 0.0
    for prev, curr in zip(points, points[1:]):
        total += haversine_distance(prev.latitude, prev.longitude, curr.latitude, curr.longitude)
    return total


def elevation_gain_loss(points: Sequence[TrackPoint]) -> tuple[float, float]:
    """Total climb and descent of an ordered point sequence.

    Returns:
        Tuple of (gain, loss) in meters, both non-negative
    """
    gain = 0.0
    loss = 0.0
    for prev, curr in zip(points, points[1:]):
        change = curr.altitude - prev.altitude
        if change > 0:
            gain += change
        else:
            loss -= change
    return gain, loss
