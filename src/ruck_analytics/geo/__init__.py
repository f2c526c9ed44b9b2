"""Geodesic primitives shared by every engine."""

from ruck_analytics.geo.distance import (
    EARTH_RADIUS_M,
    chord_distances,
    elevation_gain_loss,
    haversine_distance,
    haversine_distances,
    initial_bearing,
    track_distance,
    turn_angle,
)

__all__ = [
    "EARTH_RADIUS_M",
    "haversine_distance",
    "haversine_distances",
    "initial_bearing",
    "turn_angle",
    "chord_distances",
    "track_distance",
    "elevation_gain_loss",
]
