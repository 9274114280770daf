"""Loop waypoint synthesis around a start point."""

from __future__ import annotations

import math
from typing import Sequence

from ...models.domain import Coordinates
from ..geospatial import destination
from .errors import InvalidParameterError

# Live providers interpolate a realistic path between a handful of waypoints;
# self-generated loops need more points plus interpolation to look walkable.
PROVIDER_POINT_COUNT = 4
SYNTHETIC_POINT_COUNT = 8
SYNTHETIC_INTERPOLATION_STEPS = 10


def ensure_valid_coordinates(point: Coordinates) -> None:
    if not (math.isfinite(point.latitude) and math.isfinite(point.longitude)):
        raise InvalidParameterError(f"Coordinates must be finite numbers, got {point}.")
    if not -90.0 <= point.latitude <= 90.0:
        raise InvalidParameterError(f"Latitude {point.latitude} is outside [-90, 90].")
    if not -180.0 <= point.longitude <= 180.0:
        raise InvalidParameterError(f"Longitude {point.longitude} is outside [-180, 180].")


def ensure_positive_distance(target_distance_km: float) -> None:
    if not math.isfinite(target_distance_km) or target_distance_km <= 0:
        raise InvalidParameterError(f"Target distance must be a positive number of km, got {target_distance_km}.")


def plan_loop(
    start: Coordinates,
    target_distance_km: float,
    point_count: int = PROVIDER_POINT_COUNT,
    angle_offset_radians: float = 0.0,
) -> list[Coordinates]:
    """Return ``[start, p0 .. pN-1, start]`` with the p's evenly spaced on a circle around ``start``.

    The circle's circumference equals ``target_distance_km``; ``angle_offset_radians``
    rotates where the first point sits so loops from one start can differ.
    """
    ensure_valid_coordinates(start)
    ensure_positive_distance(target_distance_km)
    if point_count < 1:
        raise InvalidParameterError(f"point_count must be >= 1, got {point_count}.")

    radius_km = target_distance_km / (2 * math.pi)
    waypoints = [start]
    for index in range(point_count):
        bearing = angle_offset_radians + (2 * math.pi * index) / point_count
        waypoints.append(destination(start, bearing, radius_km))
    waypoints.append(start)
    return waypoints


def interpolate_path(
    waypoints: Sequence[Coordinates],
    steps: int = SYNTHETIC_INTERPOLATION_STEPS,
) -> list[Coordinates]:
    """Linearly fill ``steps`` points per leg between consecutive waypoints; the last waypoint is kept."""
    if len(waypoints) < 2:
        return list(waypoints)
    if steps < 1:
        raise InvalidParameterError(f"steps must be >= 1, got {steps}.")

    path: list[Coordinates] = []
    for origin, target in zip(waypoints, waypoints[1:]):
        for step in range(steps):
            t = step / steps
            path.append(
                Coordinates(
                    latitude=origin.latitude + (target.latitude - origin.latitude) * t,
                    longitude=origin.longitude + (target.longitude - origin.longitude) * t,
                )
            )
    path.append(waypoints[-1])
    return path
