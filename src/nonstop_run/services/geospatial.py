"""Geospatial helper functions."""

from __future__ import annotations

import math
from typing import Sequence

from ..config import SupportedCity, settings
from ..models.domain import Coordinates

EARTH_RADIUS_KM = 6371.0
EARTH_RADIUS_M = EARTH_RADIUS_KM * 1000.0


def to_radians(degrees: float) -> float:
    return degrees * (math.pi / 180)


def to_degrees(radians: float) -> float:
    return radians * (180 / math.pi)


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute distance between two coordinates using the Haversine formula."""

    phi1, phi2 = to_radians(lat1), to_radians(lat2)
    d_phi = to_radians(lat2 - lat1)
    d_lambda = to_radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def distance_meters(a: Coordinates, b: Coordinates) -> float:
    """Great-circle distance between two positions in meters."""
    return haversine_km(a.latitude, a.longitude, b.latitude, b.longitude) * 1000.0


def destination(origin: Coordinates, bearing_radians: float, distance_km: float) -> Coordinates:
    """Position reached by travelling ``distance_km`` from ``origin`` on the given initial bearing."""

    angular = distance_km / EARTH_RADIUS_KM
    phi1 = to_radians(origin.latitude)
    lambda1 = to_radians(origin.longitude)

    phi2 = math.asin(
        math.sin(phi1) * math.cos(angular)
        + math.cos(phi1) * math.sin(angular) * math.cos(bearing_radians)
    )
    lambda2 = lambda1 + math.atan2(
        math.sin(bearing_radians) * math.sin(angular) * math.cos(phi1),
        math.cos(angular) - math.sin(phi1) * math.sin(phi2),
    )
    longitude = (to_degrees(lambda2) + 540) % 360 - 180
    return Coordinates(latitude=to_degrees(phi2), longitude=longitude)


def is_location_supported(
    latitude: float,
    longitude: float,
    cities: Sequence[SupportedCity] | None = None,
) -> bool:
    """Return True if the point lies within the radius of any supported city."""

    for city in cities if cities is not None else settings.supported_cities:
        if haversine_km(latitude, longitude, city.latitude, city.longitude) <= city.radius_km:
            return True
    return False
