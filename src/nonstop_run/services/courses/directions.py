"""Directions backends that turn loop waypoints into a routed polyline."""

from __future__ import annotations

import logging
import random
from abc import ABC, abstractmethod
from typing import Any, Sequence

import httpx

from ...config import settings
from ...models.domain import Coordinates, RoutePoint, RouteResult
from .errors import DirectionsError
from .waypoints import SYNTHETIC_POINT_COUNT, interpolate_path, plan_loop

DEFAULT_PACE_SECONDS_PER_KM = 360.0
MAX_SYNTHETIC_ELEVATION_GAIN_M = 50.0

logger = logging.getLogger(__name__)


class DirectionsGateway(ABC):
    """Contract for directions backends.

    ``route`` either returns a :class:`RouteResult` or raises :class:`DirectionsError`.
    It never retries; retry policy belongs to the caller.
    """

    name: str = "directions"

    @abstractmethod
    async def route(
        self,
        waypoints: Sequence[Coordinates],
        profile: str,
        *,
        target_distance_km: float,
        angle_offset_radians: float = 0.0,
    ) -> RouteResult:
        raise NotImplementedError


class MapboxDirectionsClient(DirectionsGateway):
    """Live backend calling the Mapbox Directions API."""

    name = "mapbox"

    def __init__(
        self,
        access_token: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.access_token = access_token or settings.mapbox_access_token
        if not self.access_token:
            raise ValueError("Mapbox access token is not configured.")
        self.base_url = (base_url or settings.mapbox_directions_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.provider_timeout_seconds
        self._client = client

    async def _get(self, url: str, params: dict[str, str]) -> httpx.Response:
        if self._client is not None:
            return await self._client.get(url, params=params)
        async with httpx.AsyncClient(timeout=httpx.Timeout(self.timeout, connect=10.0)) as client:
            return await client.get(url, params=params)

    async def route(
        self,
        waypoints: Sequence[Coordinates],
        profile: str,
        *,
        target_distance_km: float,
        angle_offset_radians: float = 0.0,
    ) -> RouteResult:
        if len(waypoints) < 2:
            raise DirectionsError("At least two waypoints are required for a directions request.")

        # Mapbox expects "lon,lat;lon,lat;..."
        coordinate_str = ";".join(f"{point.longitude},{point.latitude}" for point in waypoints)
        url = f"{self.base_url}/{profile}/{coordinate_str}"
        params = {
            "geometries": "geojson",
            "overview": "full",
            "steps": "false",
            "access_token": self.access_token,
        }

        try:
            response = await self._get(url, params)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as exc:
            logger.warning(f"Mapbox directions returned {exc.response.status_code}: {exc.response.text[:200]}")
            raise DirectionsError(f"Directions request failed with status {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            logger.warning(f"Mapbox directions transport error: {exc!r}")
            raise DirectionsError(f"Directions request failed: {exc}") from exc
        except ValueError as exc:
            raise DirectionsError("Directions response was not valid JSON") from exc

        result = parse_mapbox_route(data)
        logger.debug(
            f"Mapbox route fetched | target={target_distance_km:.2f} km | "
            f"distance={result.distance_meters:.0f} m | points={len(result.polyline)}"
        )
        return result


def parse_mapbox_route(data: Any) -> RouteResult:
    """Convert a Mapbox Directions payload into a :class:`RouteResult`."""

    routes = data.get("routes") if isinstance(data, dict) else None
    if not routes:
        message = data.get("message", "no routes returned") if isinstance(data, dict) else "no routes returned"
        raise DirectionsError(f"Directions response contained no route: {message}")

    if not isinstance(routes, list):
        raise DirectionsError(f"Directions response had unexpected routes type: {type(routes).__name__}")

    route = routes[0]
    try:
        coordinates = route["geometry"]["coordinates"]
        polyline = tuple(RoutePoint(latitude=float(lat), longitude=float(lon)) for lon, lat, *_ in coordinates)
        distance = float(route["distance"])
        duration = float(route["duration"])
    except (KeyError, TypeError, ValueError) as exc:
        raise DirectionsError(f"Malformed directions route: {exc}") from exc

    if len(polyline) < 2:
        raise DirectionsError("Directions route geometry has fewer than two points.")

    # Walking directions carry no elevation data.
    return RouteResult(polyline=polyline, distance_meters=distance, duration_seconds=duration)


class MockDirectionsGateway(DirectionsGateway):
    """Self-generated loops for development and offline use; never fails."""

    name = "mock"

    def __init__(
        self,
        pace_seconds_per_km: float = DEFAULT_PACE_SECONDS_PER_KM,
        rng: random.Random | None = None,
        max_elevation_gain_m: float = MAX_SYNTHETIC_ELEVATION_GAIN_M,
    ) -> None:
        self.pace_seconds_per_km = pace_seconds_per_km
        self.rng = rng or random.Random()
        self.max_elevation_gain_m = max_elevation_gain_m

    async def route(
        self,
        waypoints: Sequence[Coordinates],
        profile: str,
        *,
        target_distance_km: float,
        angle_offset_radians: float = 0.0,
    ) -> RouteResult:
        if not waypoints:
            raise DirectionsError("At least one waypoint is required to synthesize a loop.")

        # The provider waypoints are too sparse to draw; rebuild a denser loop around the same start.
        loop = plan_loop(waypoints[0], target_distance_km, SYNTHETIC_POINT_COUNT, angle_offset_radians)
        path = interpolate_path(loop)
        return RouteResult(
            polyline=tuple(RoutePoint(latitude=p.latitude, longitude=p.longitude) for p in path),
            distance_meters=target_distance_km * 1000,
            duration_seconds=target_distance_km * self.pace_seconds_per_km,
            elevation_gain_meters=self.rng.uniform(0.0, self.max_elevation_gain_m),
        )
