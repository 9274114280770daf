"""Traffic signal lookup with a short-lived cache and synthetic fallback."""

from __future__ import annotations

import logging
import math
import random
import time
from abc import ABC, abstractmethod
from typing import Any, Callable

import httpx

from ...config import settings
from ...models.domain import Coordinates, SignalKind, TrafficSignal
from ..geospatial import to_radians
from .errors import SignalProviderError

DEFAULT_CACHE_TTL_SECONDS = 5 * 60
METERS_PER_SIGNAL = 200.0
METERS_PER_DEGREE = 111_000.0
MIN_WAIT_SECONDS = 30.0
WAIT_SPREAD_SECONDS = 60.0

CacheKey = tuple[float, float, float]

logger = logging.getLogger(__name__)


class SignalCache:
    """Signal lists keyed by rounded center and radius, expiring after ``ttl_seconds``."""

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self._entries: dict[CacheKey, tuple[float, tuple[TrafficSignal, ...]]] = {}

    @staticmethod
    def key(center: Coordinates, radius_meters: float) -> CacheKey:
        return (round(center.latitude, 3), round(center.longitude, 3), float(radius_meters))

    def get(self, key: CacheKey) -> tuple[TrafficSignal, ...] | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        stored_at, signals = entry
        if self.clock() - stored_at >= self.ttl_seconds:
            self._entries.pop(key, None)
            return None
        return signals

    def put(self, key: CacheKey, signals: tuple[TrafficSignal, ...]) -> None:
        now = self.clock()
        self._prune(now)
        # Last writer wins when two fetches for one key overlap.
        self._entries[key] = (now, signals)

    def _prune(self, now: float) -> None:
        expired = [key for key, (stored_at, _) in self._entries.items() if now - stored_at >= self.ttl_seconds]
        for key in expired:
            del self._entries[key]

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


def synthesize_signals(
    center: Coordinates,
    radius_meters: float,
    rng: random.Random,
) -> tuple[TrafficSignal, ...]:
    """Spread roughly one signal per 200 m of radius around ``center``."""

    count = int(radius_meters // METERS_PER_SIGNAL)
    if count <= 0:
        return ()

    meters_per_degree_lon = METERS_PER_DEGREE * max(math.cos(to_radians(center.latitude)), 1e-6)
    signals: list[TrafficSignal] = []
    for index in range(count):
        angle = (2 * math.pi * index) / count + rng.random() * 0.5
        distance = (rng.random() * 0.7 + 0.3) * radius_meters  # 30-100% of the radius
        location = Coordinates(
            latitude=center.latitude + (distance / METERS_PER_DEGREE) * math.cos(angle),
            longitude=center.longitude + (distance / meters_per_degree_lon) * math.sin(angle),
        )
        signals.append(
            TrafficSignal(
                location=location,
                kind=SignalKind.TRAFFIC_SIGNALS,
                estimated_wait_seconds=MIN_WAIT_SECONDS + rng.random() * WAIT_SPREAD_SECONDS,
            )
        )
    return tuple(signals)


class SignalGateway(ABC):
    """Contract for signal backends.

    ``fetch_signals`` never raises for provider trouble: failures are replaced by
    synthetic signals, and every answer (real or synthetic) is cached.
    """

    name: str = "signals"

    def __init__(self, cache: SignalCache | None = None, rng: random.Random | None = None) -> None:
        self.cache = cache if cache is not None else SignalCache()
        self.rng = rng or random.Random()

    async def fetch_signals(self, center: Coordinates, radius_meters: float) -> tuple[TrafficSignal, ...]:
        key = self.cache.key(center, radius_meters)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug(f"Signal cache hit for {key} ({len(cached)} signals)")
            return cached

        try:
            signals = await self._query(center, radius_meters)
        except SignalProviderError as exc:
            logger.warning(f"Signal provider failed for {key}: {exc}. Using synthetic signals.")
            signals = synthesize_signals(center, radius_meters, self.rng)

        self.cache.put(key, signals)
        return signals

    @abstractmethod
    async def _query(self, center: Coordinates, radius_meters: float) -> tuple[TrafficSignal, ...]:
        raise NotImplementedError


class OverpassSignalGateway(SignalGateway):
    """Live backend querying OpenStreetMap data through the Overpass API."""

    name = "overpass"

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
        cache: SignalCache | None = None,
        rng: random.Random | None = None,
    ) -> None:
        super().__init__(cache=cache, rng=rng)
        self.base_url = base_url or settings.overpass_url
        self.timeout = timeout if timeout is not None else settings.provider_timeout_seconds
        self._client = client

    async def _post(self, data: dict[str, str]) -> httpx.Response:
        if self._client is not None:
            return await self._client.post(self.base_url, data=data)
        async with httpx.AsyncClient(timeout=httpx.Timeout(self.timeout, connect=10.0)) as client:
            return await client.post(self.base_url, data=data)

    async def _query(self, center: Coordinates, radius_meters: float) -> tuple[TrafficSignal, ...]:
        query = build_overpass_query(center, radius_meters)
        try:
            response = await self._post({"data": query})
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as exc:
            raise SignalProviderError(f"Overpass returned status {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise SignalProviderError(f"Overpass request failed: {exc!r}") from exc
        except ValueError as exc:
            raise SignalProviderError("Overpass response was not valid JSON") from exc

        signals = parse_overpass_elements(payload, self.rng)
        logger.info(f"Fetched {len(signals)} signals within {radius_meters:.0f} m of {center}")
        return signals


def build_overpass_query(center: Coordinates, radius_meters: float) -> str:
    around = f"around:{radius_meters:.0f},{center.latitude},{center.longitude}"
    return (
        "[out:json][timeout:25];\n"
        "(\n"
        f'  node["highway"="traffic_signals"]({around});\n'
        f'  node["crossing"="traffic_signals"]({around});\n'
        f'  node["highway"="stop"]({around});\n'
        ");\n"
        "out body;"
    )


def _signal_kind(tags: dict[str, Any]) -> SignalKind:
    if tags.get("highway") == "traffic_signals":
        return SignalKind.TRAFFIC_SIGNALS
    if tags.get("highway") == "stop":
        return SignalKind.STOP
    if "crossing" in tags:
        return SignalKind.CROSSING
    return SignalKind.TRAFFIC_SIGNALS


def parse_overpass_elements(payload: Any, rng: random.Random) -> tuple[TrafficSignal, ...]:
    """Turn Overpass ``elements`` into signals, skipping entries without a position."""

    if not isinstance(payload, dict) or not isinstance(payload.get("elements"), list):
        raise SignalProviderError("Overpass response missing elements.")

    signals: list[TrafficSignal] = []
    seen: set[tuple[Any, int | str]] = set()
    for element in payload["elements"]:
        if not isinstance(element, dict) or "lat" not in element or "lon" not in element:
            continue
        try:
            location = Coordinates(latitude=float(element["lat"]), longitude=float(element["lon"]))
        except (TypeError, ValueError):
            logger.debug(f"Skipping Overpass element with unusable position: {element!r}")
            continue
        tags = element.get("tags")
        if not isinstance(tags, dict):
            tags = {}
        element_id = element.get("id")
        # Only scalar ids take part in dedup; ids are unique per element type.
        if isinstance(element_id, (int, str)) and not isinstance(element_id, bool):
            dedup_key = (str(element.get("type", "node")), element_id)
            if dedup_key in seen:
                continue
            seen.add(dedup_key)
        signals.append(
            TrafficSignal(
                location=location,
                kind=_signal_kind(tags),
                estimated_wait_seconds=MIN_WAIT_SECONDS + rng.random() * WAIT_SPREAD_SECONDS,
            )
        )
    return tuple(signals)


class SyntheticSignalGateway(SignalGateway):
    """Offline backend that only ever returns synthetic signals."""

    name = "synthetic"

    async def _query(self, center: Coordinates, radius_meters: float) -> tuple[TrafficSignal, ...]:
        return synthesize_signals(center, radius_meters, self.rng)
