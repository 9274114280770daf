"""Compose the course orchestrator from configuration.

Backends are chosen here, once; nothing downstream branches on mock vs live.
"""

from __future__ import annotations

import functools
import logging
import random

from ...config import Settings, settings
from .directions import DirectionsGateway, MapboxDirectionsClient, MockDirectionsGateway
from .orchestrator import CourseOrchestrator
from .signals import OverpassSignalGateway, SignalCache, SignalGateway, SyntheticSignalGateway

logger = logging.getLogger(__name__)


def _rng(config: Settings) -> random.Random:
    return random.Random(config.random_seed)


def build_directions_gateway(config: Settings = settings) -> DirectionsGateway:
    if config.use_mock_api:
        return MockDirectionsGateway(pace_seconds_per_km=config.course_pace_seconds_per_km, rng=_rng(config))
    return MapboxDirectionsClient(
        access_token=config.mapbox_access_token,
        base_url=config.mapbox_directions_url,
        timeout=config.provider_timeout_seconds,
    )


def build_signal_gateway(config: Settings = settings, cache: SignalCache | None = None) -> SignalGateway:
    cache = cache if cache is not None else SignalCache(ttl_seconds=config.signal_cache_ttl_seconds)
    if config.use_mock_api:
        return SyntheticSignalGateway(cache=cache, rng=_rng(config))
    return OverpassSignalGateway(
        base_url=config.overpass_url,
        timeout=config.provider_timeout_seconds,
        cache=cache,
        rng=_rng(config),
    )


def build_orchestrator(config: Settings = settings) -> CourseOrchestrator:
    directions = build_directions_gateway(config)
    signals = build_signal_gateway(config)
    logger.info(f"Course orchestrator using directions={directions.name} signals={signals.name}")
    return CourseOrchestrator(
        directions,
        signals,
        travel_profile=config.directions_profile,
        proximity_meters=config.signal_proximity_meters,
        closure_tolerance_meters=config.loop_closure_tolerance_meters,
        supported_cities=config.supported_cities,
        rng=_rng(config),
    )


@functools.lru_cache(maxsize=1)
def get_orchestrator() -> CourseOrchestrator:
    """Process-wide orchestrator so the signal cache survives between requests."""
    return build_orchestrator(settings)
