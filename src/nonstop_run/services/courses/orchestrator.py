"""Course generation orchestration: route profiles, signal scoring and ranking."""

from __future__ import annotations

import asyncio
import logging
import math
import random
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Sequence

from ...config import SupportedCity
from ...models.domain import (
    Coordinates,
    CourseCandidate,
    CourseGenerationResult,
    Difficulty,
    RouteResult,
    TrafficSignal,
)
from ..geospatial import destination, distance_meters, is_location_supported
from .directions import DirectionsGateway
from .errors import DirectionsError
from .scoring import DEFAULT_PROXIMITY_METERS, score_route
from .signals import SignalGateway
from .waypoints import PROVIDER_POINT_COUNT, ensure_positive_distance, ensure_valid_coordinates, plan_loop

START_PERTURBATION_KM = 0.1
DEFAULT_CLOSURE_TOLERANCE_METERS = 250.0
ESTIMATED_ELEVATION_RANGE_M = (10.0, 40.0)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CourseProfile:
    """A named generation strategy distinguished by its angular offset."""

    id: str
    name: str
    color: str
    angle_offset_radians: float


DEFAULT_PROFILES: tuple[CourseProfile, ...] = (
    CourseProfile(id="fastest", name="Fastest course", color="#13ec49", angle_offset_radians=0.0),
    CourseProfile(id="scenic", name="Scenic course", color="#3b82f6", angle_offset_radians=math.pi / 4),
    CourseProfile(id="balanced", name="Balanced course", color="#a855f7", angle_offset_radians=-math.pi / 4),
)


def classify_difficulty(distance_m: float, elevation_gain_m: float) -> Difficulty:
    distance_km = distance_m / 1000
    gradient_percent = (elevation_gain_m / distance_m) * 100 if distance_m > 0 else 0.0

    if distance_km <= 5 and gradient_percent < 2:
        return Difficulty.EASY
    if distance_km <= 10 and gradient_percent < 4:
        return Difficulty.MODERATE
    return Difficulty.HARD


def describe_course(distance_m: float, elevation_gain_m: float) -> str:
    distance_km = distance_m / 1000
    climb = round(elevation_gain_m)

    if climb < 20:
        return f"{distance_km:.1f} km flat course"
    if climb < 50:
        return f"{distance_km:.1f} km with gentle ups and downs"
    return f"{distance_km:.1f} km challenge course with {climb} m of climbing"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CourseOrchestrator:
    """Generate, score and rank loop courses around a start point.

    Directions calls for every profile and the single signal fetch run
    concurrently. A profile whose directions call fails, or whose route does not
    come back to the start, is dropped; the orchestrator only raises for invalid
    input.
    """

    def __init__(
        self,
        directions: DirectionsGateway,
        signals: SignalGateway,
        *,
        profiles: Sequence[CourseProfile] = DEFAULT_PROFILES,
        travel_profile: str = "walking",
        proximity_meters: float = DEFAULT_PROXIMITY_METERS,
        closure_tolerance_meters: float = DEFAULT_CLOSURE_TOLERANCE_METERS,
        supported_cities: Sequence[SupportedCity] | None = None,
        rng: random.Random | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.directions = directions
        self.signals = signals
        self.profiles = tuple(profiles)
        self.travel_profile = travel_profile
        self.proximity_meters = proximity_meters
        self.closure_tolerance_meters = closure_tolerance_meters
        self.supported_cities = supported_cities
        self.rng = rng or random.Random()
        self.clock = clock

    def submit(self, start: Coordinates, target_distance_km: float) -> asyncio.Task[CourseGenerationResult]:
        """Schedule generation on the running loop; cancelling the task cancels every provider call."""
        return asyncio.ensure_future(self.generate_courses(start, target_distance_km))

    async def generate_courses(self, start: Coordinates, target_distance_km: float) -> CourseGenerationResult:
        ensure_valid_coordinates(start)
        ensure_positive_distance(target_distance_km)

        supported = is_location_supported(start.latitude, start.longitude, self.supported_cities)
        if not supported:
            logger.warning(f"Location {start} is outside the supported areas; generating courses anyway")

        search_radius_m = target_distance_km * 1000
        batch_id = uuid.uuid4().hex[:12]

        signals, *routes = await asyncio.gather(
            self.signals.fetch_signals(start, search_radius_m),
            *(self._route_profile(profile, start, target_distance_km) for profile in self.profiles),
        )

        candidates: list[CourseCandidate] = []
        dropped: list[str] = []
        for profile, route in zip(self.profiles, routes):
            if route is None or not self._closes_loop(route, start):
                dropped.append(profile.id)
                continue
            candidate = self._build_candidate(profile, route, batch_id)
            self._score(candidate, signals)
            candidates.append(candidate)

        if dropped:
            logger.info(f"Dropped {len(dropped)}/{len(self.profiles)} course profiles: {', '.join(dropped)}")

        candidates.sort(key=lambda candidate: candidate.signal_count)

        return CourseGenerationResult(
            candidates=candidates,
            generated_at_utc=self.clock(),
            search_radius_km=search_radius_m / 1000,
            location_supported=supported,
            metadata={
                "batch_id": batch_id,
                "profiles_requested": len(self.profiles),
                "dropped_profiles": dropped,
                "signals_in_radius": len(signals),
                "directions_backend": self.directions.name,
                "signals_backend": self.signals.name,
            },
        )

    async def _route_profile(
        self,
        profile: CourseProfile,
        start: Coordinates,
        target_distance_km: float,
    ) -> RouteResult | None:
        # Nudge the loop start along the profile's angle so the candidates differ visibly.
        adjusted_start = destination(start, profile.angle_offset_radians, START_PERTURBATION_KM)
        waypoints = plan_loop(adjusted_start, target_distance_km, PROVIDER_POINT_COUNT, profile.angle_offset_radians)
        try:
            return await self.directions.route(
                waypoints,
                self.travel_profile,
                target_distance_km=target_distance_km,
                angle_offset_radians=profile.angle_offset_radians,
            )
        except DirectionsError as exc:
            logger.warning(f"Directions failed for profile '{profile.id}': {exc}")
            return None

    def _closes_loop(self, route: RouteResult, start: Coordinates) -> bool:
        if len(route.polyline) < 2:
            return False
        first = route.polyline[0].coordinates
        last = route.polyline[-1].coordinates
        gap_start = distance_meters(first, start)
        gap_end = distance_meters(last, start)
        if gap_start > self.closure_tolerance_meters or gap_end > self.closure_tolerance_meters:
            logger.warning(
                f"Route does not close the loop (start gap {gap_start:.0f} m, end gap {gap_end:.0f} m); dropping it"
            )
            return False
        return True

    def _build_candidate(self, profile: CourseProfile, route: RouteResult, batch_id: str) -> CourseCandidate:
        elevation_gain = route.elevation_gain_meters
        if elevation_gain is None:
            elevation_gain = self.rng.uniform(*ESTIMATED_ELEVATION_RANGE_M)

        return CourseCandidate(
            id=f"course_{profile.id}_{batch_id}",
            name=profile.name,
            description=describe_course(route.distance_meters, elevation_gain),
            distance_meters=route.distance_meters,
            estimated_duration_seconds=route.duration_seconds,
            elevation_gain_meters=elevation_gain,
            difficulty=classify_difficulty(route.distance_meters, elevation_gain),
            polyline=route.polyline,
            color=profile.color,
        )

    def _score(self, candidate: CourseCandidate, signals: Sequence[TrafficSignal]) -> None:
        score = score_route(candidate.polyline, signals, self.proximity_meters)
        candidate.attach_signals(score.signals_on_route)
