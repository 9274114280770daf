"""Domain models for coordinates, signals and generated courses."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional


class SignalKind(str, Enum):
    TRAFFIC_SIGNALS = "traffic_signals"
    CROSSING = "crossing"
    STOP = "stop"


class Difficulty(str, Enum):
    EASY = "easy"
    MODERATE = "moderate"
    HARD = "hard"


@dataclass(frozen=True, slots=True)
class Coordinates:
    """A WGS84 position in decimal degrees."""

    latitude: float
    longitude: float


@dataclass(frozen=True, slots=True)
class RoutePoint:
    """A point on a route polyline."""

    latitude: float
    longitude: float
    altitude: Optional[float] = None
    timestamp: Optional[float] = None

    @property
    def coordinates(self) -> Coordinates:
        return Coordinates(self.latitude, self.longitude)


@dataclass(frozen=True, slots=True)
class TrafficSignal:
    """A traffic-control or pedestrian-crossing point that may interrupt a run."""

    location: Coordinates
    kind: SignalKind = SignalKind.TRAFFIC_SIGNALS
    estimated_wait_seconds: Optional[float] = None


@dataclass(frozen=True, slots=True)
class RouteResult:
    """Outcome of a single directions call."""

    polyline: tuple[RoutePoint, ...]
    distance_meters: float
    duration_seconds: float
    elevation_gain_meters: Optional[float] = None


@dataclass(slots=True)
class CourseCandidate:
    """One generated loop course with its scoring metadata."""

    id: str
    name: str
    description: str
    distance_meters: float
    estimated_duration_seconds: float
    elevation_gain_meters: float
    difficulty: Difficulty
    polyline: tuple[RoutePoint, ...]
    color: str
    signal_count: int = 0
    signals_on_route: tuple[TrafficSignal, ...] = ()
    scored: bool = False

    def attach_signals(self, signals: tuple[TrafficSignal, ...]) -> None:
        """Record the signals attributed to this course; allowed exactly once."""
        if self.scored:
            raise RuntimeError(f"Signals already attached to course {self.id}.")
        self.signals_on_route = tuple(signals)
        self.signal_count = len(self.signals_on_route)
        self.scored = True


@dataclass(slots=True)
class CourseGenerationResult:
    candidates: List[CourseCandidate]
    generated_at_utc: datetime
    search_radius_km: float
    location_supported: bool = True
    metadata: dict = field(default_factory=dict)
