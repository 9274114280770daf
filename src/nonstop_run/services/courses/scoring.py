"""Attribute traffic signals to a route polyline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from ...models.domain import RoutePoint, TrafficSignal
from ..geospatial import distance_meters

DEFAULT_PROXIMITY_METERS = 30.0


@dataclass(frozen=True, slots=True)
class RouteScore:
    count: int
    signals_on_route: tuple[TrafficSignal, ...]


def score_route(
    polyline: Sequence[RoutePoint],
    signals: Sequence[TrafficSignal],
    proximity_meters: float = DEFAULT_PROXIMITY_METERS,
) -> RouteScore:
    """Count signals within ``proximity_meters`` of any polyline point, each at most once."""

    points = [point.coordinates for point in polyline]
    on_route: list[TrafficSignal] = []
    for signal in signals:
        for point in points:
            if distance_meters(point, signal.location) <= proximity_meters:
                on_route.append(signal)
                break
    return RouteScore(count=len(on_route), signals_on_route=tuple(on_route))
