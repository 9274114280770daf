"""Bridge between the HTTP schemas and the course orchestrator."""

from __future__ import annotations

from ...config import Settings, settings
from ...models.domain import Coordinates, CourseCandidate, CourseGenerationResult, TrafficSignal
from ...schemas.courses import (
    CoordinatesModel,
    CourseGenerationResponse,
    CourseModel,
    CourseRequest,
    MapDefaultsResponse,
    RoutePointModel,
    SupportedCityModel,
    TrafficSignalModel,
)
from .formatting import format_distance, format_pace, format_time
from .orchestrator import CourseOrchestrator


def _signal_to_model(signal: TrafficSignal) -> TrafficSignalModel:
    return TrafficSignalModel(
        latitude=signal.location.latitude,
        longitude=signal.location.longitude,
        kind=signal.kind.value,
        estimated_wait_seconds=signal.estimated_wait_seconds,
    )


def _course_to_model(candidate: CourseCandidate) -> CourseModel:
    distance_km = candidate.distance_meters / 1000
    pace = candidate.estimated_duration_seconds / distance_km if distance_km > 0 else 0.0
    return CourseModel(
        id=candidate.id,
        name=candidate.name,
        description=candidate.description,
        distance_meters=candidate.distance_meters,
        estimated_duration_seconds=candidate.estimated_duration_seconds,
        elevation_gain_meters=candidate.elevation_gain_meters,
        signal_count=candidate.signal_count,
        difficulty=candidate.difficulty.value,
        color=candidate.color,
        polyline=[
            RoutePointModel(latitude=point.latitude, longitude=point.longitude, altitude=point.altitude)
            for point in candidate.polyline
        ],
        signals_on_route=[_signal_to_model(signal) for signal in candidate.signals_on_route],
        distance_label=format_distance(candidate.distance_meters),
        duration_label=format_time(candidate.estimated_duration_seconds),
        pace_label=format_pace(pace),
    )


def result_to_response(result: CourseGenerationResult) -> CourseGenerationResponse:
    return CourseGenerationResponse(
        candidates=[_course_to_model(candidate) for candidate in result.candidates],
        generated_at=result.generated_at_utc,
        search_radius_km=result.search_radius_km,
        location_supported=result.location_supported,
        metadata=result.metadata,
    )


async def generate_course_options(payload: CourseRequest, orchestrator: CourseOrchestrator) -> CourseGenerationResponse:
    start = Coordinates(latitude=payload.start.latitude, longitude=payload.start.longitude)
    result = await orchestrator.generate_courses(start, payload.target_distance_km)
    return result_to_response(result)


def map_defaults(config: Settings = settings) -> MapDefaultsResponse:
    return MapDefaultsResponse(
        center=CoordinatesModel(latitude=config.default_center_latitude, longitude=config.default_center_longitude),
        zoom=config.default_zoom,
        style_url=config.map_style_url,
        supported_cities=[SupportedCityModel(**city.model_dump()) for city in config.supported_cities],
    )
