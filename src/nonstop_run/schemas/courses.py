"""Course generation request/response schemas."""

from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class CoordinatesModel(BaseModel):
    latitude: float
    longitude: float


class CourseRequest(BaseModel):
    start: CoordinatesModel
    target_distance_km: float = Field(..., description="Desired loop length in kilometres.")


class RoutePointModel(BaseModel):
    latitude: float
    longitude: float
    altitude: Optional[float] = None


class TrafficSignalModel(BaseModel):
    latitude: float
    longitude: float
    kind: Literal["traffic_signals", "crossing", "stop"]
    estimated_wait_seconds: Optional[float] = None


class CourseModel(BaseModel):
    id: str
    name: str
    description: str
    distance_meters: float
    estimated_duration_seconds: float
    elevation_gain_meters: float
    signal_count: int
    difficulty: Literal["easy", "moderate", "hard"]
    color: str
    polyline: List[RoutePointModel]
    signals_on_route: List[TrafficSignalModel]
    distance_label: str
    duration_label: str
    pace_label: str


class CourseGenerationResponse(BaseModel):
    candidates: List[CourseModel]
    generated_at: datetime
    search_radius_km: float
    location_supported: bool
    metadata: dict


class SupportedCityModel(BaseModel):
    name: str
    latitude: float
    longitude: float
    radius_km: float


class MapDefaultsResponse(BaseModel):
    center: CoordinatesModel
    zoom: int
    style_url: str
    supported_cities: List[SupportedCityModel]
