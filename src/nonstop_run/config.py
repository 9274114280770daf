"""Application configuration and settings management."""

from typing import Annotated, Any, Optional

import json
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class SupportedCity(BaseModel):
    """A service area: a city center and the radius (km) it covers."""

    name: str
    latitude: float
    longitude: float
    radius_km: float = Field(gt=0)


DEFAULT_SUPPORTED_CITIES: tuple[SupportedCity, ...] = (
    SupportedCity(name="Tokyo", latitude=35.6812, longitude=139.7671, radius_km=30),
    SupportedCity(name="Osaka", latitude=34.6937, longitude=135.5023, radius_km=20),
    SupportedCity(name="Nagoya", latitude=35.1815, longitude=136.9066, radius_km=15),
    SupportedCity(name="Yokohama", latitude=35.4437, longitude=139.6380, radius_km=15),
    SupportedCity(name="Fukuoka", latitude=33.5904, longitude=130.4017, radius_km=15),
    SupportedCity(name="Sapporo", latitude=43.0618, longitude=141.3545, radius_km=15),
    SupportedCity(name="Kobe", latitude=34.6901, longitude=135.1956, radius_km=10),
    SupportedCity(name="Kyoto", latitude=35.0116, longitude=135.7681, radius_km=10),
)


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="NSR_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Non-Stop Run Course API"
    api_prefix: str = "/api"
    use_mock_api: bool = Field(
        default=False,
        description="Use the self-generated directions/signal backends instead of the live providers.",
    )
    mapbox_access_token: Optional[str] = Field(
        default=None,
        description="Access token for the Mapbox Directions API.",
    )
    mapbox_directions_url: str = Field(
        default="https://api.mapbox.com/directions/v5/mapbox",
        description="Base URL of the Mapbox Directions API (profile is appended).",
    )
    directions_profile: str = Field(default="walking", description="Travel profile for directions requests.")
    overpass_url: str = Field(
        default="https://overpass-api.de/api/interpreter",
        description="Overpass API interpreter endpoint used for traffic signal lookups.",
    )
    provider_timeout_seconds: float = Field(default=30.0, gt=0)
    signal_cache_ttl_seconds: float = Field(default=300.0, ge=0)
    signal_proximity_meters: float = Field(default=30.0, gt=0)
    loop_closure_tolerance_meters: float = Field(
        default=250.0,
        gt=0,
        description="Max distance between the requested start and the first/last route point.",
    )
    course_pace_seconds_per_km: float = Field(default=360.0, gt=0)
    random_seed: Optional[int] = Field(
        default=None,
        description="Seed for the synthetic elevation/signal generators (unseeded when unset).",
    )
    default_center_latitude: float = Field(default=35.6812, ge=-90, le=90)
    default_center_longitude: float = Field(default=139.7671, ge=-180, le=180)
    default_zoom: int = Field(default=14, ge=0, le=22)
    map_style_url: str = "mapbox://styles/mapbox/streets-v12"
    supported_cities: tuple[SupportedCity, ...] = DEFAULT_SUPPORTED_CITIES
    frontend_allowed_origins: Annotated[tuple[str, ...], NoDecode] = Field(
        default=(
            "http://localhost:8081",
            "http://127.0.0.1:8081",
            "http://localhost:19006",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    @field_validator("frontend_allowed_origins", mode="before")
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return tuple(str(item) for item in parsed)
            except (json.JSONDecodeError, TypeError):
                pass
            if "," in value:
                return tuple(item.strip() for item in value.split(",") if item.strip())
            if value.strip():
                return (value.strip(),)
        return tuple()

    @field_validator("supported_cities", mode="before")
    @classmethod
    def _parse_cities_from_env(cls, value: Any) -> Any:
        """Accept a JSON array of city objects when set through the environment."""
        if isinstance(value, str):
            parsed = json.loads(value) if value.strip() else []
            if not isinstance(parsed, list):
                raise ValueError("supported_cities must be a JSON array.")
            return tuple(parsed)
        return value


settings = Settings()
