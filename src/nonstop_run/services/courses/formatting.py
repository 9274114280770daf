"""Display formatting for run times, paces and distances."""

from __future__ import annotations

import math


def format_time(seconds: float) -> str:
    """``M:SS``, minutes unbounded (``75:04`` for 4504 s)."""
    minutes = math.floor(seconds / 60)
    secs = math.floor(seconds % 60)
    return f"{minutes}:{secs:02d}"


def format_pace(seconds_per_km: float) -> str:
    """``M'SS"`` per kilometre."""
    minutes = math.floor(seconds_per_km / 60)
    secs = math.floor(seconds_per_km % 60)
    return f"{minutes}'{secs:02d}\""


def format_distance(meters: float) -> str:
    km = meters / 1000
    if km < 1:
        return f"{round(meters)}m"
    return f"{km:.1f}km"


def estimate_time(distance_meters: float, pace_seconds_per_km: float) -> float:
    return (distance_meters / 1000) * pace_seconds_per_km
