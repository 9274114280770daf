"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from ..dependencies import provide_orchestrator
from ...services.courses.orchestrator import CourseOrchestrator

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


@router.get("/health/providers", status_code=status.HTTP_200_OK)
def health_providers(orchestrator: CourseOrchestrator = Depends(provide_orchestrator)) -> dict:
    """Report which directions and signal backends are wired in."""
    return {
        "directions": orchestrator.directions.name,
        "signals": orchestrator.signals.name,
        "cached_signal_areas": len(orchestrator.signals.cache),
    }
