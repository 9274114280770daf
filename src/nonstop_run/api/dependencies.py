"""Shared FastAPI dependencies."""

from __future__ import annotations

from fastapi import HTTPException, status

from ..services.courses.factory import get_orchestrator
from ..services.courses.orchestrator import CourseOrchestrator


def provide_orchestrator() -> CourseOrchestrator:
    try:
        return get_orchestrator()
    except ValueError as exc:
        # Missing provider credentials are a deployment problem, not a bad request.
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Course generation is not configured: {exc}",
        ) from exc
