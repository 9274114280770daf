"""Course generation endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from ...schemas.courses import CourseGenerationResponse, CourseRequest, MapDefaultsResponse
from ...services.courses.orchestrator import CourseOrchestrator
from ...services.courses.service import generate_course_options, map_defaults
from ..dependencies import provide_orchestrator

router = APIRouter(prefix="/courses", tags=["courses"])

logger = logging.getLogger(__name__)


@router.post("/generate", response_model=CourseGenerationResponse, status_code=status.HTTP_200_OK)
async def generate(
    payload: CourseRequest,
    orchestrator: CourseOrchestrator = Depends(provide_orchestrator),
) -> CourseGenerationResponse:
    try:
        return await generate_course_options(payload, orchestrator)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception(f"Error generating courses: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to generate courses: {str(exc)}",
        ) from exc


@router.get("/map-defaults", response_model=MapDefaultsResponse, status_code=status.HTTP_200_OK)
def get_map_defaults() -> MapDefaultsResponse:
    """Fallback map center, zoom and service areas for clients without a location fix."""
    return map_defaults()
