"""Course generation pipeline."""

from .errors import DirectionsError, InvalidParameterError, SignalProviderError
from .orchestrator import CourseOrchestrator, CourseProfile, DEFAULT_PROFILES

__all__ = [
    "CourseOrchestrator",
    "CourseProfile",
    "DEFAULT_PROFILES",
    "DirectionsError",
    "InvalidParameterError",
    "SignalProviderError",
]
