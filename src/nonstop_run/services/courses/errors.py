"""Exceptions raised by the course generation pipeline."""

from __future__ import annotations


class InvalidParameterError(ValueError):
    """Caller supplied a distance, coordinate or count the pipeline cannot work with."""


class DirectionsError(RuntimeError):
    """A directions provider call failed for one loop request."""


class SignalProviderError(RuntimeError):
    """The signal data provider could not be queried or returned an unusable payload."""
