"""API route modules."""

from . import courses, health

__all__ = ["courses", "health"]
