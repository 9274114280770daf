"""Loop course generation and traffic-signal scoring service."""

__version__ = "0.1.0"
