"""Ichimoku Cloud signal tracker package root."""

from goldtracker.exceptions import TrackerError
from goldtracker.types import Signal

__version__ = "0.1.0"

__all__ = ["__version__", "Signal", "TrackerError"]
