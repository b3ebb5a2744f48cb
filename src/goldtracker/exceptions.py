"""Tracker exception hierarchy.

All tracker-specific exceptions derive from :class:`TrackerError` so callers can
catch every tracker-related failure uniformly.
"""

from __future__ import annotations


class TrackerError(Exception):
    """Base class for tracker-related exceptions.

    Derived exceptions should extend this class so that callers can catch all
    tracker-specific errors uniformly.
    """


class ConfigError(TrackerError):
    """Raised when configuration files or environment settings are invalid."""


class DataUnavailable(TrackerError):
    """Raised when the price provider fails or returns unparseable content.

    Fatal for a run: nothing is computed and no state is mutated.
    """


class InsufficientHistory(TrackerError):
    """Raised when fewer bars than required survive parsing.

    A quiet outcome: the run ends cleanly without mutating any state.
    """

    def __init__(self, available: int, required: int) -> None:
        super().__init__(f"Not enough data ({available}/{required} days).")
        self.available = available
        self.required = required


class NotificationDeliveryFailure(TrackerError):
    """Raised when a notification could not be delivered to one recipient."""

    def __init__(self, recipient: str, reason: str) -> None:
        super().__init__(f"Delivery to {recipient} failed: {reason}")
        self.recipient = recipient
        self.reason = reason


class PersistenceFailure(TrackerError):
    """Raised when reading or writing the ledger or the snapshot fails."""


__all__ = [
    "TrackerError",
    "ConfigError",
    "DataUnavailable",
    "InsufficientHistory",
    "NotificationDeliveryFailure",
    "PersistenceFailure",
]
