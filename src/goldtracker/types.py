"""Core type definitions for the tracker.

All data models use Pydantic BaseModel for automatic validation, JSON
serialization, and better error messages.
"""

from __future__ import annotations

import datetime as dt
from enum import Enum
from pathlib import Path
from typing import Any, NewType

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Type alias for the tracked instrument
Symbol = NewType("Symbol", str)


# ---------------------------------------------------------------------------
# Base Configuration
# ---------------------------------------------------------------------------


class FrozenModel(BaseModel):
    """Base model with frozen (immutable) configuration."""

    model_config = ConfigDict(frozen=True)


class SnapshotModel(BaseModel):
    """Frozen model serialized with camelCase aliases for the dashboard."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)


# ---------------------------------------------------------------------------
# Market Data Types
# ---------------------------------------------------------------------------


class Bar(FrozenModel):
    """One trading day of observed prices.

    Prices must be finite and positive. The usual ``low <= open/close <= high``
    relationship is assumed but not enforced.

    :param date: Calendar date of the session.
    :param open: Opening price.
    :param high: Highest price during the session.
    :param low: Lowest price during the session.
    :param close: Closing price.
    """

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    date: dt.date
    open: float = Field(gt=0)
    high: float = Field(gt=0)
    low: float = Field(gt=0)
    close: float = Field(gt=0)


# ---------------------------------------------------------------------------
# Indicator and Signal Types
# ---------------------------------------------------------------------------


class Signal(str, Enum):
    """Directional recommendation derived from price and cloud."""

    BUY = "BUY"
    SELL = "SELL"
    NEUTRAL = "NEUTRAL"


class IchimokuValues(FrozenModel):
    """Ichimoku components computed at one index of a bar series.

    A missing tuple (``None``) means "not yet computable" and must never be
    read as zero.

    :param tenkan: Tenkan-sen, 9-bar high/low midpoint.
    :param kijun: Kijun-sen, 26-bar high/low midpoint.
    :param span_a: Senkou Span A anchored 26 sessions back.
    :param span_b: Senkou Span B, 52-bar midpoint anchored 26 sessions back.
    """

    tenkan: float
    kijun: float
    span_a: float
    span_b: float

    @property
    def cloud_top(self) -> float:
        """Upper edge of the cloud."""
        return max(self.span_a, self.span_b)

    @property
    def cloud_bottom(self) -> float:
        """Lower edge of the cloud."""
        return min(self.span_a, self.span_b)


class SignalEvent(FrozenModel):
    """A BUY or SELL signal that fired on a given day.

    :param type: Signal kind, BUY or SELL.
    :param date: Day the signal fired.
    """

    type: Signal
    date: dt.date

    @field_validator("type")
    @classmethod
    def _reject_neutral(cls, value: Signal) -> Signal:
        if value is Signal.NEUTRAL:
            raise ValueError("NEUTRAL is not a recordable signal event")
        return value


# ---------------------------------------------------------------------------
# Snapshot Types
# ---------------------------------------------------------------------------


class HistoryPoint(SnapshotModel):
    """One row of the trailing chart window.

    Indicators are ``None`` where the bar lacks enough lead-in history.
    ``price`` mirrors ``close`` for the dashboard's price line.
    """

    date: dt.date
    open: float
    high: float
    low: float
    close: float
    price: float
    tenkan: float | None = None
    kijun: float | None = None
    span_a: float | None = Field(default=None, alias="spanA")
    span_b: float | None = Field(default=None, alias="spanB")


class SnapshotIchimoku(SnapshotModel):
    """Latest Ichimoku values, named the way the dashboard displays them."""

    tenkan: float
    kijun: float
    senkou_a: float = Field(alias="senkouA")
    senkou_b: float = Field(alias="senkouB")


class Snapshot(SnapshotModel):
    """Published view consumed by the dashboard.

    :param ticker: Tracked symbol.
    :param price: Latest close.
    :param date: Date of the latest bar.
    :param signal: Latest signal, NEUTRAL when none.
    :param signal_history: Every recorded signal event.
    :param ichimoku: Latest indicator values.
    :param history: Trailing window of bars with per-bar indicators.
    """

    ticker: Symbol
    price: float
    date: dt.date
    signal: Signal
    signal_history: list[SignalEvent] = Field(
        default_factory=list, alias="signalHistory"
    )
    ichimoku: SnapshotIchimoku
    history: list[HistoryPoint] = Field(default_factory=list)

    def to_json(self) -> str:
        """Serialize with dashboard field names and ``null`` for gaps."""
        return self.model_dump_json(by_alias=True, indent=2)


# ---------------------------------------------------------------------------
# Configuration Types
# ---------------------------------------------------------------------------


class TrackerConfig(FrozenModel):
    """Configuration for a tracker invocation.

    :param ticker: Symbol to track.
    :param recipients: Notification addresses.
    :param smtp_host: SMTP server host.
    :param smtp_port: SMTP server port (STARTTLS).
    :param smtp_user: SMTP login, also used as the sender address.
    :param smtp_password: SMTP password.
    :param sender_name: Display name of the sender.
    :param smtp_timeout: SMTP connection timeout in seconds.
    :param history_path: Signal ledger file.
    :param snapshot_path: Published dashboard snapshot.
    :param data_source: Price provider ("stooq", "yahoo", "csv").
    :param source_params: Provider-specific parameters.
    :param fetch_timeout: Provider request timeout in seconds.
    :param log_level: Logging level.
    """

    ticker: Symbol = Symbol("GLD")
    recipients: list[str] = Field(default_factory=list)
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    smtp_user: str | None = None
    smtp_password: str | None = Field(default=None, repr=False)
    sender_name: str = "Gold Tracker"
    smtp_timeout: float = 30.0
    history_path: Path = Path("alert-history.json")
    snapshot_path: Path = Path("website/public/data.json")
    data_source: str = "stooq"
    source_params: dict[str, Any] = Field(default_factory=dict)
    fetch_timeout: float = 30.0
    log_level: str = "INFO"


# ---------------------------------------------------------------------------
# Run Types
# ---------------------------------------------------------------------------


class RunOutcome(str, Enum):
    """How a tracker invocation ended."""

    COMPLETED = "completed"
    INSUFFICIENT_HISTORY = "insufficient_history"


class RunResult(FrozenModel):
    """Summary of one tracker invocation.

    :param outcome: How the run ended.
    :param ticker: Tracked symbol.
    :param date: Date of the latest bar, if the run got that far.
    :param price: Latest close, if the run got that far.
    :param signal: Evaluated signal, if the run got that far.
    :param notified: Whether a new signal fired a notification this run.
    :param deliveries: Per-recipient delivery status.
    :param snapshot_path: Where the snapshot was published.
    """

    outcome: RunOutcome
    ticker: Symbol
    date: dt.date | None = None
    price: float | None = None
    signal: Signal | None = None
    notified: bool = False
    deliveries: dict[str, bool] = Field(default_factory=dict)
    snapshot_path: Path | None = None


# ---------------------------------------------------------------------------
# Exports
# ---------------------------------------------------------------------------

__all__ = [
    # Type aliases
    "Symbol",
    # Base models
    "FrozenModel",
    "SnapshotModel",
    # Market data
    "Bar",
    # Indicators and signals
    "Signal",
    "IchimokuValues",
    "SignalEvent",
    # Snapshot
    "HistoryPoint",
    "SnapshotIchimoku",
    "Snapshot",
    # Configuration
    "TrackerConfig",
    # Runs
    "RunOutcome",
    "RunResult",
]
