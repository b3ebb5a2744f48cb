"""Dashboard snapshot assembly and publishing.

The snapshot is rebuilt from scratch on every run: latest price and signal,
latest Ichimoku values, a trailing window of bars with their own indicator
values, and the full signal history from the ledger.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Sequence

from pydantic import ValidationError

from goldtracker.exceptions import PersistenceFailure
from goldtracker.indicators.ichimoku import compute_ichimoku
from goldtracker.storage import atomic_write_text, read_json
from goldtracker.types import (Bar, HistoryPoint, IchimokuValues, Signal,
                               SignalEvent, Snapshot, SnapshotIchimoku, Symbol)

logger = logging.getLogger(__name__)

# Bars shown on the dashboard chart
HISTORY_WINDOW = 40


def build_history(
    series: Sequence[Bar],
    window: int = HISTORY_WINDOW,
) -> list[HistoryPoint]:
    """Pair the last ``window`` bars with their own indicator values.

    Each bar's indicators are computed at its absolute index in the full
    series, so the window is only a display slice.

    :param series: Full bar series in ascending date order.
    :param window: Number of trailing bars to include.
    :returns: History rows, oldest first.
    """
    start = max(len(series) - window, 0)
    points: list[HistoryPoint] = []
    for index in range(start, len(series)):
        bar = series[index]
        values = compute_ichimoku(series, index)
        points.append(
            HistoryPoint(
                date=bar.date,
                open=bar.open,
                high=bar.high,
                low=bar.low,
                close=bar.close,
                price=bar.close,
                tenkan=values.tenkan if values is not None else None,
                kijun=values.kijun if values is not None else None,
                span_a=values.span_a if values is not None else None,
                span_b=values.span_b if values is not None else None,
            )
        )
    return points


def build_snapshot(
    ticker: Symbol,
    series: Sequence[Bar],
    signal: Signal,
    values: IchimokuValues,
    events: Sequence[SignalEvent],
    window: int = HISTORY_WINDOW,
) -> Snapshot:
    """Assemble the publishable snapshot.

    :param ticker: Tracked symbol.
    :param series: Full bar series; the last bar supplies price and date.
    :param signal: Signal evaluated on the last bar.
    :param values: Ichimoku values on the last bar.
    :param events: Signal history to publish.
    :param window: Number of trailing bars in ``history``.
    :returns: The snapshot.
    :raises ValueError: If the series is empty.
    """
    if not series:
        raise ValueError("cannot build a snapshot from an empty series")
    latest = series[-1]
    return Snapshot(
        ticker=ticker,
        price=latest.close,
        date=latest.date,
        signal=signal,
        signal_history=list(events),
        ichimoku=SnapshotIchimoku(
            tenkan=values.tenkan,
            kijun=values.kijun,
            senkou_a=values.span_a,
            senkou_b=values.span_b,
        ),
        history=build_history(series, window),
    )


class SnapshotPublisher(ABC):
    """Destination for published snapshots.

    ``path`` names the published file, or is None for destinations that are
    not files.
    """

    path: Path | None = None

    @abstractmethod
    def publish(self, snapshot: Snapshot) -> None:
        """Publish a snapshot, replacing the previous one.

        :raises PersistenceFailure: If publishing fails.
        """
        ...


class JsonSnapshotPublisher(SnapshotPublisher):
    """Writes the snapshot as a JSON file read by the dashboard.

    :param path: Location of the published file.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def publish(self, snapshot: Snapshot) -> None:
        atomic_write_text(self.path, snapshot.to_json())
        logger.info(f"Published snapshot for {snapshot.ticker} to {self.path}")


def load_snapshot(path: str | Path) -> Snapshot:
    """Read a previously published snapshot.

    :param path: Location of the published file.
    :returns: The snapshot.
    :raises PersistenceFailure: If the file is missing or invalid.
    """
    data = read_json(Path(path))
    if data is None:
        raise PersistenceFailure(f"No snapshot published at {path}")
    try:
        return Snapshot.model_validate(data)
    except ValidationError as e:
        raise PersistenceFailure(f"Invalid snapshot at {path}: {e}") from e


__all__ = [
    "HISTORY_WINDOW",
    "build_history",
    "build_snapshot",
    "SnapshotPublisher",
    "JsonSnapshotPublisher",
    "load_snapshot",
]
