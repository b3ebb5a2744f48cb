"""Tests for snapshot assembly and publishing."""

import datetime as dt
import json
from pathlib import Path

import pytest

from goldtracker.exceptions import PersistenceFailure
from goldtracker.indicators.ichimoku import MIN_INDEX, compute_ichimoku
from goldtracker.ledger import InMemoryLedgerStore, SignalLedger
from goldtracker.snapshot import (HISTORY_WINDOW, JsonSnapshotPublisher,
                                  build_history, build_snapshot,
                                  load_snapshot)
from goldtracker.types import Bar, Signal, SignalEvent, Snapshot, Symbol


def _snapshot(series: list[Bar], events: list[SignalEvent] | None = None) -> Snapshot:
    values = compute_ichimoku(series, len(series) - 1)
    return build_snapshot(Symbol("GLD"), series, Signal.BUY, values, events or [])


class TestBuildHistory:
    """Tests for the trailing indicator window."""

    def test_window_is_last_forty_bars(self, rising_series: list[Bar]) -> None:
        """Only the trailing 40 bars are included, oldest first."""
        history = build_history(rising_series)

        assert HISTORY_WINDOW == 40
        assert len(history) == 40
        assert history[0].date == rising_series[-40].date
        assert history[-1].date == rising_series[-1].date

    def test_short_series_uses_all_bars(self, make_bars) -> None:
        """A series shorter than the window is shown in full."""
        history = build_history(make_bars([100.0] * 10))

        assert len(history) == 10

    def test_indicators_use_full_lookback(self, rising_series: list[Bar]) -> None:
        """Each row matches the calculator at the bar's absolute index."""
        history = build_history(rising_series)
        offset = len(rising_series) - len(history)

        for i, point in enumerate(history):
            index = offset + i
            values = compute_ichimoku(rising_series, index)
            if index < MIN_INDEX:
                assert values is None
                assert (point.tenkan, point.kijun, point.span_a, point.span_b) == (
                    None, None, None, None
                )
            else:
                assert values is not None
                assert (point.tenkan, point.kijun, point.span_a, point.span_b) == (
                    values.tenkan, values.kijun, values.span_a, values.span_b
                )

    def test_early_rows_have_no_indicators(self, make_bars) -> None:
        """Rows before the first computable index carry None."""
        series = make_bars([100.0] * 70)

        history = build_history(series)

        missing = [p for p in history if p.tenkan is None]
        assert len(missing) == MIN_INDEX - (70 - 40)
        assert all(p.kijun is None and p.span_a is None and p.span_b is None for p in missing)
        assert history[-1].tenkan == 100.0

    def test_price_mirrors_close(self, rising_series: list[Bar]) -> None:
        """The price column repeats the close."""
        assert all(p.price == p.close for p in build_history(rising_series))


class TestSnapshotJson:
    """Tests for the published JSON document."""

    def test_top_level_fields(self, rising_series: list[Bar]) -> None:
        """The document carries the dashboard's field names."""
        doc = json.loads(_snapshot(rising_series).to_json())

        assert set(doc) == {
            "ticker", "price", "date", "signal", "signalHistory", "ichimoku", "history"
        }
        assert doc["ticker"] == "GLD"
        assert doc["price"] == 118.0
        assert doc["date"] == rising_series[-1].date.isoformat()
        assert doc["signal"] == "BUY"

    def test_ichimoku_renamed_for_display(self, rising_series: list[Bar]) -> None:
        """Span A/B are published as senkouA/senkouB."""
        doc = json.loads(_snapshot(rising_series).to_json())

        assert doc["ichimoku"] == {
            "tenkan": 114.0,
            "kijun": 109.0,
            "senkouA": 100.0,
            "senkouB": 100.0,
        }

    def test_history_rows(self, rising_series: list[Bar]) -> None:
        """History rows carry OHLC plus per-bar indicators."""
        row = json.loads(_snapshot(rising_series).to_json())["history"][-1]

        assert set(row) == {
            "date", "open", "high", "low", "close", "price",
            "tenkan", "kijun", "spanA", "spanB",
        }
        assert row["spanA"] == 100.0

    def test_undefined_indicators_are_null(self, make_bars) -> None:
        """Undefined indicators serialize as null."""
        doc = json.loads(_snapshot(make_bars([100.0] * 70)).to_json())

        first = doc["history"][0]
        assert first["tenkan"] is None
        assert first["spanA"] is None

    def test_zero_indicators_are_not_null(self, make_bars) -> None:
        """A real zero stays a number and is never confused with null."""
        snapshot = _snapshot(make_bars([100.0] * 70))
        last = snapshot.history[-1].model_copy(update={"tenkan": 0.0, "span_b": 0.0})
        snapshot = snapshot.model_copy(update={"history": [*snapshot.history[:-1], last]})

        doc = json.loads(snapshot.to_json())

        assert doc["history"][-1]["tenkan"] == 0.0
        assert doc["history"][-1]["spanB"] == 0.0
        assert doc["history"][0]["tenkan"] is None

    def test_signal_history_matches_ledger(self, rising_series: list[Bar]) -> None:
        """signalHistory carries exactly the ledger's events."""
        ledger = SignalLedger(InMemoryLedgerStore())
        ledger.record_fired(Signal.BUY, dt.date(2024, 2, 1))
        ledger.record_fired(Signal.SELL, dt.date(2024, 3, 5))
        ledger.record_fired(Signal.BUY, dt.date(2024, 2, 1))

        doc = json.loads(_snapshot(rising_series, ledger.all_events()).to_json())

        published = {(e["type"], e["date"]) for e in doc["signalHistory"]}
        expected = {(e.type.value, e.date.isoformat()) for e in ledger.all_events()}
        assert published == expected
        assert len(doc["signalHistory"]) == 2

    def test_empty_series_rejected(self) -> None:
        """A snapshot needs at least one bar."""
        with pytest.raises(ValueError):
            build_snapshot(Symbol("GLD"), [], Signal.NEUTRAL, None, [])  # type: ignore[arg-type]


class TestJsonSnapshotPublisher:
    """Tests for writing and reading published snapshots."""

    def test_publish_and_load(self, tmp_path: Path, rising_series: list[Bar]) -> None:
        """A published snapshot loads back unchanged."""
        path = tmp_path / "website" / "public" / "data.json"
        snapshot = _snapshot(
            rising_series, [SignalEvent(type=Signal.BUY, date=rising_series[-1].date)]
        )

        JsonSnapshotPublisher(path).publish(snapshot)

        assert load_snapshot(path) == snapshot

    def test_publish_replaces_previous(self, tmp_path: Path, rising_series: list[Bar]) -> None:
        """Each publish overwrites the previous file completely."""
        path = tmp_path / "data.json"
        path.write_text('{"stale": true}')

        JsonSnapshotPublisher(path).publish(_snapshot(rising_series))

        assert "stale" not in json.loads(path.read_text())
        assert [p.name for p in tmp_path.iterdir()] == ["data.json"]

    def test_publish_failure_raises(self, tmp_path: Path, rising_series: list[Bar]) -> None:
        """Write errors surface as PersistenceFailure."""
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")

        with pytest.raises(PersistenceFailure):
            JsonSnapshotPublisher(blocker / "data.json").publish(_snapshot(rising_series))

    def test_load_missing_raises(self, tmp_path: Path) -> None:
        """Loading before anything was published fails."""
        with pytest.raises(PersistenceFailure, match="No snapshot"):
            load_snapshot(tmp_path / "data.json")

    def test_load_invalid_raises(self, tmp_path: Path) -> None:
        """A file that is not a snapshot fails validation."""
        path = tmp_path / "data.json"
        path.write_text('{"ticker": "GLD"}')

        with pytest.raises(PersistenceFailure, match="Invalid snapshot"):
            load_snapshot(path)
