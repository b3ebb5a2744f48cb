"""Shared fixtures for tracker tests."""

from __future__ import annotations

import datetime as dt
from typing import Callable, Sequence

import pytest

from goldtracker.types import Bar

START_DATE = dt.date(2024, 1, 1)

BarFactory = Callable[..., list[Bar]]


def _make_bars(closes: Sequence[float], start: dt.date = START_DATE) -> list[Bar]:
    """One bar per close, consecutive days, open=high=low=close."""
    return [
        Bar(
            date=start + dt.timedelta(days=i),
            open=price,
            high=price,
            low=price,
            close=price,
        )
        for i, price in enumerate(closes)
    ]


@pytest.fixture
def make_bars() -> BarFactory:
    """Factory building flat-candle bars from a list of closes."""
    return _make_bars


@pytest.fixture
def rising_series() -> list[Bar]:
    """90 bars: 81 flat at 100 then a 110..118 rally (BUY on the last bar)."""
    return _make_bars([100.0] * 81 + [110.0 + i for i in range(9)])


@pytest.fixture
def falling_series() -> list[Bar]:
    """90 bars: 81 flat at 100 then a 90..82 slide (SELL on the last bar)."""
    return _make_bars([100.0] * 81 + [90.0 - i for i in range(9)])


@pytest.fixture
def flat_series() -> list[Bar]:
    """80 flat bars at 100 (NEUTRAL on the last bar)."""
    return _make_bars([100.0] * 80)
