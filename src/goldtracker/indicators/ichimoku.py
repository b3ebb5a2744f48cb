"""Ichimoku Cloud calculation over a daily bar series.

All components are rolling high/low midpoints:

- Tenkan-sen: last 9 bars up to the index.
- Kijun-sen: last 26 bars up to the index.
- Senkou Span A: mean of the Tenkan-style and Kijun-style midpoints taken at
  the anchor bar 26 sessions back (``index - 25``).
- Senkou Span B: 52-bar midpoint at the same anchor.

The spans are anchored backwards instead of being plotted forwards, so the
values at ``index`` are the cloud edges that line up with that day's close.
Anchor windows include the anchor bar itself (10, 27 and 53 bars).

Values exist from ``MIN_INDEX`` onwards. Below the full Senkou B lookback the
span window is clipped at the first bar of the series.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np

from goldtracker.types import Bar, IchimokuValues

TENKAN_PERIOD = 9
KIJUN_PERIOD = 26
SENKOU_B_PERIOD = 52
DISPLACEMENT = 26

# First index with a defined tuple
MIN_INDEX = TENKAN_PERIOD + SENKOU_B_PERIOD


def midpoint(window: Sequence[Bar]) -> float:
    """Average of the highest high and the lowest low of a window.

    :param window: Non-empty run of bars.
    :returns: ``(max(high) + min(low)) / 2``.
    :raises ValueError: If the window is empty.
    """
    if not window:
        raise ValueError("midpoint of an empty window")
    highs = np.fromiter((bar.high for bar in window), dtype=float, count=len(window))
    lows = np.fromiter((bar.low for bar in window), dtype=float, count=len(window))
    return float((highs.max() + lows.min()) / 2)


def _closed(series: Sequence[Bar], start: int, end: int) -> Sequence[Bar]:
    """Bars ``start..end`` inclusive, clipped at the start of the series."""
    return series[max(start, 0) : end + 1]


def compute_ichimoku(series: Sequence[Bar], index: int) -> IchimokuValues | None:
    """Compute the Ichimoku components at one index of a series.

    Pure and stateless: the same series and index always give the same
    result, and the whole preceding series is available as lookback.

    :param series: Bars in ascending date order.
    :param index: Position of the bar to evaluate.
    :returns: The component values, or None when ``index < MIN_INDEX``.
    :raises IndexError: If ``index`` is outside the series.
    """
    if not 0 <= index < len(series):
        raise IndexError(f"index {index} outside series of length {len(series)}")
    if index < MIN_INDEX:
        return None

    tenkan = midpoint(_closed(series, index - TENKAN_PERIOD + 1, index))
    kijun = midpoint(_closed(series, index - KIJUN_PERIOD + 1, index))

    anchor = index - DISPLACEMENT + 1
    tenkan_then = midpoint(_closed(series, anchor - TENKAN_PERIOD, anchor))
    kijun_then = midpoint(_closed(series, anchor - KIJUN_PERIOD, anchor))
    span_a = (tenkan_then + kijun_then) / 2
    span_b = midpoint(_closed(series, anchor - SENKOU_B_PERIOD, anchor))

    return IchimokuValues(tenkan=tenkan, kijun=kijun, span_a=span_a, span_b=span_b)


def ichimoku_series(
    series: Sequence[Bar],
    start: int = 0,
) -> list[IchimokuValues | None]:
    """Compute the components for every index from ``start`` to the end.

    :param series: Bars in ascending date order.
    :param start: First index to evaluate.
    :returns: One entry per index, None where undefined.
    """
    return [compute_ichimoku(series, i) for i in range(max(start, 0), len(series))]


__all__ = [
    "TENKAN_PERIOD",
    "KIJUN_PERIOD",
    "SENKOU_B_PERIOD",
    "DISPLACEMENT",
    "MIN_INDEX",
    "midpoint",
    "compute_ichimoku",
    "ichimoku_series",
]
