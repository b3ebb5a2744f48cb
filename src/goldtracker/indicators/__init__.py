"""Technical indicator calculations."""

from goldtracker.indicators.ichimoku import (DISPLACEMENT, KIJUN_PERIOD,
                                             MIN_INDEX, SENKOU_B_PERIOD,
                                             TENKAN_PERIOD, compute_ichimoku,
                                             ichimoku_series, midpoint)

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
