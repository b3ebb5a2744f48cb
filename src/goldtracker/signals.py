"""Signal classification from price and Ichimoku values."""

from __future__ import annotations

from goldtracker.types import IchimokuValues, Signal


def evaluate_signal(price: float, values: IchimokuValues | None) -> Signal:
    """Classify the latest price against the cloud.

    BUY needs Tenkan above Kijun and the price above both cloud edges; SELL
    needs Tenkan below Kijun and the price below both edges. Everything else,
    including a Tenkan/Kijun tie, is NEUTRAL.

    :param price: Latest close.
    :param values: Ichimoku values at the same bar, or None if undefined.
    :returns: The signal.
    """
    if values is None:
        return Signal.NEUTRAL
    if values.tenkan > values.kijun and price > values.cloud_top:
        return Signal.BUY
    if values.tenkan < values.kijun and price < values.cloud_bottom:
        return Signal.SELL
    return Signal.NEUTRAL


__all__ = ["evaluate_signal"]
