"""
Technical indicators shared by the price-driven strategies.

The functions operate on plain sequences of floats (the agents keep
their history in bounded deques) and return neutral values when there
is not yet enough history.
"""

from __future__ import annotations

from typing import Sequence


def ema(prices: Sequence[float], period: int) -> float:
    """Exponential moving average seeded with the simple average of the first `period` prices.

    With fewer than `period` prices the last price is returned (0 when empty).
    """
    values = list(prices)
    if len(values) < period:
        return values[-1] if values else 0.0
    multiplier = 2.0 / (period + 1)
    value = sum(values[:period]) / period
    for price in values[period:]:
        value = (price - value) * multiplier + value
    return value


def rsi(prices: Sequence[float], period: int = 14) -> float:
    """Relative strength index over the last `period` price changes.

    Uses simple averages of gains and losses.  Returns 50 until
    ``period + 1`` prices are available and 100 when there were no losses.
    """
    values = list(prices)
    if len(values) < period + 1:
        return 50.0
    gains = 0.0
    losses = 0.0
    for i in range(len(values) - period, len(values)):
        change = values[i] - values[i - 1]
        if change > 0:
            gains += change
        else:
            losses -= change
    avg_gain = gains / period
    avg_loss = losses / period
    if avg_loss == 0:
        return 100.0
    rs = avg_gain / avg_loss
    return 100.0 - (100.0 / (1.0 + rs))


def momentum_pct(prices: Sequence[float], period: int = 14) -> float:
    """Percentage change between the last price and the price `period` - 1 ticks earlier."""
    values = list(prices)
    if len(values) < period:
        return 0.0
    current = values[-1]
    past = values[-period]
    if past == 0:
        return 0.0
    return (current - past) / past * 100.0


def volume_ratio(volumes: Sequence[float], period: int = 20) -> float:
    """Ratio of the latest volume to the mean of the last `period` volumes."""
    values = list(volumes)
    if len(values) < period:
        return 1.0
    avg_volume = sum(values[-period:]) / period
    if avg_volume == 0:
        return 1.0
    return values[-1] / avg_volume
