import os
import sys
import random
import pandas as pd

CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, os.pardir))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from botfleet.execution.models import MarketTick


START = pd.Timestamp("2024-01-01 00:00", tz="UTC")


class ScriptedRandom(random.Random):
    """Random source returning queued values first, then a seeded stream."""

    def __init__(self, values=(), choices=()) -> None:
        super().__init__(0)
        self.values = list(values)
        self.choices = list(choices)

    def random(self) -> float:
        if self.values:
            return self.values.pop(0)
        return super().random()

    def choice(self, seq):
        if self.choices:
            value = self.choices.pop(0)
            assert value in seq, f"{value!r} not in {seq!r}"
            return value
        return super().choice(seq)


def make_tick(price: float, hours: float = 0.0, volume: float = 1000.0, bid: float = None,
              ask: float = None, symbol: str = "TEST") -> MarketTick:
    return MarketTick(
        symbol=symbol,
        price=price,
        volume=volume,
        bid_price=price if bid is None else bid,
        ask_price=price if ask is None else ask,
        timestamp=START + pd.Timedelta(hours=hours),
    )
