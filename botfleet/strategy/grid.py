"""
Grid trading strategy.

A fixed ladder of buy levels below and sell levels above an initial
base price is computed once.  On every tick the first level whose price
was crossed since the previous tick fires: a buy when the price fell
through a buy level, a sell when it rose through a sell level.  At
most one level fires per tick.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple
import random

from ..config.schema import GridConfig
from ..execution.models import Decision, MarketTick, BUY, SELL
from .base import StrategyAgent


@dataclass
class GridState:
    """Grid levels in iteration order and the previously seen price."""
    levels: List[Tuple[int, str, float]] = field(default_factory=list)
    last_price: Optional[float] = None


def build_levels(base_price: float, levels: int, price_range_pct: float) -> List[Tuple[int, str, float]]:
    """Return ``(key, side, price)`` tuples: buy levels on even keys, sell on odd."""
    step = base_price * price_range_pct / 100.0 / levels
    out: List[Tuple[int, str, float]] = []
    for i in range(levels):
        out.append((i * 2, BUY, base_price - step * (i + 1)))
        out.append((i * 2 + 1, SELL, base_price + step * (i + 1)))
    return out


class GridAgent(StrategyAgent):
    """Fire grid levels as the price crosses them."""

    def __init__(self, config: Optional[GridConfig] = None, rng: Optional[random.Random] = None,
                 agent_id: str = "grid_bot") -> None:
        super().__init__(agent_id, "Grid Trading", rng)
        self.config = config or GridConfig()
        if self.config.levels <= 0:
            raise ValueError("grid needs at least one level")
        self.state = GridState(
            levels=build_levels(self.config.base_price, self.config.levels, self.config.price_range_pct)
        )

    def _decide(self, tick: MarketTick) -> Decision:
        state: GridState = self.state
        price = tick.price
        last = state.last_price
        state.last_price = price
        # The first tick only establishes the reference price
        if last is None:
            return Decision.hold(price, "Grid initialised")

        unit = self.config.unit_size
        for key, side, level in state.levels:
            if side == BUY and price <= level < last:
                return Decision(
                    action=BUY,
                    amount=unit,
                    price=price,
                    reason=f"Grid buy triggered at level {key}",
                    profit_loss=0.0,
                    metadata={'level': key, 'level_price': level},
                )
            if side == SELL and price >= level > last:
                return Decision(
                    action=SELL,
                    amount=unit,
                    price=price,
                    reason=f"Grid sell triggered at level {key}",
                    profit_loss=(price - last) * unit,
                    metadata={'level': key, 'level_price': level},
                )
        return Decision.hold(price, "No grid level triggered")
