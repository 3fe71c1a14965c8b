"""
Dollar-cost averaging strategy.

Buys a fixed notional once per interval, measured on tick timestamps,
and tracks the cost basis of everything bought so far.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
import random
import pandas as pd

from ..config.schema import DCAConfig
from ..errors import EvaluationAnomaly
from ..execution.models import Decision, MarketTick, BUY
from ..utils.timeutils import elapsed_hours
from .base import StrategyAgent


@dataclass
class DCAState:
    last_purchase: Optional[pd.Timestamp] = None
    total_invested: float = 0.0
    total_units: float = 0.0

    @property
    def average_price(self) -> float:
        return self.total_invested / self.total_units if self.total_units > 0 else 0.0

    def unrealized_pnl(self, price: float) -> float:
        if self.total_units <= 0:
            return 0.0
        return (price - self.average_price) * self.total_units


class DCAAgent(StrategyAgent):
    """Fixed-size periodic purchases."""

    def __init__(self, config: Optional[DCAConfig] = None, rng: Optional[random.Random] = None,
                 agent_id: str = "dca_bot") -> None:
        super().__init__(agent_id, "Dollar-Cost Averaging", rng)
        self.config = config or DCAConfig()
        self.state = DCAState()

    def _decide(self, tick: MarketTick) -> Decision:
        state: DCAState = self.state
        price = tick.price
        elapsed = elapsed_hours(state.last_purchase, tick.timestamp)

        if elapsed is None or elapsed >= self.config.interval_hours:
            if price <= 0:
                raise EvaluationAnomaly(f"cannot buy at non-positive price {price}")
            units = self.config.investment_amount / price
            state.total_invested += self.config.investment_amount
            state.total_units += units
            state.last_purchase = tick.timestamp
            avg_price = state.average_price
            return Decision(
                action=BUY,
                amount=units,
                price=price,
                reason=f"DCA purchase - Avg price: ${avg_price:.2f}",
                profit_loss=state.unrealized_pnl(price),
                metadata={
                    'total_invested': state.total_invested,
                    'total_units': state.total_units,
                    'average_price': avg_price,
                },
            )

        unrealized = state.unrealized_pnl(price)
        return Decision.hold(
            price,
            f"Waiting for next DCA interval. Unrealized P&L: ${unrealized:.2f}",
            unrealized_pnl=unrealized,
            average_price=state.average_price,
        )
