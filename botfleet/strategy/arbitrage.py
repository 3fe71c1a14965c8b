"""Bid/ask spread arbitrage strategy."""

from __future__ import annotations

from typing import Optional
import random

from ..config.schema import ArbitrageConfig
from ..errors import EvaluationAnomaly
from ..execution.models import Decision, MarketTick, BUY
from .base import StrategyAgent


class ArbitrageAgent(StrategyAgent):
    """Capture the quoted spread whenever it is wide enough.

    The strategy is stateless apart from its ledger.
    """

    def __init__(self, config: Optional[ArbitrageConfig] = None, rng: Optional[random.Random] = None,
                 agent_id: str = "arbitrage_bot") -> None:
        super().__init__(agent_id, "Arbitrage", rng)
        self.config = config or ArbitrageConfig()

    def _decide(self, tick: MarketTick) -> Decision:
        bid = tick.bid_price
        ask = tick.ask_price
        if bid <= 0:
            raise EvaluationAnomaly(f"non-positive bid price {bid}")
        spread = (ask - bid) / bid * 100.0

        if spread >= self.config.min_spread_pct:
            size = self.config.max_position_size
            return Decision(
                action=BUY,
                amount=size,
                price=bid,
                reason=f"Arbitrage opportunity detected. Spread: {spread:.2f}%",
                profit_loss=(ask - bid) * size,
                metadata={'bid_price': bid, 'ask_price': ask, 'spread': spread},
            )
        return Decision.hold(tick.price, f"No arbitrage opportunity. Current spread: {spread:.2f}%", spread=spread)
