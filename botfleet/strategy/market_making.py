"""
Market making strategy.

Quotes a bid and an ask around the current price and simulates fills
against those quotes with the agent's random source.  Profit is only
realised when inventory is sold, and equals the captured spread.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
import random

from ..config.schema import MarketMakingConfig
from ..execution.models import Decision, MarketTick, BUY, SELL
from .base import StrategyAgent


BID_FILL_BELOW = 0.3
ASK_FILL_ABOVE = 0.7
# Tolerance for accumulated float error in the inventory
INVENTORY_EPSILON = 1e-9


@dataclass
class MarketMakingState:
    inventory: float = 0.0


class MarketMakingAgent(StrategyAgent):
    """Two-sided quoting with a bounded inventory."""

    def __init__(self, config: Optional[MarketMakingConfig] = None, rng: Optional[random.Random] = None,
                 agent_id: str = "market_making_bot") -> None:
        super().__init__(agent_id, "Market Making", rng)
        self.config = config or MarketMakingConfig()
        self.state = MarketMakingState()

    def quotes(self, price: float):
        """Return the ``(bid, ask)`` pair quoted around `price`."""
        half = self.config.spread_pct / 100.0
        return price * (1 - half), price * (1 + half)

    def _decide(self, tick: MarketTick) -> Decision:
        state: MarketMakingState = self.state
        cfg = self.config
        bid, ask = self.quotes(tick.price)
        draw = self.rng.random()

        # Someone hit our bid
        if draw < BID_FILL_BELOW and state.inventory + cfg.order_size <= cfg.max_inventory + INVENTORY_EPSILON:
            state.inventory += cfg.order_size
            return Decision(
                action=BUY,
                amount=cfg.order_size,
                price=bid,
                reason=f"Bid filled at ${bid:.2f}",
                profit_loss=0.0,
                metadata={'inventory': state.inventory, 'bid_price': bid, 'ask_price': ask},
            )

        # Someone lifted our ask
        if draw > ASK_FILL_ABOVE and state.inventory > INVENTORY_EPSILON:
            state.inventory -= cfg.order_size
            if state.inventory < INVENTORY_EPSILON:
                state.inventory = 0.0
            return Decision(
                action=SELL,
                amount=cfg.order_size,
                price=ask,
                reason=f"Ask filled at ${ask:.2f}",
                profit_loss=(ask - bid) * cfg.order_size,
                metadata={
                    'inventory': state.inventory,
                    'bid_price': bid,
                    'ask_price': ask,
                    'spread': cfg.spread_pct,
                },
            )

        return Decision.hold(
            tick.price,
            f"Orders placed. Bid: ${bid:.2f}, Ask: ${ask:.2f}",
            inventory=state.inventory,
        )
