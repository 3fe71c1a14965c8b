"""
Scalping strategy based on an EMA crossover filtered by RSI.

Entry: fast EMA above slow EMA while RSI is oversold (< 30) and flat.
Exit: fast EMA below slow EMA or RSI overbought (> 70) while in a
position.  The price history is a rolling window; the oldest price is
dropped once the window is full.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Optional
import random

from ..config.schema import ScalpingConfig
from ..execution.models import Decision, MarketTick, BUY, SELL
from .base import StrategyAgent
from .indicators import ema, rsi


RSI_OVERSOLD = 30.0
RSI_OVERBOUGHT = 70.0


@dataclass
class ScalpingState:
    prices: Deque[float] = field(default_factory=deque)
    position: float = 0.0
    entry_price: float = 0.0


class ScalpingAgent(StrategyAgent):
    """Quick in/out trades on EMA crossovers."""

    def __init__(self, config: Optional[ScalpingConfig] = None, rng: Optional[random.Random] = None,
                 agent_id: str = "scalping_bot") -> None:
        super().__init__(agent_id, "Scalping", rng)
        self.config = config or ScalpingConfig()
        self.state = ScalpingState(prices=deque(maxlen=self.config.window))

    def _decide(self, tick: MarketTick) -> Decision:
        state: ScalpingState = self.state
        cfg = self.config
        price = tick.price
        state.prices.append(price)

        fast = ema(state.prices, cfg.fast_period)
        slow = ema(state.prices, cfg.slow_period)
        strength = rsi(state.prices, cfg.rsi_period)
        indicators = {'fast_ema': fast, 'slow_ema': slow, 'rsi': strength}

        if fast > slow and strength < RSI_OVERSOLD and state.position == 0:
            state.position = cfg.unit_size
            state.entry_price = price
            return Decision(
                action=BUY,
                amount=cfg.unit_size,
                price=price,
                reason=f"Scalp entry: EMA crossover + RSI oversold ({strength:.1f})",
                profit_loss=0.0,
                metadata=indicators,
            )

        if (fast < slow or strength > RSI_OVERBOUGHT) and state.position > 0:
            size = state.position
            profit = (price - state.entry_price) * size
            state.position = 0.0
            return Decision(
                action=SELL,
                amount=size,
                price=price,
                reason=f"Scalp exit: EMA crossover or RSI overbought ({strength:.1f})",
                profit_loss=profit,
                metadata=dict(indicators, entry_price=state.entry_price),
            )

        return Decision.hold(price, f"Waiting for signal. RSI: {strength:.1f}", **indicators)
