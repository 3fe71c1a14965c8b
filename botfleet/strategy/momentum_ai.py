"""
Momentum strategy with volume confirmation.

The direction is classified from two signals jointly: percentage price
momentum over a fixed lookback and the latest volume relative to its
rolling average.  A long position is opened on an "up" call and closed
on a "down" call or as soon as momentum turns negative.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Optional
import random

from ..config.schema import MomentumConfig
from ..execution.models import Decision, MarketTick, BUY, SELL
from .base import StrategyAgent
from .indicators import momentum_pct, volume_ratio


UP = 'up'
DOWN = 'down'
NEUTRAL = 'neutral'


@dataclass
class MomentumState:
    prices: Deque[float] = field(default_factory=deque)
    volumes: Deque[float] = field(default_factory=deque)
    position: float = 0.0
    entry_price: float = 0.0


class MomentumAIAgent(StrategyAgent):

    def __init__(self, config: Optional[MomentumConfig] = None, rng: Optional[random.Random] = None,
                 agent_id: str = "momentum_ai_bot") -> None:
        super().__init__(agent_id, "Momentum AI", rng)
        self.config = config or MomentumConfig()
        self.state = MomentumState(
            prices=deque(maxlen=self.config.window),
            volumes=deque(maxlen=self.config.window),
        )

    def predict(self, momentum: float, ratio: float) -> str:
        """Classify direction from momentum (%) and volume ratio."""
        cfg = self.config
        if ratio > cfg.volume_ratio_threshold:
            if momentum > cfg.momentum_threshold:
                return UP
            if momentum < -cfg.momentum_threshold:
                return DOWN
        return NEUTRAL

    def _decide(self, tick: MarketTick) -> Decision:
        state: MomentumState = self.state
        cfg = self.config
        price = tick.price
        state.prices.append(price)
        state.volumes.append(tick.volume)

        momentum = momentum_pct(state.prices, cfg.momentum_period)
        ratio = volume_ratio(state.volumes, cfg.volume_period)
        prediction = self.predict(momentum, ratio)
        signals = {'prediction': prediction, 'momentum': momentum, 'volume_ratio': ratio}

        if prediction == UP and state.position == 0:
            state.position = cfg.unit_size
            state.entry_price = price
            return Decision(
                action=BUY,
                amount=cfg.unit_size,
                price=price,
                reason=f"Predicted UP. Momentum: {momentum:.2f}%, Volume: {ratio:.2f}x",
                profit_loss=0.0,
                metadata=signals,
            )

        if (prediction == DOWN or momentum < 0) and state.position > 0:
            size = state.position
            profit = (price - state.entry_price) * size
            state.position = 0.0
            return Decision(
                action=SELL,
                amount=size,
                price=price,
                reason=f"Predicted {prediction.upper()}. Closing position.",
                profit_loss=profit,
                metadata=signals,
            )

        return Decision.hold(price, f"Prediction: {prediction}. Momentum: {momentum:.2f}%", **signals)
