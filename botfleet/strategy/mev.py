"""
Simulated MEV opportunity strategy.

Opportunities are drawn from the agent's random source: with a small
probability per tick an opportunity of a random type and profit shows
up.  With ethics mode on, sandwich opportunities are always rejected.
Only opportunities clearing the minimum profit are executed.

The agent implements the admin override capability so that its ethics
mode and thresholds can be changed at runtime through the orchestrator.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional
import logging
import random

from ..config.schema import MEVConfig
from ..execution.models import Decision, MarketTick, BUY
from .base import StrategyAgent


logger = logging.getLogger(__name__)

OPPORTUNITY_TYPES = ("sandwich", "arbitrage", "liquidation")
GAS_SHARE = 0.1


@dataclass
class Opportunity:
    kind: str
    profit: float


@dataclass
class MEVState:
    detected: int = 0
    rejected_by_ethics: int = 0


class MEVAgent(StrategyAgent):

    _OVERRIDABLE = {
        'ethics_enabled': bool,
        'min_profit_threshold': float,
        'max_gas_price': float,
    }

    def __init__(self, config: Optional[MEVConfig] = None, rng: Optional[random.Random] = None,
                 agent_id: str = "mev_bot") -> None:
        super().__init__(agent_id, "MEV", rng)
        self.config = config or MEVConfig()
        self.state = MEVState()

    def detect(self) -> Optional[Opportunity]:
        """Draw at most one opportunity for this tick."""
        if self.rng.random() > 1.0 - self.config.detection_probability:
            kind = self.rng.choice(OPPORTUNITY_TYPES)
            profit = self.rng.random() * 100 + 10
            return Opportunity(kind=kind, profit=profit)
        return None

    def _decide(self, tick: MarketTick) -> Decision:
        state: MEVState = self.state
        cfg = self.config
        opportunity = self.detect()
        if opportunity is None:
            return Decision.hold(tick.price, "Monitoring for ethical MEV opportunities")

        state.detected += 1
        if cfg.ethics_enabled and opportunity.kind == "sandwich":
            state.rejected_by_ethics += 1
            return Decision.hold(
                tick.price,
                "Rejected sandwich opportunity (ethics mode)",
                type=opportunity.kind,
                profit=opportunity.profit,
            )
        if opportunity.profit < cfg.min_profit_threshold:
            return Decision.hold(
                tick.price,
                f"MEV {opportunity.kind} below threshold (${opportunity.profit:.2f})",
            )
        return Decision(
            action=BUY,
            amount=1.0,
            price=tick.price,
            reason=f"MEV {opportunity.kind} executed",
            profit_loss=opportunity.profit,
            metadata={
                'type': opportunity.kind,
                'gas_price': cfg.max_gas_price,
                'net_profit': opportunity.profit * (1 - GAS_SHARE),
            },
        )

    # Admin override capability

    def admin_settings(self) -> dict:
        return {name: getattr(self.config, name) for name in self._OVERRIDABLE}

    def apply_admin_override(self, setting: str, value: Any) -> None:
        """Change one runtime tunable.

        Raises
        ------
        KeyError
            If `setting` is not overridable.
        ValueError
            If `value` cannot be converted to the setting's type.
        """
        if setting not in self._OVERRIDABLE:
            raise KeyError(f"Unknown MEV setting '{setting}'")
        kind = self._OVERRIDABLE[setting]
        if kind is bool and isinstance(value, str):
            lowered = value.strip().lower()
            if lowered not in ("on", "off", "true", "false", "1", "0"):
                raise ValueError(f"Invalid boolean value '{value}'")
            converted: Any = lowered in ("on", "true", "1")
        else:
            converted = kind(value)
        if kind is float and converted < 0:
            raise ValueError(f"{setting} must be non-negative")
        with self._locked():
            setattr(self.config, setting, converted)
        logger.info("%s: %s set to %s", self.agent_id, setting, converted)
