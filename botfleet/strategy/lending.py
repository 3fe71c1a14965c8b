"""
Lending position management.

Each tick the health factor of every supply/borrow position drifts.
The first position falling below the minimum health factor is
deleveraged by repaying part of its debt; the repayment fee is booked
as a loss.  Healthy books accrue net APY income, reported on the hold.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional
import random

from ..config.schema import LendingConfig
from ..execution.models import Decision, MarketTick, SELL
from .base import StrategyAgent


HEALTH_DRIFT = 0.2
# Share of collateral value counted towards the health factor after a repayment
COLLATERAL_FACTOR = 0.8


@dataclass
class LendingPosition:
    protocol: str
    supplied: float
    borrowed: float
    supply_apy: float
    borrow_apy: float
    health_factor: float


def default_positions() -> List[LendingPosition]:
    return [
        LendingPosition("Aave", supplied=5000.0, borrowed=2000.0, supply_apy=5.0, borrow_apy=8.0, health_factor=2.5),
        LendingPosition("Compound", supplied=3000.0, borrowed=1000.0, supply_apy=4.0, borrow_apy=7.0, health_factor=3.0),
    ]


@dataclass
class LendingState:
    positions: List[LendingPosition] = field(default_factory=default_positions)


class LendingAgent(StrategyAgent):

    def __init__(self, config: Optional[LendingConfig] = None, rng: Optional[random.Random] = None,
                 agent_id: str = "lending_bot", positions: Optional[List[LendingPosition]] = None) -> None:
        super().__init__(agent_id, "DeFi Lending", rng)
        self.config = config or LendingConfig()
        self.state = LendingState(positions=positions if positions is not None else default_positions())

    def net_apy(self) -> float:
        """Yearly supply income minus borrow cost, in dollars."""
        return sum(
            p.supplied * p.supply_apy / 100.0 - p.borrowed * p.borrow_apy / 100.0
            for p in self.state.positions
        )

    def _find_at_risk(self) -> Optional[LendingPosition]:
        # Positions after the first risky one keep their health factor this tick
        for position in self.state.positions:
            position.health_factor += (self.rng.random() - 0.5) * HEALTH_DRIFT
            if position.health_factor < self.config.min_health_factor:
                return position
        return None

    def _decide(self, tick: MarketTick) -> Decision:
        cfg = self.config
        at_risk = self._find_at_risk()

        if at_risk is not None:
            repay = at_risk.borrowed * cfg.repay_fraction
            at_risk.borrowed -= repay
            if at_risk.borrowed > 0:
                at_risk.health_factor = at_risk.supplied / at_risk.borrowed * COLLATERAL_FACTOR
            else:
                at_risk.health_factor = cfg.target_health_factor
            return Decision(
                action=SELL,
                amount=repay,
                price=tick.price,
                reason=f"Repaid ${repay:.2f} on {at_risk.protocol} to improve health",
                profit_loss=-repay * cfg.repay_fee_pct / 100.0,
                metadata={'protocol': at_risk.protocol, 'new_health_factor': at_risk.health_factor},
            )

        yearly = self.net_apy()
        daily = yearly / 365.0
        return Decision.hold(
            tick.price,
            f"Net APY: ${yearly:.2f}/year. Daily: ${daily:.2f}",
            daily_income=daily,
            health_factors={p.protocol: p.health_factor for p in self.state.positions},
        )
