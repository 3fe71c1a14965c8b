"""
Multi-pool liquidity provision.

Capital is split across a fixed set of pools proportionally to their
APY.  Each tick the APYs drift, the target shares are recomputed and,
when any pool's liquidity deviates from its target by more than the
rebalance threshold, the whole capital is re-allocated.  Otherwise an
hour of yield is accrued into every pool.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional
import random

from ..config.schema import LiquidityConfig
from ..errors import EvaluationAnomaly
from ..execution.models import Decision, MarketTick, BUY
from .base import StrategyAgent


MIN_APY = 1.0
MAX_APY = 50.0
HOURS_PER_YEAR = 365 * 24


@dataclass
class Pool:
    name: str
    apy: float
    liquidity: float = 0.0
    allocation: float = 0.0


@dataclass
class LiquidityState:
    total_capital: float
    pools: List[Pool] = field(default_factory=list)


class LiquidityAgent(StrategyAgent):

    def __init__(self, config: Optional[LiquidityConfig] = None, rng: Optional[random.Random] = None,
                 agent_id: str = "liquidity_bot") -> None:
        super().__init__(agent_id, "Liquidity Provider", rng)
        self.config = config or LiquidityConfig()
        if not self.config.pools:
            raise ValueError("liquidity agent needs at least one pool")
        self.state = LiquidityState(
            total_capital=self.config.total_capital,
            pools=[Pool(name=name, apy=float(apy)) for name, apy in self.config.pools.items()],
        )
        self._allocate()

    def _allocate(self) -> None:
        """Spread the capital across pools proportionally to APY."""
        state: LiquidityState = self.state
        total_apy = sum(p.apy for p in state.pools)
        if total_apy <= 0:
            raise EvaluationAnomaly("total pool APY is zero")
        for pool in state.pools:
            pool.allocation = pool.apy / total_apy
            pool.liquidity = state.total_capital * pool.allocation

    def deviations(self) -> Dict[str, float]:
        """Percentage deviation of each pool from its APY-weighted target share."""
        state: LiquidityState = self.state
        total_apy = sum(p.apy for p in state.pools)
        out: Dict[str, float] = {}
        for pool in state.pools:
            target = state.total_capital * pool.apy / total_apy if total_apy > 0 else 0.0
            out[pool.name] = abs(pool.liquidity - target) / target * 100.0 if target > 0 else 0.0
        return out

    def daily_earnings(self) -> float:
        return sum(p.liquidity * p.apy / 100.0 / 365.0 for p in self.state.pools)

    def _decide(self, tick: MarketTick) -> Decision:
        state: LiquidityState = self.state
        for pool in state.pools:
            pool.apy += (self.rng.random() - 0.5) * 2
            pool.apy = max(MIN_APY, min(MAX_APY, pool.apy))

        earnings = self.daily_earnings()
        deviations = self.deviations()
        if any(d > self.config.rebalance_threshold_pct for d in deviations.values()):
            self._allocate()
            return Decision(
                action=BUY,
                amount=state.total_capital,
                price=tick.price,
                reason="Portfolio rebalanced across pools",
                profit_loss=earnings,
                metadata={
                    'pools': [
                        {'name': p.name, 'apy': round(p.apy, 2), 'liquidity': round(p.liquidity, 2)}
                        for p in state.pools
                    ],
                    'max_deviation': max(deviations.values()),
                },
            )

        for pool in state.pools:
            pool.liquidity += pool.liquidity * pool.apy / 100.0 / HOURS_PER_YEAR
        state.total_capital = sum(p.liquidity for p in state.pools)
        return Decision.hold(
            tick.price,
            f"Earning ${earnings:.2f}/day across {len(state.pools)} pools",
            daily_earnings=earnings,
        )
