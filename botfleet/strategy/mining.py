"""
Mining fleet management.

Daily reward is proportional to the active hash rate and the tick
price; daily cost is the active power draw at the configured
electricity price.  When unprofitable, the least efficient active miner
(lowest hash per watt) is shut down.  When profitable with enough
margin, the first idle miner is switched back on.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional
import random

from ..config.schema import MiningConfig
from ..execution.models import Decision, MarketTick, BUY, SELL
from .base import StrategyAgent


@dataclass
class Miner:
    id: str
    hash_rate: float  # TH/s
    power_watts: float
    is_active: bool = True

    @property
    def efficiency(self) -> float:
        return self.hash_rate / self.power_watts if self.power_watts > 0 else float('inf')


def default_miners() -> List[Miner]:
    return [
        Miner("miner_1", 110.0, 3250.0, True),
        Miner("miner_2", 100.0, 3000.0, True),
        Miner("miner_3", 90.0, 2800.0, False),
    ]


@dataclass
class MiningState:
    miners: List[Miner] = field(default_factory=default_miners)
    total_mined: float = 0.0
    total_revenue: float = 0.0
    total_cost: float = 0.0


class MiningAgent(StrategyAgent):

    def __init__(self, config: Optional[MiningConfig] = None, rng: Optional[random.Random] = None,
                 agent_id: str = "mining_bot", miners: Optional[List[Miner]] = None) -> None:
        super().__init__(agent_id, "Mining Management", rng)
        self.config = config or MiningConfig()
        self.state = MiningState(miners=miners if miners is not None else default_miners())

    def hash_rate(self) -> float:
        return sum(m.hash_rate for m in self.state.miners if m.is_active)

    def daily_cost(self) -> float:
        watts = sum(m.power_watts for m in self.state.miners if m.is_active)
        return watts / 1000.0 * self.config.electricity_cost * 24

    def daily_reward(self, price: float) -> float:
        return self.hash_rate() * self.config.btc_per_th_day * price

    def _decide(self, tick: MarketTick) -> Decision:
        state: MiningState = self.state
        price = tick.price
        reward = self.daily_reward(price)
        cost = self.daily_cost()
        profit = reward - cost

        if reward <= cost:
            active = [m for m in state.miners if m.is_active]
            if active:
                worst = min(active, key=lambda m: m.efficiency)
                worst.is_active = False
                return Decision(
                    action=SELL,
                    amount=worst.hash_rate,
                    price=price,
                    reason=f"Shut down {worst.id} - unprofitable at ${price:.0f}",
                    profit_loss=-cost / 24,
                    metadata={'miner_id': worst.id, 'hash_rate': self.hash_rate()},
                )
        else:
            idle = [m for m in state.miners if not m.is_active]
            if idle and profit > cost * self.config.reactivation_buffer:
                miner = idle[0]
                miner.is_active = True
                return Decision(
                    action=BUY,
                    amount=miner.hash_rate,
                    price=price,
                    reason=f"Activated {miner.id} - profitable at ${price:.0f}",
                    profit_loss=profit / 24,
                    metadata={'miner_id': miner.id, 'hash_rate': self.hash_rate(), 'daily_profit': profit},
                )

        if price > 0:
            state.total_mined += reward / 24 / price
        state.total_revenue += reward / 24
        state.total_cost += cost / 24
        return Decision.hold(
            price,
            f"Mining: {self.hash_rate():.0f} TH/s. Daily profit: ${profit:.2f}",
            daily_profit=profit,
        )
