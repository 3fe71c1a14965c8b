"""Yield farming automation: accrue, harvest and compound staking rewards."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional
import random

from ..config.schema import DeFiConfig
from ..execution.models import Decision, MarketTick, BUY
from .base import StrategyAgent


@dataclass
class Protocol:
    name: str
    staked: float
    apy: float
    pending: float = 0.0


@dataclass
class DeFiState:
    protocols: List[Protocol] = field(default_factory=list)
    total_harvested: float = 0.0


class DeFiAgent(StrategyAgent):
    """Harvests the first protocol whose pending reward reaches the threshold."""

    def __init__(self, config: Optional[DeFiConfig] = None, rng: Optional[random.Random] = None,
                 agent_id: str = "defi_bot") -> None:
        super().__init__(agent_id, "DeFi Automation", rng)
        self.config = config or DeFiConfig()
        self.state = DeFiState(
            protocols=[
                Protocol(name=name, staked=float(staked), apy=float(apy))
                for name, (staked, apy) in self.config.protocols.items()
            ]
        )

    def _decide(self, tick: MarketTick) -> Decision:
        state: DeFiState = self.state
        for protocol in state.protocols:
            protocol.pending += protocol.staked * protocol.apy / 100.0 / 365.0 / 24.0

        harvestable = next(
            (p for p in state.protocols if p.pending >= self.config.harvest_threshold), None
        )
        if harvestable is not None:
            harvested = harvestable.pending
            state.total_harvested += harvested
            harvestable.staked += harvested
            harvestable.pending = 0.0
            return Decision(
                action=BUY,
                amount=harvested,
                price=tick.price,
                reason=f"Harvested ${harvested:.2f} from {harvestable.name} and compounded",
                profit_loss=harvested,
                metadata={
                    'protocol': harvestable.name,
                    'new_stake': harvestable.staked,
                    'total_harvested': state.total_harvested,
                },
            )

        total_pending = sum(p.pending for p in state.protocols)
        total_staked = sum(p.staked for p in state.protocols)
        return Decision.hold(
            tick.price,
            f"Staked: ${total_staked:.2f}, Pending: ${total_pending:.2f}",
            total_staked=total_staked,
            total_pending=total_pending,
        )
