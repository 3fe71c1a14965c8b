"""
Cross-chain bridge arbitrage.

Every ordered pair of configured chains is scanned for a simulated
price differential.  The first pair above the threshold whose source
chain can fund the transfer is bridged: a fixed notional leaves the
source and arrives at the destination net of the bridge fee.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional
import itertools
import random

from ..config.schema import BridgeConfig
from ..execution.models import Decision, MarketTick, BUY
from .base import StrategyAgent


# Fee expressed in percent is scaled by this notional to estimate its cost
FEE_COST_SCALE = 10.0


@dataclass
class BridgeOpportunity:
    source: str
    destination: str
    differential: float
    profit: float


@dataclass
class BridgeState:
    balances: Dict[str, float] = field(default_factory=dict)
    total_bridged: float = 0.0


class BridgeAgent(StrategyAgent):

    def __init__(self, config: Optional[BridgeConfig] = None, rng: Optional[random.Random] = None,
                 agent_id: str = "bridge_bot") -> None:
        super().__init__(agent_id, "Cross-Chain Bridge", rng)
        self.config = config or BridgeConfig()
        self.state = BridgeState(balances={k: float(v) for k, v in self.config.chains.items()})

    def scan(self) -> Optional[BridgeOpportunity]:
        """Return the first profitable-looking pair, drawing one differential per pair."""
        cfg = self.config
        balances = self.state.balances
        for source, destination in itertools.permutations(balances, 2):
            differential = (self.rng.random() - 0.5) * 2  # percent, -1..+1
            if differential > cfg.differential_threshold_pct and balances[source] >= cfg.bridge_amount:
                profit = differential / 100.0 * cfg.bridge_amount - cfg.bridge_fee_pct * FEE_COST_SCALE
                return BridgeOpportunity(source, destination, differential, profit)
        return None

    def _decide(self, tick: MarketTick) -> Decision:
        state: BridgeState = self.state
        cfg = self.config
        opportunity = self.scan()

        if opportunity is not None and opportunity.profit > 0:
            amount = cfg.bridge_amount
            state.balances[opportunity.source] -= amount
            state.balances[opportunity.destination] += amount * (1 - cfg.bridge_fee_pct / 100.0)
            state.total_bridged += amount
            return Decision(
                action=BUY,
                amount=amount,
                price=tick.price,
                reason=f"Bridged ${amount:.0f} from {opportunity.source} to {opportunity.destination}",
                profit_loss=opportunity.profit,
                metadata={
                    'from': opportunity.source,
                    'to': opportunity.destination,
                    'differential': opportunity.differential,
                    'total_bridged': state.total_bridged,
                },
            )

        total_balance = sum(state.balances.values())
        return Decision.hold(
            tick.price,
            f"Monitoring {len(state.balances)} chains. Total: ${total_balance:.2f}",
            total_balance=total_balance,
        )
