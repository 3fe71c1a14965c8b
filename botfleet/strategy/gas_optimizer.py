"""
Gas price optimisation with transaction batching.

Simulated transactions queue up over time.  When the current gas price
is favourable, either well under its rolling average or under half the
hard ceiling, up to a fixed number of pending transactions are sent as
one batch and the estimated savings are booked as profit.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Deque, List, Optional
import random

from ..config.schema import GasOptimizerConfig
from ..execution.models import Decision, MarketTick, BUY
from .base import StrategyAgent


TX_TYPES = ("swap", "transfer", "stake", "unstake")
PRIORITIES = ("low", "medium", "high")
DEFAULT_AVERAGE_GWEI = 30.0
MIN_GWEI = 20.0
GWEI_RANGE = 60.0
BASE_GAS = 21000


@dataclass
class PendingTransaction:
    id: str
    type: str
    gas_estimate: int
    priority: str


@dataclass
class GasState:
    history: Deque[float] = field(default_factory=deque)
    pending: List[PendingTransaction] = field(default_factory=list)
    total_saved: float = 0.0
    tx_counter: int = 0

    def average(self) -> float:
        if not self.history:
            return DEFAULT_AVERAGE_GWEI
        return sum(self.history) / len(self.history)


class GasOptimizerAgent(StrategyAgent):

    def __init__(self, config: Optional[GasOptimizerConfig] = None, rng: Optional[random.Random] = None,
                 agent_id: str = "gas_optimizer_bot") -> None:
        super().__init__(agent_id, "Gas Optimizer", rng)
        self.config = config or GasOptimizerConfig()
        self.state = GasState(history=deque(maxlen=self.config.window))

    def is_favourable(self, gas_price: float) -> bool:
        avg = self.state.average()
        return gas_price < avg * 0.8 or gas_price < self.config.max_gas_price * 0.5

    def _queue_transaction(self) -> None:
        state: GasState = self.state
        state.tx_counter += 1
        state.pending.append(PendingTransaction(
            id=f"tx_{state.tx_counter}",
            type=self.rng.choice(TX_TYPES),
            gas_estimate=BASE_GAS + int(self.rng.random() * 100000),
            priority=self.rng.choice(PRIORITIES),
        ))

    def _decide(self, tick: MarketTick) -> Decision:
        state: GasState = self.state
        gas_price = MIN_GWEI + self.rng.random() * GWEI_RANGE
        state.history.append(gas_price)

        if self.rng.random() > 0.7:
            self._queue_transaction()

        if state.pending and self.is_favourable(gas_price):
            batch_size = min(len(state.pending), self.config.max_batch_size)
            batch = state.pending[:batch_size]
            del state.pending[:batch_size]
            total_gas = sum(tx.gas_estimate for tx in batch)
            avg = state.average()
            saved = (avg - gas_price) * total_gas / 1e9 * tick.price
            state.total_saved += max(0.0, saved)
            return Decision(
                action=BUY,
                amount=batch_size,
                price=gas_price,
                reason=f"Batched {batch_size} txs at {gas_price:.1f} gwei (avg: {avg:.1f})",
                profit_loss=saved,
                metadata={
                    'batch_size': batch_size,
                    'gas_price': gas_price,
                    'avg_gas_price': avg,
                    'total_gas_saved': state.total_saved,
                    'tx_ids': [tx.id for tx in batch],
                },
            )

        return Decision.hold(
            gas_price,
            f"Gas: {gas_price:.1f} gwei. Pending: {len(state.pending)} txs. Saved: ${state.total_saved:.2f}",
            pending=len(state.pending),
        )
