"""
Constant-product automated market maker.

The pool holds reserves of token A and token B with invariant
``k = reserve_a * reserve_b``.  A swap of ``x`` units in pays out::

    out = reserve_out - k / (reserve_in + x * (1 - fee))

The full input, fee included, is added to the input reserve so the
fee stays in the pool and the product never decreases.  Swap direction
and size are drawn from the agent's random source.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple
import random

from ..config.schema import AMMConfig
from ..errors import EvaluationAnomaly
from ..execution.models import Decision, MarketTick, BUY, SELL
from .base import StrategyAgent


MAX_SWAP_A = 10.0
MAX_SWAP_B = 5000.0


@dataclass
class PoolState:
    reserve_a: float
    reserve_b: float
    total_fees: float = 0.0

    @property
    def price(self) -> float:
        """Price of token A in token B."""
        if self.reserve_a <= 0:
            raise EvaluationAnomaly("token A reserve is empty")
        return self.reserve_b / self.reserve_a

    @property
    def k(self) -> float:
        return self.reserve_a * self.reserve_b


def swap_output(reserve_in: float, reserve_out: float, amount_in: float, fee: float) -> float:
    """Output of a constant-product swap with the fee charged on input."""
    k = reserve_in * reserve_out
    denominator = reserve_in + amount_in * (1 - fee)
    if denominator <= 0:
        raise EvaluationAnomaly("swap would empty the input reserve")
    return reserve_out - k / denominator


class AMMAgent(StrategyAgent):

    def __init__(self, config: Optional[AMMConfig] = None, rng: Optional[random.Random] = None,
                 agent_id: str = "amm_bot") -> None:
        super().__init__(agent_id, "AMM", rng)
        self.config = config or AMMConfig()
        self.state = PoolState(reserve_a=self.config.reserve_a, reserve_b=self.config.reserve_b)

    def quote(self, amount_in: float, token_a_in: bool) -> float:
        """Return the output amount for a swap without executing it."""
        pool: PoolState = self.state
        if token_a_in:
            return swap_output(pool.reserve_a, pool.reserve_b, amount_in, self.config.fee)
        return swap_output(pool.reserve_b, pool.reserve_a, amount_in, self.config.fee)

    def swap(self, amount_in: float, token_a_in: bool) -> Tuple[float, float]:
        """Execute a swap against the pool and return ``(amount_out, fee)``."""
        if amount_in < 0:
            raise ValueError("swap input must be non-negative")
        pool: PoolState = self.state
        amount_out = self.quote(amount_in, token_a_in)
        fee_collected = amount_in * self.config.fee
        if token_a_in:
            pool.reserve_a += amount_in
            pool.reserve_b -= amount_out
        else:
            pool.reserve_b += amount_in
            pool.reserve_a -= amount_out
        pool.total_fees += fee_collected
        return amount_out, fee_collected

    def _decide(self, tick: MarketTick) -> Decision:
        pool: PoolState = self.state
        pool_price = pool.price

        if self.rng.random() > 1.0 - self.config.swap_probability:
            token_a_in = self.rng.random() > 0.5
            amount_in = self.rng.random() * (MAX_SWAP_A if token_a_in else MAX_SWAP_B)
            amount_out, fee_collected = self.swap(amount_in, token_a_in)
            return Decision(
                action=BUY if token_a_in else SELL,
                amount=amount_in,
                price=pool_price,
                reason=f"Swap executed: {amount_in:.4f} -> {amount_out:.4f}",
                profit_loss=fee_collected,
                metadata={
                    'reserve_a': pool.reserve_a,
                    'reserve_b': pool.reserve_b,
                    'pool_price': pool.price,
                    'total_fees': pool.total_fees,
                },
            )

        return Decision.hold(
            pool_price,
            f"Pool active. Price: ${pool_price:.2f}, Fees: ${pool.total_fees:.2f}",
            reserve_a=pool.reserve_a,
            reserve_b=pool.reserve_b,
        )
