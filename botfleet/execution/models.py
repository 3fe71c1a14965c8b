"""
Tick, decision and ledger models.

These dataclasses represent the objects passed between the tick
source, the strategy agents and the execution ledger.  Keeping them in
a separate module improves readability and makes unit testing easier.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional
import pandas as pd

BUY = 'buy'
SELL = 'sell'
HOLD = 'hold'
ACTIONS = (BUY, SELL, HOLD)


@dataclass(frozen=True)
class MarketTick:
    """A single market observation fed to every agent."""
    symbol: str
    price: float
    volume: float
    bid_price: float
    ask_price: float
    timestamp: pd.Timestamp


@dataclass
class Decision:
    """Outcome of one agent evaluation."""
    action: str  # 'buy', 'sell' or 'hold'
    amount: float
    price: float
    reason: str
    profit_loss: Optional[float] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.action not in ACTIONS:
            raise ValueError(f"Unknown action: {self.action!r}")
        if self.amount < 0:
            raise ValueError(f"Decision amount must be non-negative, got {self.amount}")

    @property
    def is_trade(self) -> bool:
        return self.action != HOLD

    @classmethod
    def hold(cls, price: float, reason: str, **metadata: Any) -> 'Decision':
        """Build a ``hold`` decision.  Holds never carry a profit figure."""
        return cls(action=HOLD, amount=0.0, price=price, reason=reason, metadata=dict(metadata))


@dataclass(frozen=True)
class LedgerEntry:
    """A recorded buy or sell decision.  Immutable once written."""
    id: str
    agent_id: str
    action: str
    amount: float
    price: float
    profit: float
    timestamp: pd.Timestamp
    reason: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)
