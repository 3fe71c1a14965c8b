"""
Append-only execution ledger.

Every agent owns exactly one ledger.  Only buy and sell decisions are
recorded; a ``hold`` is rejected outright so that the metrics engine
never has to filter them out.
"""

from __future__ import annotations

from typing import Iterator, List, Tuple
import pandas as pd

from .models import Decision, LedgerEntry, HOLD


class ExecutionLedger:
    """Ordered, append-only record of one agent's trades."""

    def __init__(self, agent_id: str) -> None:
        self.agent_id = agent_id
        self._entries: List[LedgerEntry] = []
        self._sequence = 0

    def append(self, decision: Decision, timestamp: pd.Timestamp) -> LedgerEntry:
        """Record a completed buy/sell decision and return the new entry."""
        if decision.action == HOLD:
            raise ValueError("hold decisions are never recorded in the ledger")
        if decision.amount < 0:
            raise ValueError(f"ledger amounts must be non-negative, got {decision.amount}")
        self._sequence += 1
        entry = LedgerEntry(
            id=f"{self.agent_id}_{self._sequence}",
            agent_id=self.agent_id,
            action=decision.action,
            amount=float(decision.amount),
            price=float(decision.price),
            profit=float(decision.profit_loss or 0.0),
            timestamp=timestamp,
            reason=decision.reason,
            metadata=dict(decision.metadata),
        )
        self._entries.append(entry)
        return entry

    def entries(self) -> Tuple[LedgerEntry, ...]:
        """Return a read-only snapshot of the recorded entries."""
        return tuple(self._entries)

    def to_frame(self) -> pd.DataFrame:
        """Return the ledger as a DataFrame, one row per entry."""
        rows = [
            {
                'id': e.id,
                'agent_id': e.agent_id,
                'timestamp': e.timestamp,
                'action': e.action,
                'amount': e.amount,
                'price': e.price,
                'profit': e.profit,
                'reason': e.reason,
            }
            for e in self._entries
        ]
        return pd.DataFrame(
            rows,
            columns=['id', 'agent_id', 'timestamp', 'action', 'amount', 'price', 'profit', 'reason'],
        )

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[LedgerEntry]:
        return iter(tuple(self._entries))
