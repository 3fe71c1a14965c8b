"""
Performance metrics calculations.

This module computes the standard performance statistics of an agent
from its execution ledger.  The computation is a pure function of the
ledger contents: calling it twice on the same entries yields the same
snapshot.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Iterable, List
import statistics
import pandas as pd

from ..execution.models import LedgerEntry


@dataclass(frozen=True)
class Metrics:
    """Risk and performance snapshot derived from a ledger."""
    total_trades: int = 0
    winning_trades: int = 0
    losing_trades: int = 0
    win_rate: float = 0.0
    total_profit: float = 0.0
    total_loss: float = 0.0
    net_profit: float = 0.0
    average_profit: float = 0.0
    average_loss: float = 0.0
    profit_factor: float = 0.0
    sharpe_ratio: float = 0.0
    max_drawdown: float = 0.0
    recovery_factor: float = 0.0

    def to_dict(self) -> dict:
        return asdict(self)


def compute_metrics(entries: Iterable[LedgerEntry]) -> Metrics:
    """Compute a set of summary statistics for a ledger.

    Parameters
    ----------
    entries : iterable of LedgerEntry
        Recorded trades in ledger order.  Holds are never present.

    Returns
    -------
    Metrics
        Snapshot of the performance statistics.
    """
    profits: List[float] = [e.profit for e in entries]
    total_trades = len(profits)
    if total_trades == 0:
        return Metrics()

    wins = [p for p in profits if p > 0]
    losses = [p for p in profits if p < 0]
    winning_trades = len(wins)
    losing_trades = len(losses)

    total_profit = sum(wins)
    total_loss = abs(sum(losses))
    net_profit = total_profit - total_loss
    win_rate = winning_trades / total_trades * 100
    average_profit = total_profit / winning_trades if winning_trades else 0.0
    average_loss = total_loss / losing_trades if losing_trades else 0.0
    profit_factor = total_profit / total_loss if total_loss > 0 else 0.0

    # Population standard deviation, floored at 1 when every profit is equal.
    # pstdev works on exact fractions, so equal floats give exactly 0.
    mean_ret = sum(profits) / total_trades
    std_dev = statistics.pstdev(profits) or 1.0
    sharpe = mean_ret / std_dev

    # Drawdown over the running cumulative profit, peak starting at zero
    peak = 0.0
    running = 0.0
    max_drawdown = 0.0
    for p in profits:
        running += p
        if running > peak:
            peak = running
        drawdown = peak - running
        if drawdown > max_drawdown:
            max_drawdown = drawdown

    recovery_factor = net_profit / max_drawdown if max_drawdown > 0 else 0.0

    return Metrics(
        total_trades=total_trades,
        winning_trades=winning_trades,
        losing_trades=losing_trades,
        win_rate=win_rate,
        total_profit=total_profit,
        total_loss=total_loss,
        net_profit=net_profit,
        average_profit=average_profit,
        average_loss=average_loss,
        profit_factor=profit_factor,
        sharpe_ratio=sharpe,
        max_drawdown=max_drawdown,
        recovery_factor=recovery_factor,
    )


def cumulative_profit(entries: Iterable[LedgerEntry]) -> pd.Series:
    """Return the running cumulative profit indexed by entry timestamp."""
    entries = list(entries)
    if not entries:
        return pd.Series(dtype=float)
    series = pd.Series(
        [e.profit for e in entries],
        index=pd.DatetimeIndex([e.timestamp for e in entries]),
        dtype=float,
    )
    return series.cumsum()
