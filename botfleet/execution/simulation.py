"""
Simulation engine.

This module contains the `SimulationEngine` class which pulls ticks
from a tick source and feeds each one to the registered agents in
registry order, the fleet analogue of a backtest run.  Agents are
independent, so the order in which they see a tick does not affect
any other agent's outcome.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional
import logging
import pandas as pd

from ..errors import ExternalCollaboratorFailure
from .orchestrator import Orchestrator, SystemStatus
from .models import MarketTick


logger = logging.getLogger(__name__)


@dataclass
class SimulationResult:
    """Summary of one simulation run."""
    cycles_requested: int
    cycles_completed: int
    trades: Dict[str, int] = field(default_factory=dict)
    prices: List[float] = field(default_factory=list)
    timestamps: List[pd.Timestamp] = field(default_factory=list)
    system_status: Optional[SystemStatus] = None
    error: Optional[str] = None


class SimulationEngine:
    """Drive a fleet through a sequence of ticks."""

    def __init__(self, orchestrator: Orchestrator, tick_source) -> None:
        self.orchestrator = orchestrator
        self.tick_source = tick_source

    def _participants(self, only_active: bool) -> List[str]:
        names = self.orchestrator.list_agents()
        if not only_active:
            return names
        return [n for n in names if self.orchestrator.get(n).is_active()]

    def run(self, cycles: int, only_active: bool = True) -> SimulationResult:
        """Run `cycles` evaluation cycles.

        Parameters
        ----------
        cycles : int
            Number of ticks to pull from the source.
        only_active : bool
            When true, only agents whose active flag is set are evaluated.

        Returns
        -------
        SimulationResult
            Trades per agent, the tick prices seen and the final system
            status.  A failing tick source stops the run early; the
            error is recorded on the result.
        """
        result = SimulationResult(cycles_requested=cycles, cycles_completed=0)
        participants = self._participants(only_active)
        result.trades = {name: 0 for name in participants}
        logger.info("Running %d cycles for %d agents", cycles, len(participants))

        for _ in range(cycles):
            try:
                tick: MarketTick = self.tick_source.next_tick()
            except ExternalCollaboratorFailure as exc:
                logger.warning("Tick source failed after %d cycles: %s", result.cycles_completed, exc)
                result.error = str(exc)
                break
            for name in participants:
                decision = self.orchestrator.execute_once(name, tick)
                if decision.is_trade:
                    result.trades[name] += 1
            result.prices.append(tick.price)
            result.timestamps.append(tick.timestamp)
            result.cycles_completed += 1

        result.system_status = self.orchestrator.system_status()
        logger.info(
            "Simulation finished: %d cycles, %d trades, net P&L %.2f",
            result.cycles_completed,
            result.system_status.total_trades,
            result.system_status.net_pnl,
        )
        return result
