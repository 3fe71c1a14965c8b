"""
Fleet orchestrator.

This module contains the `Orchestrator` class which owns the registry
of strategy agents, toggles their lifecycle flags, runs manual
evaluations and aggregates per-agent metrics into a system-wide view.
The registry is fixed at construction; there is no runtime add/remove.

Batch operations apply the single-agent operation to every registered
name and report each outcome independently.
"""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass, asdict
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple
import logging
import random

from ..config.schema import Config
from ..errors import AgentNotFound, CapabilityNotSupported
from ..reporting.metrics import Metrics
from ..strategy.base import Agent, SupportsAdminOverride
from ..strategy.amm import AMMAgent
from ..strategy.arbitrage import ArbitrageAgent
from ..strategy.bridge import BridgeAgent
from ..strategy.dca import DCAAgent
from ..strategy.defi import DeFiAgent
from ..strategy.gas_optimizer import GasOptimizerAgent
from ..strategy.grid import GridAgent
from ..strategy.lending import LendingAgent
from ..strategy.liquidity import LiquidityAgent
from ..strategy.market_making import MarketMakingAgent
from ..strategy.mev import MEVAgent
from ..strategy.mining import MiningAgent
from ..strategy.momentum_ai import MomentumAIAgent
from ..strategy.scalping import ScalpingAgent
from .models import Decision, MarketTick


logger = logging.getLogger(__name__)

# Event names passed to the optional notifier hook
AGENT_STARTED = 'agent_started'
AGENT_STOPPED = 'agent_stopped'
TRADE_EXECUTED = 'trade_executed'

EventHook = Callable[[str, str], None]


@dataclass
class AgentStatus:
    """Orchestrator view of one registered agent."""
    name: str
    is_online: bool
    is_active: bool
    strategy: str
    total_trades: int
    net_pnl: float


@dataclass
class SystemStatus:
    """Fleet-wide aggregate."""
    total_agents: int
    active_agents: int
    online_agents: int
    total_trades: int
    win_rate: float
    net_pnl: float

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class BatchResult:
    """Outcome of one item of a batch operation."""
    name: str
    success: bool
    message: str


# Registry order is the agent order used everywhere (listing, batches, seeds)
AGENT_FACTORIES: Tuple[Tuple[str, Callable[..., Agent]], ...] = (
    ('grid', GridAgent),
    ('dca', DCAAgent),
    ('arbitrage', ArbitrageAgent),
    ('scalping', ScalpingAgent),
    ('market_making', MarketMakingAgent),
    ('momentum_ai', MomentumAIAgent),
    ('mev', MEVAgent),
    ('amm', AMMAgent),
    ('liquidity', LiquidityAgent),
    ('defi', DeFiAgent),
    ('bridge', BridgeAgent),
    ('lending', LendingAgent),
    ('gas_optimizer', GasOptimizerAgent),
    ('mining', MiningAgent),
)


def build_default_fleet(config: Optional[Config] = None, seed: Optional[int] = None) -> "OrderedDict[str, Agent]":
    """Instantiate all fourteen agents from configuration.

    Agent ``i`` in registry order gets its own ``random.Random(seed + i)``
    so runs are reproducible and agents never share a random stream.
    """
    config = config or Config()
    base_seed = config.seed if seed is None else seed
    fleet: "OrderedDict[str, Agent]" = OrderedDict()
    for index, (name, factory) in enumerate(AGENT_FACTORIES):
        section = getattr(config.strategies, name)
        fleet[name] = factory(config=section, rng=random.Random(base_seed + index))
    logger.info("Initialised %d trading agents", len(fleet))
    return fleet


class Orchestrator:
    """Registry and lifecycle manager for a fixed set of agents.

    Parameters
    ----------
    agents : mapping of str to Agent
        Registered agents keyed by name, in listing order.
    on_event : callable, optional
        ``on_event(event_type, message)`` invoked after lifecycle changes
        and trades.  Failures inside the hook are logged and ignored.
    """

    def __init__(self, agents: Dict[str, Agent], on_event: Optional[EventHook] = None) -> None:
        self._agents: "OrderedDict[str, Agent]" = OrderedDict(agents)
        self.on_event = on_event

    @classmethod
    def from_config(cls, config: Optional[Config] = None, seed: Optional[int] = None,
                    on_event: Optional[EventHook] = None) -> "Orchestrator":
        return cls(build_default_fleet(config, seed), on_event=on_event)

    def _emit(self, event_type: str, message: str) -> None:
        if self.on_event is None:
            return
        try:
            self.on_event(event_type, message)
        except Exception as exc:  # hook errors are logged, never raised
            logger.warning("Event hook failed for %s: %s", event_type, exc)

    def get(self, name: str) -> Agent:
        try:
            return self._agents[name]
        except KeyError:
            raise AgentNotFound(name) from None

    def list_agents(self) -> List[str]:
        return list(self._agents)

    def __contains__(self, name: object) -> bool:
        return name in self._agents

    def __len__(self) -> int:
        return len(self._agents)

    # Single-agent operations

    def start(self, name: str) -> AgentStatus:
        agent = self.get(name)
        agent.activate()
        logger.info("Agent %s started", name)
        self._emit(AGENT_STARTED, f"{name} agent activated")
        return self.status(name)

    def stop(self, name: str) -> AgentStatus:
        agent = self.get(name)
        agent.deactivate()
        logger.info("Agent %s stopped", name)
        self._emit(AGENT_STOPPED, f"{name} agent deactivated")
        return self.status(name)

    def execute_once(self, name: str, tick: MarketTick) -> Decision:
        """Evaluate one agent on `tick`.  Inactive agents may be run manually."""
        agent = self.get(name)
        decision = agent.evaluate(tick)
        if decision.is_trade:
            self._emit(
                TRADE_EXECUTED,
                f"{name}: {decision.action} {decision.amount:.6g} @ {decision.price:.2f}",
            )
        return decision

    def agent_metrics(self, name: str) -> Metrics:
        return self.get(name).metrics()

    def all_metrics(self) -> Dict[str, Metrics]:
        return {name: agent.metrics() for name, agent in self._agents.items()}

    def status(self, name: str) -> AgentStatus:
        agent = self.get(name)
        metrics = agent.metrics()
        return AgentStatus(
            name=name,
            is_online=True,
            is_active=agent.is_active(),
            strategy=agent.strategy_name,
            total_trades=metrics.total_trades,
            net_pnl=metrics.net_profit,
        )

    def status_all(self) -> Dict[str, AgentStatus]:
        return {name: self.status(name) for name in self._agents}

    def system_status(self) -> SystemStatus:
        """Aggregate the fleet.  The win rate is weighted by trade count."""
        total_trades = 0
        total_wins = 0
        net_pnl = 0.0
        active = 0
        for agent in self._agents.values():
            metrics = agent.metrics()
            total_trades += metrics.total_trades
            total_wins += metrics.winning_trades
            net_pnl += metrics.net_profit
            if agent.is_active():
                active += 1
        return SystemStatus(
            total_agents=len(self._agents),
            active_agents=active,
            online_agents=len(self._agents),
            total_trades=total_trades,
            win_rate=total_wins / total_trades * 100 if total_trades > 0 else 0.0,
            net_pnl=net_pnl,
        )

    # Capability operations

    def admin_override(self, name: str, setting: str, value: Any) -> dict:
        """Change a runtime setting on an agent supporting admin overrides."""
        agent = self.get(name)
        if not isinstance(agent, SupportsAdminOverride):
            raise CapabilityNotSupported(f"Agent '{name}' does not support admin overrides")
        agent.apply_admin_override(setting, value)
        return agent.admin_settings()

    # Batch operations

    def _batch(self, names: Iterable[str], op: Callable[[str], Any], done: str) -> List[BatchResult]:
        results: List[BatchResult] = []
        for name in names:
            try:
                op(name)
            except Exception as exc:  # recorded per item, the batch carries on
                logger.warning("Batch operation failed for %s: %s", name, exc)
                results.append(BatchResult(name=name, success=False, message=str(exc)))
            else:
                results.append(BatchResult(name=name, success=True, message=done))
        return results

    def start_all(self, names: Optional[Iterable[str]] = None) -> List[BatchResult]:
        return self._batch(names if names is not None else self.list_agents(), self.start, "Started")

    def stop_all(self, names: Optional[Iterable[str]] = None) -> List[BatchResult]:
        return self._batch(names if names is not None else self.list_agents(), self.stop, "Stopped")

    def execute_all(self, tick: MarketTick, names: Optional[Iterable[str]] = None) -> List[BatchResult]:
        return self._batch(
            names if names is not None else self.list_agents(),
            lambda name: self.execute_once(name, tick),
            "Executed",
        )
