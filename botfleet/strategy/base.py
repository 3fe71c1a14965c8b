"""
Strategy agent contract.

Every strategy variant is exposed to the rest of the engine through the
`Agent` interface.  `StrategyAgent` implements that interface by
composition: it owns the execution ledger, the active flag, a lock and
the injected random source, while a variant only supplies `_decide()`
over its own private state dataclass stored in ``self.state``.

A single evaluation is atomic as seen by callers.  The variant's state
is snapshotted before `_decide()` runs and restored if the decision step
raises, and the ledger append is the last thing that happens.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional, Protocol, Tuple, runtime_checkable
import copy
import logging
import random
import threading

from ..errors import EvaluationAnomaly
from ..execution.ledger import ExecutionLedger
from ..execution.models import Decision, LedgerEntry, MarketTick
from ..reporting.metrics import Metrics, compute_metrics


logger = logging.getLogger(__name__)


class Agent(ABC):
    """Interface shared by all strategy agents."""

    agent_id: str
    strategy_name: str

    @abstractmethod
    def evaluate(self, tick: MarketTick) -> Decision:
        """Turn a market observation into a decision, updating state."""

    @abstractmethod
    def activate(self) -> None:
        ...

    @abstractmethod
    def deactivate(self) -> None:
        ...

    @abstractmethod
    def is_active(self) -> bool:
        ...

    @abstractmethod
    def metrics(self) -> Metrics:
        ...

    @property
    @abstractmethod
    def ledger(self) -> Tuple[LedgerEntry, ...]:
        ...


@runtime_checkable
class SupportsAdminOverride(Protocol):
    """Optional capability for agents whose tunables can be changed at runtime."""

    def admin_settings(self) -> dict:
        ...

    def apply_admin_override(self, setting: str, value: Any) -> None:
        ...


class StrategyAgent(Agent):
    """Base implementation wiring a decision rule to a ledger.

    Parameters
    ----------
    agent_id : str
        Identifier used as prefix of ledger entry ids.
    strategy_name : str
        Human readable strategy label.
    rng : random.Random, optional
        Random source for simulated market activity.  Tests inject a
        scripted instance to force outcomes.
    """

    def __init__(self, agent_id: str, strategy_name: str, rng: Optional[random.Random] = None) -> None:
        self.agent_id = agent_id
        self.strategy_name = strategy_name
        self.rng = rng if rng is not None else random.Random()
        self.state: Any = None
        self._ledger = ExecutionLedger(agent_id)
        self._active = False
        self._lock = threading.Lock()

    @abstractmethod
    def _decide(self, tick: MarketTick) -> Decision:
        """Apply the variant's rule to one tick and mutate ``self.state``."""

    def evaluate(self, tick: MarketTick) -> Decision:
        with self._lock:
            snapshot = copy.deepcopy(self.state)
            try:
                decision = self._decide(tick)
            except (ArithmeticError, ValueError) as exc:
                # Covers EvaluationAnomaly and ZeroDivisionError alike
                self.state = snapshot
                kind = 'anomaly' if isinstance(exc, EvaluationAnomaly) else type(exc).__name__
                logger.warning("%s: evaluation %s on %s @ %s: %s",
                               self.agent_id, kind, tick.symbol, tick.price, exc)
                return Decision.hold(tick.price, f"Evaluation anomaly: {exc}", anomaly=True)
            except Exception as exc:
                # A faulty rule never escapes evaluate; the traceback goes to the log
                self.state = snapshot
                logger.exception("%s: evaluation failed on %s @ %s",
                                 self.agent_id, tick.symbol, tick.price)
                return Decision.hold(tick.price, f"Evaluation anomaly: {type(exc).__name__}: {exc}", anomaly=True)
            if decision.is_trade:
                entry = self._ledger.append(decision, tick.timestamp)
                logger.info("%s: %s %.6g @ %.6g (pnl=%.4f) %s",
                            self.agent_id, decision.action, decision.amount,
                            decision.price, entry.profit, decision.reason)
            else:
                logger.debug("%s: hold - %s", self.agent_id, decision.reason)
            return decision

    def activate(self) -> None:
        self._active = True

    def deactivate(self) -> None:
        self._active = False

    def is_active(self) -> bool:
        return self._active

    def metrics(self) -> Metrics:
        return compute_metrics(self._ledger.entries())

    @property
    def ledger(self) -> Tuple[LedgerEntry, ...]:
        return self._ledger.entries()

    def _locked(self):
        """Lock serialising a runtime change with evaluations of this agent."""
        return self._lock

    def __repr__(self) -> str:
        return f"{type(self).__name__}(agent_id={self.agent_id!r}, active={self._active})"
