"""
Plain-text command surface.

`CommandSurface` maps the logical fleet operations to short text
commands and formats every outcome as a plain-text reply.  It is the
boundary at which failures become messages: unknown agents, failing
tick sources and throttled callers all produce a readable answer and
never an exception.

Supported commands::

    /bots                 list agents with status
    /start_bot <name>     activate an agent
    /stop_bot <name>      deactivate an agent
    /execute <name>       evaluate an agent once on a fresh tick
    /metrics [name]       metrics of one agent, or an overview
    /status               system status
    /start_all            activate every agent
    /stop_all             deactivate every agent
    /mev <setting> <val>  change a runtime setting of the MEV agent
    /help                 this list

"start all bots" and "stop all bots" in free text are accepted too.
"""

from __future__ import annotations

from typing import Hashable, List, Optional
import logging

from ..errors import AgentNotFound, CapabilityNotSupported, ExternalCollaboratorFailure
from ..execution.orchestrator import BatchResult, Orchestrator
from .notifier import Notifier
from .rate_limiter import RateLimiter


logger = logging.getLogger(__name__)

HELP_TEXT = """Fleet commands:
/bots - list all agents
/start_bot <name> - start an agent
/stop_bot <name> - stop an agent
/execute <name> - run an agent once
/metrics [name] - performance metrics
/status - system status
/start_all, /stop_all - batch start/stop
/mev <setting> <value> - adjust MEV agent settings"""


class CommandSurface:
    """Text front end over an `Orchestrator`.

    Parameters
    ----------
    orchestrator : Orchestrator
        Fleet to drive.
    tick_source : object with ``next_tick()``
        Supplies the tick used by ``/execute``.
    rate_limiter : RateLimiter, optional
        Per-identity throttle; no throttling when omitted.
    notifier : Notifier, optional
        Receives lifecycle and trade events raised by commands.
    """

    def __init__(self, orchestrator: Orchestrator, tick_source, rate_limiter: Optional[RateLimiter] = None,
                 notifier: Optional[Notifier] = None) -> None:
        self.orchestrator = orchestrator
        self.tick_source = tick_source
        self.rate_limiter = rate_limiter
        self.notifier = notifier
        if notifier is not None and orchestrator.on_event is None:
            orchestrator.on_event = lambda event_type, message: notifier.broadcast(message, event_type)

    # Logical operations

    def list_agents(self) -> str:
        lines = ["Available agents:"]
        for name, status in self.orchestrator.status_all().items():
            state = "Active" if status.is_active else "Inactive"
            lines.append(
                f"- {name}: {state} | {status.strategy} | trades {status.total_trades} | P&L ${status.net_pnl:.2f}"
            )
        return "\n".join(lines)

    def start_agent(self, name: str) -> str:
        try:
            status = self.orchestrator.start(name)
        except AgentNotFound as exc:
            return f"Failed to start {name}: {exc}"
        return f"{name} started. Status: active. Strategy: {status.strategy}"

    def stop_agent(self, name: str) -> str:
        try:
            self.orchestrator.stop(name)
        except AgentNotFound as exc:
            return f"Failed to stop {name}: {exc}"
        return f"{name} stopped."

    def execute_agent(self, name: str) -> str:
        if name not in self.orchestrator:
            return f"Execution failed: {AgentNotFound(name)}"
        try:
            tick = self.tick_source.next_tick()
        except ExternalCollaboratorFailure as exc:
            logger.warning("Tick source failed for /execute %s: %s", name, exc)
            return f"Execution failed: {exc}"
        decision = self.orchestrator.execute_once(name, tick)
        lines = [
            f"{name} execution complete",
            f"Action: {decision.action.upper()}",
            f"Amount: {decision.amount:.6g}",
            f"Price: ${decision.price:.2f}",
            f"Reason: {decision.reason}",
        ]
        if decision.profit_loss:
            lines.append(f"P&L: ${decision.profit_loss:.2f}")
        return "\n".join(lines)

    def agent_metrics(self, name: Optional[str] = None) -> str:
        if not name:
            lines = ["All agents performance overview:"]
            for agent_name, m in self.orchestrator.all_metrics().items():
                lines.append(
                    f"- {agent_name}: win rate {m.win_rate:.1f}% | net ${m.net_profit:.2f} | trades {m.total_trades}"
                )
            return "\n".join(lines)
        try:
            m = self.orchestrator.agent_metrics(name)
        except AgentNotFound as exc:
            return f"Error fetching metrics: {exc}"
        return "\n".join([
            f"{name.upper()} metrics",
            f"Total trades: {m.total_trades} (won {m.winning_trades}, lost {m.losing_trades})",
            f"Win rate: {m.win_rate:.2f}%",
            f"Total profit: ${m.total_profit:.2f}",
            f"Total loss: ${m.total_loss:.2f}",
            f"Net P&L: ${m.net_profit:.2f}",
            f"Avg profit: ${m.average_profit:.2f} | Avg loss: ${m.average_loss:.2f}",
            f"Profit factor: {m.profit_factor:.2f}",
            f"Sharpe ratio: {m.sharpe_ratio:.2f}",
            f"Max drawdown: ${m.max_drawdown:.2f}",
            f"Recovery factor: {m.recovery_factor:.2f}",
        ])

    def system_status(self) -> str:
        s = self.orchestrator.system_status()
        return "\n".join([
            "System status",
            f"Agents: {s.total_agents} total, {s.active_agents} active, {s.online_agents} online",
            f"Total trades: {s.total_trades}",
            f"Win rate: {s.win_rate:.2f}%",
            f"Net P&L: ${s.net_pnl:.2f}",
        ])

    @staticmethod
    def _format_batch(command: str, results: List[BatchResult]) -> str:
        lines = [f"Multi-agent {command.upper()} results:"]
        for r in results:
            lines.append(f"{'[OK]' if r.success else '[FAIL]'} {r.name}: {r.message}")
        return "\n".join(lines)

    def batch_start(self) -> str:
        return self._format_batch('start', self.orchestrator.start_all())

    def batch_stop(self) -> str:
        return self._format_batch('stop', self.orchestrator.stop_all())

    def mev_override(self, setting: str, value: str) -> str:
        try:
            settings = self.orchestrator.admin_override('mev', setting, value)
        except AgentNotFound as exc:
            return f"Override failed: {exc}"
        except CapabilityNotSupported as exc:
            return f"Override failed: {exc}"
        except (KeyError, ValueError) as exc:
            return f"Override failed: {exc.args[0] if exc.args else exc}"
        return "MEV settings: " + ", ".join(f"{k}={v}" for k, v in settings.items())

    # Text dispatch

    def handle(self, identity: Hashable, text: str) -> str:
        """Parse and run one text command on behalf of `identity`."""
        if self.rate_limiter is not None and not self.rate_limiter.check_limit(str(identity)):
            return "Rate limit exceeded. Please wait before sending more commands."

        text = (text or "").strip()
        lowered = text.lower()
        if not text.startswith('/'):
            if 'start all bots' in lowered or 'activate all' in lowered:
                return self.batch_start()
            if 'stop all bots' in lowered or 'deactivate all' in lowered:
                return self.batch_stop()
            return "I didn't understand that command. Try /help for available commands."

        parts = text.split()
        command, args = parts[0].lower(), parts[1:]
        name = args[0] if args else None

        if command == '/help':
            return HELP_TEXT
        if command == '/bots':
            return self.list_agents()
        if command == '/status':
            return self.system_status()
        if command == '/metrics':
            return self.agent_metrics(name)
        if command == '/start_all':
            return self.batch_start()
        if command == '/stop_all':
            return self.batch_stop()
        if command in ('/start_bot', '/stop_bot', '/execute'):
            if name is None:
                return "Please specify an agent name"
            if command == '/start_bot':
                return self.start_agent(name)
            if command == '/stop_bot':
                return self.stop_agent(name)
            return self.execute_agent(name)
        if command == '/mev':
            if len(args) != 2:
                return "Usage: /mev <setting> <value>"
            return self.mev_override(args[0], args[1])
        return f"Unknown command {command}. Try /help for available commands."
