import os
import sys
import random
from dataclasses import dataclass

CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, os.pardir))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from botfleet.config.schema import Config, GridConfig
from botfleet.errors import AgentNotFound, CapabilityNotSupported
from botfleet.execution.models import Decision, BUY
from botfleet.execution.orchestrator import AGENT_FACTORIES, Orchestrator, build_default_fleet
from botfleet.data.tick_source import SimulatedTickSource
from botfleet.strategy.base import StrategyAgent
from botfleet.strategy.grid import GridAgent
from helpers import START, make_tick

import unittest


@dataclass
class _CounterState:
    count: int = 0


class _FlakyAgent(StrategyAgent):
    """Mutates its state, then fails on non-positive prices."""

    def __init__(self) -> None:
        super().__init__("flaky_bot", "Flaky")
        self.state = _CounterState()

    def _decide(self, tick):
        self.state.count += 1
        if tick.price <= 0:
            raise ZeroDivisionError("price must be positive")
        return Decision(BUY, 1.0, tick.price, "always", profit_loss=1.0)


class _LookupAgent(_FlakyAgent):
    """Mutates its state, then fails with a non-arithmetic error."""

    def _decide(self, tick):
        self.state.count += 1
        return {}['missing']


class _StuckAgent(GridAgent):
    """Cannot be switched on."""

    def activate(self) -> None:
        raise RuntimeError("exchange session unavailable")


def _simulate(orchestrator: Orchestrator, cycles: int, seed: int = 3) -> None:
    source = SimulatedTickSource(rng=random.Random(seed), start=START)
    for _ in range(cycles):
        orchestrator.execute_all(source.next_tick())


class TestAgentContract(unittest.TestCase):
    def test_failed_evaluation_restores_state_and_holds(self) -> None:
        agent = _FlakyAgent()
        agent.evaluate(make_tick(10.0))
        decision = agent.evaluate(make_tick(-1.0))
        self.assertEqual(decision.action, 'hold')
        self.assertTrue(decision.metadata['anomaly'])
        self.assertEqual(agent.state.count, 1)
        self.assertEqual(len(agent.ledger), 1)

    def test_any_rule_error_becomes_an_anomaly_hold(self) -> None:
        agent = _LookupAgent()
        with self.assertLogs('botfleet.strategy.base', level='ERROR'):
            decision = agent.evaluate(make_tick(10.0))
        self.assertEqual(decision.action, 'hold')
        self.assertTrue(decision.metadata['anomaly'])
        self.assertIn('KeyError', decision.reason)
        self.assertEqual(agent.state.count, 0)
        self.assertEqual(len(agent.ledger), 0)

    def test_lifecycle_flag(self) -> None:
        agent = GridAgent()
        self.assertFalse(agent.is_active())
        agent.activate()
        agent.activate()
        self.assertTrue(agent.is_active())
        agent.deactivate()
        self.assertFalse(agent.is_active())

    def test_ledgers_never_hold_and_only_grow(self) -> None:
        orchestrator = Orchestrator.from_config(Config(seed=11))
        sizes = {name: 0 for name in orchestrator.list_agents()}
        source = SimulatedTickSource(rng=random.Random(5), start=START)
        for _ in range(200):
            orchestrator.execute_all(source.next_tick())
            for name in orchestrator.list_agents():
                size = len(orchestrator.get(name).ledger)
                self.assertGreaterEqual(size, sizes[name])
                sizes[name] = size
        for name in orchestrator.list_agents():
            for entry in orchestrator.get(name).ledger:
                self.assertIn(entry.action, ('buy', 'sell'))
                self.assertGreaterEqual(entry.amount, 0)

    def test_seeded_fleets_are_reproducible(self) -> None:
        first = Orchestrator.from_config(Config(seed=9))
        second = Orchestrator.from_config(Config(seed=9))
        _simulate(first, 100)
        _simulate(second, 100)
        self.assertEqual(first.all_metrics(), second.all_metrics())


class TestOrchestrator(unittest.TestCase):
    def setUp(self) -> None:
        self.events = []
        self.orchestrator = Orchestrator.from_config(
            Config(), on_event=lambda kind, message: self.events.append((kind, message))
        )

    def test_registry_order(self) -> None:
        self.assertEqual(self.orchestrator.list_agents(), [name for name, _ in AGENT_FACTORIES])
        self.assertEqual(len(self.orchestrator), 14)
        self.assertEqual(len(build_default_fleet(seed=1)), 14)

    def test_unknown_agent(self) -> None:
        with self.assertRaises(AgentNotFound) as ctx:
            self.orchestrator.start('nope')
        self.assertIn("not found", str(ctx.exception))
        with self.assertRaises(AgentNotFound):
            self.orchestrator.execute_once('nope', make_tick(1.0))

    def test_start_stop_are_idempotent_and_emit(self) -> None:
        self.assertTrue(self.orchestrator.start('grid').is_active)
        self.assertTrue(self.orchestrator.start('grid').is_active)
        self.assertFalse(self.orchestrator.stop('grid').is_active)
        self.assertFalse(self.orchestrator.stop('grid').is_active)
        kinds = [kind for kind, _ in self.events]
        self.assertEqual(kinds, ['agent_started', 'agent_started', 'agent_stopped', 'agent_stopped'])

    def test_inactive_agent_can_be_executed_manually(self) -> None:
        orchestrator = Orchestrator(
            {'grid': GridAgent(GridConfig(levels=1, price_range_pct=1.0, base_price=100.0))},
            on_event=lambda kind, message: self.events.append(kind),
        )
        orchestrator.execute_once('grid', make_tick(100.0))
        decision = orchestrator.execute_once('grid', make_tick(99.0, hours=1))
        self.assertEqual(decision.action, 'buy')
        self.assertEqual(self.events, ['trade_executed'])
        self.assertFalse(orchestrator.get('grid').is_active())

    def test_system_status_matches_agent_metrics(self) -> None:
        self.orchestrator.start_all(['grid', 'dca', 'mev'])
        _simulate(self.orchestrator, 150)
        status = self.orchestrator.system_status()
        metrics = self.orchestrator.all_metrics().values()
        self.assertEqual(status.total_agents, 14)
        self.assertEqual(status.active_agents, 3)
        self.assertEqual(status.total_trades, sum(m.total_trades for m in metrics))
        self.assertAlmostEqual(status.net_pnl, sum(m.net_profit for m in metrics))
        wins = sum(m.winning_trades for m in metrics)
        self.assertAlmostEqual(status.win_rate, wins / status.total_trades * 100)

    def test_empty_fleet_status(self) -> None:
        status = Orchestrator({}).system_status()
        self.assertEqual(status.total_trades, 0)
        self.assertEqual(status.win_rate, 0.0)

    def test_batch_reports_each_item(self) -> None:
        results = self.orchestrator.start_all(['grid', 'nope', 'dca'])
        self.assertEqual([r.success for r in results], [True, False, True])
        self.assertIn("not found", results[1].message)
        self.assertTrue(self.orchestrator.get('dca').is_active())

        results = self.orchestrator.stop_all()
        self.assertEqual(len(results), 14)
        self.assertTrue(all(r.success for r in results))
        self.assertEqual(self.orchestrator.system_status().active_agents, 0)

    def test_failing_agent_does_not_stop_the_batch(self) -> None:
        orchestrator = Orchestrator({'broken': _LookupAgent(), 'grid': GridAgent()})
        results = orchestrator.execute_all(make_tick(100.0))
        self.assertEqual([r.success for r in results], [True, True])
        self.assertEqual(orchestrator.get('grid').state.last_price, 100.0)

        orchestrator = Orchestrator({'stuck': _StuckAgent(), 'grid': GridAgent()})
        results = orchestrator.start_all()
        self.assertEqual([r.success for r in results], [False, True])
        self.assertIn("exchange session unavailable", results[0].message)
        self.assertTrue(orchestrator.get('grid').is_active())

    def test_admin_override_capability(self) -> None:
        settings = self.orchestrator.admin_override('mev', 'ethics_enabled', 'off')
        self.assertFalse(settings['ethics_enabled'])
        with self.assertRaises(CapabilityNotSupported):
            self.orchestrator.admin_override('grid', 'ethics_enabled', 'off')

    def test_failing_event_hook_does_not_break_operations(self) -> None:
        def broken(kind, message):
            raise RuntimeError("sink down")

        orchestrator = Orchestrator.from_config(Config(), on_event=broken)
        self.assertTrue(orchestrator.start('grid').is_active)


if __name__ == '__main__':
    unittest.main()
