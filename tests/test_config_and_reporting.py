import os
import sys
import json
import random
import tempfile

CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, os.pardir))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from botfleet.app import main
from botfleet.config.schema import Config, TickConfig, load_config
from botfleet.data.tick_source import CSVTickSource, SimulatedTickSource, make_tick_source
from botfleet.errors import ExternalCollaboratorFailure
from botfleet.execution.orchestrator import Orchestrator
from botfleet.execution.simulation import SimulationEngine
from botfleet.reporting.report import generate_fleet_report, ledger_frame
from botfleet.utils.timeutils import elapsed_hours, to_utc
from helpers import START, make_tick

import contextlib
import io
import pandas as pd
import unittest


class _ShortSource:
    """Delivers a fixed number of ticks, then fails."""

    def __init__(self, count: int) -> None:
        self.count = count
        self.served = 0

    def next_tick(self):
        if self.served >= self.count:
            raise ExternalCollaboratorFailure("no more data")
        self.served += 1
        return make_tick(100.0 + self.served, hours=self.served, bid=100.0, ask=101.0)


class TestConfig(unittest.TestCase):
    def _write(self, text: str) -> str:
        fd, path = tempfile.mkstemp(suffix='.yaml')
        with os.fdopen(fd, 'w', encoding='utf-8') as fh:
            fh.write(text)
        self.addCleanup(os.remove, path)
        return path

    def test_partial_file_keeps_defaults(self) -> None:
        path = self._write(
            "seed: 7\n"
            "strategies:\n"
            "  grid:\n"
            "    levels: 4\n"
            "  liquidity:\n"
            "    pools:\n"
            "      A-B: 10\n"
        )
        cfg = load_config(path)
        self.assertEqual(cfg.seed, 7)
        self.assertEqual(cfg.strategies.grid.levels, 4)
        self.assertEqual(cfg.strategies.grid.price_range_pct, 5.0)
        self.assertEqual(cfg.strategies.liquidity.pools, {'A-B': 10})
        self.assertEqual(cfg.tick.symbol, "BTC/USDT")

    def test_empty_file_is_default(self) -> None:
        self.assertEqual(load_config(self._write("")), Config())

    def test_unknown_key_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            load_config(self._write("strategies:\n  grid:\n    levles: 3\n"))

    def test_quoted_scalars_take_the_field_type(self) -> None:
        cfg = load_config(self._write(
            "seed: \"5\"\n"
            "strategies:\n"
            "  grid:\n"
            "    levels: \"4\"\n"
            "    unit_size: \"0.01\"\n"
            "  mev:\n"
            "    ethics_enabled: \"off\"\n"
            "    min_profit_threshold: 25\n"
        ))
        self.assertEqual(cfg.seed, 5)
        self.assertEqual(cfg.strategies.grid.levels, 4)
        self.assertIsInstance(cfg.strategies.grid.levels, int)
        self.assertEqual(cfg.strategies.grid.unit_size, 0.01)
        self.assertIs(cfg.strategies.mev.ethics_enabled, False)
        self.assertIsInstance(cfg.strategies.mev.min_profit_threshold, float)
        orchestrator = Orchestrator.from_config(cfg)
        self.assertEqual(orchestrator.admin_override('mev', 'ethics_enabled', 'on')['ethics_enabled'], True)

    def test_invalid_scalars_are_rejected(self) -> None:
        for text in ("strategies:\n  grid:\n    levels: 4.5\n",
                     "strategies:\n  grid:\n    unit_size: lots\n",
                     "strategies:\n  mev:\n    ethics_enabled: maybe\n",
                     "strategies: 3\n"):
            with self.subTest(text=text):
                with self.assertRaises(ValueError):
                    load_config(self._write(text))

    def test_null_keeps_default(self) -> None:
        cfg = load_config(self._write("strategies:\n  grid:\n    levels:\n"))
        self.assertEqual(cfg.strategies.grid.levels, 10)


class TestTickSources(unittest.TestCase):
    def test_simulated_source_is_seeded(self) -> None:
        a = SimulatedTickSource(rng=random.Random(1), start=START)
        b = SimulatedTickSource(rng=random.Random(1), start=START)
        ticks_a = [a.next_tick() for _ in range(20)]
        ticks_b = [b.next_tick() for _ in range(20)]
        self.assertEqual(ticks_a, ticks_b)
        for tick in ticks_a:
            self.assertLess(tick.bid_price, tick.ask_price)
        self.assertEqual(ticks_a[1].timestamp - ticks_a[0].timestamp, pd.Timedelta(hours=1))

    def test_csv_source_replays_and_exhausts(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, 'ticks.csv')
            pd.DataFrame({
                'time': ['2024-01-01T01:00:00Z', '2024-01-01T00:00:00Z'],
                'price': [101.0, 100.0],
                'volume': [5.0, 6.0],
            }).to_csv(path, index=False)
            source = CSVTickSource(path, symbol='X', spread_pct=2.0)
            first = source.next_tick()
            self.assertEqual(first.price, 100.0)
            self.assertAlmostEqual(first.bid_price, 99.0)
            self.assertAlmostEqual(first.ask_price, 101.0)
            self.assertEqual(source.next_tick().price, 101.0)
            with self.assertRaises(ExternalCollaboratorFailure):
                source.next_tick()

    def test_csv_source_errors(self) -> None:
        with self.assertRaises(ExternalCollaboratorFailure):
            CSVTickSource('/nonexistent/ticks.csv')
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, 'bad.csv')
            pd.DataFrame({'close': [1.0]}).to_csv(path, index=False)
            with self.assertRaises(ExternalCollaboratorFailure):
                CSVTickSource(path)

    def test_factory(self) -> None:
        self.assertIsInstance(make_tick_source(TickConfig(), seed=1), SimulatedTickSource)


class TestSimulationAndReport(unittest.TestCase):
    def test_only_active_agents_participate(self) -> None:
        orchestrator = Orchestrator.from_config(Config())
        orchestrator.start('arbitrage')
        result = SimulationEngine(orchestrator, _ShortSource(10)).run(5)
        self.assertEqual(result.cycles_completed, 5)
        self.assertEqual(result.trades, {'arbitrage': 5})
        self.assertIsNone(result.error)
        self.assertEqual(len(orchestrator.get('grid').ledger), 0)

    def test_failing_source_stops_run(self) -> None:
        orchestrator = Orchestrator.from_config(Config())
        result = SimulationEngine(orchestrator, _ShortSource(3)).run(10, only_active=False)
        self.assertEqual(result.cycles_completed, 3)
        self.assertEqual(len(result.prices), 3)
        self.assertIn("no more data", result.error)
        self.assertEqual(result.system_status.total_agents, 14)

    def test_report_files(self) -> None:
        orchestrator = Orchestrator.from_config(Config(seed=4))
        orchestrator.start_all()
        source = SimulatedTickSource(rng=random.Random(4), start=START)
        SimulationEngine(orchestrator, source).run(60)
        with tempfile.TemporaryDirectory() as tmp:
            paths = generate_fleet_report(orchestrator, out_dir=tmp)
            for path in paths.values():
                self.assertTrue(os.path.exists(path))
            with open(paths['summary'], encoding='utf-8') as fh:
                summary = json.load(fh)
            self.assertEqual(len(summary['agents']), 14)
            frame = pd.read_csv(paths['ledger'])
            self.assertEqual(len(frame), summary['system']['total_trades'])
            self.assertEqual(len(ledger_frame(orchestrator)), len(frame))


class TestTimeutils(unittest.TestCase):
    def test_to_utc(self) -> None:
        self.assertEqual(to_utc(0), pd.Timestamp("1970-01-01", tz="UTC"))
        self.assertEqual(to_utc("2024-01-01 00:00").tzname(), "UTC")
        self.assertEqual(to_utc(pd.Timestamp("2024-01-01 01:00", tz="Europe/Berlin")).hour, 0)

    def test_elapsed_hours(self) -> None:
        self.assertIsNone(elapsed_hours(None, START))
        self.assertEqual(elapsed_hours(START, START + pd.Timedelta(minutes=90)), 1.5)


class TestApp(unittest.TestCase):
    def test_simulate_and_command_modes(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            config_path = os.path.join(tmp, 'config.yaml')
            out_dir = os.path.join(tmp, 'results')
            with open(config_path, 'w', encoding='utf-8') as fh:
                fh.write(f"seed: 3\nreport:\n  out_dir: {json.dumps(out_dir)}\n")

            stdout = io.StringIO()
            with contextlib.redirect_stdout(stdout):
                main(['simulate', '--config', config_path, '--cycles', '10', '--agents', 'grid', 'dca'])
            self.assertIn("Cycles: 10/10", stdout.getvalue())
            self.assertTrue(os.path.exists(os.path.join(out_dir, 'summary.json')))

            stdout = io.StringIO()
            with contextlib.redirect_stdout(stdout):
                main(['command', '/start_bot grid', '/status', '--config', config_path])
            self.assertIn("grid started", stdout.getvalue())
            self.assertIn("1 active", stdout.getvalue())


if __name__ == '__main__':
    unittest.main()
