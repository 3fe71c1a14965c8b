import os
import sys

CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, os.pardir))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from botfleet.config.schema import ArbitrageConfig, DCAConfig, GridConfig, MarketMakingConfig, MomentumConfig
from botfleet.strategy.arbitrage import ArbitrageAgent
from botfleet.strategy.dca import DCAAgent
from botfleet.strategy.grid import GridAgent, build_levels
from botfleet.strategy.indicators import ema, momentum_pct, rsi, volume_ratio
from botfleet.strategy.market_making import MarketMakingAgent
from botfleet.strategy.momentum_ai import MomentumAIAgent, DOWN, NEUTRAL, UP
from botfleet.strategy.scalping import ScalpingAgent
from helpers import ScriptedRandom, make_tick

import unittest


class TestGrid(unittest.TestCase):
    def test_levels(self) -> None:
        levels = build_levels(100.0, 2, 10.0)
        self.assertEqual([k for k, _, _ in levels], [0, 1, 2, 3])
        self.assertAlmostEqual(levels[0][2], 95.0)
        self.assertAlmostEqual(levels[1][2], 105.0)
        self.assertAlmostEqual(levels[2][2], 90.0)
        self.assertAlmostEqual(levels[3][2], 110.0)

    def test_fall_and_recover_produces_one_buy(self) -> None:
        agent = GridAgent(GridConfig(levels=1, price_range_pct=1.0, base_price=100.0))
        actions = [agent.evaluate(make_tick(p, hours=i)).action for i, p in enumerate([100.0, 99.0, 100.0])]
        self.assertEqual(actions, ['hold', 'buy', 'hold'])
        self.assertEqual(len(agent.ledger), 1)
        self.assertEqual(agent.ledger[0].metadata['level'], 0)

    def test_first_tick_only_seeds_reference(self) -> None:
        agent = GridAgent(GridConfig(levels=1, price_range_pct=1.0, base_price=100.0))
        self.assertEqual(agent.evaluate(make_tick(50.0)).action, 'hold')
        self.assertEqual(agent.state.last_price, 50.0)

    def test_sell_crossing_books_move_since_last_tick(self) -> None:
        agent = GridAgent(GridConfig(levels=1, price_range_pct=1.0, base_price=100.0, unit_size=0.01))
        agent.evaluate(make_tick(100.0))
        decision = agent.evaluate(make_tick(102.0, hours=1))
        self.assertEqual(decision.action, 'sell')
        self.assertAlmostEqual(decision.profit_loss, 0.02)

    def test_at_most_one_level_per_tick(self) -> None:
        agent = GridAgent(GridConfig(levels=3, price_range_pct=3.0, base_price=100.0))
        agent.evaluate(make_tick(100.0))
        decision = agent.evaluate(make_tick(90.0, hours=1))
        self.assertEqual(decision.action, 'buy')
        self.assertEqual(decision.metadata['level'], 0)
        self.assertEqual(len(agent.ledger), 1)


class TestDCA(unittest.TestCase):
    def test_buys_once_per_interval(self) -> None:
        agent = DCAAgent(DCAConfig(interval_hours=24, investment_amount=100.0))
        first = agent.evaluate(make_tick(100.0, hours=0))
        second = agent.evaluate(make_tick(100.0, hours=1))
        third = agent.evaluate(make_tick(50.0, hours=25))
        self.assertEqual([first.action, second.action, third.action], ['buy', 'hold', 'buy'])
        self.assertAlmostEqual(first.amount, 1.0)
        self.assertAlmostEqual(third.amount, 2.0)
        self.assertAlmostEqual(agent.state.total_invested, 200.0)
        self.assertAlmostEqual(agent.state.average_price, 200.0 / 3)
        self.assertAlmostEqual(third.profit_loss, -50.0)
        self.assertIsNone(second.profit_loss)

    def test_no_two_purchases_within_interval(self) -> None:
        agent = DCAAgent(DCAConfig(interval_hours=24))
        for hour in range(0, 72):
            agent.evaluate(make_tick(100.0, hours=hour))
        stamps = [e.timestamp for e in agent.ledger]
        self.assertEqual(len(stamps), 3)
        for earlier, later in zip(stamps, stamps[1:]):
            self.assertGreaterEqual((later - earlier).total_seconds() / 3600, 24)

    def test_non_positive_price_is_an_anomaly(self) -> None:
        agent = DCAAgent()
        decision = agent.evaluate(make_tick(0.0))
        self.assertEqual(decision.action, 'hold')
        self.assertTrue(decision.metadata['anomaly'])
        self.assertIsNone(agent.state.last_purchase)


class TestArbitrage(unittest.TestCase):
    def test_wide_spread_is_captured(self) -> None:
        agent = ArbitrageAgent(ArbitrageConfig(min_spread_pct=0.5, max_position_size=1.0))
        decision = agent.evaluate(make_tick(100.5, bid=100.0, ask=101.0))
        self.assertEqual(decision.action, 'buy')
        self.assertEqual(decision.price, 100.0)
        self.assertAlmostEqual(decision.profit_loss, 1.0)

    def test_narrow_spread_holds(self) -> None:
        agent = ArbitrageAgent()
        decision = agent.evaluate(make_tick(100.1, bid=100.0, ask=100.2))
        self.assertEqual(decision.action, 'hold')
        self.assertAlmostEqual(decision.metadata['spread'], 0.2)

    def test_zero_bid_becomes_anomalous_hold(self) -> None:
        agent = ArbitrageAgent()
        decision = agent.evaluate(make_tick(1.0, bid=0.0, ask=1.0))
        self.assertEqual(decision.action, 'hold')
        self.assertTrue(decision.metadata.get('anomaly'))
        self.assertEqual(len(agent.ledger), 0)


class TestIndicators(unittest.TestCase):
    def test_ema_with_short_history(self) -> None:
        self.assertEqual(ema([], 9), 0.0)
        self.assertEqual(ema([1.0, 2.0], 9), 2.0)
        self.assertAlmostEqual(ema([1.0, 2.0, 3.0], 3), 2.0)

    def test_rsi_bounds(self) -> None:
        self.assertEqual(rsi([1.0] * 5), 50.0)
        self.assertEqual(rsi([float(i) for i in range(20)]), 100.0)
        self.assertEqual(rsi([float(20 - i) for i in range(20)]), 0.0)

    def test_momentum_and_volume(self) -> None:
        self.assertEqual(momentum_pct([1.0, 2.0], 14), 0.0)
        self.assertAlmostEqual(momentum_pct([100.0] * 13 + [110.0], 14), 10.0)
        self.assertEqual(volume_ratio([5.0] * 3, 20), 1.0)
        self.assertAlmostEqual(volume_ratio([1.0] * 19 + [21.0], 20), 21.0 / 2.0)


class TestScalping(unittest.TestCase):
    def _prices(self):
        rise = [100.0 + 10 * i for i in range(21)]
        fall = [300.0 - i for i in range(1, 15)]
        return rise + fall

    def test_entry_on_oversold_uptrend_and_exit_on_overbought(self) -> None:
        agent = ScalpingAgent()
        decisions = [agent.evaluate(make_tick(p, hours=i)) for i, p in enumerate(self._prices())]
        self.assertEqual([d.action for d in decisions[:-1]], ['hold'] * (len(decisions) - 1))
        entry = decisions[-1]
        self.assertEqual(entry.action, 'buy')
        self.assertEqual(entry.price, 286.0)
        self.assertGreater(entry.metadata['fast_ema'], entry.metadata['slow_ema'])
        self.assertLess(entry.metadata['rsi'], 30)

        exit_ = agent.evaluate(make_tick(400.0, hours=100))
        self.assertEqual(exit_.action, 'sell')
        self.assertAlmostEqual(exit_.profit_loss, (400.0 - 286.0) * 0.1)
        self.assertEqual(agent.state.position, 0.0)

    def test_history_is_bounded(self) -> None:
        agent = ScalpingAgent()
        for i in range(250):
            agent.evaluate(make_tick(100.0, hours=i))
        self.assertEqual(len(agent.state.prices), 100)


class TestMarketMaking(unittest.TestCase):
    def test_bid_then_ask_fill_captures_spread(self) -> None:
        agent = MarketMakingAgent(rng=ScriptedRandom([0.1, 0.9, 0.9, 0.5]))
        buy = agent.evaluate(make_tick(100.0))
        self.assertEqual(buy.action, 'buy')
        self.assertAlmostEqual(buy.price, 99.5)
        sell = agent.evaluate(make_tick(100.0, hours=1))
        self.assertEqual(sell.action, 'sell')
        self.assertAlmostEqual(sell.price, 100.5)
        self.assertAlmostEqual(sell.profit_loss, 1.0 * 0.1)
        # Nothing to sell any more
        self.assertEqual(agent.evaluate(make_tick(100.0, hours=2)).action, 'hold')
        self.assertEqual(agent.evaluate(make_tick(100.0, hours=3)).action, 'hold')
        self.assertEqual(agent.state.inventory, 0.0)

    def test_inventory_is_capped(self) -> None:
        agent = MarketMakingAgent(MarketMakingConfig(order_size=0.25, max_inventory=1.0),
                                  rng=ScriptedRandom([0.0] * 20))
        for i in range(20):
            agent.evaluate(make_tick(100.0, hours=i))
        self.assertLessEqual(agent.state.inventory, agent.config.max_inventory + 1e-9)
        self.assertEqual(len(agent.ledger), 4)

    def test_default_sizes_fill_to_the_cap_and_drain_to_zero(self) -> None:
        agent = MarketMakingAgent(rng=ScriptedRandom([0.0] * 20 + [0.99] * 11))
        for i in range(20):
            agent.evaluate(make_tick(100.0, hours=i))
        self.assertEqual(len(agent.ledger), 10)
        self.assertLessEqual(agent.state.inventory, agent.config.max_inventory + 1e-9)

        for i in range(20, 30):
            self.assertEqual(agent.evaluate(make_tick(100.0, hours=i)).action, 'sell')
        self.assertEqual(agent.state.inventory, 0.0)
        self.assertEqual(agent.evaluate(make_tick(100.0, hours=30)).action, 'hold')
        self.assertEqual(len(agent.ledger), 20)


class TestMomentum(unittest.TestCase):
    def test_predict(self) -> None:
        agent = MomentumAIAgent(MomentumConfig())
        self.assertEqual(agent.predict(3.0, 2.0), UP)
        self.assertEqual(agent.predict(-3.0, 2.0), DOWN)
        self.assertEqual(agent.predict(3.0, 1.0), NEUTRAL)
        self.assertEqual(agent.predict(1.0, 2.0), NEUTRAL)

    def test_open_on_volume_backed_rise_and_close_on_negative_momentum(self) -> None:
        agent = MomentumAIAgent()
        for i in range(19):
            self.assertEqual(agent.evaluate(make_tick(100.0, hours=i, volume=1000.0)).action, 'hold')
        entry = agent.evaluate(make_tick(110.0, hours=19, volume=10000.0))
        self.assertEqual(entry.action, 'buy')
        self.assertEqual(entry.metadata['prediction'], UP)

        self.assertEqual(agent.evaluate(make_tick(105.0, hours=20, volume=1000.0)).action, 'hold')
        exit_ = agent.evaluate(make_tick(90.0, hours=21, volume=1000.0))
        self.assertEqual(exit_.action, 'sell')
        self.assertAlmostEqual(exit_.profit_loss, -2.0)

    def test_history_is_bounded(self) -> None:
        agent = MomentumAIAgent()
        for i in range(250):
            agent.evaluate(make_tick(100.0 + i % 7, hours=i, volume=1000.0 + i))
        self.assertEqual(len(agent.state.prices), agent.config.window)
        self.assertEqual(len(agent.state.volumes), agent.config.window)
        self.assertEqual(agent.state.prices[-1], 100.0 + 249 % 7)


if __name__ == '__main__':
    unittest.main()
