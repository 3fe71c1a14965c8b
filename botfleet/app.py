"""
Application entry point.

This module defines a simple command-line interface for the fleet:
running simulations, printing status and driving the text command
surface.  It leverages the modules under `botfleet/` to load
configuration, build the agents, run them and generate reports.
"""

from __future__ import annotations

import argparse
import logging
import os
import random
from typing import List, Optional

from .config.schema import Config, load_config
from .control.commands import CommandSurface
from .control.notifier import Notifier
from .control.rate_limiter import RateLimiter
from .data.tick_source import make_tick_source
from .execution.orchestrator import Orchestrator
from .execution.simulation import SimulationEngine
from .reporting.report import generate_fleet_report


logger = logging.getLogger(__name__)


def _setup_logging(verbose: bool) -> None:
    """Configure logging for the application."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
    )


def _load(path: str) -> Config:
    if os.path.exists(path):
        return load_config(path)
    logger.info("Config file %s not found, using defaults", path)
    return Config()


def main(argv: Optional[List[str]] = None) -> None:
    """Parse command-line arguments and dispatch to the appropriate mode."""
    parser = argparse.ArgumentParser(description="Strategy agent fleet simulator")
    parser.add_argument('mode', choices=['simulate', 'status', 'command'], help="Operating mode")
    parser.add_argument('commands', nargs='*', help="Text commands for 'command' mode")
    parser.add_argument('--config', default='config.yaml', help="Path to configuration YAML file")
    parser.add_argument('--cycles', type=int, default=100, help="Number of ticks to simulate")
    parser.add_argument('--seed', type=int, default=None, help="Override the configured random seed")
    parser.add_argument('--agents', nargs='+', default=None,
                        help="Agents to start before simulating (default: all)")
    parser.add_argument('-v', '--verbose', action='store_true', help="Enable debug logging")
    args = parser.parse_args(argv)

    _setup_logging(args.verbose)

    config = _load(args.config)
    if args.seed is not None:
        config.seed = args.seed

    orchestrator = Orchestrator.from_config(config)
    # The tick stream gets its own seed so agent streams stay independent of it
    tick_source = make_tick_source(config.tick, seed=random.Random(config.seed).getrandbits(32))

    if args.mode == 'simulate':
        for failed in (r for r in orchestrator.start_all(args.agents) if not r.success):
            logging.warning("Could not start %s: %s", failed.name, failed.message)
        engine = SimulationEngine(orchestrator, tick_source)
        result = engine.run(args.cycles, only_active=True)
        paths = generate_fleet_report(orchestrator, out_dir=config.report.out_dir)
        status = result.system_status
        print(f"Cycles: {result.cycles_completed}/{result.cycles_requested}")
        print(f"Trades: {status.total_trades}  Win rate: {status.win_rate:.2f}%  Net P&L: ${status.net_pnl:.2f}")
        logging.info("Simulation complete. Results saved to %s", os.path.dirname(paths['summary']))
    elif args.mode == 'status':
        engine = SimulationEngine(orchestrator, tick_source)
        engine.run(args.cycles, only_active=False)
        surface = CommandSurface(orchestrator, tick_source)
        print(surface.system_status())
        print(surface.list_agents())
    else:
        limiter = RateLimiter(config.rate_limit.max_requests, config.rate_limit.window_seconds)
        notifier = Notifier()
        notifier.subscribe('cli')
        surface = CommandSurface(orchestrator, tick_source, rate_limiter=limiter, notifier=notifier)
        for text in args.commands:
            print(f"> {text}")
            print(surface.handle('cli', text))


if __name__ == '__main__':
    main()
