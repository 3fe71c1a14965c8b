"""
Report generation utilities.

This module turns a fleet's ledgers into human-readable artefacts: a
CSV file of every recorded trade, a JSON summary of per-agent
performance metrics and a PNG chart of each agent's cumulative P&L.
"""

from __future__ import annotations

import os
import json
from typing import Dict, Optional
import pandas as pd
import matplotlib

# Use non-interactive backend for environments without display
matplotlib.use("Agg")
import matplotlib.pyplot as plt

from ..execution.orchestrator import Orchestrator
from .metrics import compute_metrics, cumulative_profit


def ledger_frame(orchestrator: Orchestrator) -> pd.DataFrame:
    """Concatenate every agent's ledger into one DataFrame."""
    frames = []
    for name in orchestrator.list_agents():
        agent = orchestrator.get(name)
        rows = [
            {
                'agent': name,
                'id': e.id,
                'timestamp': e.timestamp.isoformat(),
                'action': e.action,
                'amount': e.amount,
                'price': e.price,
                'profit': e.profit,
                'reason': e.reason,
            }
            for e in agent.ledger
        ]
        if rows:
            frames.append(pd.DataFrame(rows))
    if not frames:
        return pd.DataFrame(columns=['agent', 'id', 'timestamp', 'action', 'amount', 'price', 'profit', 'reason'])
    return pd.concat(frames, ignore_index=True)


def generate_fleet_report(orchestrator: Orchestrator, out_dir: str = "results") -> Dict[str, str]:
    """Generate report files for the fleet.

    Creates the output directory if it does not exist and writes the
    following files:

    - `ledger.csv` – every recorded trade of every agent
    - `summary.json` – per-agent metrics and the system status
    - `cumulative_pnl.png` – cumulative profit per agent over time

    Returns the paths written, keyed by artefact name.
    """
    os.makedirs(out_dir, exist_ok=True)

    # Ledger CSV
    ledger_path = os.path.join(out_dir, 'ledger.csv')
    ledger_frame(orchestrator).to_csv(ledger_path, index=False)

    # Summary JSON
    summary = {
        'agents': {
            name: dict(compute_metrics(orchestrator.get(name).ledger).to_dict(),
                       strategy=orchestrator.get(name).strategy_name,
                       active=orchestrator.get(name).is_active())
            for name in orchestrator.list_agents()
        },
        'system': orchestrator.system_status().to_dict(),
    }
    summary_path = os.path.join(out_dir, 'summary.json')
    with open(summary_path, 'w', encoding='utf-8') as fh:
        json.dump(summary, fh, indent=2)

    # Cumulative P&L chart
    chart_path = os.path.join(out_dir, 'cumulative_pnl.png')
    _plot_cumulative(orchestrator, chart_path)

    return {'ledger': ledger_path, 'summary': summary_path, 'chart': chart_path}


def _plot_cumulative(orchestrator: Orchestrator, path: str, title: Optional[str] = None) -> None:
    fig, ax = plt.subplots(figsize=(10, 6))
    plotted = 0
    for name in orchestrator.list_agents():
        series = cumulative_profit(orchestrator.get(name).ledger)
        if series.empty:
            continue
        ax.plot(series.index, series.values, label=name, drawstyle='steps-post')
        plotted += 1
    ax.set_title(title or 'Cumulative P&L per agent')
    ax.set_xlabel('Time')
    ax.set_ylabel('Cumulative profit')
    ax.grid(True)
    if plotted:
        ax.legend(loc='best', fontsize='small')
    fig.tight_layout()
    fig.savefig(path)
    plt.close(fig)
