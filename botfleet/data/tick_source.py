"""
Market tick sources.

The engine only needs something offering `next_tick()`.  Two sources
are provided:

- `SimulatedTickSource` produces a seeded random walk with bid/ask
  quotes around the price, suitable for simulations and demos.
- `CSVTickSource` replays ticks from a CSV file.  The expected schema is::

      time,price,volume,bid,ask

  ``time`` may hold ISO-formatted timestamps or UNIX epochs.  ``bid``
  and ``ask`` are optional; when missing they are derived from the
  price and the configured spread.

Both raise `ExternalCollaboratorFailure` when they cannot supply a tick.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Protocol
import random
import pandas as pd

from ..config.schema import TickConfig
from ..errors import ExternalCollaboratorFailure
from ..execution.models import MarketTick
from ..utils.timeutils import to_utc, utc_now


class TickSource(Protocol):
    def next_tick(self) -> MarketTick:
        ...


class SimulatedTickSource:
    """Seeded random-walk tick generator.

    Parameters
    ----------
    config : TickConfig
        Symbol, starting price, volatility and spread settings.
    rng : random.Random, optional
        Random source; defaults to an unseeded instance.
    start : timestamp-like, optional
        Timestamp of the first tick; defaults to now (UTC).
    """

    def __init__(self, config: Optional[TickConfig] = None, rng: Optional[random.Random] = None,
                 start=None) -> None:
        self.config = config or TickConfig()
        self.rng = rng if rng is not None else random.Random()
        self.price = float(self.config.base_price)
        self._next_ts = to_utc(start) if start is not None else utc_now()
        self._step = pd.Timedelta(minutes=self.config.interval_minutes)

    def next_tick(self) -> MarketTick:
        cfg = self.config
        move = (self.rng.random() - 0.5) * 2 * cfg.volatility_pct / 100.0
        self.price = max(self.price * (1 + move), 0.01)
        half_spread = self.price * cfg.spread_pct / 100.0 / 2
        # Occasionally widen the book so spread-driven strategies see opportunities
        if self.rng.random() > 0.9:
            half_spread *= 2
        volume = cfg.base_volume * (0.5 + self.rng.random() * 1.5)
        tick = MarketTick(
            symbol=cfg.symbol,
            price=self.price,
            volume=volume,
            bid_price=self.price - half_spread,
            ask_price=self.price + half_spread,
            timestamp=self._next_ts,
        )
        self._next_ts = self._next_ts + self._step
        return tick


class CSVTickSource:
    """Replay ticks from a CSV file, one row per tick."""

    def __init__(self, csv_path: str, symbol: str = "BTC/USDT", spread_pct: float = 0.4) -> None:
        self.csv_path = Path(csv_path)
        self.symbol = symbol
        self.spread_pct = spread_pct
        self._frame = self._load()
        self._position = 0

    def _load(self) -> pd.DataFrame:
        if not self.csv_path.exists():
            raise ExternalCollaboratorFailure(f"Tick CSV not found: {self.csv_path}")
        try:
            df = pd.read_csv(self.csv_path)
        except (OSError, ValueError) as exc:
            raise ExternalCollaboratorFailure(f"Could not read tick CSV {self.csv_path}: {exc}") from exc

        missing = [c for c in ("time", "price") if c not in df.columns]
        if missing:
            raise ExternalCollaboratorFailure(
                f"Unrecognized tick CSV format. Missing columns: {missing}. Found columns: {list(df.columns)}"
            )
        if pd.api.types.is_numeric_dtype(df["time"]):
            df["time"] = pd.to_datetime(df["time"], unit="s", utc=True)
        else:
            df["time"] = pd.to_datetime(df["time"], utc=True)
        df = df.sort_values("time").reset_index(drop=True)

        half = df["price"] * self.spread_pct / 100.0 / 2
        if "bid" not in df.columns:
            df["bid"] = df["price"] - half
        if "ask" not in df.columns:
            df["ask"] = df["price"] + half
        if "volume" not in df.columns:
            df["volume"] = 0.0
        return df

    def __len__(self) -> int:
        return len(self._frame)

    def next_tick(self) -> MarketTick:
        if self._position >= len(self._frame):
            raise ExternalCollaboratorFailure(f"Tick CSV {self.csv_path} is exhausted")
        row = self._frame.iloc[self._position]
        self._position += 1
        return MarketTick(
            symbol=self.symbol,
            price=float(row["price"]),
            volume=float(row["volume"]),
            bid_price=float(row["bid"]),
            ask_price=float(row["ask"]),
            timestamp=to_utc(row["time"]),
        )


def make_tick_source(config: TickConfig, seed: Optional[int] = None) -> TickSource:
    """Return a CSV source when a path is configured, otherwise a simulated one."""
    if config.csv_path:
        return CSVTickSource(config.csv_path, symbol=config.symbol, spread_pct=config.spread_pct)
    return SimulatedTickSource(config, rng=random.Random(seed))
