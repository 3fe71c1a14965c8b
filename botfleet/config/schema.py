"""
Configuration schema and loader.

This module defines dataclasses that mirror the expected structure of
the YAML configuration file (`config.yaml`).  A helper function
`load_config()` reads a YAML file from disk and returns an instance
of `Config` populated with the defaults for any missing fields.

Each strategy variant has its own section under ``strategies``.  When
adding a tunable, add the field to the matching dataclass; the loader
picks it up automatically.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, is_dataclass
from typing import List, Dict, Any, Type, TypeVar
import yaml


T = TypeVar('T')


@dataclass
class TickConfig:
    """Simulated market tick source.

    Attributes
    ----------
    symbol : str
        Instrument label attached to every tick.
    base_price : float
        Starting price of the random walk.
    volatility_pct : float
        Maximum per-tick move, in percent of the current price.
    spread_pct : float
        Distance between bid and ask, in percent of the price.
    base_volume : float
        Mean volume reported per tick.
    interval_minutes : int
        Timestamp increment between consecutive ticks.
    csv_path : str
        When set, ticks are replayed from this CSV instead of simulated.
    """

    symbol: str = "BTC/USDT"
    base_price: float = 50000.0
    volatility_pct: float = 1.0
    spread_pct: float = 0.4
    base_volume: float = 1_000_000.0
    interval_minutes: int = 60
    csv_path: str = ""


@dataclass
class RateLimitConfig:
    """Sliding window applied per caller identity by the command surface."""

    max_requests: int = 10
    window_seconds: float = 60.0


@dataclass
class ReportConfig:
    out_dir: str = "results"


@dataclass
class GridConfig:
    levels: int = 10
    price_range_pct: float = 5.0
    base_price: float = 50000.0
    unit_size: float = 0.01


@dataclass
class DCAConfig:
    interval_hours: float = 24.0
    investment_amount: float = 100.0


@dataclass
class ArbitrageConfig:
    min_spread_pct: float = 0.5
    max_position_size: float = 1.0


@dataclass
class ScalpingConfig:
    fast_period: int = 9
    slow_period: int = 21
    rsi_period: int = 14
    unit_size: float = 0.1
    window: int = 100


@dataclass
class MarketMakingConfig:
    spread_pct: float = 0.5
    order_size: float = 0.1
    max_inventory: float = 1.0


@dataclass
class MomentumConfig:
    momentum_period: int = 14
    volume_period: int = 20
    momentum_threshold: float = 2.0
    volume_ratio_threshold: float = 1.5
    unit_size: float = 0.1
    window: int = 100


@dataclass
class MEVConfig:
    min_profit_threshold: float = 10.0
    max_gas_price: float = 100.0
    ethics_enabled: bool = True
    detection_probability: float = 0.1


@dataclass
class AMMConfig:
    reserve_a: float = 1000.0
    reserve_b: float = 50000.0
    fee: float = 0.003
    swap_probability: float = 0.3


@dataclass
class LiquidityConfig:
    total_capital: float = 10000.0
    rebalance_threshold_pct: float = 5.0
    pools: Dict[str, float] = field(
        default_factory=lambda: {"ETH-USDC": 15.0, "BTC-USDC": 12.0, "ETH-BTC": 8.0}
    )


@dataclass
class DeFiConfig:
    harvest_threshold: float = 50.0
    protocols: Dict[str, List[float]] = field(
        default_factory=lambda: {"Aave": [5000.0, 8.0], "Compound": [3000.0, 6.0], "Curve": [2000.0, 15.0]}
    )


@dataclass
class BridgeConfig:
    bridge_fee_pct: float = 0.1
    bridge_amount: float = 1000.0
    differential_threshold_pct: float = 0.5
    chains: Dict[str, float] = field(
        default_factory=lambda: {"ethereum": 5000.0, "polygon": 2000.0, "arbitrum": 1500.0, "optimism": 1500.0}
    )


@dataclass
class LendingConfig:
    min_health_factor: float = 1.5
    target_health_factor: float = 2.0
    repay_fraction: float = 0.2
    repay_fee_pct: float = 1.0


@dataclass
class GasOptimizerConfig:
    max_gas_price: float = 50.0
    max_batch_size: int = 5
    window: int = 100


@dataclass
class MiningConfig:
    electricity_cost: float = 0.10
    btc_per_th_day: float = 0.0000001
    reactivation_buffer: float = 0.2


@dataclass
class StrategiesConfig:
    """Per-variant tunables, one section per registered agent."""

    grid: GridConfig = field(default_factory=GridConfig)
    dca: DCAConfig = field(default_factory=DCAConfig)
    arbitrage: ArbitrageConfig = field(default_factory=ArbitrageConfig)
    scalping: ScalpingConfig = field(default_factory=ScalpingConfig)
    market_making: MarketMakingConfig = field(default_factory=MarketMakingConfig)
    momentum_ai: MomentumConfig = field(default_factory=MomentumConfig)
    mev: MEVConfig = field(default_factory=MEVConfig)
    amm: AMMConfig = field(default_factory=AMMConfig)
    liquidity: LiquidityConfig = field(default_factory=LiquidityConfig)
    defi: DeFiConfig = field(default_factory=DeFiConfig)
    bridge: BridgeConfig = field(default_factory=BridgeConfig)
    lending: LendingConfig = field(default_factory=LendingConfig)
    gas_optimizer: GasOptimizerConfig = field(default_factory=GasOptimizerConfig)
    mining: MiningConfig = field(default_factory=MiningConfig)


@dataclass
class Config:
    """Root configuration for the fleet.

    Attributes
    ----------
    seed : int
        Base seed for the per-agent random sources.  Agent ``i`` in the
        registry receives ``random.Random(seed + i)``.
    tick : TickConfig
        Market tick source settings.
    strategies : StrategiesConfig
        Tunables for each strategy variant.
    rate_limit : RateLimitConfig
        Command surface throttling.
    report : ReportConfig
        Output location of simulation reports.
    """

    seed: int = 42
    tick: TickConfig = field(default_factory=TickConfig)
    strategies: StrategiesConfig = field(default_factory=StrategiesConfig)
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)
    report: ReportConfig = field(default_factory=ReportConfig)


_TRUE = ("true", "yes", "on", "1")
_FALSE = ("false", "no", "off", "0")


def _coerce(name: str, default: Any, value: Any) -> Any:
    """Cast a scalar YAML value to the type of the field's default."""
    if value is None:
        return default
    if is_dataclass(default):
        raise ValueError(f"Section '{name}' must be a mapping, got {value!r}")
    try:
        if isinstance(default, bool):
            if isinstance(value, str):
                lowered = value.strip().lower()
                if lowered in _TRUE or lowered in _FALSE:
                    return lowered in _TRUE
                raise ValueError(value)
            return bool(value)
        if isinstance(default, int):
            number = float(value)
            if not number.is_integer():
                raise ValueError(value)
            return int(number)
        if isinstance(default, (float, str)):
            return type(default)(value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid value for '{name}': {value!r}") from None
    return value


def _build(cls: Type[T], data: Dict[str, Any]) -> T:
    """Construct dataclass `cls` from a dictionary, recursing into nested sections.

    Unknown keys raise ``ValueError`` so that typos in the YAML file do
    not silently fall back to defaults.  Scalars are cast to the type of
    the field default; nulls keep the default.
    """
    known = {f.name: f for f in fields(cls)}
    unknown = set(data) - set(known)
    if unknown:
        raise ValueError(f"Unknown configuration keys for {cls.__name__}: {sorted(unknown)}")
    kwargs: Dict[str, Any] = {}
    for name, value in data.items():
        default = getattr(cls(), name)
        if is_dataclass(default) and isinstance(value, dict):
            kwargs[name] = _build(type(default), value)
        else:
            kwargs[name] = _coerce(name, default, value)
    return cls(**kwargs)


def load_config(path: str) -> Config:
    """Load a configuration file from the given YAML path.

    Parameters
    ----------
    path : str
        Path to the YAML file.

    Returns
    -------
    Config
        A populated configuration object.  Missing fields are filled with
        the defaults defined in the dataclasses.
    """
    with open(path, "r", encoding="utf-8") as fh:
        raw: Dict[str, Any] = yaml.safe_load(fh) or {}

    # Sections absent from the file keep their dataclass defaults; plain
    # dict values such as pool tables replace the default table wholesale
    return _build(Config, raw)
