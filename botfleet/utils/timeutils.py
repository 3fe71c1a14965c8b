"""
Timestamp utilities.

This module centralises timestamp handling.  All ticks and ledger
entries carry timezone-aware UTC `pandas.Timestamp` values; the helpers
below normalise user supplied values and compute elapsed time.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Union
import pandas as pd


TimestampLike = Union[pd.Timestamp, datetime, str, int, float]


def to_utc(ts: TimestampLike) -> pd.Timestamp:
    """Convert a timestamp-like value to a UTC `pandas.Timestamp`.

    If the timestamp is naive, it is assumed to be in UTC already.
    Integers and floats are interpreted as UNIX epoch seconds.
    """
    if isinstance(ts, (int, float)):
        ts = pd.Timestamp(ts, unit='s')
    elif not isinstance(ts, pd.Timestamp):
        ts = pd.Timestamp(ts)
    if ts.tzinfo is None:
        return ts.tz_localize("UTC")
    return ts.tz_convert("UTC")


def utc_now() -> pd.Timestamp:
    return pd.Timestamp.now(tz="UTC")


def elapsed_hours(since: Optional[pd.Timestamp], now: pd.Timestamp) -> Optional[float]:
    """Return hours between `since` and `now`, or `None` if `since` is unset."""
    if since is None:
        return None
    return (to_utc(now) - to_utc(since)).total_seconds() / 3600.0
