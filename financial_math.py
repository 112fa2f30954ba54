from typing import Iterable, List, Mapping, Optional

import numpy as np
import pandas as pd

from session import Position, PriceSeries, to_day

# ------------------------------------------------------------
# Point-in-time price lookups
# ------------------------------------------------------------

def _as_datetime64(date) -> np.datetime64:
    return np.datetime64(to_day(date).to_datetime64(), "ns")


def _usable(price: float) -> Optional[float]:
    # Missing and non-positive closes are treated as "no price"
    if price is None or np.isnan(price) or price <= 0:
        return None
    return float(price)


def price_on_or_after(series: Optional[PriceSeries], date) -> Optional[float]:
    """
    Buy price: first observation dated on or after `date`.

    Returns None when every observation precedes `date` or the series is
    empty. When several observations share the selected date, the last one
    loaded wins.
    """
    if series is None or len(series) == 0:
        return None

    dates = series.dates
    pos = dates.searchsorted(_as_datetime64(date), side="left")
    if pos >= len(dates):
        return None

    last_same_day = dates.searchsorted(dates[pos], side="right") - 1
    return _usable(series.prices[last_same_day])


def price_on_or_before(series: Optional[PriceSeries], date) -> Optional[float]:
    """
    Mark-to-market price: last observation dated on or before `date`.

    Returns None when every observation is after `date` or the series is
    empty.
    """
    if series is None or len(series) == 0:
        return None

    pos = series.dates.searchsorted(_as_datetime64(date), side="right") - 1
    if pos < 0:
        return None
    return _usable(series.prices[pos])


# ------------------------------------------------------------
# Investment ledger
# ------------------------------------------------------------

def active_positions(positions: Iterable[Position], date) -> List[Position]:
    """Positions whose [start_date, end_date] range contains `date` (inclusive)."""
    day = to_day(date)
    return [p for p in positions if p.start_date <= day <= p.end_date]


# ------------------------------------------------------------
# Evaluation calendar
# ------------------------------------------------------------

def evaluation_calendar(prices: Mapping[str, PriceSeries]) -> pd.DatetimeIndex:
    """Sorted union of every observation date across all symbols."""
    chunks = [s.dates for s in prices.values() if len(s) > 0]
    if not chunks:
        return pd.DatetimeIndex([], name="date")
    return pd.DatetimeIndex(np.unique(np.concatenate(chunks)), name="date")


# ------------------------------------------------------------
# Returns
# ------------------------------------------------------------

def percent_return(value: float, starting_amount: float) -> float:
    return (value - starting_amount) / starting_amount * 100.0


def shares_value(capital: float, start_price: float, current_price: float) -> float:
    """Capital converted to shares at start_price, marked at current_price."""
    return capital / start_price * current_price


def benchmark_return(benchmark: Optional[PriceSeries]) -> float:
    """
    Percent move of the benchmark from its first to its last observation.

    0.0 when the series is empty or its first price is unusable.
    """
    if benchmark is None or len(benchmark) == 0:
        return 0.0

    first = _usable(benchmark.prices[0])
    last = _usable(benchmark.prices[-1])
    if first is None or last is None:
        return 0.0

    return (last - first) / first * 100.0
