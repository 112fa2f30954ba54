import numpy as np
import pandas as pd
from loguru import logger

from financial_math import (
    active_positions,
    benchmark_return,
    evaluation_calendar,
    percent_return,
    price_on_or_after,
    price_on_or_before,
    shares_value,
)
from session import SessionContext, to_day

RANKING_COLUMNS = ["name", "value", "profit_loss", "percent_return", "vs_benchmark"]


# ============================================================
# VALUATION
# ============================================================

def value_portfolio_on_date(positions, prices, date, starting_amount, unresolved=None) -> float:
    """
    Portfolio value for one participant on one date.

      - No active positions: the starting amount, held as cash.
      - Otherwise capital is split equally across active positions. Each slice
        buys at the first price on/after its start date and is marked at the
        last price on/before `date`.
      - A slice with either price missing is carried at its allotted capital.

    `unresolved`, when given, collects positions that hit the fallback.
    """
    active = active_positions(positions, date)
    if not active:
        return starting_amount

    slice_capital = starting_amount / len(active)
    total = 0.0

    for position in active:
        series = prices.get(position.symbol)
        start_price = price_on_or_after(series, position.start_date)
        current_price = price_on_or_before(series, date)

        if start_price is None or current_price is None:
            total += slice_capital
            if unresolved is not None:
                unresolved.add(position)
            continue

        total += shares_value(slice_capital, start_price, current_price)

    return total


def build_portfolio_value_table(session: SessionContext) -> pd.DataFrame:
    """
    Dense value table: one row per evaluation-calendar date, one column per
    participant. Empty (no rows) when no price data was loaded.
    """
    calendar = evaluation_calendar(session.prices)
    participants = list(session.participants)

    if len(calendar) == 0:
        logger.warning("No price data available; portfolio value table is empty")
        return pd.DataFrame(columns=participants, index=calendar, dtype=float)

    table = pd.DataFrame(index=calendar, columns=participants, dtype=float)

    for participant in participants:
        positions = session.positions(participant)
        unresolved = set()

        values = [
            value_portfolio_on_date(
                positions,
                session.prices,
                date,
                session.starting_amount,
                unresolved,
            )
            for date in calendar
        ]
        table[participant] = np.asarray(values, dtype=float)

        for position in sorted(unresolved):
            logger.warning(
                "{}: no usable price for {} (held {} to {}); valued at cost basis on some dates",
                participant,
                position.symbol,
                position.start_date.date(),
                position.end_date.date(),
            )

    return table


def latest_values(value_table: pd.DataFrame, starting_amount: float) -> pd.Series:
    """Last row of the value table; missing cells fall back to the starting amount."""
    if value_table.empty:
        return pd.Series(dtype=float)
    return value_table.iloc[-1].astype(float).fillna(starting_amount)


# ============================================================
# RANKING & METRICS
# ============================================================

def calculate_rankings(value_table: pd.DataFrame, session: SessionContext) -> pd.DataFrame:
    """
    Rank participants by latest portfolio value (descending).

    Equal values keep participant order (stable sort).
    """
    latest = latest_values(value_table, session.starting_amount)
    if latest.empty:
        return pd.DataFrame(columns=RANKING_COLUMNS)

    start = session.starting_amount
    bench = benchmark_return(session.benchmark)

    rows = []
    for name, value in latest.items():
        pct = percent_return(value, start)
        rows.append({
            "name": name,
            "value": float(value),
            "profit_loss": float(value) - start,
            "percent_return": pct,
            "vs_benchmark": pct - bench,
        })

    rankings = pd.DataFrame(rows, columns=RANKING_COLUMNS)
    return rankings.sort_values("value", ascending=False, kind="mergesort").reset_index(drop=True)


def rankings_by_return(rankings: pd.DataFrame) -> pd.DataFrame:
    """Same entries ordered by percent return (descending); input is left untouched."""
    return rankings.sort_values(
        "percent_return", ascending=False, kind="mergesort"
    ).reset_index(drop=True)


def summarize_standings(rankings: pd.DataFrame, bench_return: float) -> dict:
    """Headline numbers: leader, benchmark return, how many beat it."""
    if rankings.empty:
        return {
            "leader": None,
            "benchmark_return": bench_return,
            "beating_benchmark": 0,
            "participants": 0,
        }

    return {
        "leader": rankings["name"].iloc[0],
        "benchmark_return": bench_return,
        "beating_benchmark": int((rankings["percent_return"] > bench_return).sum()),
        "participants": int(len(rankings)),
    }


def benchmark_value_series(session: SessionContext, calendar: pd.DatetimeIndex) -> pd.Series:
    """
    Benchmark scaled to the starting amount on its first observation.

    Only calendar dates with an exact benchmark observation get a value;
    the rest are NaN.
    """
    out = pd.Series(np.nan, index=calendar, dtype=float, name=session.benchmark_symbol)
    bench = session.benchmark
    if len(bench) == 0 or len(calendar) == 0:
        return out

    first = float(bench.prices[0])
    if np.isnan(first) or first <= 0:
        return out

    # Last observation wins for duplicated dates
    by_date = pd.Series(bench.prices, index=pd.DatetimeIndex(bench.dates))
    by_date = by_date[~by_date.index.duplicated(keep="last")]

    matched = by_date.reindex(calendar)
    return (matched / first * session.starting_amount).rename(session.benchmark_symbol)


# ============================================================
# ONE-SHOT PIPELINE
# ============================================================

def run_engine(session: SessionContext):
    """
    Runs the full valuation pipeline over a loaded session.

    Returns (value_table, rankings, standings).
    """
    value_table = build_portfolio_value_table(session)
    rankings = calculate_rankings(value_table, session)
    standings = summarize_standings(rankings, benchmark_return(session.benchmark))

    if not value_table.empty:
        logger.info(
            "Valued {} participants over {} dates ({} to {})",
            len(value_table.columns),
            len(value_table),
            to_day(value_table.index.min()).date(),
            to_day(value_table.index.max()).date(),
        )

    return value_table, rankings, standings
