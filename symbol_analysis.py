import numpy as np
import pandas as pd
from loguru import logger

from financial_math import (
    active_positions,
    evaluation_calendar,
    percent_return,
    price_on_or_after,
    price_on_or_before,
    shares_value,
)
from session import SessionContext, to_day


# ------------------------------------------------------------
# Single symbol
# ------------------------------------------------------------

def single_symbol_series(session: SessionContext, symbol: str) -> pd.DataFrame:
    """Raw (date, price) observations for one symbol, as loaded."""
    series = session.series(symbol)
    if len(series) == 0:
        logger.warning("No price data for {}", symbol)
        return pd.DataFrame(columns=["date", "price"])
    return series.to_frame()


# ------------------------------------------------------------
# Multi-symbol comparison
# ------------------------------------------------------------

def multi_symbol_returns(session: SessionContext, symbols, start_date) -> pd.DataFrame:
    """
    Percent return of putting the starting amount into each symbol on
    `start_date`, for every calendar date from `start_date` onward.

      - `start_date` must be a calendar date; otherwise the result is empty.
      - Symbols without a buy price on/after `start_date` are dropped.
      - Dates with no mark price on/before them are NaN.
    """
    calendar = evaluation_calendar(session.prices)
    start = to_day(start_date)

    if start not in calendar:
        logger.warning("Start date {} not found in price data", start.date())
        return pd.DataFrame(index=pd.DatetimeIndex([], name="date"))

    dates = calendar[calendar.get_loc(start):]
    capital = session.starting_amount
    columns = {}

    for symbol in symbols:
        series = session.series(symbol)
        start_price = price_on_or_after(series, start)
        if start_price is None:
            logger.warning("No start price for {} on {}", symbol, start.date())
            continue

        values = []
        for date in dates:
            px = price_on_or_before(series, date)
            if px is None:
                values.append(np.nan)
            else:
                values.append(percent_return(shares_value(capital, start_price, px), capital))
        columns[symbol] = values

    return pd.DataFrame(columns, index=dates)


# ------------------------------------------------------------
# Month-to-date ROI per held symbol
# ------------------------------------------------------------

def monthly_performance(session: SessionContext, participant: str) -> pd.DataFrame:
    """
    Simple ROI of each symbol the participant holds on the latest calendar
    date, measured from the first of that month to the latest date.

    Symbols missing either price are left out.
    """
    columns = ["symbol", "month_start_price", "latest_price", "roi"]
    calendar = evaluation_calendar(session.prices)
    if len(calendar) == 0:
        return pd.DataFrame(columns=columns)

    latest = calendar[-1]
    month_start = latest.replace(day=1)

    held = []
    for position in active_positions(session.positions(participant), latest):
        if position.symbol not in held:
            held.append(position.symbol)

    rows = []
    for symbol in held:
        series = session.series(symbol)
        first = price_on_or_after(series, month_start)
        last = price_on_or_before(series, latest)
        if first is None or last is None:
            continue
        rows.append({
            "symbol": symbol,
            "month_start_price": first,
            "latest_price": last,
            "roi": (last - first) / first * 100.0,
        })

    return pd.DataFrame(rows, columns=columns)
