import os
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta

import pandas as pd
import yfinance as yf
from loguru import logger

from config import (
    BENCHMARK_SYMBOL,
    DATA_DIR,
    DOWNLOAD_ATTEMPTS,
    INVESTMENTS_SUBDIR,
    LOAD_WORKERS,
    PARTICIPANTS,
    PRICE_LOOKBACK_YEARS,
    STARTING_AMOUNT,
    SYMBOLS_SUBDIR,
    YFINANCE_TICKERS,
)
from session import Position, PriceSeries, SessionContext


def investments_dir(data_dir: str = DATA_DIR) -> str:
    return os.path.join(data_dir, INVESTMENTS_SUBDIR)


def symbols_dir(data_dir: str = DATA_DIR) -> str:
    return os.path.join(data_dir, SYMBOLS_SUBDIR)


# ------------------------------------------------------------
# Load one symbol's price history (date,value or date,price)
# ------------------------------------------------------------

def load_price_series(path: str) -> PriceSeries:
    df = pd.read_csv(path, dtype=str)
    df.columns = [c.strip().lower() for c in df.columns]
    if df.columns.duplicated().any():
        raise ValueError(f"Price file {path} has duplicate column names")

    if "price" not in df.columns and "value" in df.columns:
        df = df.rename(columns={"value": "price"})

    required = {"date", "price"}
    if not required.issubset(df.columns):
        raise ValueError(f"Price file {path} must contain columns: date, value (or price)")

    df["date"] = pd.to_datetime(df["date"].str.strip(), errors="coerce")
    df["price"] = pd.to_numeric(df["price"].str.strip(), errors="coerce")

    bad = df["date"].isna() | df["price"].isna()
    if bad.any():
        logger.warning("{}: dropped {} unparseable rows", path, int(bad.sum()))
        df = df[~bad]

    return PriceSeries.from_records(df["date"], df["price"])


# ------------------------------------------------------------
# Load one participant's investment ledger
# ------------------------------------------------------------

def load_investments(path: str) -> tuple:
    df = pd.read_csv(path, dtype=str)
    df.columns = [c.strip().lower() for c in df.columns]
    if df.columns.duplicated().any():
        raise ValueError(f"Investments file {path} has duplicate column names")

    required = {"symbol", "start_date", "end_date"}
    if not required.issubset(df.columns):
        raise ValueError(f"Investments file {path} must contain columns: {sorted(required)}")

    df["symbol"] = df["symbol"].fillna("").str.strip()
    df["start_date"] = pd.to_datetime(df["start_date"].str.strip(), errors="coerce")
    df["end_date"] = pd.to_datetime(df["end_date"].str.strip(), errors="coerce")

    bad = (df["symbol"] == "") | df["start_date"].isna() | df["end_date"].isna()
    if bad.any():
        logger.warning("{}: dropped {} incomplete investment rows", path, int(bad.sum()))
        df = df[~bad]

    return tuple(
        Position.make(row.symbol, row.start_date, row.end_date)
        for row in df.itertuples(index=False)
    )


# ------------------------------------------------------------
# Participants = ledger files present in the investments folder
# ------------------------------------------------------------

def discover_participants(data_dir: str = DATA_DIR) -> list:
    folder = investments_dir(data_dir)
    if not os.path.isdir(folder):
        logger.warning("Investments folder {} does not exist", folder)
        return []

    names = [
        os.path.splitext(f)[0]
        for f in os.listdir(folder)
        if f.lower().endswith(".csv")
    ]
    return sorted(names)


# ------------------------------------------------------------
# Fail-soft wrappers: a broken file degrades to empty data
# ------------------------------------------------------------

def _load_symbol_soft(data_dir: str, symbol: str) -> PriceSeries:
    path = os.path.join(symbols_dir(data_dir), f"{symbol}.csv")
    try:
        return load_price_series(path)
    except (OSError, ValueError, pd.errors.ParserError) as e:
        logger.warning("Failed to load price data for {}: {}", symbol, e)
        return PriceSeries.empty()


def _load_ledger_soft(data_dir: str, participant: str) -> tuple:
    path = os.path.join(investments_dir(data_dir), f"{participant}.csv")
    try:
        return load_investments(path)
    except (OSError, ValueError, pd.errors.ParserError) as e:
        logger.warning("Failed to load investments for {}: {}", participant, e)
        return ()


def load_session(
    data_dir: str = DATA_DIR,
    participants=None,
    benchmark_symbol: str = BENCHMARK_SYMBOL,
    starting_amount: float = STARTING_AMOUNT,
    max_workers: int = LOAD_WORKERS,
) -> SessionContext:
    """
    Load every ledger and price file in parallel and freeze the result.

      - participants: explicit list; falls back to config.PARTICIPANTS and
        then to the files found in the investments folder.
      - Prices are loaded for every symbol held by any participant, plus the
        benchmark (kept separately; it only joins the calendar if held).
    """
    if participants is None:
        participants = PARTICIPANTS or discover_participants(data_dir)
    participants = list(dict.fromkeys(participants))

    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        ledgers = dict(zip(
            participants,
            pool.map(lambda p: _load_ledger_soft(data_dir, p), participants),
        ))

        symbols = []
        for name in participants:
            for position in ledgers[name]:
                if position.symbol not in symbols:
                    symbols.append(position.symbol)

        bench_future = pool.submit(_load_symbol_soft, data_dir, benchmark_symbol)
        prices = dict(zip(
            symbols,
            pool.map(lambda s: _load_symbol_soft(data_dir, s), symbols),
        ))
        benchmark = bench_future.result()

    logger.info(
        "Loaded {} participants, {} symbols, benchmark {} ({} rows)",
        len(participants),
        len(prices),
        benchmark_symbol,
        len(benchmark),
    )

    return SessionContext.build(
        participants=participants,
        prices=prices,
        investments=ledgers,
        benchmark=benchmark,
        benchmark_symbol=benchmark_symbol,
        starting_amount=starting_amount,
    )


# ------------------------------------------------------------
# Download price history and extract closes robustly
# ------------------------------------------------------------

def download_price_history(symbol: str, years_back: int = PRICE_LOOKBACK_YEARS) -> pd.DataFrame:
    """Daily closes for one symbol as a (date, value) frame."""
    start_date = (datetime.today() - timedelta(days=365 * years_back)).strftime("%Y-%m-%d")

    ticker = YFINANCE_TICKERS.get(symbol, symbol)

    # Retry logic to handle occasional network/data gaps
    raw = pd.DataFrame()
    for attempt in range(DOWNLOAD_ATTEMPTS):
        try:
            raw = yf.download(
                ticker,
                start=start_date,
                progress=False,
                auto_adjust=False,
            )
            if raw is not None and not raw.empty:
                break
        except Exception as e:
            logger.warning("yfinance download for {} failed (attempt {}): {}", symbol, attempt + 1, e)

    if raw is None or raw.empty:
        raise RuntimeError(f"yfinance returned no data for {symbol} after {DOWNLOAD_ATTEMPTS} attempts.")

    # Yahoo sends UTC; the data files are naive dates
    if isinstance(raw.index, pd.DatetimeIndex) and raw.index.tz is not None:
        raw.index = raw.index.tz_localize(None)

    # Handle both MultiIndex and flat columns cases
    if isinstance(raw.columns, pd.MultiIndex):
        level0 = raw.columns.get_level_values(0)
        field = "Close" if "Close" in level0 else level0[0]
        closes = raw.xs(field, axis=1, level=0)
    else:
        field = "Close" if "Close" in raw.columns else raw.columns[0]
        closes = raw[field]

    if isinstance(closes, pd.DataFrame):
        closes = closes.iloc[:, 0]

    closes = closes.dropna().sort_index()
    return pd.DataFrame({
        "date": pd.to_datetime(closes.index).strftime("%Y-%m-%d"),
        "value": closes.astype(float).round(4).values,
    })


def refresh_symbol_files(symbols, data_dir: str = DATA_DIR, years_back: int = PRICE_LOOKBACK_YEARS) -> list:
    """Overwrite <data_dir>/symbols/<SYM>.csv for each symbol. Returns symbols written."""
    folder = symbols_dir(data_dir)
    os.makedirs(folder, exist_ok=True)

    written = []
    for symbol in symbols:
        try:
            df = download_price_history(symbol, years_back)
        except RuntimeError as e:
            logger.warning("Skipping {}: {}", symbol, e)
            continue

        df.to_csv(os.path.join(folder, f"{symbol}.csv"), index=False)
        logger.info("Wrote {} rows for {}", len(df), symbol)
        written.append(symbol)

    return written
