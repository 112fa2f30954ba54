# config.py
import os

# Starting capital every participant begins the game with (GBP)
STARTING_AMOUNT = 50.0

CURRENCY_SYMBOL = "£"

# Reference index for vs-benchmark returns
BENCHMARK_SYMBOL = "SPX"

# ============================================================
# DATA LOCATIONS
# ============================================================
# <DATA_DIR>/investments/<participant>.csv  -> symbol,start_date,end_date
# <DATA_DIR>/symbols/<symbol>.csv           -> date,value
DATA_DIR = os.environ.get("FANTASY_DATA_DIR", "data")
INVESTMENTS_SUBDIR = "investments"
SYMBOLS_SUBDIR = "symbols"

# Explicit participant list. Empty = use every ledger file in the investments dir.
PARTICIPANTS = [
    p.strip()
    for p in os.environ.get("FANTASY_PARTICIPANTS", "").split(",")
    if p.strip()
]

# Parallel file loads (one task per participant / symbol)
LOAD_WORKERS = 8

# Price refresh (yfinance)
PRICE_LOOKBACK_YEARS = 1
DOWNLOAD_ATTEMPTS = 3

# ============================================================
# LOGGING
# ============================================================
LOG_LEVEL = os.environ.get("FANTASY_LOG_LEVEL", "INFO")
LOG_DIR = os.environ.get("FANTASY_LOG_DIR", "")  # empty = stderr only
LOG_ROTATION = "1 day"
LOG_RETENTION = "30 days"

# Data-file symbol -> Yahoo Finance ticker, where they differ
YFINANCE_TICKERS = {
    "SPX": "^GSPC",
}
