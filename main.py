#!/usr/bin/env python3
import sys

from loguru import logger

from data_loader import load_session, refresh_symbol_files
from log_config import setup_logging
from portfolio_engine import run_engine
from report_formatting import fmt_money_clean, fmt_pct_clean, format_rankings
from session import to_day
from symbol_analysis import monthly_performance, multi_symbol_returns

USAGE = """usage:
  main.py [console]                         standings and ranking table
  main.py export <path.csv>                 write the daily value table
  main.py refresh                           download price files (yfinance)
  main.py symbols SYM [SYM ...] --from DATE compare symbols from DATE
  main.py monthly <participant>             month-to-date ROI per holding
"""


def run_console_report():
    """Runs the engine and prints the standings and ranking table."""
    session = load_session()
    value_table, rankings, standings = run_engine(session)

    print("\n========== FANTASY INVESTMENTS: STANDINGS ==========\n")
    if rankings.empty:
        print("No participants or no price data loaded; nothing to rank.\n")
        return

    print(f"Leader:              {standings['leader']}")
    print(f"{session.benchmark_symbol} return:         {fmt_pct_clean(standings['benchmark_return'])}")
    print(f"Beating benchmark:   {standings['beating_benchmark']} / {standings['participants']}")
    print(f"As of:               {value_table.index.max().date()}")
    print("\n====================================================\n")

    print(format_rankings(rankings).to_string(index=False))
    print()


def run_export(path):
    session = load_session()
    value_table, _, _ = run_engine(session)
    value_table.to_csv(path, index_label="date", date_format="%Y-%m-%d")
    logger.info("Wrote {} rows to {}", len(value_table), path)


def run_refresh():
    session = load_session()
    symbols = list(session.prices.keys())
    if session.benchmark_symbol not in symbols:
        symbols.append(session.benchmark_symbol)
    written = refresh_symbol_files(symbols)
    print(f"Refreshed {len(written)} / {len(symbols)} symbols.")


def run_symbols(args):
    if "--from" not in args:
        print(USAGE)
        return 2
    i = args.index("--from")
    symbols, rest = args[:i], args[i + 1:]
    if not symbols or not rest:
        print(USAGE)
        return 2

    try:
        start = to_day(rest[0])
    except ValueError:
        print(USAGE)
        return 2

    session = load_session()
    returns = multi_symbol_returns(session, symbols, start)
    if returns.empty:
        print("No comparable symbols for that start date.")
        return 0

    last = returns.iloc[-1]
    print(f"\nReturn since {start.date()} (as of {returns.index[-1].date()}):\n")
    for symbol, pct in last.items():
        print(f"  {symbol:<8} {fmt_pct_clean(pct, signed=True):>10}")
    print()
    return 0


def run_monthly(participant):
    session = load_session()
    perf = monthly_performance(session, participant)
    if perf.empty:
        print(f"No monthly performance for {participant}.")
        return

    shown = perf.assign(
        month_start_price=perf["month_start_price"].map(fmt_money_clean),
        latest_price=perf["latest_price"].map(fmt_money_clean),
        roi=perf["roi"].map(lambda v: fmt_pct_clean(v, signed=True)),
    )
    print(shown.to_string(index=False))


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    setup_logging()

    command = argv[0] if argv else "console"

    if command == "console":
        run_console_report()
    elif command == "export" and len(argv) == 2:
        run_export(argv[1])
    elif command == "refresh":
        run_refresh()
    elif command == "symbols":
        return run_symbols(argv[1:])
    elif command == "monthly" and len(argv) == 2:
        run_monthly(argv[1])
    else:
        print(USAGE)
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
