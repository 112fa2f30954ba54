# tests/conftest.py
from pathlib import Path

import pytest
from loguru import logger

from session import Position, PriceSeries, SessionContext


@pytest.fixture(autouse=True)
def disable_file_logger():
    logger.remove()
    logger.add(lambda msg: None)
    yield


def series(*rows):
    """series(("2026-01-01", 10), ("2026-01-31", 20))"""
    return PriceSeries.from_records([d for d, _ in rows], [p for _, p in rows])


def make_session(prices, investments, benchmark=None, starting_amount=50.0, participants=None):
    if participants is None:
        participants = list(investments.keys())
    return SessionContext.build(
        participants=participants,
        prices=prices,
        investments={
            name: [Position.make(*p) for p in positions]
            for name, positions in investments.items()
        },
        benchmark=benchmark,
        starting_amount=starting_amount,
    )


@pytest.fixture
def league():
    """
    Two symbols over four dates, three participants:

      Alpha  - AAA for the whole period
      Bravo  - AAA and BBB together from 01-05
      Charlie- nothing (cash)
    """
    prices = {
        "AAA": series(("2026-01-02", 10), ("2026-01-05", 12), ("2026-01-06", 15), ("2026-01-07", 20)),
        "BBB": series(("2026-01-05", 40), ("2026-01-07", 30)),
    }
    investments = {
        "Alpha": [("AAA", "2026-01-01", "2026-12-31")],
        "Bravo": [("AAA", "2026-01-05", "2026-12-31"), ("BBB", "2026-01-05", "2026-12-31")],
        "Charlie": [],
    }
    benchmark = series(("2026-01-02", 100), ("2026-01-05", 105), ("2026-01-07", 110))
    return make_session(prices, investments, benchmark=benchmark)


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    """
    <tmp>/investments/{Alpha,Bravo}.csv
    <tmp>/symbols/{AAA,BBB,SPX}.csv
    """
    inv = tmp_path / "investments"
    sym = tmp_path / "symbols"
    inv.mkdir()
    sym.mkdir()

    (inv / "Alpha.csv").write_text(
        "symbol,start_date,end_date\n"
        "AAA,2026-01-01,2026-12-31\n"
    )
    (inv / "Bravo.csv").write_text(
        "symbol,start_date,end_date\n"
        "AAA,2026-01-05,2026-12-31\n"
        "BBB,2026-01-05,2026-12-31\n"
    )

    # Deliberately out of order; loader sorts
    (sym / "AAA.csv").write_text(
        "date,value\n"
        "2026-01-06,15\n"
        "2026-01-02,10\n"
        "2026-01-05,12\n"
        "2026-01-07,20\n"
    )
    (sym / "BBB.csv").write_text(
        "date,value\n"
        "2026-01-05,40\n"
        "2026-01-07,30\n"
    )
    (sym / "SPX.csv").write_text(
        "date,value\n"
        "2026-01-02,100\n"
        "2026-01-07,110\n"
    )
    return tmp_path
