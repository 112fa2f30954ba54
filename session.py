from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, NamedTuple, Optional, Tuple

import numpy as np
import pandas as pd

from config import BENCHMARK_SYMBOL, STARTING_AMOUNT


def to_day(value) -> pd.Timestamp:
    """Normalize anything date-like to a naive, midnight pd.Timestamp."""
    ts = pd.Timestamp(value)
    if ts.tzinfo is not None:
        ts = ts.tz_localize(None)
    return ts.normalize()


# ------------------------------------------------------------
# Price series (one per symbol)
# ------------------------------------------------------------

@dataclass(frozen=True, eq=False)
class PriceSeries:
    """
    Chronological (date, price) observations for one symbol.

    Arrays are read-only. Sorting is stable, so observations that share a
    date keep the order they were loaded in.
    """
    dates: np.ndarray
    prices: np.ndarray

    @classmethod
    def from_records(cls, dates, prices) -> "PriceSeries":
        d = pd.to_datetime(pd.Series(list(dates), dtype=object)).dt.normalize()
        d = d.to_numpy(dtype="datetime64[ns]")
        p = np.asarray(list(prices), dtype=float)
        if len(d) != len(p):
            raise ValueError("dates and prices must have the same length")

        order = np.argsort(d, kind="stable")
        d = d[order].copy()
        p = p[order].copy()
        d.flags.writeable = False
        p.flags.writeable = False
        return cls(dates=d, prices=p)

    @classmethod
    def empty(cls) -> "PriceSeries":
        return cls.from_records([], [])

    def __len__(self) -> int:
        return len(self.dates)

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame({"date": self.dates.copy(), "price": self.prices.copy()})


# ------------------------------------------------------------
# Positions (one ledger per participant)
# ------------------------------------------------------------

class Position(NamedTuple):
    symbol: str
    start_date: pd.Timestamp
    end_date: pd.Timestamp

    @classmethod
    def make(cls, symbol, start_date, end_date) -> "Position":
        return cls(str(symbol).strip(), to_day(start_date), to_day(end_date))


# ------------------------------------------------------------
# Session state, built once at load time
# ------------------------------------------------------------

@dataclass(frozen=True)
class SessionContext:
    participants: Tuple[str, ...]
    prices: Mapping[str, PriceSeries]
    investments: Mapping[str, Tuple[Position, ...]]
    benchmark: PriceSeries = field(default_factory=PriceSeries.empty)
    benchmark_symbol: str = BENCHMARK_SYMBOL
    starting_amount: float = STARTING_AMOUNT

    @classmethod
    def build(
        cls,
        participants,
        prices: Mapping[str, PriceSeries],
        investments: Mapping,
        benchmark: Optional[PriceSeries] = None,
        benchmark_symbol: str = BENCHMARK_SYMBOL,
        starting_amount: float = STARTING_AMOUNT,
    ) -> "SessionContext":
        """Copy the loaded data into read-only containers."""
        return cls(
            participants=tuple(participants),
            prices=MappingProxyType(dict(prices)),
            investments=MappingProxyType(
                {name: tuple(positions) for name, positions in investments.items()}
            ),
            benchmark=benchmark if benchmark is not None else PriceSeries.empty(),
            benchmark_symbol=benchmark_symbol,
            starting_amount=float(starting_amount),
        )

    def series(self, symbol: str) -> PriceSeries:
        return self.prices.get(symbol) or PriceSeries.empty()

    def positions(self, participant: str) -> Tuple[Position, ...]:
        return self.investments.get(participant, ())
