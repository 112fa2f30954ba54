import pandas as pd
import pytest

import data_loader
from data_loader import (
    discover_participants,
    load_investments,
    load_price_series,
    load_session,
    refresh_symbol_files,
)
from portfolio_engine import build_portfolio_value_table
from session import Position


def test_load_price_series_sorts_and_accepts_value_column(data_dir):
    s = load_price_series(str(data_dir / "symbols" / "AAA.csv"))

    assert s.prices.tolist() == [10.0, 12.0, 15.0, 20.0]
    assert pd.Timestamp(s.dates[0]) == pd.Timestamp("2026-01-02")


def test_load_price_series_price_column_and_bad_rows(tmp_path):
    path = tmp_path / "X.csv"
    path.write_text("Date , Price\n2026-01-02,10\nnot-a-date,11\n2026-01-03,\n2026-01-04,12.5\n")

    s = load_price_series(str(path))

    assert s.prices.tolist() == [10.0, 12.5]


def test_load_price_series_missing_columns(tmp_path):
    path = tmp_path / "X.csv"
    path.write_text("day,close\n2026-01-02,10\n")

    with pytest.raises(ValueError):
        load_price_series(str(path))


def test_load_investments(data_dir):
    ledger = load_investments(str(data_dir / "investments" / "Bravo.csv"))

    assert ledger == (
        Position.make("AAA", "2026-01-05", "2026-12-31"),
        Position.make("BBB", "2026-01-05", "2026-12-31"),
    )


def test_load_investments_drops_incomplete_rows(tmp_path):
    path = tmp_path / "P.csv"
    path.write_text("symbol,start_date,end_date\n AAA ,2026-01-01,2026-02-01\n,2026-01-01,2026-02-01\nBBB,,2026-02-01\n")

    ledger = load_investments(str(path))

    assert [p.symbol for p in ledger] == ["AAA"]


def test_discover_participants(data_dir):
    (data_dir / "investments" / "notes.txt").write_text("ignore me")

    assert discover_participants(str(data_dir)) == ["Alpha", "Bravo"]


def test_discover_participants_missing_folder(tmp_path):
    assert discover_participants(str(tmp_path / "nowhere")) == []


def test_load_session(data_dir):
    session = load_session(str(data_dir))

    assert session.participants == ("Alpha", "Bravo")
    assert set(session.prices) == {"AAA", "BBB"}
    assert len(session.benchmark) == 2
    assert session.benchmark_symbol == "SPX"

    table = build_portfolio_value_table(session)
    assert table["Alpha"].iloc[-1] == pytest.approx(100.0)


def test_session_is_read_only(data_dir):
    session = load_session(str(data_dir))

    with pytest.raises(TypeError):
        session.prices["NEW"] = None
    with pytest.raises(AttributeError):
        session.participants = ("X",)


def test_load_session_degrades_missing_resources(data_dir):
    (data_dir / "symbols" / "BBB.csv").unlink()
    (data_dir / "symbols" / "SPX.csv").unlink()

    session = load_session(str(data_dir), participants=["Alpha", "Bravo", "Ghost"])

    assert session.positions("Ghost") == ()
    assert len(session.prices["BBB"]) == 0
    assert len(session.benchmark) == 0

    # BBB slice stays at cost basis
    table = build_portfolio_value_table(session)
    assert table["Bravo"].iloc[-1] == pytest.approx(25 / 12 * 20 + 25.0)
    assert table["Ghost"].tolist() == pytest.approx([50.0] * len(table))


def test_load_session_malformed_file_is_empty(data_dir):
    (data_dir / "investments" / "Alpha.csv").write_text("who,when\nx,y\n")

    session = load_session(str(data_dir))

    assert session.positions("Alpha") == ()


def test_load_session_case_duplicate_headers_are_empty(data_dir):
    (data_dir / "symbols" / "BBB.csv").write_text("Date,date,value\n2026-01-05,2026-01-05,40\n")
    (data_dir / "investments" / "Alpha.csv").write_text(
        "Symbol,symbol,start_date,end_date\nAAA,AAA,2026-01-01,2026-12-31\n"
    )

    session = load_session(str(data_dir))

    assert len(session.prices["BBB"]) == 0
    assert session.positions("Alpha") == ()
    assert len(session.positions("Bravo")) == 2


def test_load_price_series_rejects_duplicate_columns(tmp_path):
    path = tmp_path / "X.csv"
    path.write_text("Date,date,value\n2026-01-05,2026-01-05,40\n")

    with pytest.raises(ValueError):
        load_price_series(str(path))


def test_load_session_deduplicates_participants(data_dir):
    session = load_session(str(data_dir), participants=["Bravo", "Alpha", "Bravo", "Alpha"])

    assert session.participants == ("Bravo", "Alpha")

    table = build_portfolio_value_table(session)
    assert list(table.columns) == ["Bravo", "Alpha"]


def test_refresh_symbol_files(tmp_path, monkeypatch):
    calls = []

    def fake_download(ticker, **kwargs):
        calls.append(ticker)
        if ticker == "BAD":
            return pd.DataFrame()
        idx = pd.DatetimeIndex(["2026-01-02", "2026-01-05"], tz="UTC")
        return pd.DataFrame({"Open": [1.0, 2.0], "Close": [10.0, 12.0]}, index=idx)

    monkeypatch.setattr(data_loader.yf, "download", fake_download)

    written = refresh_symbol_files(["AAA", "BAD", "SPX"], data_dir=str(tmp_path))

    assert written == ["AAA", "SPX"]
    assert "^GSPC" in calls
    assert calls.count("BAD") == data_loader.DOWNLOAD_ATTEMPTS

    s = load_price_series(str(tmp_path / "symbols" / "AAA.csv"))
    assert s.prices.tolist() == [10.0, 12.0]


def test_download_price_history_multiindex(monkeypatch):
    idx = pd.DatetimeIndex(["2026-01-02", "2026-01-05"])
    cols = pd.MultiIndex.from_tuples([("Close", "AAA"), ("Volume", "AAA")])
    raw = pd.DataFrame([[10.0, 100], [11.0, 200]], index=idx, columns=cols)
    monkeypatch.setattr(data_loader.yf, "download", lambda ticker, **kw: raw)

    df = data_loader.download_price_history("AAA")

    assert df["date"].tolist() == ["2026-01-02", "2026-01-05"]
    assert df["value"].tolist() == [10.0, 11.0]
