import pandas as pd

from config import CURRENCY_SYMBOL

# =====================================================================
# Formatting Helpers (two-decimal display; N/A for missing)
# =====================================================================

def fmt_pct_clean(x, signed=False):
    """`x` is already in percent units (12.5 -> '12.50%')."""
    if x is None or pd.isna(x):
        return "N/A"
    return f"{float(x):+.2f}%" if signed else f"{float(x):.2f}%"


def fmt_money_clean(x, signed=False):
    if x is None or pd.isna(x):
        return "N/A"
    x = float(x)
    sign = ""
    if x < 0:
        sign = "-"
    elif signed:
        sign = "+"
    return f"{sign}{CURRENCY_SYMBOL}{abs(x):,.2f}"


def format_rankings(rankings: pd.DataFrame) -> pd.DataFrame:
    """Ranking table with display strings, 1-based rank first."""
    out = pd.DataFrame({
        "Rank": range(1, len(rankings) + 1),
        "Participant": rankings["name"].tolist(),
        "Value": [fmt_money_clean(v) for v in rankings["value"]],
        "P/L": [fmt_money_clean(v, signed=True) for v in rankings["profit_loss"]],
        "Return": [fmt_pct_clean(v) for v in rankings["percent_return"]],
        "vs Benchmark": [fmt_pct_clean(v, signed=True) for v in rankings["vs_benchmark"]],
    })
    return out
