"""Tabular export of scan reports."""

import pandas as pd

from swingscan.models.scan import ScanReport

COLUMNS = [
    "rank",
    "symbol",
    "name",
    "score",
    "classification",
    "setup_type",
    "current_price",
    "trend",
    "setup",
    "rsi",
    "macd",
    "volume",
    "bollinger",
    "market_regime",
]


def report_to_frame(report: ScanReport) -> pd.DataFrame:
    """One row per qualified stock, in report (descending score) order."""
    rows = []
    for rank, result in enumerate(report.stock_list, start=1):
        parts = result.score_breakdown
        rows.append(
            {
                "rank": rank,
                "symbol": result.symbol,
                "name": result.name,
                "score": result.score,
                "classification": result.classification.value,
                "setup_type": result.setup_type.value,
                "current_price": round(result.current_price, 2),
                "trend": parts.get("trend"),
                "setup": parts.get("setup"),
                "rsi": parts.get("rsi"),
                "macd": parts.get("macd"),
                "volume": parts.get("volume"),
                "bollinger": parts.get("bollinger"),
                "market_regime": parts.get("marketRegime"),
            }
        )
    return pd.DataFrame(rows, columns=COLUMNS)


def errors_to_frame(report: ScanReport) -> pd.DataFrame:
    return pd.DataFrame(
        [e.to_dict() for e in report.errors], columns=["symbol", "error", "kind"]
    )
