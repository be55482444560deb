from __future__ import annotations

import math
from collections.abc import Iterable

import pandas as pd

from stockbar.data_pipeline.models import (
    ConsolidatedPosition,
    FetchOutcome,
    FetchSuccess,
    PortfolioReport,
    RankedRecord,
    change_percent,
)


OUTPUT_COLUMNS = [
    "ticker",
    "buy_price",
    "current_price",
    "change_percent",
    "profit_loss",
    "error",
]


def _position_row(position: ConsolidatedPosition, outcome: FetchOutcome) -> dict:
    if isinstance(outcome, FetchSuccess):
        pct = change_percent(outcome.price, position.buy_price)
        return {
            "ticker": position.ticker,
            "buy_price": position.buy_price,
            "current_price": outcome.price,
            "change_percent": math.nan if pct is None else pct,
            "profit_loss": outcome.price * position.shares - position.investment,
            "current_value": outcome.price * position.shares,
            "error": None,
            "failed": False,
        }
    return {
        "ticker": position.ticker,
        "buy_price": position.buy_price,
        "current_price": 0.0,
        "change_percent": -math.inf,
        "profit_loss": 0.0,
        "current_value": 0.0,
        "error": outcome.message,
        "failed": True,
    }


def aggregate(resolved: Iterable[tuple[ConsolidatedPosition, FetchOutcome]]) -> PortfolioReport:
    """Compute totals and rank positions by change percent, best first.

    Failed fetches keep their cost basis in the investment total, contribute
    nothing to the current value, and sort after every success, including
    successes whose change percent is undefined because the buy price is zero.
    """
    resolved = list(resolved)
    rows = [_position_row(position, outcome) for position, outcome in resolved]
    df = pd.DataFrame(rows, columns=OUTPUT_COLUMNS + ["current_value", "failed"])

    total_investment = float(sum(position.investment for position, _ in resolved))
    total_current_value = float(df["current_value"].sum()) if not df.empty else 0.0

    # successes first; an undefined (NaN) change ranks last among successes
    ranked = df.sort_values(
        ["failed", "change_percent"],
        ascending=[True, False],
        kind="mergesort",
        na_position="last",
    )
    records = [
        RankedRecord(
            ticker=row.ticker,
            buy_price=float(row.buy_price),
            current_price=float(row.current_price),
            change_percent=float(row.change_percent),
            profit_loss=float(row.profit_loss),
            error=row.error if isinstance(row.error, str) else None,
        )
        for row in ranked[OUTPUT_COLUMNS].itertuples(index=False)
    ]

    return PortfolioReport(
        total_investment=total_investment,
        total_current_value=total_current_value,
        records=records,
    )
