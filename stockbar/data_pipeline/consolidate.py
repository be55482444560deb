from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import asdict

import pandas as pd

from stockbar.data_pipeline.models import ConsolidatedPosition, Position
from stockbar.errors import ConsolidationError

logger = logging.getLogger(__name__)


def _weighted_average(ticker: str, total_cost: float, total_shares: float) -> float:
    if total_shares == 0:
        raise ConsolidationError(f"total shares for {ticker} is zero, cost basis is undefined")
    return total_cost / total_shares


def consolidate(positions: Iterable[Position]) -> list[ConsolidatedPosition]:
    """Merge rows sharing a ticker into one shares-weighted cost-basis record.

    Tickers are keyed exactly as given; output follows first appearance.
    """
    df = pd.DataFrame([asdict(p) for p in positions], columns=["ticker", "buy_price", "shares"])
    if df.empty:
        return []

    df["cost"] = df["buy_price"] * df["shares"]
    grouped = df.groupby("ticker", sort=False, as_index=False).agg(
        total_cost=("cost", "sum"),
        total_shares=("shares", "sum"),
    )

    result: list[ConsolidatedPosition] = []
    for row in grouped.itertuples(index=False):
        try:
            buy_price = _weighted_average(row.ticker, float(row.total_cost), float(row.total_shares))
        except ConsolidationError as e:
            logger.warning("Skipping %s: %s", row.ticker, e)
            result.append(ConsolidatedPosition(ticker=row.ticker, buy_price=0.0, shares=0.0, error=str(e)))
            continue
        result.append(ConsolidatedPosition(ticker=row.ticker, buy_price=buy_price, shares=float(row.total_shares)))

    return result
