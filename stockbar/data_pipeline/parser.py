from __future__ import annotations

from pathlib import Path

import pandas as pd

from stockbar.data_pipeline.models import Position
from stockbar.errors import LoadError


REQUIRED_COLUMNS = [
    "ticker",
    "buy_price",
    "shares",
]


def _line_numbers(index: pd.Index) -> str:
    # +2: header line and 1-based numbering
    return ", ".join(str(i + 2) for i in index)


def load_positions_csv(path: str | Path) -> pd.DataFrame:
    path = Path(path)
    if not path.is_file():
        raise LoadError(f"positions file not found: {path}")

    try:
        # only blank cells are missing; "NA" and "NULL" are real tickers
        df = pd.read_csv(
            path,
            dtype={"ticker": str},
            skipinitialspace=True,
            keep_default_na=False,
            na_values={"ticker": [""]},
        )
    except (OSError, ValueError, pd.errors.ParserError) as e:
        raise LoadError(f"cannot read positions from {path}: {e}") from e

    missing = [col for col in REQUIRED_COLUMNS if col not in df.columns]
    if missing:
        raise LoadError(f"{path}: missing column(s): {', '.join(missing)}")

    df = df[REQUIRED_COLUMNS].copy()
    df["ticker"] = df["ticker"].str.strip()
    if df["ticker"].isna().any() or (df["ticker"] == "").any():
        raise LoadError(f"{path}: every row needs a ticker")

    for col in ["buy_price", "shares"]:
        numeric = pd.to_numeric(df[col], errors="coerce")
        if numeric.isna().any():
            raise LoadError(f"{path}: non-numeric {col} on line(s) {_line_numbers(df.index[numeric.isna()])}")
        df[col] = numeric.astype(float)

    not_positive = df["buy_price"] <= 0
    if not_positive.any():
        raise LoadError(f"{path}: buy_price must be positive on line(s) {_line_numbers(df.index[not_positive])}")

    return df


def positions_from_frame(df: pd.DataFrame) -> list[Position]:
    return [
        Position(ticker=row.ticker, buy_price=float(row.buy_price), shares=float(row.shares))
        for row in df.itertuples(index=False)
    ]
