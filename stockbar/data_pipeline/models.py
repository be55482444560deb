from __future__ import annotations

from dataclasses import dataclass, field


def change_percent(current: float, base: float) -> float | None:
    """Percent change from base, or None when base is zero."""
    if base == 0:
        return None
    return (current - base) / base * 100.0


@dataclass(frozen=True)
class Position:
    ticker: str
    buy_price: float
    shares: float


@dataclass(frozen=True)
class ConsolidatedPosition:
    """One record per ticker; ``error`` is set when the merge was undefined."""

    ticker: str
    buy_price: float
    shares: float
    error: str | None = None

    @property
    def investment(self) -> float:
        return self.buy_price * self.shares


@dataclass(frozen=True)
class FetchSuccess:
    price: float
    ok: bool = field(default=True, init=False)


@dataclass(frozen=True)
class FetchFailure:
    message: str
    ok: bool = field(default=False, init=False)


FetchOutcome = FetchSuccess | FetchFailure


@dataclass(frozen=True)
class RankedRecord:
    ticker: str
    buy_price: float
    current_price: float
    change_percent: float
    profit_loss: float
    error: str | None = None


@dataclass(frozen=True)
class PortfolioReport:
    total_investment: float
    total_current_value: float
    records: list[RankedRecord]

    @property
    def total_profit_loss(self) -> float:
        return self.total_current_value - self.total_investment

    @property
    def total_change_percent(self) -> float | None:
        return change_percent(self.total_current_value, self.total_investment)
