"""
xbar report - renders a PortfolioReport as menu-bar plugin text.
First line is the menu-bar title, everything after the first ``---`` is the dropdown.
"""
from __future__ import annotations

import pandas as pd

from stockbar.data_pipeline.models import PortfolioReport, RankedRecord


POSITIVE_COLOR = "green"
NEGATIVE_COLOR = "darkred"
SUMMARY_COLOR = "white"
NO_DATA = "n/a"


def format_with_separator(value: float) -> str:
    """Absolute integer part grouped in threes with spaces: 1234567.8 -> '1 234 567'."""
    return f"{int(abs(value)):,}".replace(",", " ")


def format_change_percent(v: float | None) -> str:
    if v is None or pd.isna(v):
        return NO_DATA
    return f"{v:+.2f}%"


def format_money_signed(v: float) -> str:
    sign = "+" if v >= 0 else "-"
    return f"{sign}${format_with_separator(v)}"


def render_title(report: PortfolioReport) -> str:
    total_pct = report.total_change_percent
    return f"{format_money_signed(report.total_profit_loss)} ({format_change_percent(total_pct)})"


def render_record(record: RankedRecord) -> str:
    if record.error is not None:
        return f"{record.ticker}: Error - {record.error} | color={NEGATIVE_COLOR}"

    color = POSITIVE_COLOR if record.profit_loss >= 0 else NEGATIVE_COLOR
    profit_str = format_money_signed(record.profit_loss)
    percent_str = f"({format_change_percent(record.change_percent)})"
    return (
        f"{record.ticker:<10} ${record.buy_price:.2f} @ ${record.current_price:.2f} "
        f"{profit_str:>11} {percent_str:>10} | color={color}"
    )


def render_report(report: PortfolioReport) -> list[str]:
    lines = [
        render_title(report),
        "---",
        f"Investment: ${format_with_separator(report.total_investment)} | color={SUMMARY_COLOR}",
        f"Current: ${format_with_separator(report.total_current_value)} | color={SUMMARY_COLOR}",
        "---",
    ]
    lines.extend(render_record(record) for record in report.records)
    return lines
