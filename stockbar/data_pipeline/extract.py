"""
extract.py
----------
Pulls a single price out of a quote page.

Grammar contract: the price is the one numeric literal (digits, optional
decimal point and fraction, no thousands separators) that forms the text of
the element whose id is ``aq_<ticker>_<field>``, e.g.

    <span id=aq_aapl_c4 class=...>227.48</span>

The marker is ticker-specific: the same page embeds quote fields for
unrelated symbols. Swapping in another source means providing another
``PriceExtractor``; the fetcher and orchestrator only see the protocol.
"""
from __future__ import annotations

import re
from typing import Protocol

from stockbar.errors import DecodeError, PriceNotFoundError


PRIMARY_FIELD = "c4"


class PriceExtractor(Protocol):
    def extract_price(self, ticker: str, body: str) -> float:
        ...


def decode_body(raw: bytes) -> str:
    """Strict UTF-8 decode. Substituted characters could corrupt a number."""
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise DecodeError(f"Failed to decode response: {e}") from e


def _marker_pattern(ticker: str, field: str) -> re.Pattern[str]:
    return re.compile(
        rf"id=[\"']?aq_{re.escape(ticker.lower())}_{re.escape(field)}\b[^>]*>([0-9]+(?:\.[0-9]*)?)</span>",
        re.IGNORECASE,
    )


class StooqPriceExtractor:
    """Marker-based extractor for stooq quote pages.

    ``fields`` are tried in order, but only while the previous marker is
    absent. A marker that is present with an unusable value is terminal.
    """

    def __init__(self, fields: tuple[str, ...] = (PRIMARY_FIELD,)) -> None:
        if not fields:
            raise ValueError("at least one marker field is required")
        self.fields = tuple(fields)

    def extract_price(self, ticker: str, body: str) -> float:
        for field in self.fields:
            match = _marker_pattern(ticker, field).search(body)
            if match is None:
                continue
            try:
                price = float(match.group(1))
            except ValueError as e:
                raise PriceNotFoundError(f"Unparseable price for {ticker}: {match.group(1)!r}") from e
            if price <= 0:
                raise PriceNotFoundError(f"Non-positive price for {ticker}: {price}")
            return price

        raise PriceNotFoundError(f"Could not find price for {ticker} in response")


_default_extractor = StooqPriceExtractor()


def extract_price(ticker: str, body: str) -> float:
    return _default_extractor.extract_price(ticker, body)
