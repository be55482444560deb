from __future__ import annotations


class StockbarError(Exception):
    """Base class for every error raised by stockbar."""


class ConfigError(StockbarError):
    pass


class LoadError(StockbarError):
    """The positions file is missing or malformed. Fatal for the run."""


class ConsolidationError(StockbarError):
    """A ticker's raw positions cannot be merged (total shares of zero)."""


class FetchError(StockbarError):
    """Resolving one ticker's price failed. Never fatal for the batch."""


class NetworkError(FetchError):
    pass


class BadStatusError(FetchError):
    def __init__(self, status_code: int) -> None:
        super().__init__(f"Invalid status code HTTP {status_code}")
        self.status_code = status_code


class DecodeError(FetchError):
    pass


class PriceNotFoundError(FetchError):
    pass
