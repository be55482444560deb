"""Run configuration, passed explicitly through the pipeline."""
from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path

from stockbar.errors import ConfigError


DEFAULT_URL_TEMPLATE = "https://stooq.pl/q/?s={ticker}"
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


def default_positions_path() -> Path:
    return Path.home() / ".stocks" / "data.csv"


@dataclass(frozen=True)
class StockbarConfig:
    positions_path: Path = field(default_factory=default_positions_path)
    url_template: str = DEFAULT_URL_TEMPLATE
    user_agent: str = DEFAULT_USER_AGENT
    connect_timeout: float = 5.0
    total_timeout: float = 15.0
    max_workers: int = 7
    batch_timeout: float | None = None
    # Marker fields tried in order; only the first is trusted unless more are configured.
    price_fields: tuple[str, ...] = ("c4",)
    log_level: str = "WARNING"

    def __post_init__(self) -> None:
        if self.max_workers < 1:
            raise ConfigError(f"max_workers must be at least 1, got {self.max_workers}")
        if self.connect_timeout <= 0 or self.total_timeout <= 0:
            raise ConfigError("timeouts must be positive")
        if not self.price_fields:
            raise ConfigError("at least one price field is required")

    @classmethod
    def from_env(cls, argv_path: str | None = None, environ: dict | None = None) -> StockbarConfig:
        env = os.environ if environ is None else environ
        config = cls()

        path = argv_path or env.get("STOCKBAR_CSV")
        if path:
            config = replace(config, positions_path=Path(path).expanduser())

        if env.get("STOCKBAR_MAX_WORKERS"):
            config = replace(config, max_workers=_parse_int("STOCKBAR_MAX_WORKERS", env["STOCKBAR_MAX_WORKERS"]))

        if env.get("STOCKBAR_LOG_LEVEL"):
            config = replace(config, log_level=env["STOCKBAR_LOG_LEVEL"].upper())

        if env.get("STOCKBAR_PRICE_FIELDS"):
            fields = tuple(f.strip() for f in env["STOCKBAR_PRICE_FIELDS"].split(",") if f.strip())
            config = replace(config, price_fields=fields)

        return config


def _parse_int(name: str, raw: str) -> int:
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from e
