from __future__ import annotations

import argparse
import logging
import sys

from stockbar.config import StockbarConfig, default_positions_path
from stockbar.data_pipeline.compute import aggregate
from stockbar.data_pipeline.consolidate import consolidate
from stockbar.data_pipeline.market_fetch import PriceFetcher
from stockbar.data_pipeline.models import PortfolioReport
from stockbar.data_pipeline.orchestrate import resolve_all
from stockbar.data_pipeline.parser import load_positions_csv, positions_from_frame
from stockbar.errors import ConfigError, LoadError
from stockbar.logging_config import setup_logging
from stockbar.xbar_report import render_report

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stockbar",
        description="Print real-time portfolio profit/loss in xbar format.",
    )
    parser.add_argument(
        "path",
        nargs="?",
        help=f"positions CSV with ticker,buy_price,shares columns (default: {default_positions_path()})",
    )
    return parser


def run(config: StockbarConfig) -> PortfolioReport:
    positions_df = load_positions_csv(config.positions_path)
    logger.info("Loaded %d raw position(s) from %s", len(positions_df), config.positions_path)
    positions = consolidate(positions_from_frame(positions_df))

    fetcher = PriceFetcher(config)
    try:
        resolved = resolve_all(
            positions,
            fetcher.fetch_price,
            max_workers=config.max_workers,
            batch_timeout=config.batch_timeout,
        )
    finally:
        fetcher.close()

    return aggregate(resolved)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = StockbarConfig.from_env(args.path)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    setup_logging(config.log_level)

    try:
        report = run(config)
    except LoadError as e:
        print(f"Error loading positions from {config.positions_path}: {e}", file=sys.stderr)
        print(parser.format_usage().rstrip(), file=sys.stderr)
        print(f"Default location: {default_positions_path()}", file=sys.stderr)
        return 1

    for line in render_report(report):
        print(line)
    return 0


if __name__ == "__main__":
    sys.exit(main())
