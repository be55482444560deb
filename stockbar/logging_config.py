import logging
import sys


def setup_logging(level: str = "WARNING") -> None:
    """
    Configure application logging on stderr; stdout belongs to the status bar.
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )
