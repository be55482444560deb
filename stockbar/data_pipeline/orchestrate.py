from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from concurrent.futures import Future, ThreadPoolExecutor, wait

from stockbar.data_pipeline.models import ConsolidatedPosition, FetchFailure, FetchOutcome, FetchSuccess

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 7


def _outcome(future: Future, ticker: str) -> FetchOutcome:
    try:
        return FetchSuccess(price=future.result())
    except Exception as e:
        logger.warning("Price fetch for %s failed: %s", ticker, e)
        return FetchFailure(message=str(e) or type(e).__name__)


def resolve_all(
    positions: Sequence[ConsolidatedPosition],
    fetch: Callable[[str], float],
    max_workers: int = DEFAULT_MAX_WORKERS,
    batch_timeout: float | None = None,
) -> list[tuple[ConsolidatedPosition, FetchOutcome]]:
    """Fetch every position's price on a bounded thread pool.

    Results come back in input order, one per position. Positions that
    failed consolidation are not fetched. With ``batch_timeout`` set, any
    fetch still queued or running at the deadline is reported as timed out.
    Queued fetches are cancelled, but running ones cannot be interrupted: their
    pool threads keep going until the fetch returns, and interpreter exit
    waits for them. With ``PriceFetcher`` that is bounded by its overall
    request deadline (``total_timeout``).
    """
    if max_workers < 1:
        raise ValueError(f"max_workers must be at least 1, got {max_workers}")

    outcomes: list[FetchOutcome | None] = [None] * len(positions)
    for idx, position in enumerate(positions):
        if position.error is not None:
            outcomes[idx] = FetchFailure(message=position.error)

    to_fetch = [idx for idx, outcome in enumerate(outcomes) if outcome is None]
    logger.info("Resolving %d ticker(s) with max_workers=%d", len(to_fetch), max_workers)

    if to_fetch:
        executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="stockbar-fetch")
        try:
            futures = {executor.submit(fetch, positions[idx].ticker): idx for idx in to_fetch}
            done, not_done = wait(futures, timeout=batch_timeout)

            for future in done:
                idx = futures[future]
                outcomes[idx] = _outcome(future, positions[idx].ticker)

            for future in not_done:
                idx = futures[future]
                future.cancel()
                logger.warning("Price fetch for %s did not finish within %ss", positions[idx].ticker, batch_timeout)
                outcomes[idx] = FetchFailure(message=f"timed out after {batch_timeout:g}s batch deadline")
        finally:
            # Running fetches are bounded by their own request timeout.
            executor.shutdown(wait=batch_timeout is None, cancel_futures=True)

    return [(position, outcome) for position, outcome in zip(positions, outcomes)]
