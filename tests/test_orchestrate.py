from __future__ import annotations

import threading
import time
import unittest

from stockbar.data_pipeline.models import ConsolidatedPosition, FetchFailure, FetchSuccess
from stockbar.data_pipeline.orchestrate import resolve_all
from stockbar.errors import BadStatusError, NetworkError


PRICES = {"AAPL": 121.0, "MSFT": 410.0, "KO": 61.0, "SPY": 500.0}
FAILURES = {"BAD": BadStatusError(404), "SLOW": NetworkError("timeout")}


def stub_fetch(ticker: str) -> float:
    if ticker in FAILURES:
        raise FAILURES[ticker]
    return PRICES[ticker]


def make_positions(*tickers: str) -> list[ConsolidatedPosition]:
    return [ConsolidatedPosition(t, 100.0, 1.0) for t in tickers]


class ResolveAllTests(unittest.TestCase):
    def test_every_position_gets_its_own_outcome_for_any_pool_size(self) -> None:
        positions = make_positions("AAPL", "BAD", "MSFT", "SLOW", "KO", "SPY")
        for workers in [1, 3, len(positions), 32]:
            with self.subTest(workers=workers):
                resolved = resolve_all(positions, stub_fetch, max_workers=workers)
                self.assertEqual(len(resolved), len(positions))
                self.assertEqual([p for p, _ in resolved], positions)
                for position, outcome in resolved:
                    if position.ticker in FAILURES:
                        self.assertIsInstance(outcome, FetchFailure)
                        self.assertEqual(outcome.message, str(FAILURES[position.ticker]))
                    else:
                        self.assertEqual(outcome, FetchSuccess(PRICES[position.ticker]))

    def test_unexpected_exception_is_isolated(self) -> None:
        def flaky(ticker: str) -> float:
            if ticker == "KO":
                raise KeyError("boom")
            return PRICES[ticker]

        resolved = resolve_all(make_positions("AAPL", "KO", "MSFT"), flaky)
        self.assertEqual([o.ok for _, o in resolved], [True, False, True])

    def test_concurrency_is_bounded(self) -> None:
        lock = threading.Lock()
        active = 0
        peak = 0

        def tracking(ticker: str) -> float:
            nonlocal active, peak
            with lock:
                active += 1
                peak = max(peak, active)
            time.sleep(0.02)
            with lock:
                active -= 1
            return 1.0

        positions = [ConsolidatedPosition(f"T{i}", 1.0, 1.0) for i in range(12)]
        resolved = resolve_all(positions, tracking, max_workers=3)
        self.assertEqual(len(resolved), 12)
        self.assertLessEqual(peak, 3)

    def test_consolidation_errors_are_not_fetched(self) -> None:
        called: list[str] = []

        def recording(ticker: str) -> float:
            called.append(ticker)
            return 1.0

        positions = [
            ConsolidatedPosition("AAPL", 1.0, 1.0),
            ConsolidatedPosition("TSLA", 0.0, 0.0, error="total shares for TSLA is zero"),
        ]
        resolved = resolve_all(positions, recording)
        self.assertEqual(called, ["AAPL"])
        self.assertEqual(resolved[1][1], FetchFailure("total shares for TSLA is zero"))

    def test_batch_deadline_marks_pending_as_timed_out(self) -> None:
        release = threading.Event()
        self.addCleanup(release.set)

        def hanging(ticker: str) -> float:
            if ticker == "HANG":
                release.wait(5)
            return 1.0

        resolved = resolve_all(make_positions("AAPL", "HANG"), hanging, max_workers=2, batch_timeout=0.2)
        self.assertTrue(resolved[0][1].ok)
        self.assertFalse(resolved[1][1].ok)
        self.assertIn("timed out", resolved[1][1].message)

    def test_batch_deadline_returns_without_joining_running_fetch(self) -> None:
        release = threading.Event()
        self.addCleanup(release.set)
        finished = threading.Event()

        def hanging(ticker: str) -> float:
            release.wait(5)
            finished.set()
            return 1.0

        started = time.monotonic()
        resolved = resolve_all(make_positions("HANG"), hanging, max_workers=1, batch_timeout=0.2)
        elapsed = time.monotonic() - started

        self.assertLess(elapsed, 2.0)
        self.assertFalse(finished.is_set())
        self.assertFalse(resolved[0][1].ok)

    def test_empty_batch(self) -> None:
        self.assertEqual(resolve_all([], stub_fetch), [])

    def test_rejects_empty_pool(self) -> None:
        with self.assertRaises(ValueError):
            resolve_all(make_positions("AAPL"), stub_fetch, max_workers=0)


if __name__ == "__main__":
    unittest.main()
