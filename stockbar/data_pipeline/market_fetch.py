from __future__ import annotations

import logging
import socket
import threading
import time

import requests

from stockbar.config import StockbarConfig
from stockbar.data_pipeline.extract import PriceExtractor, StooqPriceExtractor, decode_body
from stockbar.errors import BadStatusError, NetworkError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 16 * 1024


class PriceFetcher:
    """Resolves one ticker's current price with a single GET.

    Every thread that calls ``fetch_price`` gets its own ``requests.Session``,
    so concurrent workers never share a connection.
    """

    def __init__(self, config: StockbarConfig | None = None, extractor: PriceExtractor | None = None) -> None:
        self.config = config or StockbarConfig()
        self.extractor = extractor or StooqPriceExtractor(self.config.price_fields)
        self._local = threading.local()
        self._sessions: list[requests.Session] = []
        self._lock = threading.Lock()

    def _session(self) -> requests.Session:
        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            session.headers.update(
                {
                    "User-Agent": self.config.user_agent,
                    # no compressed transfer encoding
                    "Accept-Encoding": "identity",
                }
            )
            self._local.session = session
            with self._lock:
                self._sessions.append(session)
        return session

    def build_url(self, ticker: str) -> str:
        return self.config.url_template.format(ticker=ticker.lower())

    def _timed_out(self) -> NetworkError:
        return NetworkError(f"timed out after {self.config.total_timeout:g}s reading body")

    def _read_body(self, response: requests.Response, deadline: float) -> bytes:
        watchdog = _DeadlineWatchdog(response, deadline - time.monotonic())
        chunks: list[bytes] = []
        try:
            for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                if time.monotonic() > deadline:
                    raise self._timed_out()
                chunks.append(chunk)
        except Exception as e:
            if watchdog.fired.is_set():
                raise self._timed_out() from e
            raise
        finally:
            watchdog.cancel()

        if watchdog.fired.is_set():
            # connection was cut mid-body
            raise self._timed_out()
        return b"".join(chunks)

    def fetch_raw(self, ticker: str) -> bytes:
        url = self.build_url(ticker)
        deadline = time.monotonic() + self.config.total_timeout
        logger.debug("GET %s", url)

        try:
            with self._session().get(
                url,
                timeout=(self.config.connect_timeout, self.config.total_timeout),
                stream=True,
            ) as response:
                if response.status_code != 200:
                    raise BadStatusError(response.status_code)
                return self._read_body(response, deadline)
        except requests.RequestException as e:
            raise NetworkError(str(e) or type(e).__name__) from e

    def fetch_price(self, ticker: str) -> float:
        body = decode_body(self.fetch_raw(ticker))
        price = self.extractor.extract_price(ticker, body)
        logger.debug("%s -> %s", ticker, price)
        return price

    def close(self) -> None:
        with self._lock:
            sessions, self._sessions = self._sessions, []
        for session in sessions:
            session.close()
        self._local = threading.local()


class _DeadlineWatchdog:
    """Shuts the response socket down once the overall deadline passes.

    Per-read timeouts restart on every received byte, so a slowly dripping
    body is only bounded by cutting the connection from another thread.
    """

    def __init__(self, response: requests.Response, remaining: float) -> None:
        self.fired = threading.Event()
        self._sock = _response_socket(response)
        self._timer: threading.Timer | None = None
        if self._sock is not None:
            self._timer = threading.Timer(max(remaining, 0.0), self._fire)
            self._timer.daemon = True
            self._timer.start()

    def _fire(self) -> None:
        self.fired.set()
        try:
            self._sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            logger.debug("socket already closed at deadline")

    def cancel(self) -> None:
        if self._timer is not None:
            self._timer.cancel()


def _response_socket(response: requests.Response) -> socket.socket | None:
    connection = getattr(getattr(response, "raw", None), "connection", None)
    return getattr(connection, "sock", None)


def fetch_latest_price(ticker: str) -> float:
    fetcher = PriceFetcher()
    try:
        return fetcher.fetch_price(ticker)
    finally:
        fetcher.close()
