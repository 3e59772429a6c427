"""
Fetching image bytes from disk or over HTTP.

Fetchers only move bytes; decoding happens separately so the indexer can
tell a failed download from a corrupt image.
"""

from __future__ import annotations

import threading
import time
from pathlib import Path
from typing import Optional

import requests
from requests.adapters import HTTPAdapter

from ..config import DEFAULT_FETCH_TIMEOUT, DEFAULT_MAX_IN_FLIGHT
from ..exceptions import FetchError
from .decoding import decode_image
from .dependencies import Image, _logger

_CHUNK_SIZE = 64 * 1024


def is_remote(reference: str) -> bool:
    """Return True for http(s) URLs."""
    return reference.lower().startswith(('http://', 'https://'))


class FileFetcher:
    """Reads image bytes from the local filesystem."""

    def fetch(self, reference: str | Path) -> bytes:
        """
        Read a file.

        Raises:
            FetchError: If the file cannot be read
        """
        if not str(reference):
            raise FetchError("Empty file reference")
        try:
            with open(reference, 'rb') as f:
                return f.read()
        except OSError as e:
            raise FetchError(f"Failed to read {reference}: {e}") from e


def _expire(resp, expired: threading.Event) -> None:
    expired.set()
    # Shutting the socket down unblocks a read waiting in another thread
    shutdown = getattr(getattr(resp, 'raw', None), 'shutdown', None)
    if shutdown is not None:
        shutdown()


class HttpFetcher:
    """
    Downloads image bytes over HTTP with a total per-download timeout.

    One pooled session is shared by all indexing threads; the pool is sized
    to the concurrency cap so no request waits on a connection slot.
    Requests are never retried.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_FETCH_TIMEOUT,
        max_connections: int = DEFAULT_MAX_IN_FLIGHT,
        session: Optional[requests.Session] = None,
    ):
        """
        Args:
            timeout: Seconds allowed for one whole download
            max_connections: Connection pool size per host
            session: Pre-built session (used by tests); a pooled one is created if None
        """
        self.timeout = timeout
        if session is None:
            session = requests.Session()
            adapter = HTTPAdapter(
                pool_connections=max_connections,
                pool_maxsize=max_connections,
                max_retries=0,
            )
            session.mount("http://", adapter)
            session.mount("https://", adapter)
        self.session = session

    def fetch(self, url: str) -> bytes:
        """
        Download a URL.

        The timeout is a deadline for the whole download. requests only
        bounds each socket operation, so a watchdog shuts the connection
        down when the deadline passes while a read is blocked.

        Raises:
            FetchError: On connection errors, timeouts, or any status other than 200
        """
        if not url:
            raise FetchError("Empty URL")
        deadline = time.monotonic() + self.timeout
        try:
            resp = self.session.get(url, timeout=self.timeout, stream=True)
        except requests.Timeout as e:
            raise FetchError(f"Timed out after {self.timeout}s fetching {url}") from e
        except requests.RequestException as e:
            raise FetchError(f"Request for {url} failed: {e}") from e

        expired = threading.Event()
        watchdog = threading.Timer(
            max(deadline - time.monotonic(), 0.0), _expire, (resp, expired)
        )
        watchdog.daemon = True
        watchdog.start()
        try:
            if resp.status_code != 200:
                raise FetchError(f"Got response code {resp.status_code} from {url} (expected 200)")
            chunks = []
            try:
                for chunk in resp.iter_content(_CHUNK_SIZE):
                    if expired.is_set() or time.monotonic() > deadline:
                        break
                    chunks.append(chunk)
            except (requests.RequestException, OSError) as e:
                if expired.is_set() or time.monotonic() > deadline:
                    raise FetchError(f"Timed out after {self.timeout}s downloading {url}") from e
                raise FetchError(f"Download of {url} failed: {e}") from e
            if expired.is_set() or time.monotonic() > deadline:
                raise FetchError(f"Timed out after {self.timeout}s downloading {url}")
            return b''.join(chunks)
        finally:
            watchdog.cancel()
            resp.close()

    def close(self) -> None:
        self.session.close()


def fetch_and_decode(reference: str, fetcher=None) -> Image.Image:
    """
    Fetch and decode a single image.

    Used for query images. Picks an HttpFetcher for URLs and a FileFetcher
    for everything else unless a fetcher is given. A session created here
    is closed before returning.

    Args:
        reference: URL or file path
        fetcher: Optional object with a fetch(reference) -> bytes method

    Returns:
        Decoded PIL image

    Raises:
        FetchError: If the bytes cannot be fetched
        DecodeError: If the bytes cannot be decoded
    """
    owns_session = fetcher is None and is_remote(reference)
    if fetcher is None:
        fetcher = HttpFetcher(max_connections=1) if owns_session else FileFetcher()
    try:
        data = fetcher.fetch(reference)
    finally:
        if owns_session:
            fetcher.close()
    _logger.debug(f"Fetched {len(data):,} bytes from {reference}")
    return decode_image(data)


__all__ = [
    'is_remote',
    'FileFetcher',
    'HttpFetcher',
    'fetch_and_decode',
]
