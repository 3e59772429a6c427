"""
Exception types for the image similarity search.

Two families:
- Database errors. ``DatabaseIOError`` is fatal for the load or persist that
  raised it, ``MalformedRecordError`` only costs the one line.
- Index task errors. Each one drops a single task, the run carries on.
"""

from __future__ import annotations


class ImgSearchError(Exception):
    """Base class for all errors raised by imgsearch."""


class DatabaseIOError(ImgSearchError, OSError):
    """Reading or writing the database stream failed."""


class MalformedRecordError(ImgSearchError, ValueError):
    """A database line (or an entry about to be written) is not a valid record."""

    def __init__(self, message: str, line_number: int | None = None):
        super().__init__(message)
        self.line_number = line_number


class IndexTaskError(ImgSearchError):
    """Base class for failures that drop a single indexing task."""


class FetchError(IndexTaskError):
    """The image bytes could not be fetched (disk, network, timeout, HTTP status)."""


class DecodeError(IndexTaskError):
    """The fetched bytes are not a decodable image."""


class HashError(IndexTaskError):
    """The fingerprint could not be computed for a decoded image."""


__all__ = [
    'ImgSearchError',
    'DatabaseIOError',
    'MalformedRecordError',
    'IndexTaskError',
    'FetchError',
    'DecodeError',
    'HashError',
]
