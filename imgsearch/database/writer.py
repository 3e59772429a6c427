"""
Append-only database writer with thread safety.

Provides DatabaseWriter for writing complete lines from many indexing
threads without interleaving.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, TextIO

from ..exceptions import DatabaseIOError
from ..models import Entry
from .records import format_record


class DatabaseWriter:
    """
    Writes entries to a database stream one line at a time.

    Thread-safe: each line is written and flushed while holding a lock, so
    concurrent appends never interleave and a killed run leaves only
    complete lines behind.

    Usage:
        with DatabaseWriter.open("database.txt") as writer:
            writer.append(Entry("a.jpg", 123))
    """

    def __init__(self, stream: TextIO):
        """
        Args:
            stream: Text stream opened for writing
        """
        self._stream = stream
        self._write_lock = threading.Lock()
        self._written = 0

    @classmethod
    @contextmanager
    def open(cls, path: str | Path, append: bool = False) -> Generator['DatabaseWriter', None, None]:
        """
        Open a database file for writing.

        Args:
            path: Database file path
            append: Keep existing lines instead of truncating the file

        Yields:
            DatabaseWriter bound to the open file

        Raises:
            DatabaseIOError: If the file cannot be opened
        """
        mode = 'a' if append else 'w'
        try:
            stream = open(path, mode, encoding='utf-8', newline='\n')
        except OSError as e:
            raise DatabaseIOError(f"Cannot open database {path} for writing: {e}") from e
        try:
            yield cls(stream)
        finally:
            stream.close()

    def append(self, entry: Entry) -> None:
        """
        Write one entry as a complete line.

        Raises:
            MalformedRecordError: If the entry cannot be represented as a line
            DatabaseIOError: If writing to the stream fails
        """
        # Format outside the lock; an invalid entry never touches the stream
        line = format_record(entry)
        with self._write_lock:
            try:
                self._stream.write(line)
                self._stream.flush()
            except OSError as e:
                raise DatabaseIOError(f"Failed to write database entry: {e}") from e
            self._written += 1

    @property
    def written(self) -> int:
        """Number of lines written so far."""
        return self._written


__all__ = ['DatabaseWriter']
