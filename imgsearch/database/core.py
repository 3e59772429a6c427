"""
In-memory fingerprint database.

The database is a flat, ordered list of entries. Order is load or write
order and carries no meaning beyond reproducible persistence.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Iterable, Iterator, Optional, TextIO

from ..exceptions import DatabaseIOError, MalformedRecordError
from ..models import Entry, format_count
from .records import parse_record
from .writer import DatabaseWriter

logger = logging.getLogger(__name__)


class Database:
    """
    Ordered collection of (identifier, fingerprint) entries.

    Read-mostly: appends are not synchronized, concurrent writers should
    go through a DatabaseWriter and load the result afterwards.

    Usage:
        with open("database.txt", encoding="utf-8", errors="surrogateescape") as f:
            db = Database.load(f)
        len(db)
    """

    def __init__(self, entries: Optional[Iterable[Entry]] = None):
        self.entries: list[Entry] = list(entries) if entries is not None else []
        # Lines skipped by the last load
        self.skipped_records = 0

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[Entry]:
        return iter(self.entries)

    def __repr__(self) -> str:
        return f"Database({len(self.entries)} entries)"

    def append(self, entry: Entry) -> None:
        """Add an entry at the end of the database."""
        self.entries.append(entry)

    def extend(self, entries: Iterable[Entry]) -> None:
        """Add several entries at the end of the database."""
        self.entries.extend(entries)

    def identifiers(self) -> list[str]:
        """Identifiers in database order (duplicates preserved)."""
        return [entry.identifier for entry in self.entries]

    @classmethod
    def load(cls, stream: TextIO) -> 'Database':
        """
        Load entries from a newline-delimited stream.

        Malformed lines are logged and skipped; loading continues. Open the
        stream with errors='surrogateescape' so a line with bad bytes is
        skipped like any other malformed line.

        Args:
            stream: Text stream positioned at the first record

        Returns:
            Database with one entry per well-formed line

        Raises:
            DatabaseIOError: If reading the stream fails, or a strict text
                stream cannot decode its input
        """
        db = cls()
        line_number = 0
        try:
            for line in stream:
                line_number += 1
                try:
                    db.entries.append(parse_record(line, line_number))
                except MalformedRecordError as e:
                    db.skipped_records += 1
                    logger.warning(str(e))
        except (OSError, UnicodeDecodeError) as e:
            raise DatabaseIOError(f"Failed to read database after line {line_number}: {e}") from e

        if db.skipped_records:
            logger.warning(
                f"Skipped {format_count(db.skipped_records)} malformed "
                f"line{'s' if db.skipped_records != 1 else ''}"
            )
        return db

    @classmethod
    def load_file(cls, path: str | Path) -> 'Database':
        """
        Load a database file.

        Raises:
            DatabaseIOError: If the file cannot be opened or read
        """
        start = time.perf_counter()
        try:
            f = open(path, 'r', encoding='utf-8', errors='surrogateescape')
        except OSError as e:
            raise DatabaseIOError(f"Cannot open database {path}: {e}") from e
        with f:
            db = cls.load(f)
        logger.info(
            f"Loaded database {path} in {time.perf_counter() - start:.3f}s "
            f"({format_count(len(db))} images)"
        )
        return db

    def persist(self, stream: TextIO) -> None:
        """
        Write every entry to a stream, one line each, in database order.

        Raises:
            MalformedRecordError: If an entry cannot be represented as a line
            DatabaseIOError: If writing fails
        """
        writer = DatabaseWriter(stream)
        for entry in self.entries:
            writer.append(entry)

    def save(self, path: str | Path) -> None:
        """
        Write the database to a file, replacing its contents.

        Raises:
            DatabaseIOError: If the file cannot be written
        """
        with DatabaseWriter.open(path) as writer:
            for entry in self.entries:
                writer.append(entry)
        logger.debug(f"Saved {format_count(len(self))} entries to {path}")


__all__ = ['Database']
