"""
Flat-file fingerprint database.

Stores one ``<identifier> <fingerprint>`` line per indexed image and loads
it back into memory for searching.

Public API:
- Database: In-memory ordered collection with load/persist
- DatabaseWriter: Thread-safe append-only writer
- parse_record / format_record: Line format helpers
- normalize_identifier: Make any path or URL a single-field identifier
"""

from __future__ import annotations

from .core import Database
from .writer import DatabaseWriter
from .records import parse_record, format_record, normalize_identifier


__all__ = [
    'Database',
    'DatabaseWriter',
    'parse_record',
    'format_record',
    'normalize_identifier',
]
