"""
Line format of the database file.

Each line is ``<identifier> <fingerprint-decimal>``: exactly two
whitespace-separated fields, no header, no version tag.
"""

from __future__ import annotations

import re
from urllib.parse import quote

from ..config import MAX_FINGERPRINT
from ..exceptions import MalformedRecordError
from ..models import Entry


_DECIMAL_RE = re.compile(r'[0-9]+')
_WHITESPACE_RE = re.compile(r'\s')


def normalize_identifier(raw: str) -> str:
    """
    Percent-encode whitespace so an identifier fits in a single field.

    Examples:
        >>> normalize_identifier('holiday photos/beach 1.jpg')
        'holiday%20photos/beach%201.jpg'
    """
    return _WHITESPACE_RE.sub(lambda m: quote(m.group()), raw)


def parse_record(line: str, line_number: int = 0) -> Entry:
    """
    Parse one database line.

    Args:
        line: Raw line, with or without its trailing newline
        line_number: One-based line number, used in error messages

    Returns:
        Parsed Entry

    Raises:
        MalformedRecordError: Bytes that are not UTF-8, wrong field count, or a
            fingerprint that is not an unsigned 64-bit decimal
    """
    try:
        # Undecodable bytes arrive as lone surrogates (surrogateescape)
        line.encode('utf-8')
    except UnicodeEncodeError as e:
        raise MalformedRecordError(
            f"line {line_number} is not valid UTF-8 (at character {e.start})",
            line_number,
        ) from e

    fields = line.split()
    if len(fields) != 2:
        raise MalformedRecordError(
            f"line {line_number} is invalid, expected 2 fields, got {len(fields)}",
            line_number,
        )

    identifier, raw_hash = fields
    if not _DECIMAL_RE.fullmatch(raw_hash):
        raise MalformedRecordError(
            f"failed to parse hash {raw_hash!r} on line {line_number}: not a decimal number",
            line_number,
        )
    fingerprint = int(raw_hash)
    if fingerprint > MAX_FINGERPRINT:
        raise MalformedRecordError(
            f"failed to parse hash {raw_hash!r} on line {line_number}: out of 64-bit range",
            line_number,
        )

    return Entry(identifier=identifier, fingerprint=fingerprint)


def format_record(entry: Entry) -> str:
    """
    Format an entry as one database line, including the newline.

    Raises:
        MalformedRecordError: If the entry could not be read back
    """
    if not entry.identifier or _WHITESPACE_RE.search(entry.identifier):
        raise MalformedRecordError(
            f"identifier {entry.identifier!r} must be non-empty and contain no whitespace"
        )
    if not 0 <= entry.fingerprint <= MAX_FINGERPRINT:
        raise MalformedRecordError(
            f"fingerprint {entry.fingerprint} of {entry.identifier!r} is out of 64-bit range"
        )
    return f"{entry.identifier} {entry.fingerprint:d}\n"


__all__ = ['normalize_identifier', 'parse_record', 'format_record']
