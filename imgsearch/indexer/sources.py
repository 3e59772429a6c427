"""
Loading large external reference lists.

Two formats are accepted:
- JSON: an array of objects exposing a ``url`` key (LAION-style dumps)
- Text: one URL per line
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

logger = logging.getLogger(__name__)


def _url_of(record, index: int) -> str:
    if isinstance(record, dict) and isinstance(record.get('url'), str):
        return record['url'].strip()
    if isinstance(record, str):
        return record.strip()
    logger.debug(f"Record {index} has no url: {record!r}")
    return ""


def load_reference_list(path: str | Path) -> list[str]:
    """
    Load an ordered list of image URLs.

    Records without a usable URL are kept as empty strings so that list
    positions (and therefore sampling) stay stable; they fail when fetched.

    Args:
        path: .json file with an array of {"url": ...} objects, or a text file

    Returns:
        URLs in source order

    Raises:
        OSError: If the file cannot be read
        ValueError: If a .json file is not a JSON array
    """
    path = Path(path)
    if path.suffix.lower() == '.json':
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        if not isinstance(data, list):
            raise ValueError(f"{path} must contain a JSON array of records")
        urls = [_url_of(record, i) for i, record in enumerate(data)]
    else:
        with open(path, 'r', encoding='utf-8') as f:
            urls = [line.strip() for line in f if line.strip()]

    missing = sum(1 for url in urls if not url)
    if missing:
        logger.warning(f"{missing:,} of {len(urls):,} records in {path} have no url")
    logger.info(f"Loaded {len(urls):,} image references from {path}")
    return urls


__all__ = ['load_reference_list']
