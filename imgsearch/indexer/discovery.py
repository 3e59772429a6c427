"""
File discovery for directory-mode indexing.

Every regular file is a candidate; there is no extension filter, files
that are not images simply fail to decode and are skipped.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterator

from ..database import normalize_identifier


def iter_files(root_path: str | Path) -> Iterator[tuple[str, str]]:
    """
    Walk a directory tree in a deterministic order.

    Args:
        root_path: Directory to walk

    Yields:
        (absolute_path, identifier) tuples, where identifier is the path
        relative to root in POSIX form with whitespace percent-encoded

    Raises:
        FileNotFoundError: If root_path is not a directory
    """
    root = Path(root_path)
    if not root.is_dir():
        raise FileNotFoundError(f"Directory not found: {root}")

    for dirpath, dirnames, filenames in os.walk(root):
        # Sort in place so os.walk descends in lexical order
        dirnames.sort()
        for name in sorted(filenames):
            path = Path(dirpath) / name
            if not path.is_file():
                continue
            rel = path.relative_to(root).as_posix()
            yield str(path.resolve()), normalize_identifier(rel)


def find_files(root_path: str | Path) -> list[tuple[str, str]]:
    """List every regular file under root_path (see iter_files)."""
    return list(iter_files(root_path))


__all__ = ['iter_files', 'find_files']
