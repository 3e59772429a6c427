"""
Directory-mode indexing.

Walks a folder and indexes every regular file in it, one at a time.
Files that cannot be read, decoded or hashed are logged and skipped.
"""

from __future__ import annotations

import logging
import os
import time
from pathlib import Path
from typing import Optional

from ..config import DEFAULT_IMAGES_DIR
from ..database import Database, DatabaseWriter
from ..fingerprint import FileFetcher, FingerprintProvider
from ..models import IndexReport, IndexTask
from .discovery import find_files
from .pipeline import run_task

logger = logging.getLogger(__name__)


def index_directory(
    root_path: str | Path,
    writer: DatabaseWriter,
    provider: Optional[FingerprintProvider] = None,
) -> IndexReport:
    """
    Index every regular file under a directory, sequentially.

    Args:
        root_path: Directory to walk
        writer: Database writer receiving one line per indexed image
        provider: Fingerprint provider (default algorithm if None)

    Returns:
        IndexReport with one outcome per file

    Raises:
        FileNotFoundError: If root_path is not a directory
        DatabaseIOError: If writing the database fails
    """
    provider = provider or FingerprintProvider()
    fetcher = FileFetcher()
    start = time.perf_counter()

    files = find_files(root_path)
    report = IndexReport(requested=len(files))
    logger.info(f"Indexing {len(files):,} files in {root_path}")

    for position, (path, identifier) in enumerate(files):
        task = IndexTask(reference=path, position=position, total=len(files), identifier=identifier)
        report.dispatched += 1
        report.outcomes.append(run_task(task, fetcher, provider, writer))

    report.peak_in_flight = 1 if files else 0
    report.elapsed = time.perf_counter() - start
    logger.info(report.summary())
    return report


def build_database(
    root_path: str | Path,
    database_path: str | Path,
    provider: Optional[FingerprintProvider] = None,
) -> IndexReport:
    """Index a directory into a fresh database file."""
    with DatabaseWriter.open(database_path) as writer:
        return index_directory(root_path, writer, provider)


def load_or_build(
    database_path: str | Path,
    images_dir: str | Path = DEFAULT_IMAGES_DIR,
    provider: Optional[FingerprintProvider] = None,
) -> Database:
    """
    Load the database, indexing images_dir into it first if it does not exist.

    Raises:
        FileNotFoundError: If neither the database nor images_dir exists
        DatabaseIOError: If the database cannot be written or read
    """
    if not os.path.exists(database_path):
        logger.info(f"\"{database_path}\" not found, indexing {images_dir}/")
        build_database(images_dir, database_path, provider)
    return Database.load_file(database_path)


__all__ = ['index_directory', 'build_database', 'load_or_build']
