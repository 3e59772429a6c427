"""
Image Similarity Search
=======================
Find visually similar images with 64-bit perceptual hashes.

Features:
- Flat-file fingerprint database (one "<identifier> <hash>" line per image)
- Single-pass pruning search over the whole collection
- Sequential folder indexing
- Bounded-concurrency indexing of a deterministic sample of a remote URL list
- JSON web API and CLI
"""

__version__ = "1.0.0"

from .models import Entry, SearchResult, IndexTask, TaskStage, Indexed, Dropped, IndexReport
from .exceptions import (
    ImgSearchError,
    DatabaseIOError,
    MalformedRecordError,
    IndexTaskError,
    FetchError,
    DecodeError,
    HashError,
)
from .database import Database, DatabaseWriter
from .fingerprint import FingerprintProvider, decode_image, fetch_and_decode
from .search import SearchEngine, result_identifiers
from .indexer import (
    index_directory,
    build_database,
    load_or_build,
    ConcurrentIndexer,
    index_sampled,
    sample_indices,
    load_reference_list,
)

__all__ = [
    "Entry",
    "SearchResult",
    "IndexTask",
    "TaskStage",
    "Indexed",
    "Dropped",
    "IndexReport",
    "ImgSearchError",
    "DatabaseIOError",
    "MalformedRecordError",
    "IndexTaskError",
    "FetchError",
    "DecodeError",
    "HashError",
    "Database",
    "DatabaseWriter",
    "FingerprintProvider",
    "decode_image",
    "fetch_and_decode",
    "SearchEngine",
    "result_identifiers",
    "index_directory",
    "build_database",
    "load_or_build",
    "ConcurrentIndexer",
    "index_sampled",
    "sample_indices",
    "load_reference_list",
]
