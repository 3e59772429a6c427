"""
Indexer package for the image similarity search.

Builds the fingerprint database either from a local folder or from a
deterministic sample of a large remote reference list.

Public API:
- index_directory: Sequentially index every file in a folder
- build_database / load_or_build: Folder-to-database helpers
- ConcurrentIndexer: Bounded-concurrency indexer for remote references
- index_sampled: Sample a reference list file into a database file
- sample_indices / sample: Deterministic evenly spaced subsampling
- load_reference_list: Read a JSON or text list of image URLs
- run_task: Drive one IndexTask through the pipeline
"""

from __future__ import annotations

from .discovery import find_files, iter_files
from .sampling import sample_indices, sample
from .sources import load_reference_list
from .pipeline import run_task
from .directory import index_directory, build_database, load_or_build
from .parallel import ConcurrentIndexer, InFlightCounter, index_sampled


__all__ = [
    'find_files',
    'iter_files',
    'sample_indices',
    'sample',
    'load_reference_list',
    'run_task',
    'index_directory',
    'build_database',
    'load_or_build',
    'ConcurrentIndexer',
    'InFlightCounter',
    'index_sampled',
]
