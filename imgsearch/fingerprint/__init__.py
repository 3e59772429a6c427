"""
Fingerprint package for the image similarity search.

Wraps the external capabilities the database, search and indexer rely on.

Public API:
- FingerprintProvider: Compute 64-bit perceptual hashes and their distance
- decode_image: Decode raw bytes into an image
- FileFetcher / HttpFetcher: Fetch raw bytes from disk or HTTP
- fetch_and_decode: Fetch and decode one image reference
- has_heif_support: Check if HEIC/HEIF support is available
"""

from __future__ import annotations

from .hashing import FingerprintProvider, HASH_ALGORITHMS, hash_to_int, hamming_distance
from .decoding import decode_image
from .fetching import FileFetcher, HttpFetcher, fetch_and_decode, is_remote
from .dependencies import HAS_HEIF_SUPPORT


def has_heif_support() -> bool:
    """Check if HEIC/HEIF support is available."""
    return HAS_HEIF_SUPPORT


__all__ = [
    'FingerprintProvider',
    'HASH_ALGORITHMS',
    'hash_to_int',
    'hamming_distance',
    'decode_image',
    'FileFetcher',
    'HttpFetcher',
    'fetch_and_decode',
    'is_remote',
    'has_heif_support',
]
