"""
Configuration constants for the image similarity search.

This module contains all configurable defaults including:
- Database file and image folder locations
- Indexer concurrency and sampling settings
- Search pruning factor
"""

import os

# Default location of the fingerprint database file
DEFAULT_DATABASE_PATH = 'database.txt'

# Folder indexed when the database file does not exist yet
DEFAULT_IMAGES_DIR = 'images'

# Fingerprint algorithm (phash, dhash, average_hash, whash)
# Every algorithm is computed with hash_size=8, giving a 64-bit fingerprint
DEFAULT_HASH_ALGORITHM = 'phash'
HASH_SIZE = 8
FINGERPRINT_BITS = HASH_SIZE * HASH_SIZE
MAX_FINGERPRINT = (1 << FINGERPRINT_BITS) - 1

# Sampled indexing of a large remote reference list
DEFAULT_MAX_IN_FLIGHT = 64      # Tasks allowed to run at the same time
DEFAULT_SAMPLE_SIZE = 30000     # Entries to sample from the reference list
DEFAULT_FETCH_TIMEOUT = 10.0    # Seconds before a remote fetch is abandoned

# Search keeps entries within this factor of the best distance seen so far
PRUNE_FACTOR = 1.5

# Web API
DEFAULT_HOST = '127.0.0.1'
DEFAULT_PORT = 8080
MAX_UPLOAD_BYTES = 8 << 20  # 8 MiB

# Decompression bomb limit for decoded images (500 megapixels)
MAX_IMAGE_PIXELS = 500_000_000

# User configuration directory
CONFIG_DIR = os.path.join(os.path.expanduser('~'), '.imgsearch')
