"""
Pytest configuration and shared fixtures for test suite.
"""

import io
import shutil
import tempfile
import threading
import time
from pathlib import Path

import numpy as np
import pytest
from PIL import Image


def make_image(seed: int, size: int = 64) -> Image.Image:
    """Smooth random blobs; different seeds give different fingerprints."""
    rng = np.random.default_rng(seed)
    pixels = rng.integers(0, 256, size=(8, 8), dtype=np.uint8)
    small = Image.fromarray(pixels).convert("RGB")
    return small.resize((size, size), Image.BILINEAR)


def png_bytes(img: Image.Image) -> bytes:
    buf = io.BytesIO()
    img.save(buf, 'PNG')
    return buf.getvalue()


class TableProvider:
    """Provider whose distance is looked up by entry fingerprint."""

    def __init__(self, distances):
        self.distances = distances

    def hash(self, image):
        return 0

    def distance(self, query, fingerprint):
        return self.distances[fingerprint]


class StubFetcher:
    """
    Fetcher returning fixed bytes and recording how many fetches overlap.

    References containing 'missing' fail with FetchError, references
    containing 'garbage' return undecodable bytes.
    """

    def __init__(self, payload: bytes, delay: float = 0.0):
        self.payload = payload
        self.delay = delay
        self._lock = threading.Lock()
        self.current = 0
        self.peak = 0
        self.calls = []

    def fetch(self, reference):
        from imgsearch.exceptions import FetchError

        with self._lock:
            self.calls.append(reference)
            self.current += 1
            self.peak = max(self.peak, self.current)
        try:
            if self.delay:
                time.sleep(self.delay)
            if not reference or 'missing' in reference:
                raise FetchError(f"404 for {reference}")
            if 'garbage' in reference:
                return b'definitely not an image'
            return self.payload
        finally:
            with self._lock:
                self.current -= 1


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    tmpdir = tempfile.mkdtemp()
    yield Path(tmpdir)
    shutil.rmtree(tmpdir, ignore_errors=True)


@pytest.fixture
def image_dir(temp_dir):
    """
    A folder with 3 decodable images and 1 corrupt file.

    Returns:
        Path of the folder
    """
    root = temp_dir / "images"
    (root / "nested").mkdir(parents=True)
    make_image(1).save(root / "a.png", 'PNG')
    make_image(2).save(root / "b.jpg", 'JPEG')
    make_image(3).save(root / "nested" / "c.png", 'PNG')
    (root / "corrupt.jpg").write_bytes(b"\xff\xd8\xff\xe0 truncated jpeg")
    return root


@pytest.fixture
def sample_png():
    """PNG bytes of a decodable image."""
    return png_bytes(make_image(42))


@pytest.fixture
def database_path(temp_dir):
    """Path for a database file that does not exist yet."""
    return temp_dir / "database.txt"
