"""
Fingerprint computation and comparison.

A fingerprint is a 64-bit perceptual hash packed into an unsigned int so it
can be stored as a single decimal field in the database file. The distance
between two fingerprints is their Hamming distance.
"""

from __future__ import annotations

from typing import Callable

from ..config import DEFAULT_HASH_ALGORITHM, HASH_SIZE, FINGERPRINT_BITS
from ..exceptions import HashError
from .dependencies import Image, imagehash, np, _logger


HASH_ALGORITHMS: dict[str, Callable] = {
    'phash': imagehash.phash,
    'dhash': imagehash.dhash,
    'average_hash': imagehash.average_hash,
    'whash': imagehash.whash,
}


def hash_to_int(image_hash: imagehash.ImageHash) -> int:
    """
    Pack an ImageHash bit matrix into an unsigned int.

    Bits are taken row-major, most significant bit first, so the result
    matches ``int(str(image_hash), 16)``.
    """
    bits = np.asarray(image_hash.hash, dtype=bool).flatten()
    return int.from_bytes(np.packbits(bits).tobytes(), 'big')


def hamming_distance(a: int, b: int) -> int:
    """Number of differing bits between two fingerprints."""
    return bin(a ^ b).count('1')


class FingerprintProvider:
    """
    Computes 64-bit fingerprints for decoded images and compares them.

    The provider is stateless apart from the chosen algorithm, so a single
    instance is safely shared between indexing threads.

    Usage:
        provider = FingerprintProvider('phash')
        fp = provider.hash(image)
        provider.distance(fp, other_fp)
    """

    max_distance = float(FINGERPRINT_BITS)

    def __init__(self, algorithm: str = DEFAULT_HASH_ALGORITHM):
        """
        Args:
            algorithm: One of HASH_ALGORITHMS

        Raises:
            ValueError: If the algorithm is unknown
        """
        if algorithm not in HASH_ALGORITHMS:
            raise ValueError(
                f"Unknown hash algorithm {algorithm!r} "
                f"(choose from {', '.join(sorted(HASH_ALGORITHMS))})"
            )
        self.algorithm = algorithm
        self._hash_func = HASH_ALGORITHMS[algorithm]

    def hash(self, image: Image.Image) -> int:
        """
        Compute the fingerprint of a decoded image.

        Args:
            image: Decoded PIL image

        Returns:
            Unsigned 64-bit fingerprint

        Raises:
            HashError: If the image cannot be hashed
        """
        try:
            # Convert to RGB if necessary (handles palettes, CMYK, 16-bit, etc.)
            if image.mode not in ('RGB', 'L'):
                image = image.convert('RGB')
            return hash_to_int(self._hash_func(image, hash_size=HASH_SIZE))
        except Exception as e:
            _logger.debug(f"{self.algorithm} failed for image (mode={image.mode}): {e}")
            raise HashError(f"{self.algorithm} failed: {e}") from e

    def distance(self, a: int, b: int) -> float:
        """Hamming distance between two fingerprints."""
        return float(hamming_distance(a, b))

    def __repr__(self) -> str:
        return f"FingerprintProvider(algorithm={self.algorithm!r})"


__all__ = [
    'HASH_ALGORITHMS',
    'hash_to_int',
    'hamming_distance',
    'FingerprintProvider',
]
