"""
Deterministic subsampling of a large reference list.

Picks ``m`` roughly evenly spaced indices out of ``n`` without shuffling,
so repeated runs over the same list index the same images in the same
order. Index ``i`` maps to ``floor(i * (n + floor(n / m)) / m)``; the
stride is slightly larger than ``n / m`` which spreads the sample over the
whole list, and the sequence stops as soon as an index falls past the end.
"""

from __future__ import annotations

import logging
from typing import Iterator, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')


def sample_indices(n: int, m: int) -> Iterator[int]:
    """
    Yield the sampled source indices.

    Args:
        n: Length of the source list
        m: Number of indices wanted (clamped to n)

    Yields:
        Non-decreasing indices, all < n

    Examples:
        >>> list(sample_indices(10, 3))
        [0, 4, 8]
    """
    if n <= 0 or m <= 0:
        return
    if m > n:
        logger.warning(f"Sample size {m:,} exceeds source size {n:,}, using {n:,}")
        m = n

    stride_numerator = n + n // m
    for i in range(m):
        # Integer floor division is exact where float math would drift for huge n
        idx = (i * stride_numerator) // m
        if idx > n - 1:
            break
        yield idx


def sample(items: Sequence[T], m: int) -> list[T]:
    """Return the items at sample_indices(len(items), m)."""
    return [items[idx] for idx in sample_indices(len(items), m)]


__all__ = ['sample_indices', 'sample']
