"""
Approximate nearest-neighbor search over the fingerprint database.

The database has no index structure, so a query is a single linear pass.
Instead of scoring every entry and sorting the whole collection, the pass
keeps the best distance seen so far and discards anything further than
``prune_factor`` times that distance.

The filter is order-dependent: an entry accepted while the best distance
was still loose is kept even after a closer match turns up later. The
result is therefore not an exact top-k, and callers that need a fixed
number of results should truncate it themselves.

Performance:
- Filtering: O(n) distance computations
- Sorting: O(r log r) where r is the number of retained results
"""

from __future__ import annotations

import logging
import sys
import time
from typing import Optional

from .config import PRUNE_FACTOR
from .database import Database
from .fingerprint import FingerprintProvider
from .models import SearchResult

logger = logging.getLogger(__name__)


class SearchEngine:
    """
    Ranks database entries by similarity to a query fingerprint.

    Usage:
        engine = SearchEngine(db, FingerprintProvider())
        results = engine.search_image(query_image)[:20]
    """

    def __init__(
        self,
        database: Database,
        provider: Optional[FingerprintProvider] = None,
        prune_factor: float = PRUNE_FACTOR,
    ):
        """
        Args:
            database: Database to search
            provider: Fingerprint provider (hashing and distance)
            prune_factor: Entries further than best * prune_factor are discarded
        """
        self.database = database
        self.provider = provider or FingerprintProvider()
        self.prune_factor = prune_factor

    def search(self, fingerprint: int) -> list[SearchResult]:
        """
        Find entries similar to a fingerprint.

        Args:
            fingerprint: Query fingerprint

        Returns:
            Retained results, ascending by distance (stable on ties)
        """
        results: list[SearchResult] = []
        best_diff = sys.float_info.max
        distance = self.provider.distance

        for entry in self.database:
            diff = distance(fingerprint, entry.fingerprint)

            if diff < best_diff:
                best_diff = diff
            elif diff > best_diff * self.prune_factor:
                # Too far from the best score seen so far
                continue

            results.append(SearchResult(identifier=entry.identifier, distance=diff))

        results.sort(key=lambda r: r.distance)
        return results

    def search_image(self, image) -> list[SearchResult]:
        """
        Hash a decoded image and search for it.

        Raises:
            HashError: If the image cannot be hashed
        """
        start = time.perf_counter()
        results = self.search(self.provider.hash(image))
        logger.debug(
            f"Found {len(results):,} results in "
            f"{(time.perf_counter() - start) * 1000:.3f}ms"
        )
        return results


def result_identifiers(results: list[SearchResult]) -> list[str]:
    """Identifiers of the results, in result order."""
    return [result.identifier for result in results]


__all__ = ['SearchEngine', 'result_identifiers']
