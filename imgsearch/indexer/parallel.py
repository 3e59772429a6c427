"""
Concurrent sampled-source indexing.

Indexes a deterministic sample of a large remote reference list with a
bounded number of tasks in flight. The submitter blocks on a bounded
semaphore before admitting each task, workers write finished lines through
the shared, locked DatabaseWriter, and every task reports a tagged outcome
back to the submitter.

All synchronization state (semaphore, in-flight counter, abort flag) lives
in a per-run object, so sequential or concurrent runs never share it.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Any, Optional, Sequence

from ..config import DEFAULT_FETCH_TIMEOUT, DEFAULT_MAX_IN_FLIGHT, DEFAULT_SAMPLE_SIZE
from ..database import DatabaseWriter
from ..fingerprint import FingerprintProvider, HttpFetcher
from ..fingerprint.dependencies import HAS_TQDM, _tqdm_class
from ..models import IndexOutcome, IndexReport, IndexTask
from .pipeline import run_task
from .sampling import sample
from .sources import load_reference_list

logger = logging.getLogger(__name__)


class InFlightCounter:
    """Lock-protected counter of running tasks that remembers its peak."""

    def __init__(self):
        self._lock = threading.Lock()
        self._current = 0
        self._peak = 0

    def increment(self) -> int:
        with self._lock:
            self._current += 1
            self._peak = max(self._peak, self._current)
            return self._current

    def decrement(self) -> int:
        with self._lock:
            self._current -= 1
            return self._current

    @property
    def current(self) -> int:
        with self._lock:
            return self._current

    @property
    def peak(self) -> int:
        with self._lock:
            return self._peak


class _RunState:
    """Synchronization state of a single indexing run."""

    def __init__(self, max_in_flight: int, pbar: Optional[Any] = None):
        self.slots = threading.BoundedSemaphore(max_in_flight)
        self.in_flight = InFlightCounter()
        self.abort = threading.Event()
        self.fatal: Optional[BaseException] = None
        self.pbar = pbar
        self._fatal_lock = threading.Lock()

    def record_fatal(self, error: BaseException) -> None:
        with self._fatal_lock:
            if self.fatal is None:
                self.fatal = error
        self.abort.set()

    def finish_task(self, _future: Future) -> None:
        self.in_flight.decrement()
        self.slots.release()
        if self.pbar is not None:
            self.pbar.update(1)


class ConcurrentIndexer:
    """
    Indexes image references with at most ``max_in_flight`` tasks at once.

    Usage:
        with DatabaseWriter.open("database.txt") as writer:
            indexer = ConcurrentIndexer(FingerprintProvider(), writer)
            report = indexer.run(urls, sample_size=30000)
    """

    def __init__(
        self,
        provider: FingerprintProvider,
        writer: DatabaseWriter,
        fetcher=None,
        max_in_flight: int = DEFAULT_MAX_IN_FLIGHT,
        timeout: float = DEFAULT_FETCH_TIMEOUT,
        show_progress: bool = False,
    ):
        """
        Args:
            provider: Fingerprint provider shared by all tasks
            writer: Shared database writer
            fetcher: Object with fetch(reference) -> bytes; a pooled HttpFetcher if None
            max_in_flight: Maximum number of tasks running at once
            timeout: Per-request timeout for the default HttpFetcher
            show_progress: Show a tqdm progress bar if tqdm is installed

        Raises:
            ValueError: If max_in_flight < 1
        """
        if max_in_flight < 1:
            raise ValueError(f"max_in_flight must be at least 1, got {max_in_flight}")
        self.provider = provider
        self.writer = writer
        self.max_in_flight = max_in_flight
        self.show_progress = show_progress
        self._owns_fetcher = fetcher is None
        self.fetcher = fetcher or HttpFetcher(timeout=timeout, max_connections=max_in_flight)

    def run(self, references: Sequence[str], sample_size: Optional[int] = None) -> IndexReport:
        """
        Index a sample of the references.

        Args:
            references: Ordered source list
            sample_size: Number of references to sample; all of them if None

        Returns:
            IndexReport with outcomes ordered by task position

        Raises:
            DatabaseIOError: If writing the database fails. No new tasks are
                admitted after the failure; running tasks finish first.
        """
        start = time.perf_counter()
        if sample_size is None:
            selected = list(references)
            requested = len(selected)
        else:
            selected = sample(references, sample_size)
            # sample() clamps to the source length
            requested = max(0, min(sample_size, len(references)))
        total = len(selected)
        report = IndexReport(requested=requested)
        logger.info(
            f"Indexing {total:,} of {len(references):,} references "
            f"({self.max_in_flight} in flight)"
        )

        pbar: Optional[Any] = None
        if HAS_TQDM and self.show_progress and _tqdm_class is not None:
            pbar = _tqdm_class(total=total, desc="Indexing images", unit="img", ncols=80)

        state = _RunState(self.max_in_flight, pbar)
        futures: list[Future] = []

        try:
            with ThreadPoolExecutor(
                max_workers=self.max_in_flight,
                thread_name_prefix='imgsearch-indexer',
            ) as executor:
                for position, reference in enumerate(selected):
                    # Blocks until a slot frees up
                    state.slots.acquire()
                    if state.abort.is_set():
                        state.slots.release()
                        break

                    task = IndexTask(reference=reference, position=position, total=total)
                    state.in_flight.increment()
                    future = executor.submit(self._run_task, task, state)
                    future.add_done_callback(state.finish_task)
                    futures.append(future)
                    report.dispatched += 1
                # Leaving the executor joins every dispatched task
        finally:
            if pbar is not None:
                pbar.close()

        report.peak_in_flight = state.in_flight.peak
        report.elapsed = time.perf_counter() - start

        if state.fatal is not None:
            logger.error(f"Indexing aborted after {report.dispatched:,} tasks: {state.fatal}")
            raise state.fatal

        report.outcomes = [future.result() for future in futures]
        logger.info(report.summary())
        return report

    def _run_task(self, task: IndexTask, state: _RunState) -> Optional[IndexOutcome]:
        if state.abort.is_set():
            return None
        try:
            return run_task(task, self.fetcher, self.provider, self.writer)
        except Exception as e:
            state.record_fatal(e)
            raise

    def close(self) -> None:
        """Close the HTTP session if this indexer created it."""
        if self._owns_fetcher:
            self.fetcher.close()


def index_sampled(
    source_path: str | Path,
    database_path: str | Path,
    sample_size: int = DEFAULT_SAMPLE_SIZE,
    provider: Optional[FingerprintProvider] = None,
    max_in_flight: int = DEFAULT_MAX_IN_FLIGHT,
    timeout: float = DEFAULT_FETCH_TIMEOUT,
    show_progress: bool = True,
) -> IndexReport:
    """
    Sample a reference list file and index it into a fresh database file.

    Raises:
        OSError: If the reference list cannot be read
        DatabaseIOError: If the database cannot be written
    """
    references = load_reference_list(source_path)
    with DatabaseWriter.open(database_path) as writer:
        indexer = ConcurrentIndexer(
            provider or FingerprintProvider(),
            writer,
            max_in_flight=max_in_flight,
            timeout=timeout,
            show_progress=show_progress,
        )
        try:
            return indexer.run(references, sample_size=sample_size)
        finally:
            indexer.close()


__all__ = ['InFlightCounter', 'ConcurrentIndexer', 'index_sampled']
