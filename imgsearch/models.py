"""
Data models for the image similarity search.

Contains dataclasses for database entries, search results and the
units of work that flow through the indexer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Union


def format_count(n: int) -> str:
    """Format a count with thousands separators ('30,000')."""
    return f"{n:,}"


@dataclass(frozen=True)
class Entry:
    """
    One fingerprinted image in the database.

    Attributes:
        identifier: URL or relative path of the image (not necessarily unique)
        fingerprint: Unsigned 64-bit perceptual hash
    """
    identifier: str
    fingerprint: int


@dataclass(frozen=True)
class SearchResult:
    """
    One match returned by a search.

    Attributes:
        identifier: Identifier of the matching entry
        distance: Distance between the query and the entry fingerprint
    """
    identifier: str
    distance: float

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            'identifier': self.identifier,
            'distance': self.distance,
        }


class TaskStage(Enum):
    """Stages an index task moves through."""
    PENDING = 'pending'
    FETCHING = 'fetching'
    DECODING = 'decoding'
    HASHING = 'hashing'
    WRITING = 'writing'
    DONE = 'done'
    DROPPED_ON_ERROR = 'dropped_on_error'

    @property
    def is_terminal(self) -> bool:
        return self in (TaskStage.DONE, TaskStage.DROPPED_ON_ERROR)


# Legal stage transitions. A task only reaches WRITING once hashing succeeded,
# and WRITING is never left for DROPPED_ON_ERROR.
_TRANSITIONS = {
    TaskStage.PENDING: {TaskStage.FETCHING},
    TaskStage.FETCHING: {TaskStage.DECODING, TaskStage.DROPPED_ON_ERROR},
    TaskStage.DECODING: {TaskStage.HASHING, TaskStage.DROPPED_ON_ERROR},
    TaskStage.HASHING: {TaskStage.WRITING, TaskStage.DROPPED_ON_ERROR},
    TaskStage.WRITING: {TaskStage.DONE},
    TaskStage.DONE: set(),
    TaskStage.DROPPED_ON_ERROR: set(),
}


@dataclass
class IndexTask:
    """
    A single image reference on its way into the database.

    Attributes:
        reference: URL or file path to fetch
        position: Zero-based sequence position (for progress reporting)
        total: Number of tasks in the run
        identifier: Identifier written to the database (defaults to reference)
        stage: Current pipeline stage
    """
    reference: str
    position: int = 0
    total: int = 0
    identifier: str = ""
    stage: TaskStage = TaskStage.PENDING

    def __post_init__(self):
        if not self.identifier:
            self.identifier = self.reference

    def advance(self, stage: TaskStage) -> None:
        """
        Move the task to the given stage.

        Raises:
            ValueError: If the transition is not allowed from the current stage
        """
        if stage not in _TRANSITIONS[self.stage]:
            raise ValueError(
                f"Illegal task transition {self.stage.value} -> {stage.value} "
                f"for {self.reference!r}"
            )
        self.stage = stage

    @property
    def progress_label(self) -> str:
        """Return '[position/total]' using one-based positions."""
        return f"[{self.position + 1}/{self.total}]"


@dataclass(frozen=True)
class Indexed:
    """Outcome of a task that produced a database entry."""
    task: IndexTask
    entry: Entry


@dataclass(frozen=True)
class Dropped:
    """Outcome of a task that failed before writing."""
    task: IndexTask
    stage: TaskStage
    reason: str


IndexOutcome = Union[Indexed, Dropped]


@dataclass
class IndexReport:
    """
    Summary of one indexing run.

    Attributes:
        requested: Number of entries asked for (sample size or files found)
        dispatched: Number of tasks actually started
        outcomes: Task outcomes ordered by task position
        peak_in_flight: Highest number of tasks running at once
        elapsed: Wall-clock seconds spent on the run
    """
    requested: int = 0
    dispatched: int = 0
    outcomes: list = field(default_factory=list)
    peak_in_flight: int = 0
    elapsed: float = 0.0

    @property
    def indexed(self) -> int:
        """Number of tasks that wrote an entry."""
        return sum(1 for outcome in self.outcomes if isinstance(outcome, Indexed))

    @property
    def dropped(self) -> int:
        """Number of tasks dropped on error."""
        return sum(1 for outcome in self.outcomes if isinstance(outcome, Dropped))

    @property
    def entries(self) -> list[Entry]:
        """Entries written during the run, in task order."""
        return [outcome.entry for outcome in self.outcomes if isinstance(outcome, Indexed)]

    @property
    def success_rate(self) -> float:
        """Return indexed tasks as a percentage of dispatched tasks."""
        if self.dispatched == 0:
            return 0.0
        return (self.indexed / self.dispatched) * 100

    def summary(self) -> str:
        """One-line human readable summary."""
        return (
            f"indexed {format_count(self.indexed)} of {format_count(self.dispatched)} images "
            f"({format_count(self.dropped)} dropped, {self.success_rate:.1f}% success) "
            f"in {self.elapsed:.1f}s"
        )


__all__ = [
    'format_count',
    'Entry',
    'SearchResult',
    'TaskStage',
    'IndexTask',
    'Indexed',
    'Dropped',
    'IndexOutcome',
    'IndexReport',
]
