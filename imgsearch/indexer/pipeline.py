"""
Single-task indexing pipeline.

Drives one IndexTask through fetch, decode, hash and write. Shared by the
sequential directory indexer and the concurrent sampled indexer.
"""

from __future__ import annotations

import logging

from ..database import DatabaseWriter, normalize_identifier
from ..exceptions import DecodeError, FetchError, HashError, IndexTaskError
from ..fingerprint import FingerprintProvider, decode_image
from ..models import Dropped, Entry, IndexOutcome, Indexed, IndexTask, TaskStage

logger = logging.getLogger(__name__)


def run_task(
    task: IndexTask,
    fetcher,
    provider: FingerprintProvider,
    writer: DatabaseWriter,
) -> IndexOutcome:
    """
    Fetch, decode, hash and write one image.

    A failure while fetching, decoding or hashing drops the task; nothing is
    written for it. Write failures are not task failures and propagate.

    Args:
        task: Task in the PENDING stage
        fetcher: Object with a fetch(reference) -> bytes method
        provider: Fingerprint provider
        writer: Shared database writer

    Returns:
        Indexed(task, entry) or Dropped(task, stage, reason)

    Raises:
        DatabaseIOError: If the database line cannot be written
    """
    try:
        task.advance(TaskStage.FETCHING)
        data = fetcher.fetch(task.reference)

        task.advance(TaskStage.DECODING)
        image = decode_image(data)

        task.advance(TaskStage.HASHING)
        fingerprint = provider.hash(image)
    except (FetchError, DecodeError, HashError) as e:
        return _drop(task, e)

    entry = Entry(identifier=normalize_identifier(task.identifier), fingerprint=fingerprint)
    task.advance(TaskStage.WRITING)
    writer.append(entry)
    task.advance(TaskStage.DONE)

    logger.info(f"{task.progress_label} indexed image \"{task.reference}\" (hash: {fingerprint})")
    return Indexed(task=task, entry=entry)


def _drop(task: IndexTask, error: IndexTaskError) -> Dropped:
    stage = task.stage
    task.advance(TaskStage.DROPPED_ON_ERROR)
    logger.warning(
        f"{task.progress_label} skipped \"{task.reference}\" while {stage.value}: {error}"
    )
    return Dropped(task=task, stage=stage, reason=str(error))


__all__ = ['run_task']
