"""
Storage layer interfaces for transactional batch commits.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from dumpload.domain.ingestion import Batch


class CommitError(RuntimeError):
    """
    Raised when the destination rejected a batch and rolled it back.

    Carries the failed batch verbatim so it can be logged for offline recovery.
    """

    def __init__(self, *, resource: str, batch: Batch, reason: str) -> None:
        super().__init__(f"Commit of {len(batch)} rows into '{resource}' failed: {reason}")
        self.resource = resource
        self.batch = batch
        self.reason = reason


class TransactionalSink(ABC):
    """
    Storage abstraction that applies one batch as a single atomic unit.
    """

    @abstractmethod
    def commit(self, batch: Batch, resource: str) -> int:
        """
        Apply every record of `batch` to `resource` and return rows applied.

        Raises CommitError after rolling back when any part of the batch fails.
        """
