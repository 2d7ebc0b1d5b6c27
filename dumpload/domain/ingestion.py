"""
dumpload/domain/ingestion.py

Domain models for streaming batched ingestion runs.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import TYPE_CHECKING, Union

if TYPE_CHECKING:
    from dumpload.sources.base import RecordSource

FieldValue = Union[str, int, date, None]

# One decoded input row, keyed by header name in header order.
Record = Mapping[str, FieldValue]

# Records committed together in one transaction, in source order.
Batch = tuple[Record, ...]

RecordSourceFactory = Callable[[], "RecordSource"]


class JobState(str, Enum):
    """
    Terminal state of one resource's ingestion job.
    """

    COMPLETED = "completed"
    FAILED_PARTWAY = "failed_partway"
    SOURCE_ERROR = "source_error"


@dataclass(frozen=True)
class JobSpec:
    """
    One orchestrated job: the destination resource and how to open its source.
    """

    resource: str
    source_factory: RecordSourceFactory


@dataclass(frozen=True)
class JobResult:
    """
    Final outcome of one resource's ingestion job.

    `rows_committed` only counts rows from batches the sink confirmed.
    """

    resource: str
    state: JobState
    rows_committed: int
    batches_committed: int
    started_at: datetime
    finished_at: datetime
    error_message: str | None = None
    warnings: tuple[str, ...] = ()

    @property
    def is_success(self) -> bool:
        return self.state is JobState.COMPLETED

    @property
    def duration_seconds(self) -> float:
        return (self.finished_at - self.started_at).total_seconds()


@dataclass(frozen=True)
class RunSummary:
    """
    Aggregate report of every job attempted in one run, in orchestration order.
    """

    results: tuple[JobResult, ...]
    started_at: datetime
    finished_at: datetime
    aborted: bool = False

    @property
    def total_rows_committed(self) -> int:
        return sum(result.rows_committed for result in self.results)

    @property
    def duration_seconds(self) -> float:
        return (self.finished_at - self.started_at).total_seconds()

    @property
    def failed_results(self) -> tuple[JobResult, ...]:
        return tuple(result for result in self.results if not result.is_success)

    @property
    def all_completed(self) -> bool:
        return not self.aborted and not self.failed_results

    def result_for(self, resource: str) -> JobResult | None:
        for result in self.results:
            if result.resource == resource:
                return result
        return None
