"""
dumpload/services/stream_job_runner.py

Drive one record source through a batcher into the sink for one resource.

State machine:

    RUNNING -> COMPLETED        source ended, every batch committed
    RUNNING -> FAILED_PARTWAY   the sink rejected a batch
    RUNNING -> SOURCE_ERROR     the source could not be opened or decoded

Record consumption and batch commits are strictly serialized: the source is
paused before each commit and resumed only after the commit (and, on failure,
the failure log write) has returned.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from dumpload.domain.ingestion import Batch, JobResult, JobState, RecordSourceFactory
from dumpload.logging_utils import log_event
from dumpload.services.batcher import DEFAULT_BATCH_CAPACITY, Batcher
from dumpload.services.failure_logger import FailureLogger, LogWriteError
from dumpload.sources.base import RecordSource, SourceError
from dumpload.storage.base import CommitError, TransactionalSink

logger = logging.getLogger(__name__)


class StreamJobRunner:
    """
    Run one resource's ingestion job to a terminal state exactly once.
    """

    def __init__(
        self,
        *,
        resource: str,
        source_factory: RecordSourceFactory,
        sink: TransactionalSink,
        failure_logger: FailureLogger,
        batch_capacity: int = DEFAULT_BATCH_CAPACITY,
    ) -> None:
        self._resource = resource
        self._source_factory = source_factory
        self._sink = sink
        self._failure_logger = failure_logger
        self._batcher = Batcher(batch_capacity)

        self._rows_committed = 0
        self._batches_committed = 0
        self._warnings: list[str] = []
        self._error_message: str | None = None
        self._started_at: datetime | None = None
        self._result: JobResult | None = None

    @property
    def resource(self) -> str:
        return self._resource

    @property
    def rows_committed(self) -> int:
        return self._rows_committed

    @property
    def batches_committed(self) -> int:
        return self._batches_committed

    @property
    def result(self) -> JobResult | None:
        return self._result

    def run(self) -> JobResult:
        if self._started_at is not None:
            raise RuntimeError(f"Ingestion job for '{self._resource}' has already run.")
        self._started_at = datetime.now(timezone.utc)
        log_event(
            logger,
            logging.INFO,
            "ingestion_job_started",
            resource=self._resource,
            batch_capacity=self._batcher.capacity,
        )

        try:
            source = self._source_factory()
        except (SourceError, OSError) as exc:
            return self._finish(JobState.SOURCE_ERROR, error_message=f"Cannot open source: {exc}")

        with source:
            try:
                for record in source:
                    batch = self._batcher.add(record)
                    if batch is not None and not self._commit(source, batch):
                        return self._finish(JobState.FAILED_PARTWAY)
            except SourceError as exc:
                dropped = self._batcher.discard()
                logger.warning(
                    "Source error for %s after %d committed rows; discarded %d uncommitted rows: %s",
                    self._resource,
                    self._rows_committed,
                    dropped,
                    exc,
                )
                return self._finish(JobState.SOURCE_ERROR, error_message=str(exc))

            remainder = self._batcher.flush()
            if remainder is not None and not self._commit(source, remainder):
                return self._finish(JobState.FAILED_PARTWAY)

        return self._finish(JobState.COMPLETED)

    def _commit(self, source: RecordSource, batch: Batch) -> bool:
        source.pause()
        try:
            applied = self._sink.commit(batch, self._resource)
        except CommitError as exc:
            self._error_message = str(exc)
            log_event(
                logger,
                logging.ERROR,
                "ingestion_batch_failed",
                resource=self._resource,
                batch_number=self._batches_committed + 1,
                batch_size=len(exc.batch),
                rows_committed=self._rows_committed,
                reason=exc.reason,
            )
            self._log_failed_batch(exc.batch)
            self._batcher.release()
            return False

        self._batcher.release()
        self._rows_committed += applied
        self._batches_committed += 1
        log_event(
            logger,
            logging.DEBUG,
            "ingestion_batch_committed",
            resource=self._resource,
            batch_number=self._batches_committed,
            batch_size=applied,
        )
        logger.info(
            "Total rows inserted into %s so far: %d",
            self._resource,
            self._rows_committed,
        )
        source.resume()
        return True

    def _log_failed_batch(self, batch: Batch) -> None:
        try:
            self._failure_logger.record(batch, self._resource)
        except LogWriteError as exc:
            warning = f"Failed batch could not be logged: {exc}"
            self._warnings.append(warning)
            logger.warning("%s resource=%s", warning, self._resource)

    def _finish(self, state: JobState, *, error_message: str | None = None) -> JobResult:
        started_at = self._started_at or datetime.now(timezone.utc)
        if error_message is None:
            error_message = self._error_message

        self._result = JobResult(
            resource=self._resource,
            state=state,
            rows_committed=self._rows_committed,
            batches_committed=self._batches_committed,
            started_at=started_at,
            finished_at=datetime.now(timezone.utc),
            error_message=error_message,
            warnings=tuple(self._warnings),
        )

        if state is JobState.COMPLETED:
            logger.info(
                "Finished inserting %s. Total inserted: %d",
                self._resource,
                self._rows_committed,
            )
        else:
            logger.warning(
                "Inserted %d rows into %s table before stopping (%s).",
                self._rows_committed,
                self._resource,
                state.value,
            )
        log_event(
            logger,
            logging.INFO,
            "ingestion_job_finished",
            resource=self._resource,
            state=state.value,
            rows_committed=self._rows_committed,
            batches_committed=self._batches_committed,
            duration_seconds=round(self._result.duration_seconds, 3),
        )
        return self._result
