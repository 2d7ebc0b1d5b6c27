"""
dumpload/services/job_orchestrator.py

Run a fixed, ordered set of ingestion jobs one at a time.

A job that ends FAILED_PARTWAY or SOURCE_ERROR never prevents the next job
from running; every attempted job appears in the RunSummary.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Sequence
from datetime import datetime, timezone

from dumpload.domain.ingestion import JobResult, JobSpec, JobState, RunSummary
from dumpload.logging_utils import log_event
from dumpload.services.batcher import DEFAULT_BATCH_CAPACITY, validate_batch_capacity
from dumpload.services.failure_logger import FailureLogger
from dumpload.services.stream_job_runner import StreamJobRunner
from dumpload.storage.base import TransactionalSink

logger = logging.getLogger(__name__)


class JobOrchestrator:
    """
    Coordinates sequential job execution and run summary aggregation.
    """

    def __init__(
        self,
        *,
        sink: TransactionalSink,
        failure_logger: FailureLogger,
        batch_capacity: int = DEFAULT_BATCH_CAPACITY,
    ) -> None:
        validate_batch_capacity(batch_capacity)
        self._sink = sink
        self._failure_logger = failure_logger
        self._batch_capacity = batch_capacity
        self._stop_requested = threading.Event()

    def request_stop(self) -> None:
        """
        Stop the run before the next job starts. The running job finishes.
        """

        self._stop_requested.set()

    def run(self, jobs: Sequence[JobSpec]) -> RunSummary:
        started_at = datetime.now(timezone.utc)
        results: list[JobResult] = []
        aborted = False

        for position, job in enumerate(jobs):
            if self._stop_requested.is_set():
                aborted = True
                logger.warning(
                    "Run stopped before %s; %d job(s) not attempted.",
                    job.resource,
                    len(jobs) - position,
                )
                break

            logger.info("Starting insertion for %s...", job.resource)
            results.append(self._run_job(job))

        summary = RunSummary(
            results=tuple(results),
            started_at=started_at,
            finished_at=datetime.now(timezone.utc),
            aborted=aborted,
        )
        self._log_summary(summary)
        return summary

    def _run_job(self, job: JobSpec) -> JobResult:
        runner = StreamJobRunner(
            resource=job.resource,
            source_factory=job.source_factory,
            sink=self._sink,
            failure_logger=self._failure_logger,
            batch_capacity=self._batch_capacity,
        )
        job_started_at = datetime.now(timezone.utc)
        try:
            return runner.run()
        except Exception as exc:  # noqa: BLE001
            logger.exception("Ingestion job crashed resource=%s error=%s", job.resource, exc)
            if runner.result is not None:
                return runner.result
            return JobResult(
                resource=job.resource,
                state=JobState.FAILED_PARTWAY,
                rows_committed=runner.rows_committed,
                batches_committed=runner.batches_committed,
                started_at=job_started_at,
                finished_at=datetime.now(timezone.utc),
                error_message=f"{type(exc).__name__}: {exc}",
            )

    def _log_summary(self, summary: RunSummary) -> None:
        logger.info("Data insertion process completed.")
        for result in summary.results:
            logger.info(
                "Total rows inserted into %s table: %d (%s)",
                result.resource,
                result.rows_committed,
                result.state.value,
            )
        log_event(
            logger,
            logging.INFO,
            "ingestion_run_finished",
            jobs=len(summary.results),
            failed_jobs=len(summary.failed_results),
            total_rows_committed=summary.total_rows_committed,
            duration_seconds=round(summary.duration_seconds, 3),
            aborted=summary.aborted,
        )
