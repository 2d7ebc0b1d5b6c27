"""
dumpload/schemas/run_summary.py

Serializable views of ingestion job results and run summaries.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from dumpload.domain.ingestion import JobResult, JobState, RunSummary


class JobResultResponse(BaseModel):
    """
    Output model for one resource's job outcome.
    """

    resource: str
    state: JobState
    rows_committed: int = Field(..., ge=0)
    batches_committed: int = Field(..., ge=0)
    started_at: datetime
    finished_at: datetime
    duration_seconds: float = Field(..., ge=0)
    error_message: str | None = None
    warnings: list[str] = Field(default_factory=list)


class RunSummaryResponse(BaseModel):
    """
    Output model for a whole ingestion run.
    """

    results: list[JobResultResponse] = Field(default_factory=list)
    total_rows_committed: int = Field(..., ge=0)
    all_completed: bool
    aborted: bool = False
    started_at: datetime
    finished_at: datetime
    duration_seconds: float = Field(..., ge=0)


def _build_job_result_response(result: JobResult) -> JobResultResponse:
    return JobResultResponse(
        resource=result.resource,
        state=result.state,
        rows_committed=result.rows_committed,
        batches_committed=result.batches_committed,
        started_at=result.started_at,
        finished_at=result.finished_at,
        duration_seconds=max(0.0, result.duration_seconds),
        error_message=result.error_message,
        warnings=list(result.warnings),
    )


def build_run_summary_response(summary: RunSummary) -> RunSummaryResponse:
    return RunSummaryResponse(
        results=[_build_job_result_response(result) for result in summary.results],
        total_rows_committed=summary.total_rows_committed,
        all_completed=summary.all_completed,
        aborted=summary.aborted,
        started_at=summary.started_at,
        finished_at=summary.finished_at,
        duration_seconds=max(0.0, summary.duration_seconds),
    )
