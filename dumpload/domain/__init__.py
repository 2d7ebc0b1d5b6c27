"""
dumpload/domain package marker.
"""

from dumpload.domain.ingestion import (
    Batch,
    FieldValue,
    JobResult,
    JobSpec,
    JobState,
    Record,
    RecordSourceFactory,
    RunSummary,
)

__all__ = [
    "Batch",
    "FieldValue",
    "JobResult",
    "JobSpec",
    "JobState",
    "Record",
    "RecordSourceFactory",
    "RunSummary",
]
