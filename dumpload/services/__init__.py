"""
dumpload/services package marker.
"""

from dumpload.services.batcher import DEFAULT_BATCH_CAPACITY, Batcher, BatcherBusyError
from dumpload.services.dump_pipeline import DumpIngestionPipeline
from dumpload.services.failure_logger import FailureLogger, LogWriteError
from dumpload.services.job_orchestrator import JobOrchestrator
from dumpload.services.stream_job_runner import StreamJobRunner

__all__ = [
    "DEFAULT_BATCH_CAPACITY",
    "Batcher",
    "BatcherBusyError",
    "DumpIngestionPipeline",
    "FailureLogger",
    "LogWriteError",
    "JobOrchestrator",
    "StreamJobRunner",
]
