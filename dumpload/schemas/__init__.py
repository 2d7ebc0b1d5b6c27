"""
dumpload/schemas package marker.
"""

from dumpload.schemas.run_summary import (
    JobResultResponse,
    RunSummaryResponse,
    build_run_summary_response,
)

__all__ = [
    "JobResultResponse",
    "RunSummaryResponse",
    "build_run_summary_response",
]
