"""
Record sources for ingestion jobs.
"""

from dumpload.sources.base import RecordSource, SourceError
from dumpload.sources.csv_source import CSVRecordSource
from dumpload.sources.iterable_source import IterableRecordSource

__all__ = [
    "CSVRecordSource",
    "IterableRecordSource",
    "RecordSource",
    "SourceError",
]
