"""
Transactional sinks for ingestion batches.
"""

from dumpload.storage.base import CommitError, TransactionalSink
from dumpload.storage.sqlalchemy_sink import SQLAlchemyTableSink

__all__ = [
    "CommitError",
    "SQLAlchemyTableSink",
    "TransactionalSink",
]
