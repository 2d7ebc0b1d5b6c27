"""
SQLAlchemy-backed transactional sink for destination tables.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from sqlalchemy import Table
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from db.models import DESTINATION_TABLES
from dumpload.domain.ingestion import Batch
from dumpload.repositories.dump_table_repository import DumpTableRepository, PartialApplyError
from dumpload.storage.base import CommitError, TransactionalSink
from dumpload.validators.record_validator import RecordSchemaError, RecordSchemaValidator

logger = logging.getLogger(__name__)


class SQLAlchemyTableSink(TransactionalSink):
    """
    Commit each batch inside its own transaction on a shared session.

    The session must not hold an open transaction between calls; every
    commit opens one with `session.begin()` and ends it before returning.
    """

    def __init__(
        self,
        *,
        session: Session,
        tables: Mapping[str, Table] | None = None,
        validator: RecordSchemaValidator | None = None,
    ) -> None:
        self._session = session
        self._tables = dict(tables) if tables is not None else dict(DESTINATION_TABLES)
        self._validator = validator or RecordSchemaValidator()

    @property
    def resources(self) -> tuple[str, ...]:
        return tuple(self._tables)

    def commit(self, batch: Batch, resource: str) -> int:
        table = self._tables.get(resource)
        if table is None:
            allowed = ", ".join(sorted(self._tables))
            raise CommitError(
                resource=resource,
                batch=batch,
                reason=f"Unknown resource. Configured resources: {allowed}.",
            )
        if not batch:
            return 0

        repository = DumpTableRepository(self._session)
        try:
            payloads = self._validator.build_payloads(table, batch)
            with self._session.begin():
                applied = repository.insert_rows(table, payloads)
        except RecordSchemaError as exc:
            raise CommitError(resource=resource, batch=batch, reason=str(exc)) from exc
        except (SQLAlchemyError, PartialApplyError) as exc:
            logger.debug("Batch rolled back resource=%s rows=%d", resource, len(batch))
            raise CommitError(resource=resource, batch=batch, reason=_describe_error(exc)) from exc

        return applied


def _describe_error(exc: Exception) -> str:
    """
    Prefer the driver's message over SQLAlchemy's statement dump.
    """

    original = getattr(exc, "orig", None)
    if original is not None:
        return f"{type(exc).__name__}: {original}"
    return f"{type(exc).__name__}: {exc}"
