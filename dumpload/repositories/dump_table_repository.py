"""
dumpload/repositories/dump_table_repository.py

Persistence layer for dump rows landing in destination tables.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from sqlalchemy import Table, insert
from sqlalchemy.orm import Session


class PartialApplyError(RuntimeError):
    """
    Raised when the driver reports a row count different from the payload count.
    """


class DumpTableRepository:
    """
    Repository for batch inserts into one destination table.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def insert_rows(self, table: Table, payloads: Sequence[dict[str, Any]]) -> int:
        """
        Insert payloads with one executemany statement in the caller's transaction.
        """

        if not payloads:
            return 0

        result = self._session.execute(insert(table), list(payloads))
        expected = len(payloads)
        if self._reports_multi_rowcount() and result.rowcount not in (-1, expected):
            raise PartialApplyError(
                f"Driver reported {result.rowcount} rows applied to '{table.name}', "
                f"expected {expected}."
            )
        return expected

    def _reports_multi_rowcount(self) -> bool:
        return bool(self._session.get_bind().dialect.supports_sane_multi_rowcount)
