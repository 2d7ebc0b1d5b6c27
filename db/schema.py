"""
db/schema.py

Destination schema provisioning for ingestion runs.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from sqlalchemy import Table, inspect
from sqlalchemy.engine import Engine

from db.base import Base
from db.models import DESTINATION_TABLES

logger = logging.getLogger(__name__)


def provision_schema(engine: Engine, *, tables: Iterable[Table] | None = None) -> list[str]:
    """
    Create destination tables that do not exist yet.

    Existing tables are left untouched. Returns the names of tables created.
    """

    selected = list(tables) if tables is not None else list(DESTINATION_TABLES.values())
    existing = set(inspect(engine).get_table_names())
    missing = [table for table in selected if table.name not in existing]
    if missing:
        Base.metadata.create_all(engine, tables=missing, checkfirst=True)
        logger.info(
            "Provisioned destination tables: %s",
            ", ".join(table.name for table in missing),
        )
    return [table.name for table in missing]
