"""
db/session.py

SQLAlchemy engine and session factory.
"""

from __future__ import annotations

import os
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from db.config import resolve_database_url

# Applied to every new SQLite connection of a bulk-load engine.
_SQLITE_BULK_LOAD_PRAGMAS: tuple[str, ...] = (
    "PRAGMA foreign_keys = OFF",
    "PRAGMA synchronous = OFF",
)


def _get_bool_env(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def is_sqlite_url(database_url: str) -> bool:
    return database_url.startswith("sqlite")


def create_db_engine(database_url: str | None = None, *, bulk_load: bool = False) -> Engine:
    """
    Create an engine for the destination store.

    PostgreSQL targets get pooled connections; SQLite targets optionally get
    bulk-load pragmas applied on every new DBAPI connection.
    """

    url = database_url or resolve_database_url()
    echo = _get_bool_env("SQL_ECHO", default=False)

    if is_sqlite_url(url):
        engine = create_engine(url, echo=echo)
        if bulk_load:
            _install_sqlite_bulk_load_pragmas(engine)
        return engine

    return create_engine(
        url,
        echo=echo,
        pool_pre_ping=True,
        pool_recycle=_get_int_env("DB_POOL_RECYCLE", 1800),
        pool_size=_get_int_env("DB_POOL_SIZE", 5),
        max_overflow=_get_int_env("DB_MAX_OVERFLOW", 10),
    )


def _install_sqlite_bulk_load_pragmas(engine: Engine) -> None:
    @event.listens_for(engine, "connect")
    def _apply_pragmas(dbapi_connection: Any, _connection_record: Any) -> None:
        cursor = dbapi_connection.cursor()
        try:
            for pragma in _SQLITE_BULK_LOAD_PRAGMAS:
                cursor.execute(pragma)
        finally:
            cursor.close()


def build_session_factory(engine: Engine) -> sessionmaker[Session]:
    """
    Session factory used by ingestion runs.

    Sessions never autoflush; every write happens inside an explicit
    `session.begin()` block owned by the sink.
    """

    return sessionmaker(
        bind=engine,
        class_=Session,
        autoflush=False,
        expire_on_commit=False,
    )
