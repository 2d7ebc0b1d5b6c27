"""
tests/conftest.py

Shared fixtures: a file-backed SQLite destination, a session-bound sink, and
a failure logger writing under the test's temporary directory.
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from db.schema import provision_schema
from db.session import build_session_factory, create_db_engine
from dumpload.services.failure_logger import FailureLogger
from dumpload.storage.sqlalchemy_sink import SQLAlchemyTableSink


@pytest.fixture()
def engine(tmp_path: Path) -> Iterator[Engine]:
    db_engine = create_db_engine(f"sqlite:///{tmp_path / 'ingest.sqlite'}", bulk_load=True)
    provision_schema(db_engine)
    yield db_engine
    db_engine.dispose()


@pytest.fixture()
def session(engine: Engine) -> Iterator[Session]:
    db_session = build_session_factory(engine)()
    yield db_session
    db_session.close()


@pytest.fixture()
def sink(session: Session) -> SQLAlchemyTableSink:
    return SQLAlchemyTableSink(session=session)


@pytest.fixture()
def failure_log_path(tmp_path: Path) -> Path:
    return tmp_path / "logs" / "failed_rows.log"


@pytest.fixture()
def failure_logger(failure_log_path: Path) -> FailureLogger:
    return FailureLogger(failure_log_path, fsync=False)
