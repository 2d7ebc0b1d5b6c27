"""
dumpload/services/dump_pipeline.py

End-to-end dump ingestion: fetch and unpack the archive, prepare the
destination schema, then stream every configured resource into its table.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from sqlalchemy.engine import make_url

from db.config import describe_database_url, resolve_database_url
from db.schema import provision_schema
from db.session import build_session_factory, create_db_engine, is_sqlite_url
from dumpload.config import (
    DumpIngestionSettings,
    DumpSourceSettings,
    get_dump_ingestion_settings,
    get_dump_source_settings,
)
from dumpload.connectors.dump_archive import DumpArchiveConnector, extract_archive
from dumpload.domain.ingestion import JobSpec, RecordSourceFactory, RunSummary
from dumpload.resources import ResourceConfig, load_resource_configs
from dumpload.services.failure_logger import FailureLogger
from dumpload.services.job_orchestrator import JobOrchestrator
from dumpload.sources.csv_source import CSVRecordSource
from dumpload.storage.sqlalchemy_sink import SQLAlchemyTableSink

logger = logging.getLogger(__name__)

ARCHIVE_FILE_NAME = "dump.tar.gz"
EXTRACTED_DIR_NAME = "extracted"


class DumpIngestionPipeline:
    """
    Wire archive retrieval, schema provisioning, and job orchestration together.

    Exactly one of `archive_url`, `archive_path`, or `extracted_dir` selects
    where CSV files come from; with none given, the configured download URL
    is used.
    """

    def __init__(
        self,
        *,
        settings: DumpIngestionSettings | None = None,
        source_settings: DumpSourceSettings | None = None,
        resources: Sequence[ResourceConfig] | None = None,
        database_url: str | None = None,
        archive_url: str | None = None,
        archive_path: str | Path | None = None,
        extracted_dir: str | Path | None = None,
        connector: DumpArchiveConnector | None = None,
    ) -> None:
        selected = [value for value in (archive_url, archive_path, extracted_dir) if value]
        if len(selected) > 1:
            raise ValueError("Provide at most one of archive_url, archive_path, or extracted_dir.")

        self._settings = settings or get_dump_ingestion_settings()
        self._source_settings = source_settings or get_dump_source_settings()
        self._resources = (
            list(resources)
            if resources is not None
            else load_resource_configs(self._settings.resources_path)
        )
        self._database_url = database_url
        self._archive_url = archive_url
        self._archive_path = Path(archive_path) if archive_path else None
        self._extracted_dir = Path(extracted_dir) if extracted_dir else None
        self._connector = connector
        self._orchestrator: JobOrchestrator | None = None
        self._stop_requested = False

    def request_stop(self) -> None:
        """
        Ask the running orchestrator to stop before its next job.
        """

        self._stop_requested = True
        if self._orchestrator is not None:
            self._orchestrator.request_stop()

    def run(self) -> RunSummary:
        data_dir = self._prepare_data_dir()
        database_url = self._database_url or resolve_database_url()
        _ensure_sqlite_parent(database_url)
        logger.info("Loading dump into %s", describe_database_url(database_url))

        engine = create_db_engine(database_url, bulk_load=True)
        session = build_session_factory(engine)()
        try:
            provision_schema(engine)
            sink = SQLAlchemyTableSink(session=session)
            failure_logger = FailureLogger(self._settings.failure_log_path)
            self._orchestrator = JobOrchestrator(
                sink=sink,
                failure_logger=failure_logger,
                batch_capacity=self._settings.batch_capacity,
            )
            if self._stop_requested:
                self._orchestrator.request_stop()
            return self._orchestrator.run(self.build_jobs(data_dir))
        finally:
            session.close()
            engine.dispose()
            logger.info("Database connection closed.")

    def build_jobs(self, data_dir: Path) -> list[JobSpec]:
        return [
            JobSpec(
                resource=config.resource,
                source_factory=_csv_source_factory(config.resolve_source(data_dir), config.resource),
            )
            for config in self._resources
        ]

    def _prepare_data_dir(self) -> Path:
        work_dir = Path(self._settings.work_dir)
        Path(self._settings.output_dir).mkdir(parents=True, exist_ok=True)

        if self._extracted_dir is not None:
            logger.info("Using extracted dump directory %s", self._extracted_dir)
            return self._extracted_dir

        archive_path = self._archive_path
        if archive_path is None:
            url = self._archive_url or self._source_settings.download_url
            if not url:
                raise ValueError(
                    "No dump source configured. Pass an archive URL, archive path, "
                    "or extracted directory, or set DUMP_DOWNLOAD_URL."
                )
            connector = self._connector or DumpArchiveConnector(settings=self._source_settings)
            logger.info("Downloading dump archive from %s", url)
            archive_path = connector.download(url, work_dir / ARCHIVE_FILE_NAME)

        return extract_archive(archive_path, work_dir / EXTRACTED_DIR_NAME)


def _csv_source_factory(path: Path, resource: str) -> RecordSourceFactory:
    def _open() -> CSVRecordSource:
        return CSVRecordSource.from_path(path, name=resource)

    return _open


def _ensure_sqlite_parent(database_url: str) -> None:
    if not is_sqlite_url(database_url):
        return
    database = make_url(database_url).database
    if database and database != ":memory:":
        Path(database).parent.mkdir(parents=True, exist_ok=True)
