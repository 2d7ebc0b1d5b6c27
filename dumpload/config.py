"""
dumpload/config.py

Runtime settings for dump ingestion, read from the environment (and `.env`
files) once per process.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from db.config import load_env_files


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    load_env_files()


def _raw_env(name: str) -> str | None:
    """
    Return the stripped variable value, or None when unset or blank.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return None
    return value.strip() or None


def _get_int_env(name: str, default: int, *, minimum: int) -> int:
    raw_value = _raw_env(name)
    if raw_value is None:
        return default
    try:
        return max(minimum, int(raw_value))
    except ValueError:
        return default


def _get_float_env(name: str, default: float, *, minimum: float) -> float:
    raw_value = _raw_env(name)
    if raw_value is None:
        return default
    try:
        return max(minimum, float(raw_value))
    except ValueError:
        return default


@dataclass(frozen=True)
class DumpIngestionSettings:
    """
    Settings for one ingestion run: batching, failure log, and working paths.
    """

    batch_capacity: int = 100
    failure_log_path: str = "failed_rows.log"
    work_dir: str = "tmp"
    output_dir: str = "out"
    resources_path: str | None = None
    log_level: str = "INFO"


@dataclass(frozen=True)
class DumpSourceSettings:
    """
    Settings for fetching the compressed dump archive.
    """

    download_url: str | None = None
    timeout_seconds: float = 60.0
    max_retries: int = 3
    backoff_initial_seconds: float = 0.5
    backoff_multiplier: float = 2.0
    chunk_size_bytes: int = 1024 * 1024


@lru_cache(maxsize=1)
def get_dump_ingestion_settings() -> DumpIngestionSettings:
    defaults = DumpIngestionSettings()
    return DumpIngestionSettings(
        batch_capacity=_get_int_env("DUMP_INGEST_BATCH_CAPACITY", defaults.batch_capacity, minimum=1),
        failure_log_path=_raw_env("DUMP_INGEST_FAILURE_LOG_PATH") or defaults.failure_log_path,
        work_dir=_raw_env("DUMP_INGEST_WORK_DIR") or defaults.work_dir,
        output_dir=_raw_env("DUMP_INGEST_OUTPUT_DIR") or defaults.output_dir,
        resources_path=_raw_env("DUMP_INGEST_RESOURCES_PATH"),
        log_level=_raw_env("LOG_LEVEL") or defaults.log_level,
    )


@lru_cache(maxsize=1)
def get_dump_source_settings() -> DumpSourceSettings:
    defaults = DumpSourceSettings()
    return DumpSourceSettings(
        download_url=_raw_env("DUMP_DOWNLOAD_URL"),
        timeout_seconds=_get_float_env(
            "DUMP_DOWNLOAD_TIMEOUT_SECONDS", defaults.timeout_seconds, minimum=1.0
        ),
        max_retries=_get_int_env("DUMP_DOWNLOAD_MAX_RETRIES", defaults.max_retries, minimum=0),
        backoff_initial_seconds=_get_float_env(
            "DUMP_DOWNLOAD_BACKOFF_INITIAL_SECONDS", defaults.backoff_initial_seconds, minimum=0.1
        ),
        backoff_multiplier=_get_float_env(
            "DUMP_DOWNLOAD_BACKOFF_MULTIPLIER", defaults.backoff_multiplier, minimum=1.0
        ),
        chunk_size_bytes=_get_int_env(
            "DUMP_DOWNLOAD_CHUNK_SIZE_BYTES", defaults.chunk_size_bytes, minimum=1024
        ),
    )
