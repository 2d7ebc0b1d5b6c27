"""
dumpload/services/failure_logger.py

Append-only JSON Lines log of batches the sink rejected.

Each line is one record:

    {"logged_at": "...", "record": {...}, "resource": "customers"}

Replaying the log is a manual recovery step outside the ingestion run.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Sequence
from datetime import datetime, timezone
from pathlib import Path

from dumpload.domain.ingestion import Record

logger = logging.getLogger(__name__)

DEFAULT_FAILURE_LOG_PATH = "failed_rows.log"


class LogWriteError(RuntimeError):
    """
    Raised when a failed batch cannot be persisted to the failure log.
    """


class FailureLogger:
    """
    Durably append the exact rows of rejected batches.
    """

    def __init__(self, path: str | Path = DEFAULT_FAILURE_LOG_PATH, *, fsync: bool = True) -> None:
        self._path = Path(path)
        self._fsync = fsync

    @property
    def path(self) -> Path:
        return self._path

    def record(self, batch: Sequence[Record], resource: str) -> int:
        """
        Append every record of `batch` tagged with `resource`; return lines written.
        """

        if not batch:
            return 0

        logged_at = datetime.now(timezone.utc).isoformat()
        try:
            lines = [
                json.dumps(
                    {"resource": resource, "logged_at": logged_at, "record": dict(record)},
                    default=str,
                    ensure_ascii=False,
                    sort_keys=True,
                )
                for record in batch
            ]
        except (TypeError, ValueError) as exc:
            raise LogWriteError(f"Failed rows for '{resource}' could not be serialized: {exc}") from exc

        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("a", encoding="utf-8") as handle:
                handle.write("\n".join(lines) + "\n")
                handle.flush()
                if self._fsync:
                    os.fsync(handle.fileno())
        except OSError as exc:
            raise LogWriteError(
                f"Failed rows for '{resource}' could not be written to {self._path}: {exc}"
            ) from exc

        logger.info("Failed rows logged to %s resource=%s rows=%d", self._path, resource, len(lines))
        return len(lines)
