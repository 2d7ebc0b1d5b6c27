"""
dumpload/connectors/dump_archive.py

Fetch and unpack the compressed CSV dump archive.
"""

from __future__ import annotations

import logging
import tarfile
import time
from pathlib import Path

import requests

from dumpload.config import DumpSourceSettings

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}


class ArchiveFetchError(RuntimeError):
    """
    Raised when the dump archive cannot be downloaded or unpacked.
    """


class DumpArchiveConnector:
    """
    Stream a remote archive to local disk with retry and exponential backoff.
    """

    def __init__(
        self,
        *,
        settings: DumpSourceSettings,
        session: requests.Session | None = None,
    ) -> None:
        self._session = session or requests.Session()
        self._timeout_seconds = settings.timeout_seconds
        self._max_retries = settings.max_retries
        self._backoff_initial_seconds = settings.backoff_initial_seconds
        self._backoff_multiplier = settings.backoff_multiplier
        self._chunk_size_bytes = settings.chunk_size_bytes

    def download(self, url: str, destination: str | Path) -> Path:
        """
        Download `url` into `destination` and return the written path.

        The body is written to a `.part` file first and renamed on success, so
        an interrupted download never leaves a truncated archive in place.
        """

        target = Path(destination)
        target.parent.mkdir(parents=True, exist_ok=True)
        partial = target.with_name(target.name + ".part")

        last_error: Exception | None = None
        for attempt in range(self._max_retries + 1):
            try:
                written = self._stream_to_file(url, partial)
                partial.replace(target)
                logger.info("Downloaded dump archive url=%s bytes=%d path=%s", url, written, target)
                return target
            except requests.HTTPError as exc:
                last_error = exc
                status_code = exc.response.status_code if exc.response is not None else None
                if status_code not in RETRYABLE_STATUS_CODES:
                    logger.error("Archive download failed status=%s url=%s", status_code, url)
                    raise ArchiveFetchError(f"Archive download failed with status {status_code}.") from exc
            except (requests.Timeout, requests.ConnectionError) as exc:
                last_error = exc
            except OSError as exc:
                raise ArchiveFetchError(f"Cannot write archive to {target}: {exc}") from exc

            if attempt >= self._max_retries:
                break

            backoff_seconds = self._backoff_initial_seconds * (self._backoff_multiplier**attempt)
            logger.warning(
                "Archive download retry attempt=%s/%s wait_seconds=%.2f url=%s",
                attempt + 1,
                self._max_retries,
                backoff_seconds,
                url,
            )
            time.sleep(backoff_seconds)

        partial.unlink(missing_ok=True)
        raise ArchiveFetchError("Archive download failed after retries.") from last_error

    def _stream_to_file(self, url: str, path: Path) -> int:
        written = 0
        with self._session.get(url, stream=True, timeout=self._timeout_seconds) as response:
            if response.status_code in RETRYABLE_STATUS_CODES:
                raise requests.HTTPError(
                    f"Retryable HTTP status code: {response.status_code}",
                    response=response,
                )
            response.raise_for_status()
            with path.open("wb") as handle:
                for chunk in response.iter_content(chunk_size=self._chunk_size_bytes):
                    if chunk:
                        handle.write(chunk)
                        written += len(chunk)
        return written


def extract_archive(archive_path: str | Path, destination: str | Path) -> Path:
    """
    Unpack a gzip-compressed tar archive into `destination`.
    """

    source = Path(archive_path)
    target = Path(destination)
    target.mkdir(parents=True, exist_ok=True)
    try:
        with tarfile.open(source, mode="r:gz") as archive:
            archive.extractall(target, filter="data")
    except (tarfile.TarError, OSError) as exc:
        raise ArchiveFetchError(f"Cannot extract archive {source}: {exc}") from exc

    logger.info("Extracted dump archive %s into %s", source, target)
    return target
