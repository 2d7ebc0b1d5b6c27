"""
Streaming CSV record source.

Reads a header-plus-rows byte stream lazily; only the current row is held in
memory.
"""

from __future__ import annotations

import csv
import io
import logging
from collections.abc import Iterator
from pathlib import Path
from types import MappingProxyType
from typing import BinaryIO

from dumpload.domain.ingestion import Record
from dumpload.sources.base import RecordSource, SourceError

logger = logging.getLogger(__name__)


class CSVRecordSource(RecordSource):
    """
    Decode CSV rows into immutable records keyed by header name.

    Ragged rows, unterminated quotes, undecodable bytes, and read failures all
    surface as SourceError from iteration.
    """

    def __init__(
        self,
        *,
        name: str,
        stream: BinaryIO,
        owns_stream: bool = False,
        encoding: str = "utf-8-sig",
    ) -> None:
        super().__init__(name=name)
        self._stream = stream
        self._owns_stream = owns_stream
        self._encoding = encoding
        self.records_read = 0

    @classmethod
    def from_path(cls, path: str | Path, *, name: str | None = None) -> CSVRecordSource:
        """
        Open a CSV file for streaming. The source owns and closes the handle.
        """

        file_path = Path(path)
        try:
            stream = file_path.open("rb")
        except OSError as exc:
            raise SourceError(f"Cannot open CSV source {file_path}: {exc}") from exc
        return cls(name=name or file_path.stem, stream=stream, owns_stream=True)

    def _read_records(self) -> Iterator[Record]:
        text_stream = io.TextIOWrapper(self._stream, encoding=self._encoding, newline="")
        reader = csv.reader(text_stream, strict=True)
        try:
            try:
                header = self._read_header(reader)
                for row in reader:
                    if not row:
                        continue
                    if len(row) != len(header):
                        raise SourceError(
                            f"Row at line {reader.line_num} has {len(row)} fields; "
                            f"header declares {len(header)}."
                        )
                    self.records_read += 1
                    yield MappingProxyType(dict(zip(header, row)))
            except UnicodeDecodeError as exc:
                raise SourceError(f"CSV must be {self._encoding} encoded: {exc}") from exc
            except csv.Error as exc:
                raise SourceError(
                    f"Invalid CSV format near line {reader.line_num}: {exc}"
                ) from exc
            except OSError as exc:
                raise SourceError(f"Failed reading CSV source '{self.name}': {exc}") from exc
        finally:
            try:
                text_stream.detach()
            except ValueError:
                pass

    def _read_header(self, reader: Iterator[list[str]]) -> tuple[str, ...]:
        raw_header = next(reader, None)
        if not raw_header:
            raise SourceError("CSV header row is missing.")

        header = tuple(name.strip() for name in raw_header)
        if any(not name for name in header):
            raise SourceError("CSV header contains an empty column name.")
        duplicates = sorted({name for name in header if header.count(name) > 1})
        if duplicates:
            raise SourceError(f"CSV header repeats column names: {', '.join(duplicates)}.")

        logger.debug("CSV source '%s' header=%s", self.name, header)
        return header

    def _release(self) -> None:
        if self._owns_stream:
            self._stream.close()
