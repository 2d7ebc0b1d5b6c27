"""
In-memory record source for programmatic producers.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from types import MappingProxyType

from dumpload.domain.ingestion import FieldValue, Record
from dumpload.sources.base import RecordSource, SourceError


class IterableRecordSource(RecordSource):
    """
    Wrap any iterable of mappings as a record source.

    Records are frozen on the way out. Items that cannot be read as a mapping
    raise SourceError; a SourceError raised by the wrapped iterable propagates
    unchanged.
    """

    def __init__(self, *, name: str, records: Iterable[Mapping[str, FieldValue]]) -> None:
        super().__init__(name=name)
        self._records = records

    def _read_records(self) -> Iterator[Record]:
        for position, record in enumerate(self._records):
            try:
                frozen = MappingProxyType(dict(record))
            except (TypeError, ValueError) as exc:
                raise SourceError(
                    f"Item {position} of source '{self.name}' is not a record mapping: {exc}"
                ) from exc
            yield frozen
