"""
Record source abstraction with explicit backpressure control.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Generator, Iterator
from types import TracebackType

from dumpload.domain.ingestion import Record


class SourceError(ValueError):
    """
    Raised when the input stream is malformed, truncated, or unreadable.
    """


class RecordSource(ABC):
    """
    Finite, non-restartable stream of records for one resource.

    Consumers must `pause()` the source while a batch is being committed and
    `resume()` it afterwards. Pulling a record from a paused source raises
    RuntimeError instead of silently reading ahead.
    """

    def __init__(self, *, name: str) -> None:
        self.name = name
        self._paused = False
        self._started = False
        self._closed = False
        self._iterator: Generator[Record, None, None] | None = None

    @abstractmethod
    def _read_records(self) -> Iterator[Record]:
        """
        Yield decoded records in source order, raising SourceError on bad input.
        """

    def _release(self) -> None:
        """
        Free underlying resources. Subclasses override when they own handles.
        """

    @property
    def paused(self) -> bool:
        return self._paused

    def pause(self) -> None:
        self._paused = True

    def resume(self) -> None:
        self._paused = False

    def __iter__(self) -> Iterator[Record]:
        if self._started:
            raise RuntimeError(f"Record source '{self.name}' cannot be restarted.")
        if self._closed:
            raise RuntimeError(f"Record source '{self.name}' is closed.")
        self._started = True
        self._iterator = self._guarded_records()
        return self._iterator

    def _guarded_records(self) -> Generator[Record, None, None]:
        records = self._read_records()
        try:
            for record in records:
                yield record
                self._ensure_not_paused()
        finally:
            close = getattr(records, "close", None)
            if close is not None:
                close()

    def _ensure_not_paused(self) -> None:
        if self._paused:
            raise RuntimeError(
                f"Record source '{self.name}' was read while paused for a commit."
            )

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._iterator is not None:
            self._iterator.close()
        self._release()

    def __enter__(self) -> RecordSource:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()
