"""
dumpload/services/batcher.py

Fixed-capacity record batching for transactional commits.
"""

from __future__ import annotations

from dumpload.domain.ingestion import Batch, Record

DEFAULT_BATCH_CAPACITY = 100


def validate_batch_capacity(capacity: int) -> int:
    if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity < 1:
        raise ValueError(f"Batch capacity must be a positive integer, got {capacity!r}.")
    return capacity


class BatcherBusyError(RuntimeError):
    """
    Raised when records arrive while an emitted batch is still being committed.
    """


class Batcher:
    """
    Accumulate records in source order and emit bounded batches.

    A batch is emitted synchronously from `add` once the buffer reaches
    capacity, and from `flush` for the non-empty remainder at source end.
    After emitting, the batcher refuses input until `release()` is called.
    """

    def __init__(self, capacity: int = DEFAULT_BATCH_CAPACITY) -> None:
        self._capacity = validate_batch_capacity(capacity)
        self._buffer: list[Record] = []
        self._in_flight = False

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def pending(self) -> int:
        return len(self._buffer)

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    def add(self, record: Record) -> Batch | None:
        self._ensure_idle()
        self._buffer.append(record)
        if len(self._buffer) < self._capacity:
            return None
        return self._emit()

    def flush(self) -> Batch | None:
        self._ensure_idle()
        if not self._buffer:
            return None
        return self._emit()

    def release(self) -> None:
        self._in_flight = False

    def discard(self) -> int:
        """
        Drop buffered records without emitting them. Returns how many were dropped.
        """

        dropped = len(self._buffer)
        self._buffer = []
        return dropped

    def _emit(self) -> Batch:
        batch = tuple(self._buffer)
        self._buffer = []
        self._in_flight = True
        return batch

    def _ensure_idle(self) -> None:
        if self._in_flight:
            raise BatcherBusyError("Previous batch has not been released after its commit.")
