"""
tests/test_stream_job_runner.py

Runner behavior against an in-memory sink and against SQLite.

Coverage
--------
- Completed runs commit ceil(N / capacity) batches in source order
- Commit failure stops the job and logs exactly the failed batch
- Source errors keep earlier commits and drop the unflushed buffer
- Failure-log write errors surface as warnings, not state changes
- The source is paused for the whole duration of every commit
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from pathlib import Path

import pytest
from sqlalchemy.engine import Engine

from db.models import customers_table
from dumpload.domain.ingestion import JobState
from dumpload.services.failure_logger import FailureLogger
from dumpload.services.stream_job_runner import StreamJobRunner
from dumpload.sources.base import SourceError
from dumpload.sources.csv_source import CSVRecordSource
from dumpload.sources.iterable_source import IterableRecordSource
from dumpload.storage.sqlalchemy_sink import SQLAlchemyTableSink
from tests.builders import (
    CUSTOMER_HEADER,
    RecordingSink,
    count_rows,
    customer_row,
    write_csv,
)


def _records(count: int) -> list[dict[str, str]]:
    return [{"Index": str(index)} for index in range(1, count + 1)]


def _failing_after(count: int) -> Iterator[dict[str, str]]:
    yield from _records(count)
    raise SourceError(f"Input truncated after {count} records.")


def _runner(
    records,
    *,
    sink,
    failure_logger: FailureLogger,
    capacity: int = 100,
    resource: str = "customers",
) -> StreamJobRunner:
    return StreamJobRunner(
        resource=resource,
        source_factory=lambda: IterableRecordSource(name=resource, records=records),
        sink=sink,
        failure_logger=failure_logger,
        batch_capacity=capacity,
    )


def _logged(path: Path) -> list[dict]:
    if not path.exists():
        return []
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]


class TestCompletedRuns:
    def test_commits_full_batches_then_remainder(self, failure_logger: FailureLogger) -> None:
        sink = RecordingSink()

        result = _runner(_records(250), sink=sink, failure_logger=failure_logger).run()

        assert result.state is JobState.COMPLETED
        assert result.rows_committed == 250
        assert result.batches_committed == 3
        assert sink.batch_sizes() == [100, 100, 50]
        assert result.error_message is None

    @pytest.mark.parametrize(
        ("count", "capacity", "expected_batches"),
        [(0, 10, 0), (1, 10, 1), (10, 10, 1), (11, 10, 2), (7, 1, 7)],
    )
    def test_commit_count_is_ceiling_of_records_over_capacity(
        self,
        failure_logger: FailureLogger,
        count: int,
        capacity: int,
        expected_batches: int,
    ) -> None:
        sink = RecordingSink()

        result = _runner(_records(count), sink=sink, failure_logger=failure_logger, capacity=capacity).run()

        assert result.state is JobState.COMPLETED
        assert result.batches_committed == expected_batches
        assert sum(sink.batch_sizes()) == count

    def test_preserves_source_order_across_batches(self, failure_logger: FailureLogger) -> None:
        sink = RecordingSink()

        _runner(_records(25), sink=sink, failure_logger=failure_logger, capacity=10).run()

        committed = [record["Index"] for _, batch in sink.committed for record in batch]
        assert committed == [str(index) for index in range(1, 26)]


class TestCommitFailure:
    def test_stops_after_failed_batch_and_logs_it(
        self, failure_logger: FailureLogger, failure_log_path: Path
    ) -> None:
        sink = RecordingSink(fail_on_calls=[2])

        result = _runner(_records(150), sink=sink, failure_logger=failure_logger).run()

        assert result.state is JobState.FAILED_PARTWAY
        assert result.rows_committed == 100
        assert result.batches_committed == 1
        assert "simulated rejection" in (result.error_message or "")
        logged = _logged(failure_log_path)
        assert [line["record"]["Index"] for line in logged] == [str(i) for i in range(101, 151)]

    def test_does_not_read_past_failed_batch(self, failure_logger: FailureLogger) -> None:
        pulled: list[int] = []

        def produce() -> Iterator[dict[str, str]]:
            for index in range(1, 301):
                pulled.append(index)
                yield {"Index": str(index)}

        sink = RecordingSink(fail_on_calls=[1])

        result = _runner(produce(), sink=sink, failure_logger=failure_logger).run()

        assert result.state is JobState.FAILED_PARTWAY
        assert result.rows_committed == 0
        assert max(pulled) == 100

    def test_failure_log_write_error_becomes_warning(self, tmp_path: Path) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("", encoding="utf-8")
        unwritable = FailureLogger(blocker / "failed_rows.log")
        sink = RecordingSink(fail_on_calls=[1])

        result = _runner(_records(5), sink=sink, failure_logger=unwritable).run()

        assert result.state is JobState.FAILED_PARTWAY
        assert result.rows_committed == 0
        assert len(result.warnings) == 1
        assert "could not be logged" in result.warnings[0]

    def test_remainder_failure_is_logged(
        self, failure_logger: FailureLogger, failure_log_path: Path
    ) -> None:
        sink = RecordingSink(fail_on_calls=[3])

        result = _runner(_records(250), sink=sink, failure_logger=failure_logger).run()

        assert result.state is JobState.FAILED_PARTWAY
        assert result.rows_committed == 200
        assert len(_logged(failure_log_path)) == 50


class TestSourceErrors:
    def test_keeps_earlier_commits_and_drops_unflushed_records(
        self, failure_logger: FailureLogger, failure_log_path: Path
    ) -> None:
        sink = RecordingSink()

        result = _runner(_failing_after(120), sink=sink, failure_logger=failure_logger).run()

        assert result.state is JobState.SOURCE_ERROR
        assert result.rows_committed == 100
        assert sink.batch_sizes() == [100]
        assert "truncated" in (result.error_message or "")
        assert _logged(failure_log_path) == []

    def test_source_that_cannot_open_reports_source_error(
        self, failure_logger: FailureLogger, tmp_path: Path
    ) -> None:
        runner = StreamJobRunner(
            resource="customers",
            source_factory=lambda: CSVRecordSource.from_path(tmp_path / "missing.csv"),
            sink=RecordingSink(),
            failure_logger=failure_logger,
        )

        result = runner.run()

        assert result.state is JobState.SOURCE_ERROR
        assert result.rows_committed == 0
        assert result.batches_committed == 0

    def test_non_mapping_item_reports_source_error(
        self, failure_logger: FailureLogger, failure_log_path: Path
    ) -> None:
        records = [*_records(3), ["not", "a", "record"]]

        result = _runner(records, sink=RecordingSink(), failure_logger=failure_logger).run()

        assert result.state is JobState.SOURCE_ERROR
        assert result.rows_committed == 0
        assert "not a record mapping" in (result.error_message or "")
        assert _logged(failure_log_path) == []


class TestBackpressure:
    def test_source_is_paused_during_every_commit(self, failure_logger: FailureLogger) -> None:
        source = IterableRecordSource(name="customers", records=_records(35))
        observed: list[bool] = []
        sink = RecordingSink()
        sink.observer = lambda batch, resource: observed.append(source.paused)

        result = StreamJobRunner(
            resource="customers",
            source_factory=lambda: source,
            sink=sink,
            failure_logger=failure_logger,
            batch_capacity=10,
        ).run()

        assert result.state is JobState.COMPLETED
        assert observed == [True, True, True, True]

    def test_runner_runs_only_once(self, failure_logger: FailureLogger) -> None:
        runner = _runner(_records(1), sink=RecordingSink(), failure_logger=failure_logger)
        runner.run()

        with pytest.raises(RuntimeError):
            runner.run()


class TestAgainstSQLite:
    def test_streams_csv_into_table(
        self,
        tmp_path: Path,
        sink: SQLAlchemyTableSink,
        engine: Engine,
        failure_logger: FailureLogger,
    ) -> None:
        path = write_csv(tmp_path / "customers.csv", CUSTOMER_HEADER, [customer_row(i) for i in range(1, 251)])

        result = StreamJobRunner(
            resource="customers",
            source_factory=lambda: CSVRecordSource.from_path(path, name="customers"),
            sink=sink,
            failure_logger=failure_logger,
        ).run()

        assert result.state is JobState.COMPLETED
        assert result.rows_committed == 250
        assert count_rows(engine, customers_table) == 250

    def test_failed_batch_leaves_only_committed_rows(
        self,
        tmp_path: Path,
        sink: SQLAlchemyTableSink,
        engine: Engine,
        failure_logger: FailureLogger,
        failure_log_path: Path,
    ) -> None:
        rows = [customer_row(i) for i in range(1, 151)]
        rows[120] = {**rows[120], "Subscription Date": "not a date"}
        path = write_csv(tmp_path / "customers.csv", CUSTOMER_HEADER, rows)

        result = StreamJobRunner(
            resource="customers",
            source_factory=lambda: CSVRecordSource.from_path(path, name="customers"),
            sink=sink,
            failure_logger=failure_logger,
        ).run()

        assert result.state is JobState.FAILED_PARTWAY
        assert result.rows_committed == 100
        assert count_rows(engine, customers_table) == 100
        assert len(_logged(failure_log_path)) == 50
