"""
dumpload/validators/record_validator.py

Field-set validation and value coercion of records against a destination table.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date, datetime
from typing import Any

from sqlalchemy import Column, Date, Integer, Table

from dumpload.domain.ingestion import FieldValue, Record

DATE_FORMATS: tuple[str, ...] = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%m/%d/%Y",
)


class RecordSchemaError(ValueError):
    """
    Raised when a record does not satisfy its destination table's schema.
    """

    def __init__(
        self,
        message: str,
        *,
        position: int,
        column: str | None = None,
        value: Any = None,
    ) -> None:
        super().__init__(message)
        self.position = position
        self.column = column
        self.value = value


class RecordSchemaValidator:
    """
    Turn records into insert payloads for a specific table.

    Every record must use only the table's column names and supply every
    required column. Text values are coerced to the column's Python type.
    A generated primary key is either supplied by every record in a batch
    or by none of them.
    """

    def build_payloads(self, table: Table, batch: Sequence[Record]) -> list[dict[str, Any]]:
        """
        Every payload carries the same keys: each non-generated column (None
        where a nullable field is absent) plus generated columns only when the
        whole batch supplies them.
        """

        columns = {column.name: column for column in table.columns}
        required = {
            column.name
            for column in table.columns
            if not column.nullable and not self._is_generated(column)
        }
        generated = [column for column in table.columns if self._is_generated(column)]
        supplied_generated = self._supplied_generated_columns(table, batch, generated)

        payloads: list[dict[str, Any]] = []
        for position, record in enumerate(batch):
            self._check_field_set(
                table=table,
                record=record,
                columns=columns,
                required=required,
                position=position,
            )
            payload: dict[str, Any] = {}
            for column in table.columns:
                if self._is_generated(column) and column.name not in supplied_generated:
                    continue
                payload[column.name] = self._coerce(
                    column, record.get(column.name), position=position
                )
            payloads.append(payload)
        return payloads

    def _supplied_generated_columns(
        self,
        table: Table,
        batch: Sequence[Record],
        generated: Sequence[Column],
    ) -> set[str]:
        supplied: set[str] = set()
        for column in generated:
            present = [not _is_blank(record.get(column.name)) for record in batch]
            if present and all(present):
                supplied.add(column.name)
            elif any(present):
                position = present.index(False)
                raise RecordSchemaError(
                    f"Record {position} omits '{column.name}' for table '{table.name}' "
                    "while other records in the batch supply it.",
                    position=position,
                    column=column.name,
                )
        return supplied

    def _check_field_set(
        self,
        *,
        table: Table,
        record: Record,
        columns: dict[str, Column],
        required: set[str],
        position: int,
    ) -> None:
        extra = [name for name in record if name not in columns]
        if extra:
            raise RecordSchemaError(
                f"Record {position} has fields unknown to table '{table.name}': "
                f"{', '.join(sorted(extra))}.",
                position=position,
                column=extra[0],
            )
        missing = sorted(required.difference(record))
        if missing:
            raise RecordSchemaError(
                f"Record {position} is missing required fields for table '{table.name}': "
                f"{', '.join(missing)}.",
                position=position,
                column=missing[0],
            )

    def _coerce(self, column: Column, value: FieldValue, *, position: int) -> Any:
        optional = column.nullable or self._is_generated(column)
        if value is None:
            if optional:
                return None
            raise self._missing_value(column, position=position)
        if isinstance(value, str) and not value.strip():
            if optional:
                return None
            if isinstance(column.type, (Integer, Date)):
                raise self._missing_value(column, position=position)
            return value

        if isinstance(column.type, Integer):
            return self._parse_int(column, value, position=position)
        if isinstance(column.type, Date):
            return self._parse_date(column, value, position=position)
        if isinstance(value, str):
            return value
        return str(value)

    def _parse_int(self, column: Column, value: FieldValue, *, position: int) -> int:
        if isinstance(value, bool):
            raise RecordSchemaError(
                f"Record {position} column '{column.name}' expects an integer.",
                position=position,
                column=column.name,
                value=value,
            )
        if isinstance(value, int):
            return value
        try:
            return int(str(value).strip())
        except ValueError as exc:
            raise RecordSchemaError(
                f"Record {position} column '{column.name}' expects an integer, got {value!r}.",
                position=position,
                column=column.name,
                value=value,
            ) from exc

    def _parse_date(self, column: Column, value: FieldValue, *, position: int) -> date:
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value

        raw_value = str(value).strip()
        for fmt in DATE_FORMATS:
            try:
                return datetime.strptime(raw_value, fmt).date()
            except ValueError:
                continue
        raise RecordSchemaError(
            f"Record {position} column '{column.name}' expects a date, got {value!r}.",
            position=position,
            column=column.name,
            value=value,
        )

    @staticmethod
    def _missing_value(column: Column, *, position: int) -> RecordSchemaError:
        return RecordSchemaError(
            f"Record {position} has no value for required column '{column.name}'.",
            position=position,
            column=column.name,
        )

    @staticmethod
    def _is_generated(column: Column) -> bool:
        return bool(column.primary_key and column.autoincrement is True)


def _is_blank(value: FieldValue) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())
