"""Chunked bulk append path into DuckDB.

Rows are validated one at a time, buffered column-wise, and written
to DuckDB as pyarrow tables once a chunk fills up. A single explicit
``flush`` writes the tail chunk and checkpoints the database file.
"""

from __future__ import annotations

from typing import Any

import duckdb
import pyarrow as pa

from core.errors import ProxyLogAppendError, ProxyLogStoreError
from core.types import LogRecord
from store.record_payload import log_record_to_row
from store.request_schema import (
    INTEGER_RANGES,
    REQUEST_COLUMNS,
    ColumnSpec,
    build_chunk_insert_sql,
    build_chunk_schema,
)

_CHUNK_VIEW_NAME = "proxylog_append_chunk"


class BulkAppender:
    """Append handle owning the write side of one ingest run."""

    def __init__(self, connection: Any, table_name: str, chunk_size: int) -> None:
        self._connection = connection
        self._table_name = table_name
        self._chunk_size = chunk_size
        self._schema = build_chunk_schema()
        self._insert_sql = build_chunk_insert_sql(table_name, _CHUNK_VIEW_NAME)
        self._column_values: list[list[object]] = [[] for _ in REQUEST_COLUMNS]
        self._buffered_rows = 0
        self._written_rows = 0
        self._flushed = False

    @property
    def written_rows(self) -> int:
        """Rows already copied into the table."""
        return self._written_rows

    def append(self, record: LogRecord) -> None:
        """Validate and buffer one record.

        Args:
            record: Parsed log record.

        Raises:
            ProxyLogAppendError: If the record violates a column constraint.
            ProxyLogStoreError: If the handle was flushed or a chunk write fails.
        """
        if self._flushed:
            raise ProxyLogStoreError(
                f"Append handle for '{self._table_name}' was already flushed. "
                "Open a new bulk append handle for another run."
            )
        row = log_record_to_row(record)
        for column, value in zip(REQUEST_COLUMNS, row):
            _validate_value(column, value)
        for values, value in zip(self._column_values, row):
            values.append(value)
        self._buffered_rows += 1
        if self._buffered_rows >= self._chunk_size:
            self._write_chunk()

    def flush(self) -> int:
        """Write buffered rows and checkpoint the database.

        Returns:
            Total rows written through this handle.

        Raises:
            ProxyLogStoreError: If called twice or if the write fails.
        """
        if self._flushed:
            raise ProxyLogStoreError(
                f"Append handle for '{self._table_name}' can only be flushed once."
            )
        self._flushed = True
        self._write_chunk()
        try:
            self._connection.execute("CHECKPOINT")
        except duckdb.Error as error:
            raise ProxyLogStoreError(
                f"Failed to checkpoint table '{self._table_name}': {error}."
            ) from error
        return self._written_rows

    def _write_chunk(self) -> None:
        if self._buffered_rows == 0:
            return
        arrays = [
            pa.array(values, type=field.type)
            for values, field in zip(self._column_values, self._schema)
        ]
        chunk = pa.Table.from_arrays(arrays, schema=self._schema)
        try:
            self._connection.register(_CHUNK_VIEW_NAME, chunk)
            try:
                self._connection.execute(self._insert_sql)
            finally:
                self._connection.unregister(_CHUNK_VIEW_NAME)
        except duckdb.Error as error:
            raise ProxyLogStoreError(
                f"Failed to write {self._buffered_rows} rows into '{self._table_name}': "
                f"{error}. Check disk space and database permissions."
            ) from error
        self._written_rows += self._buffered_rows
        self._buffered_rows = 0
        self._column_values = [[] for _ in REQUEST_COLUMNS]


def _validate_value(column: ColumnSpec, value: object) -> None:
    """Check one value against its column type and nullability.

    Raises:
        ProxyLogAppendError: If the value cannot be stored in the column.
    """
    if value is None:
        if not column.nullable:
            raise ProxyLogAppendError(f"column '{column.name}' must not be null")
        return
    bounds = INTEGER_RANGES.get(column.sql_type)
    if bounds is not None:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ProxyLogAppendError(
                f"column '{column.name}' expects an integer, got {type(value).__name__}"
            )
        lower, upper = bounds
        if not lower <= value <= upper:
            raise ProxyLogAppendError(
                f"value {value} is out of range for {column.sql_type} column '{column.name}'"
            )
        return
    if not isinstance(value, str):
        raise ProxyLogAppendError(
            f"column '{column.name}' expects text, got {type(value).__name__}"
        )
    try:
        value.encode("utf-8")
    except UnicodeEncodeError as error:
        raise ProxyLogAppendError(
            f"column '{column.name}' holds text that is not valid UTF-8"
        ) from error
