"""Request table schema.

This module describes the ``requests`` table once: column order,
DuckDB types, nullability, and the secondary index set. The DDL, the
bulk append path, and the pyarrow chunk schema are all derived from it.
"""

from __future__ import annotations

from dataclasses import dataclass

import pyarrow as pa

from core.constants import INT32_MAX, INT32_MIN, INT64_MAX, INT64_MIN, REQUESTS_TABLE_NAME


@dataclass(frozen=True)
class ColumnSpec:
    """One request table column."""

    name: str
    sql_type: str
    nullable: bool = True


REQUEST_COLUMNS: tuple[ColumnSpec, ...] = (
    ColumnSpec("ts", "TIMESTAMPTZ", nullable=False),
    ColumnSpec("remote_addr", "TEXT", nullable=False),
    ColumnSpec("identd", "TEXT"),
    ColumnSpec("user_or_session", "TEXT"),
    ColumnSpec("method", "TEXT", nullable=False),
    ColumnSpec("url", "TEXT", nullable=False),
    ColumnSpec("scheme", "TEXT"),
    ColumnSpec("host", "TEXT"),
    ColumnSpec("port", "INTEGER"),
    ColumnSpec("path", "TEXT"),
    ColumnSpec("query", "TEXT"),
    ColumnSpec("http_version", "TEXT", nullable=False),
    ColumnSpec("status", "INTEGER", nullable=False),
    ColumnSpec("bytes", "BIGINT"),
    ColumnSpec("country", "TEXT"),
    ColumnSpec("user_agent", "TEXT"),
    ColumnSpec("raw", "TEXT", nullable=False),
)

REQUEST_INDEXES: tuple[tuple[str, str], ...] = (
    ("idx_requests_ts", "ts"),
    ("idx_requests_host", "host"),
    ("idx_requests_status", "status"),
    ("idx_requests_country", "country"),
)

INTEGER_RANGES: dict[str, tuple[int, int]] = {
    "INTEGER": (INT32_MIN, INT32_MAX),
    "BIGINT": (INT64_MIN, INT64_MAX),
}

# ts travels as RFC-3339 text and is cast on insert.
_ARROW_TYPES = {
    "TIMESTAMPTZ": pa.string(),
    "TEXT": pa.string(),
    "INTEGER": pa.int32(),
    "BIGINT": pa.int64(),
}


def build_schema_statements(table_name: str = REQUESTS_TABLE_NAME) -> list[str]:
    """Build idempotent DDL statements for the request table.

    Args:
        table_name: Target table name.

    Returns:
        ``CREATE TABLE`` followed by ``CREATE INDEX`` statements.
    """
    column_lines = ",\n  ".join(
        f"{column.name} {column.sql_type}{'' if column.nullable else ' NOT NULL'}"
        for column in REQUEST_COLUMNS
    )
    statements = [f"CREATE TABLE IF NOT EXISTS {table_name} (\n  {column_lines}\n)"]
    for index_name, column_name in REQUEST_INDEXES:
        statements.append(
            f"CREATE INDEX IF NOT EXISTS {index_name} ON {table_name}({column_name})"
        )
    return statements


def build_chunk_schema() -> pa.Schema:
    """Build the pyarrow schema of one buffered append chunk."""
    return pa.schema(
        [
            pa.field(column.name, _ARROW_TYPES[column.sql_type], nullable=column.nullable)
            for column in REQUEST_COLUMNS
        ]
    )


def build_chunk_insert_sql(table_name: str, chunk_view_name: str) -> str:
    """Build the statement copying a registered chunk into the table.

    Args:
        table_name: Target table name.
        chunk_view_name: Name the pyarrow chunk is registered under.

    Returns:
        ``INSERT ... SELECT`` statement.
    """
    column_names = ", ".join(column.name for column in REQUEST_COLUMNS)
    select_list = ", ".join(
        f"CAST({column.name} AS TIMESTAMPTZ)"
        if column.sql_type == "TIMESTAMPTZ"
        else column.name
        for column in REQUEST_COLUMNS
    )
    return (
        f"INSERT INTO {table_name} ({column_names}) "
        f"SELECT {select_list} FROM {chunk_view_name}"
    )
