"""DuckDB request store.

This module owns the DuckDB connection for imported requests.
It implements the schema, bulk append, and query contracts used
by the ingestor and by canned report queries.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Sequence

import duckdb

from core.constants import DEFAULT_APPEND_CHUNK_SIZE, REQUESTS_TABLE_NAME
from core.errors import ProxyLogSchemaError, ProxyLogStoreError
from core.logging_config import get_logger
from store.bulk_appender import BulkAppender
from store.request_schema import build_schema_statements

_LOGGER = get_logger(__name__)
_IN_MEMORY_DATABASE = ":memory:"


class RequestStore:
    """Request table store backed by one DuckDB database file.

    The store holds the only connection used by an ingest run. Opening a
    database file takes DuckDB's write lock for the lifetime of the store.
    """

    def __init__(
        self,
        connection: Any,
        db_path: str,
        append_chunk_size: int = DEFAULT_APPEND_CHUNK_SIZE,
    ) -> None:
        self._connection = connection
        self._db_path = db_path
        self._append_chunk_size = append_chunk_size

    @classmethod
    def open(
        cls,
        db_path: str | Path,
        append_chunk_size: int = DEFAULT_APPEND_CHUNK_SIZE,
    ) -> "RequestStore":
        """Open or create a DuckDB database.

        Args:
            db_path: Database file path, or ``:memory:``.
            append_chunk_size: Rows per bulk write chunk.

        Returns:
            Opened store.

        Raises:
            ProxyLogStoreError: If the database cannot be opened or locked.
        """
        database = str(db_path)
        try:
            if database != _IN_MEMORY_DATABASE:
                Path(database).parent.mkdir(parents=True, exist_ok=True)
            connection = duckdb.connect(database)
        except (OSError, duckdb.Error) as error:
            raise ProxyLogStoreError(
                f"Failed to open request store at {database}: {error}. "
                "Check the path and that no other process holds the database lock."
            ) from error
        _LOGGER.info("store_opened", db_path=database)
        return cls(connection, database, append_chunk_size)

    @property
    def db_path(self) -> str:
        """Database location this store was opened on."""
        return self._db_path

    def create_schema(self) -> None:
        """Create the request table and indexes if they do not exist.

        Raises:
            ProxyLogSchemaError: If a DDL statement fails.
        """
        try:
            for statement in build_schema_statements(REQUESTS_TABLE_NAME):
                self._connection.execute(statement)
        except duckdb.Error as error:
            raise ProxyLogSchemaError(
                f"Failed to create request schema in {self._db_path}: {error}."
            ) from error
        _LOGGER.info("schema_ready", db_path=self._db_path, table=REQUESTS_TABLE_NAME)

    def open_bulk_append(self, table: str) -> BulkAppender:
        """Open the bulk append handle for a table.

        Args:
            table: Table name; only the request table is supported.

        Returns:
            Append handle owning the write side of one run.

        Raises:
            ProxyLogStoreError: If the table is unknown.
        """
        if table != REQUESTS_TABLE_NAME:
            raise ProxyLogStoreError(
                f"Unsupported bulk append table '{table}'. "
                f"Only '{REQUESTS_TABLE_NAME}' accepts imported records."
            )
        return BulkAppender(self._connection, table, self._append_chunk_size)

    def query(self, sql: str, params: Sequence[object] = ()) -> list[tuple[Any, ...]]:
        """Run a parametrized query and return all rows.

        Args:
            sql: SQL text with ``?`` placeholders.
            params: Positional parameter values.

        Returns:
            Result rows.

        Raises:
            ProxyLogStoreError: If the query fails.
        """
        try:
            return self._connection.execute(sql, list(params)).fetchall()
        except duckdb.Error as error:
            raise ProxyLogStoreError(
                f"Query against {self._db_path} failed: {error}."
            ) from error

    def close(self) -> None:
        """Close the DuckDB connection and release the database lock."""
        self._connection.close()

    def __enter__(self) -> "RequestStore":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
