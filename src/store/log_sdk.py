"""Python SDK for request imports and reports.

This module exposes high-level APIs for importing log sources and
running canned report queries against the configured DuckDB store.
"""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path

from core.config import ProxyLogConfig
from core.types import IngestionOutcome, IngestOptions, QueryWindow
from ingest.pipeline import ingest_log_source
from store.request_queries import QueryResult, run_canned_query, run_report
from store.request_store import RequestStore


class ProxyLogClient:
    """Primary SDK entry point for import and report workflows."""

    def __init__(self, config: ProxyLogConfig | None = None) -> None:
        """Create SDK client.

        Args:
            config: Optional runtime configuration.
        """
        self._config = config or ProxyLogConfig.from_env()

    @property
    def config(self) -> ProxyLogConfig:
        """Runtime configuration used by this client."""
        return self._config

    def ingest(self, options: IngestOptions) -> IngestionOutcome:
        """Import one log source into the request store.

        Args:
            options: Import options.

        Returns:
            Accepted and rejected line counts.

        Raises:
            ProxyLogInputError: If the source cannot be opened.
            ProxyLogStoreError: If the store cannot be opened or written.
        """
        return ingest_log_source(options, self._config)

    def query(self, name: str, window: QueryWindow | None = None) -> QueryResult:
        """Run one canned query against the configured store.

        Args:
            name: Canned query name.
            window: Optional time window and limit.

        Returns:
            Query rows.
        """
        with self._open_store() as store:
            return run_canned_query(store, name, window)

    def report(self, window: QueryWindow | None = None) -> list[QueryResult]:
        """Run every canned query against the configured store.

        Args:
            window: Optional time window and limit.

        Returns:
            Results in report order.
        """
        with self._open_store() as store:
            return run_report(store, window)

    def with_db_path(self, db_path: str) -> "ProxyLogClient":
        """Clone the client with a different database path.

        Args:
            db_path: New DuckDB file path.

        Returns:
            New SDK client instance.
        """
        resolved_path = Path(db_path).expanduser().resolve()
        return ProxyLogClient(replace(self._config, db_path=resolved_path))

    def _open_store(self) -> RequestStore:
        store = RequestStore.open(self._config.db_path, self._config.append_chunk_size)
        store.create_schema()
        return store
