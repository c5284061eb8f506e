"""Ingest orchestration for one log source.

This module wires configuration, the line source, the DuckDB request
store, and the batch ingestor into a single import run.
"""

from __future__ import annotations

from pathlib import Path

from core.config import ProxyLogConfig
from core.logging_config import get_logger
from core.types import IngestionOutcome, IngestOptions
from ingest.batch_ingestor import ingest
from ingest.input_reader import open_log_source
from store.request_store import RequestStore

_LOGGER = get_logger(__name__)


def ingest_log_source(options: IngestOptions, config: ProxyLogConfig) -> IngestionOutcome:
    """Import one log source into the request store.

    The input is opened before the store so that a missing source never
    touches the database.

    Args:
        options: Import options.
        config: Runtime configuration.

    Returns:
        Outcome counters for the run.

    Raises:
        ProxyLogInputError: If the source cannot be opened or read.
        ProxyLogStoreError: If the store cannot be opened, initialized, or flushed.
    """
    db_path = _resolve_db_path(options, config)
    with open_log_source(options.source_uri, config) as source:
        with RequestStore.open(db_path, config.append_chunk_size) as store:
            outcome = ingest(source, store, progress_interval=config.progress_interval)
    _LOGGER.info(
        "source_imported",
        source_uri=options.source_uri,
        db_path=str(db_path),
        accepted=outcome.accepted,
        rejected=outcome.rejected,
        lines_seen=outcome.lines_seen,
    )
    return outcome


def _resolve_db_path(options: IngestOptions, config: ProxyLogConfig) -> Path:
    """Return the options override when present, else the configured path."""
    if options.db_path:
        return Path(options.db_path).expanduser().resolve()
    return config.db_path
