"""Public SDK surface for proxylog.

This module provides a stable import path for library users.
It re-exports the client, the ingest entry point, and typed models.
"""

from __future__ import annotations

from core.config import ProxyLogConfig
from core.types import IngestionOutcome, IngestOptions, LogRecord, QueryWindow
from ingest.batch_ingestor import ingest
from ingest.line_parser import LineParser, parse_line
from store.log_sdk import ProxyLogClient
from store.request_queries import canned_query_names
from store.request_store import RequestStore

__all__ = [
    "IngestOptions",
    "IngestionOutcome",
    "LineParser",
    "LogRecord",
    "ProxyLogClient",
    "ProxyLogConfig",
    "QueryWindow",
    "RequestStore",
    "canned_query_names",
    "ingest",
    "parse_line",
]
