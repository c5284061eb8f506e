"""Shared typed models.

This module defines immutable data models used by the parser,
ingestor, store, and SDK layers to keep interfaces explicit.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class LogRecord:
    """One normalized proxy access-log request.

    Attributes:
        remote_addr: Client address as written in the log.
        identd: Identd field, absent for ``-``.
        user_or_session: User or session field, absent for ``-``.
        timestamp: Timezone-aware request instant.
        method: First token of the request line.
        url: Request target, verbatim.
        scheme: URL scheme when the target is absolute.
        host: URL host when the target is absolute.
        port: Explicit URL port, if written.
        path: URL path when the target is absolute.
        query: URL query string, absent when empty.
        http_version: Third token of the request line.
        status: Three-digit response status.
        bytes_sent: Response size, absent for ``-``.
        country: Country field, absent when blank.
        user_agent: User agent field, absent when blank.
        raw: Original input line.
    """

    remote_addr: str
    identd: str | None
    user_or_session: str | None
    timestamp: datetime
    method: str
    url: str
    scheme: str | None
    host: str | None
    port: int | None
    path: str | None
    query: str | None
    http_version: str
    status: int
    bytes_sent: int | None
    country: str | None
    user_agent: str | None
    raw: str


@dataclass(frozen=True)
class UrlParts:
    """Decomposed request target; every field absent on failure."""

    scheme: str | None = None
    host: str | None = None
    port: int | None = None
    path: str | None = None
    query: str | None = None


@dataclass(frozen=True)
class IngestionOutcome:
    """Aggregate counters for one ingest run.

    Attributes:
        accepted: Records parsed and appended to the store.
        rejected: Lines that failed to parse or to append.
        lines_seen: Lines consumed from the input.
        cancelled: Whether a stop check ended the run early.
    """

    accepted: int
    rejected: int
    lines_seen: int
    cancelled: bool = False


@dataclass(frozen=True)
class IngestOptions:
    """Import command options.

    Attributes:
        source_uri: Local log file path or ``s3://bucket/key`` URI.
        db_path: Optional DuckDB path overriding the configured one.
    """

    source_uri: str
    db_path: str | None = None


@dataclass(frozen=True)
class QueryWindow:
    """Time window and row limit for canned request queries.

    Attributes:
        start: Optional inclusive lower bound, ISO-8601 text.
        end: Optional inclusive upper bound, ISO-8601 text.
        limit: Optional row limit overriding each query's default.
    """

    start: str | None = None
    end: str | None = None
    limit: int | None = None
