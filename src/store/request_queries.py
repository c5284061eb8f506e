"""Canned aggregation queries over imported requests.

Each query can be narrowed to an inclusive ``[start, end]`` window on
``ts``; window bounds are always passed as query parameters.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from core.constants import (
    DEFAULT_ERROR_ANALYSIS_LIMIT,
    DEFAULT_TOP_COUNTRIES_LIMIT,
    DEFAULT_TOP_HOSTS_LIMIT,
    DEFAULT_TOP_PATHS_LIMIT,
    REQUESTS_TABLE_NAME,
    UNBOUNDED_SERIES_LIMIT,
)
from core.errors import ProxyLogStoreError
from core.types import QueryWindow
from store.request_store import RequestStore


@dataclass(frozen=True)
class CannedQuery:
    """One named aggregation over the request table.

    Attributes:
        name: Stable query name.
        columns: Output column names.
        select_sql: Select list, without ``FROM``.
        tail_sql: ``GROUP BY`` / ``ORDER BY`` clauses.
        conditions: Fixed ``WHERE`` conditions.
        default_limit: Row limit when the window sets none.
        time_series: Apply ``default_limit`` only to unwindowed runs.
    """

    name: str
    columns: tuple[str, ...]
    select_sql: str
    tail_sql: str
    conditions: tuple[str, ...] = ()
    default_limit: int | None = None
    time_series: bool = False


@dataclass(frozen=True)
class QueryResult:
    """Rows returned by one canned query."""

    name: str
    columns: tuple[str, ...]
    rows: list[tuple[Any, ...]]


_HOUR_BUCKET = "CAST(date_trunc('hour', ts) AS VARCHAR)"

CANNED_QUERIES: tuple[CannedQuery, ...] = (
    CannedQuery(
        name="requests_over_time",
        columns=("t", "n"),
        select_sql=f"SELECT {_HOUR_BUCKET} AS t, count(*) AS n",
        tail_sql="GROUP BY 1 ORDER BY 1",
        default_limit=UNBOUNDED_SERIES_LIMIT,
        time_series=True,
    ),
    CannedQuery(
        name="bandwidth_over_time",
        columns=("t", "mb"),
        select_sql=(
            f"SELECT {_HOUR_BUCKET} AS t, "
            "CAST(SUM(COALESCE(bytes, 0)) / 1024.0 / 1024.0 AS BIGINT) AS mb"
        ),
        tail_sql="GROUP BY 1 ORDER BY 1",
        default_limit=UNBOUNDED_SERIES_LIMIT,
        time_series=True,
    ),
    CannedQuery(
        name="top_hosts",
        columns=("host", "n"),
        select_sql="SELECT host, count(*) AS n",
        tail_sql="GROUP BY 1 ORDER BY n DESC, host",
        conditions=("host IS NOT NULL",),
        default_limit=DEFAULT_TOP_HOSTS_LIMIT,
    ),
    CannedQuery(
        name="status_codes",
        columns=("status", "n"),
        select_sql="SELECT status, count(*) AS n",
        tail_sql="GROUP BY 1 ORDER BY n DESC, status",
    ),
    CannedQuery(
        name="top_countries",
        columns=("country", "n"),
        select_sql="SELECT country, count(*) AS n",
        tail_sql="GROUP BY 1 ORDER BY n DESC, country",
        conditions=("country IS NOT NULL", "country <> ''"),
        default_limit=DEFAULT_TOP_COUNTRIES_LIMIT,
    ),
    CannedQuery(
        name="top_paths",
        columns=("path", "n", "avg_kb"),
        select_sql=(
            "SELECT path, count(*) AS n, "
            "CAST(AVG(COALESCE(bytes, 0)) / 1024.0 AS BIGINT) AS avg_kb"
        ),
        tail_sql="GROUP BY 1 ORDER BY n DESC, path",
        conditions=("path IS NOT NULL", "path <> '/'"),
        default_limit=DEFAULT_TOP_PATHS_LIMIT,
    ),
    CannedQuery(
        name="error_analysis",
        columns=("host", "errors", "server_errors", "client_errors"),
        select_sql=(
            "SELECT host, count(*) AS errors, "
            "SUM(CASE WHEN status >= 500 THEN 1 ELSE 0 END) AS server_errors, "
            "SUM(CASE WHEN status >= 400 AND status < 500 THEN 1 ELSE 0 END) AS client_errors"
        ),
        tail_sql="GROUP BY 1 ORDER BY errors DESC, host",
        conditions=("status >= 400",),
        default_limit=DEFAULT_ERROR_ANALYSIS_LIMIT,
    ),
    CannedQuery(
        name="hourly_heatmap",
        columns=("hour", "day_of_week", "n"),
        select_sql=(
            "SELECT CAST(EXTRACT(hour FROM ts) AS INTEGER) AS hour, "
            "CAST(EXTRACT(dow FROM ts) AS INTEGER) AS day_of_week, count(*) AS n"
        ),
        tail_sql="GROUP BY 1, 2 ORDER BY 1, 2",
    ),
    CannedQuery(
        name="user_agents",
        columns=("browser", "n"),
        select_sql=(
            "SELECT CASE "
            "WHEN user_agent LIKE '%Chrome%' AND user_agent NOT LIKE '%Edg%' THEN 'Chrome' "
            "WHEN user_agent LIKE '%Firefox%' THEN 'Firefox' "
            "WHEN user_agent LIKE '%Safari%' AND user_agent NOT LIKE '%Chrome%' THEN 'Safari' "
            "WHEN user_agent LIKE '%Edg%' THEN 'Edge' "
            "WHEN user_agent LIKE '%Opera%' THEN 'Opera' "
            "WHEN user_agent LIKE '%bot%' OR user_agent LIKE '%Bot%' THEN 'Bot' "
            "ELSE 'Other' END AS browser, count(*) AS n"
        ),
        tail_sql="GROUP BY 1 ORDER BY n DESC, browser",
        conditions=("user_agent IS NOT NULL",),
    ),
)

_QUERIES_BY_NAME = {query.name: query for query in CANNED_QUERIES}


def canned_query_names() -> tuple[str, ...]:
    """Return canned query names in report order."""
    return tuple(query.name for query in CANNED_QUERIES)


def build_query_sql(query: CannedQuery, window: QueryWindow) -> tuple[str, list[object]]:
    """Render a canned query for a window.

    Args:
        query: Canned query definition.
        window: Time window and optional limit.

    Returns:
        SQL text and its positional parameters.

    Raises:
        ProxyLogStoreError: If the window limit is not positive.
    """
    conditions = list(query.conditions)
    params: list[object] = []
    if window.start:
        conditions.append("ts >= CAST(? AS TIMESTAMPTZ)")
        params.append(window.start)
    if window.end:
        conditions.append("ts <= CAST(? AS TIMESTAMPTZ)")
        params.append(window.end)
    parts = [query.select_sql, f"FROM {REQUESTS_TABLE_NAME}"]
    if conditions:
        parts.append("WHERE " + " AND ".join(conditions))
    parts.append(query.tail_sql)
    limit = _effective_limit(query, window)
    if limit is not None:
        parts.append(f"LIMIT {limit}")
    return " ".join(parts), params


def run_canned_query(
    store: RequestStore,
    name: str,
    window: QueryWindow | None = None,
) -> QueryResult:
    """Run one canned query by name.

    Args:
        store: Opened request store.
        name: Canned query name.
        window: Optional time window; unbounded when omitted.

    Returns:
        Query result rows.

    Raises:
        ProxyLogStoreError: If the name is unknown or the query fails.
    """
    query = _QUERIES_BY_NAME.get(name)
    if query is None:
        raise ProxyLogStoreError(
            f"Unknown report query '{name}'. Choose one of: {', '.join(canned_query_names())}."
        )
    sql, params = build_query_sql(query, window or QueryWindow())
    return QueryResult(name=query.name, columns=query.columns, rows=store.query(sql, params))


def run_report(store: RequestStore, window: QueryWindow | None = None) -> list[QueryResult]:
    """Run every canned query in report order."""
    return [run_canned_query(store, name, window) for name in canned_query_names()]


def _effective_limit(query: CannedQuery, window: QueryWindow) -> int | None:
    if window.limit is not None:
        if window.limit <= 0:
            raise ProxyLogStoreError(
                f"Invalid query limit {window.limit}: expected a positive integer."
            )
        return int(window.limit)
    if query.time_series and (window.start or window.end):
        return None
    return query.default_limit
