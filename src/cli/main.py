"""proxylog CLI entry points.
This module exposes commands for importing access logs and reporting.
It maps argparse commands onto SDK calls.
"""

from __future__ import annotations

import argparse
import sys
from typing import Any, Sequence

from core.errors import ProxyLogError, ProxyLogStoreError
from core.logging_config import get_logger
from core.types import IngestOptions, QueryWindow
from store.log_sdk import ProxyLogClient
from store.request_queries import QueryResult, canned_query_names

_LOGGER = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(
        prog="proxylog",
        description="Proxy access log -> DuckDB importer and reports",
    )
    parser.add_argument("--db", help="Override PROXYLOG_DB_PATH for this command")
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_import_command(subparsers)
    _add_report_command(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the proxylog CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    client = _build_client(args.db)
    if args.command == "import":
        return _run_import_command(client, args)
    if args.command == "report":
        return _run_report_command(client, args)
    parser.error(f"Unsupported command: {args.command}")
    return 2


def _build_client(db_path: str | None) -> ProxyLogClient:
    """Build SDK client with optional database override."""
    client = ProxyLogClient()
    if db_path:
        client = client.with_db_path(db_path)
    return client


def _run_import_command(client: ProxyLogClient, args: argparse.Namespace) -> int:
    """Handle import command.

    Every source is imported in order; a source that fails with a proxylog
    error is reported and skipped.

    Args:
        client: SDK client.
        args: Parsed CLI args.

    Returns:
        Exit code, 1 when any source failed.
    """
    exit_code = 0
    for source_uri in args.sources:
        try:
            outcome = client.ingest(IngestOptions(source_uri=source_uri))
        except ProxyLogError as error:
            _LOGGER.error("source_import_failed", source_uri=source_uri, error=str(error))
            print(f"{source_uri}\tfailed\t{error}", file=sys.stderr)
            exit_code = 1
            continue
        print(
            f"{source_uri}\t"
            f"accepted={outcome.accepted}\t"
            f"rejected={outcome.rejected}\t"
            f"lines={outcome.lines_seen}"
        )
    return exit_code


def _run_report_command(client: ProxyLogClient, args: argparse.Namespace) -> int:
    """Handle report command.

    Args:
        client: SDK client.
        args: Parsed CLI args.

    Returns:
        Exit code, 1 when the store cannot answer.
    """
    window = QueryWindow(start=args.start, end=args.end, limit=args.limit)
    try:
        if args.query:
            results = [client.query(args.query, window)]
        else:
            results = client.report(window)
    except ProxyLogStoreError as error:
        _LOGGER.error("report_failed", error=str(error))
        print(f"report failed\t{error}", file=sys.stderr)
        return 1
    for result in results:
        _print_result(result)
    return 0


def _print_result(result: QueryResult) -> None:
    """Print one query result as a tab-separated section."""
    print(f"# {result.name}")
    print("\t".join(result.columns))
    for row in result.rows:
        print("\t".join("-" if value is None else str(value) for value in row))


def _add_import_command(subparsers: Any) -> None:
    """Register import subcommand."""
    parser = subparsers.add_parser("import", help="Import access log files into DuckDB")
    parser.add_argument(
        "sources",
        nargs="+",
        help="Log file paths (.log or .gz) or s3://bucket/key URIs",
    )


def _add_report_command(subparsers: Any) -> None:
    """Register report subcommand."""
    parser = subparsers.add_parser("report", help="Print canned request aggregations")
    parser.add_argument("--start", help="Inclusive ISO-8601 lower bound on request time")
    parser.add_argument("--end", help="Inclusive ISO-8601 upper bound on request time")
    parser.add_argument("--limit", type=int, help="Row limit for every query")
    parser.add_argument("--query", choices=canned_query_names(), help="Run a single query")
