"""Row serialization for LogRecord values.

This module maps records onto the request table column order.
It is shared by the bulk append path and store tests.
"""

from __future__ import annotations

from core.types import LogRecord


def log_record_to_row(record: LogRecord) -> tuple[object, ...]:
    """Serialize a record into a row in ``REQUEST_COLUMNS`` order.

    Args:
        record: Parsed log record.

    Returns:
        Row tuple with the timestamp rendered as RFC-3339 text.
    """
    return (
        record.timestamp.isoformat(),
        record.remote_addr,
        record.identd,
        record.user_or_session,
        record.method,
        record.url,
        record.scheme,
        record.host,
        record.port,
        record.path,
        record.query,
        record.http_version,
        record.status,
        record.bytes_sent,
        record.country,
        record.user_agent,
        record.raw,
    )
