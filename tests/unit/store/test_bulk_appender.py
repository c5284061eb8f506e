"""Unit tests for the chunked bulk append path."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from core.errors import ProxyLogAppendError, ProxyLogStoreError
from core.types import LogRecord
from store.request_store import RequestStore


def _record(index: int = 1, **overrides: object) -> LogRecord:
    record = LogRecord(
        remote_addr="203.0.113.5",
        identd=None,
        user_or_session="joe",
        timestamp=datetime(2026, 2, 15, 0, 0, index, tzinfo=timezone.utc),
        method="GET",
        url=f"http://example.com/a/{index}?x=1",
        scheme="http",
        host="example.com",
        port=None,
        path=f"/a/{index}",
        query="x=1",
        http_version="HTTP/1.1",
        status=200,
        bytes_sent=512,
        country="US",
        user_agent="Mozilla/5.0",
        raw=f"raw line {index}",
    )
    return replace(record, **overrides)


@pytest.fixture
def store(tmp_path: Path):
    with RequestStore.open(tmp_path / "requests.duckdb", append_chunk_size=2) as opened:
        opened.create_schema()
        yield opened


def test_flush_writes_records_in_append_order(store: RequestStore) -> None:
    """Rows spanning several chunks should land in append order."""
    appender = store.open_bulk_append("requests")
    for index in range(5):
        appender.append(_record(index))

    written = appender.flush()
    rows = store.query("SELECT raw FROM requests ORDER BY rowid")

    assert written == 5
    assert [row[0] for row in rows] == [f"raw line {index}" for index in range(5)]


def test_full_chunks_are_written_before_flush(store: RequestStore) -> None:
    """A full chunk should be copied into the table before the final flush."""
    appender = store.open_bulk_append("requests")
    for index in range(3):
        appender.append(_record(index))

    assert appender.written_rows == 2
    assert store.query("SELECT count(*) FROM requests") == [(2,)]


def test_append_roundtrips_optional_and_large_values(store: RequestStore) -> None:
    """Absent values should store as NULL and 64-bit sizes should survive."""
    appender = store.open_bulk_append("requests")
    appender.append(_record(1, bytes_sent=2**40, port=8443))
    appender.append(_record(2, bytes_sent=None, country=None, user_agent=None))
    appender.flush()

    rows = store.query(
        "SELECT bytes, port, country, user_agent, epoch(ts) FROM requests ORDER BY rowid"
    )

    assert rows[0][:2] == (2**40, 8443)
    assert rows[1][:4] == (None, None, None, None)
    assert rows[0][4] == _record(1).timestamp.timestamp()


def test_append_stores_offset_timestamps_as_instants(store: RequestStore) -> None:
    """Timestamps with offsets should be stored as the same instant."""
    local_time = datetime(2026, 2, 15, 1, 15, tzinfo=timezone(timedelta(hours=1)))
    appender = store.open_bulk_append("requests")
    appender.append(_record(1, timestamp=local_time))
    appender.flush()

    rows = store.query("SELECT epoch(ts) FROM requests")

    assert rows == [(local_time.timestamp(),)]


@pytest.mark.parametrize(
    "overrides",
    [
        {"status": 2**40},
        {"port": 2**31},
        {"bytes_sent": 2**63},
        {"remote_addr": None},
        {"raw": "bad \udcff text"},
        {"status": "200"},
    ],
)
def test_append_rejects_constraint_violations(
    store: RequestStore,
    overrides: dict[str, object],
) -> None:
    """Rows the table cannot hold should be rejected individually."""
    appender = store.open_bulk_append("requests")
    appender.append(_record(1))

    with pytest.raises(ProxyLogAppendError):
        appender.append(_record(2, **overrides))

    appender.append(_record(3))
    appender.flush()
    rows = store.query("SELECT raw FROM requests ORDER BY rowid")
    assert [row[0] for row in rows] == ["raw line 1", "raw line 3"]


def test_flush_can_only_run_once(store: RequestStore) -> None:
    """A second flush on the same handle should fail."""
    appender = store.open_bulk_append("requests")
    appender.flush()

    with pytest.raises(ProxyLogStoreError):
        appender.flush()


def test_append_after_flush_fails(store: RequestStore) -> None:
    """Flushed handles should not accept more rows."""
    appender = store.open_bulk_append("requests")
    appender.flush()

    with pytest.raises(ProxyLogStoreError):
        appender.append(_record(1))
