"""Unit tests for the SDK client and public import surface."""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path

import pytest

import proxylog
from core.config import ProxyLogConfig
from core.errors import ProxyLogInputError, ProxyLogStoreError
from core.types import IngestOptions
from store.log_sdk import ProxyLogClient
from tests.fixture_paths import SAMPLE_LOG_ACCEPTED, fixture_path


def test_public_surface_exposes_ingest_entry_points() -> None:
    """The top-level module should expose parser, ingest, and client."""
    record = proxylog.parse_line(
        fixture_path("access_sample.log").read_text(encoding="utf-8").splitlines()[0]
    )

    assert record.host == "example.com"
    assert proxylog.ProxyLogClient is ProxyLogClient
    assert "requests_over_time" in proxylog.canned_query_names()


def test_with_db_path_clones_client(tmp_path: Path) -> None:
    """Cloned clients should target the new database only."""
    client = ProxyLogClient(replace(ProxyLogConfig.from_env(), db_path=tmp_path / "a.duckdb"))

    cloned = client.with_db_path(str(tmp_path / "b.duckdb"))

    assert cloned.config.db_path.name == "b.duckdb"
    assert client.config.db_path.name == "a.duckdb"


def test_ingest_honours_db_path_override(tmp_path: Path) -> None:
    """Options may redirect a single import to another database."""
    client = ProxyLogClient(replace(ProxyLogConfig.from_env(), db_path=tmp_path / "a.duckdb"))
    override = tmp_path / "override.duckdb"

    outcome = client.ingest(
        IngestOptions(source_uri=str(fixture_path("access_sample.log")), db_path=str(override))
    )

    assert outcome.accepted == SAMPLE_LOG_ACCEPTED
    assert override.exists() and not (tmp_path / "a.duckdb").exists()


def test_ingest_missing_source_leaves_store_untouched(tmp_path: Path) -> None:
    """A source that cannot be opened should not create the database."""
    db_path = tmp_path / "untouched.duckdb"
    client = ProxyLogClient(replace(ProxyLogConfig.from_env(), db_path=db_path))

    with pytest.raises(ProxyLogInputError):
        client.ingest(IngestOptions(source_uri=str(tmp_path / "missing.log")))

    assert not db_path.exists()


def test_query_rejects_unknown_report(tmp_path: Path) -> None:
    """Unknown query names should raise a store error."""
    client = ProxyLogClient(replace(ProxyLogConfig.from_env(), db_path=tmp_path / "q.duckdb"))

    with pytest.raises(ProxyLogStoreError):
        client.query("nope")
