"""Unit tests for CLI command handling."""

from __future__ import annotations

from pathlib import Path
import sys

import pytest

from cli.main import main
from tests.fixture_paths import SAMPLE_LOG_ACCEPTED, SAMPLE_LOG_REJECTED, fixture_path


def test_cli_import_prints_outcome(tmp_path: Path, capsys) -> None:
    """CLI import should print accepted and rejected counts per source."""
    source_path = str(fixture_path("access_sample.log"))
    args = ["--db", str(tmp_path / "cli.duckdb"), "import", source_path]

    exit_code = main(args)
    output = capsys.readouterr().out.strip()

    assert exit_code == 0
    assert output == (
        f"{source_path}\taccepted={SAMPLE_LOG_ACCEPTED}\t"
        f"rejected={SAMPLE_LOG_REJECTED}\tlines=6"
    )


def test_cli_import_continues_after_missing_source(tmp_path: Path, capsys) -> None:
    """A missing source should be reported while later sources still import."""
    missing_path = str(tmp_path / "missing.log")
    source_path = str(fixture_path("access_sample.log"))
    args = ["--db", str(tmp_path / "cli.duckdb"), "import", missing_path, source_path]

    exit_code = main(args)
    captured = capsys.readouterr()

    assert exit_code == 1
    assert missing_path in captured.err
    assert f"accepted={SAMPLE_LOG_ACCEPTED}" in captured.out


def test_cli_report_prints_query_sections(tmp_path: Path, capsys) -> None:
    """CLI report should print a section for a requested query."""
    db_path = str(tmp_path / "cli.duckdb")
    main(["--db", db_path, "import", str(fixture_path("access_sample.log"))])
    capsys.readouterr()

    exit_code = main(["--db", db_path, "report", "--query", "status_codes"])
    output = capsys.readouterr().out.splitlines()

    assert exit_code == 0
    assert output == ["# status_codes", "status\tn", "200\t1", "302\t1", "404\t1", "503\t1"]


def test_cli_report_rejects_non_positive_limit(tmp_path: Path, capsys) -> None:
    """An invalid limit should be reported on stderr with exit code 1."""
    db_path = str(tmp_path / "cli.duckdb")

    exit_code = main(["--db", db_path, "report", "--query", "top_hosts", "--limit", "0"])
    captured = capsys.readouterr()

    assert exit_code == 1
    assert "Invalid query limit 0" in captured.err
    assert captured.out == ""


def test_cli_import_continues_after_missing_s3_dependency(
    tmp_path: Path, capsys, monkeypatch: pytest.MonkeyPatch
) -> None:
    """An S3 source without boto3 installed should not stop later sources."""
    monkeypatch.setitem(sys.modules, "boto3", None)
    source_path = str(fixture_path("access_sample.log"))
    args = ["--db", str(tmp_path / "cli.duckdb"), "import", "s3://logs/access.log", source_path]

    exit_code = main(args)
    captured = capsys.readouterr()

    assert exit_code == 1
    assert "s3://logs/access.log\tfailed" in captured.err
    assert "boto3" in captured.err
    assert f"accepted={SAMPLE_LOG_ACCEPTED}" in captured.out
