"""Unit tests for log line sources."""

from __future__ import annotations

import gzip
from pathlib import Path

import pytest

from core.config import ProxyLogConfig
from core.errors import ProxyLogInputError
from ingest import input_reader
from ingest.input_reader import open_log_source
from tests.fixture_paths import fixture_path


def test_open_log_source_yields_fixture_lines_in_order() -> None:
    """Reader should yield every line of a plain log file in order."""
    config = ProxyLogConfig.from_env()
    expected = fixture_path("access_sample.log").read_text(encoding="utf-8").splitlines()

    with open_log_source(str(fixture_path("access_sample.log")), config) as source:
        lines = list(source)

    assert lines == expected


def test_open_log_source_strips_crlf_terminators(tmp_path: Path) -> None:
    """Windows line endings should not leak into yielded lines."""
    log_path = tmp_path / "crlf.log"
    log_path.write_bytes(b"first line\r\nsecond line\r\n")

    with open_log_source(str(log_path), ProxyLogConfig.from_env()) as source:
        lines = list(source)

    assert lines == ["first line", "second line"]


def test_open_log_source_reads_gzip_files(tmp_path: Path) -> None:
    """``.gz`` sources should be decompressed transparently."""
    log_path = tmp_path / "access.log.gz"
    with gzip.open(log_path, "wt", encoding="utf-8") as handle:
        handle.write("alpha\nbeta\n")

    with open_log_source(str(log_path), ProxyLogConfig.from_env()) as source:
        lines = list(source)

    assert lines == ["alpha", "beta"]


def test_open_log_source_raises_for_missing_path(tmp_path: Path) -> None:
    """Reader should fail before iteration when the file is missing."""
    missing_path = tmp_path / "does-not-exist.log"

    with pytest.raises(ProxyLogInputError):
        open_log_source(str(missing_path), ProxyLogConfig.from_env())

    assert missing_path.exists() is False


def test_open_log_source_raises_for_directory(tmp_path: Path) -> None:
    """Directories are not valid log sources."""
    with pytest.raises(ProxyLogInputError):
        open_log_source(str(tmp_path), ProxyLogConfig.from_env())


def test_open_log_source_rejects_s3_uri_without_key() -> None:
    """S3 sources must name an object key."""
    with pytest.raises(ProxyLogInputError):
        open_log_source("s3://bucket-only", ProxyLogConfig.from_env())


def test_open_log_source_raises_for_corrupt_gzip(tmp_path: Path) -> None:
    """Unreadable compressed data should surface as an input error."""
    log_path = tmp_path / "broken.log.gz"
    log_path.write_bytes(b"not gzip data")

    with open_log_source(str(log_path), ProxyLogConfig.from_env()) as source:
        with pytest.raises(ProxyLogInputError):
            list(source)


def test_open_log_source_keeps_lone_carriage_returns_in_lines(tmp_path: Path) -> None:
    """Only newlines should split lines; a stray carriage return is content."""
    log_path = tmp_path / "stray-cr.log"
    log_path.write_bytes(b"agent Moz\rilla\r\nsecond\n")

    with open_log_source(str(log_path), ProxyLogConfig.from_env()) as source:
        lines = list(source)

    assert lines == ["agent Moz\rilla", "second"]


def test_open_log_source_keeps_lone_carriage_returns_in_gzip_lines(tmp_path: Path) -> None:
    """Compressed sources should split on newlines only as well."""
    log_path = tmp_path / "stray-cr.log.gz"
    log_path.write_bytes(gzip.compress(b"Moz\rilla\nnext\n"))

    with open_log_source(str(log_path), ProxyLogConfig.from_env()) as source:
        lines = list(source)

    assert lines == ["Moz\rilla", "next"]


def test_open_log_source_raises_for_corrupt_deflate_body(tmp_path: Path) -> None:
    """A valid gzip header over a damaged body should surface as an input error."""
    payload = bytearray(gzip.compress(b"alpha\nbeta\n" * 50))
    payload[10:20] = b"\xff" * 10
    log_path = tmp_path / "damaged.log.gz"
    log_path.write_bytes(bytes(payload))

    with open_log_source(str(log_path), ProxyLogConfig.from_env()) as source:
        with pytest.raises(ProxyLogInputError):
            list(source)


class _FakeBody:
    def __init__(self, payload: bytes) -> None:
        self._payload = payload
        self.closed = False

    def iter_chunks(self, chunk_size: int = 4) -> list[bytes]:
        return [
            self._payload[start : start + chunk_size]
            for start in range(0, len(self._payload), chunk_size)
        ]

    def close(self) -> None:
        self.closed = True


class _FakeS3Client:
    def __init__(self, body: _FakeBody) -> None:
        self.body = body
        self.requests: list[tuple[str, str]] = []

    def get_object(self, Bucket: str, Key: str) -> dict[str, object]:
        self.requests.append((Bucket, Key))
        return {"Body": self.body}


def test_open_log_source_streams_s3_objects(monkeypatch: pytest.MonkeyPatch) -> None:
    """S3 objects should be fetched by bucket and key and split on newlines only."""
    pytest.importorskip("botocore")
    client = _FakeS3Client(_FakeBody(b"one\r\nt\rwo\nthree"))
    monkeypatch.setattr(input_reader, "_create_s3_client", lambda config: client)

    with open_log_source("s3://logs/2026/access.log", ProxyLogConfig.from_env()) as source:
        lines = list(source)

    assert lines == ["one", "t\rwo", "three"]
    assert client.requests == [("logs", "2026/access.log")]
    assert client.body.closed is True
