"""Log line sources for ingestion.

This module opens local files (plain or gzip) and S3 objects and
exposes their lines lazily, in order, each read at most once.
"""

from __future__ import annotations

import gzip
from pathlib import Path
import zlib
from typing import IO, Any, Callable, Iterable, Iterator

from core.config import ProxyLogConfig
from core.constants import GZIP_SUFFIX, LINE_TERMINATOR, SOURCE_TEXT_ENCODING
from core.errors import ProxyLogDependencyError, ProxyLogInputError
from core.s3_uri import parse_s3_uri


class LogLineSource:
    """An opened log source yielding lines without terminators."""

    def __init__(
        self,
        source_uri: str,
        lines: Iterable[str],
        closer: Callable[[], None],
    ) -> None:
        self._source_uri = source_uri
        self._lines = lines
        self._closer = closer

    @property
    def source_uri(self) -> str:
        """Location this source was opened from."""
        return self._source_uri

    def __iter__(self) -> Iterator[str]:
        try:
            for line in self._lines:
                yield _strip_line_terminator(line)
        except (OSError, EOFError, zlib.error) as error:
            raise ProxyLogInputError(
                f"Failed to read log source {self._source_uri}: {error}. "
                "Check that the file is complete and readable."
            ) from error

    def close(self) -> None:
        """Release the underlying file or object stream."""
        self._closer()

    def __enter__(self) -> "LogLineSource":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def open_log_source(source_uri: str, config: ProxyLogConfig) -> LogLineSource:
    """Open a local path or ``s3://bucket/key`` object for line reading.

    Args:
        source_uri: Local file path or S3 object URI.
        config: Runtime configuration for S3 session defaults.

    Returns:
        Opened line source.

    Raises:
        ProxyLogInputError: If the source does not exist or cannot be opened.
        ProxyLogDependencyError: If an S3 source is requested without boto3.
    """
    if source_uri.startswith("s3://"):
        return _open_s3_source(source_uri, config)
    return _open_local_source(Path(source_uri).expanduser())


def _open_local_source(source_path: Path) -> LogLineSource:
    """Open a local log file, decompressing ``.gz`` files.

    Raises:
        ProxyLogInputError: If path is missing, not a file, or unreadable.
    """
    if not source_path.is_file():
        raise ProxyLogInputError(
            f"Failed to open log source at {source_path}: file does not exist. "
            "Provide an existing log file."
        )
    try:
        stream = _open_text_stream(source_path)
    except OSError as error:
        raise ProxyLogInputError(
            f"Failed to open log source at {source_path}: {error}. "
            "Check file permissions."
        ) from error
    return LogLineSource(str(source_path), stream, stream.close)


def _open_text_stream(source_path: Path) -> IO[str]:
    if source_path.suffix.lower() == GZIP_SUFFIX:
        return gzip.open(
            source_path,
            "rt",
            encoding=SOURCE_TEXT_ENCODING,
            errors="replace",
            newline=LINE_TERMINATOR,
        )
    return source_path.open(
        "r", encoding=SOURCE_TEXT_ENCODING, errors="replace", newline=LINE_TERMINATOR
    )


def _open_s3_source(source_uri: str, config: ProxyLogConfig) -> LogLineSource:
    """Open an S3 object as a streamed line source.

    Raises:
        ProxyLogInputError: If the object cannot be fetched.
    """
    location = parse_s3_uri(source_uri)
    s3_client = _create_s3_client(config)
    from botocore.exceptions import BotoCoreError, ClientError

    try:
        body = s3_client.get_object(Bucket=location.bucket, Key=location.key)["Body"]
    except (BotoCoreError, ClientError) as error:
        raise ProxyLogInputError(
            f"Failed to open log source at {source_uri}: {error}. "
            "Check the object key and AWS credentials."
        ) from error
    if location.key.lower().endswith(GZIP_SUFFIX):
        binary_lines: Iterable[bytes] = gzip.GzipFile(fileobj=body)
    else:
        binary_lines = _split_binary_lines(body.iter_chunks())
    decoded_lines = (
        raw_line.decode(SOURCE_TEXT_ENCODING, errors="replace") for raw_line in binary_lines
    )
    return LogLineSource(source_uri, decoded_lines, body.close)


def _create_s3_client(config: ProxyLogConfig) -> Any:
    """Create a boto3 S3 client.

    Raises:
        ProxyLogDependencyError: If boto3 is missing.
    """
    try:
        import boto3
    except ImportError as error:
        raise ProxyLogDependencyError(
            "S3 support requires boto3, but it is not installed. "
            "Install proxylog[s3] to import s3:// sources."
        ) from error
    session_kwargs: dict[str, str] = {}
    if config.s3_profile:
        session_kwargs["profile_name"] = config.s3_profile
    if config.s3_region:
        session_kwargs["region_name"] = config.s3_region
    session = boto3.session.Session(**session_kwargs)
    return session.client("s3")


def _split_binary_lines(chunks: Iterable[bytes]) -> Iterator[bytes]:
    """Split a byte stream on ``\\n`` only, keeping the terminator."""
    pending = b""
    for chunk in chunks:
        pending += chunk
        *complete, pending = pending.split(b"\n")
        for line in complete:
            yield line + b"\n"
    if pending:
        yield pending


def _strip_line_terminator(line: str) -> str:
    # A lone \r is line content; only \n and \r\n end a line.
    if line.endswith("\r\n"):
        return line[:-2]
    if line.endswith("\n"):
        return line[:-1]
    return line
