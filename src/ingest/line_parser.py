"""Proxy access-log line parser.

This module maps one raw access-log line onto a typed ``LogRecord``.
The expected layout is::

    <remote_addr> <identd> <user_or_session> [<timestamp>]
    "<method> <url> <http_version>" <status> <bytes> "<country>" "<user_agent>"

A line either matches completely or is rejected with a reason; the only
best-effort step is URL decomposition, which degrades to absent fields.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
import re

from core.constants import (
    ABSENT_FIELD_PLACEHOLDER,
    ACCESS_LOG_MONTHS,
    INT64_MAX,
    INT64_MAX_DIGITS,
    INT64_MIN,
)
from core.errors import ProxyLogParseError
from core.types import LogRecord
from ingest.url_decomposition import decompose_url

ACCESS_LOG_LINE_REGEX = (
    r"(?P<remote_addr>\S+)\s+"
    r"(?P<identd>\S+)\s+"
    r"(?P<user_or_session>\S+)\s+"
    r"\[(?P<timestamp>[^\]]+)\]\s+"
    r'"(?P<method>\S+)\s+(?P<url>\S+)\s+(?P<http_version>[^"]+)"\s+'
    r"(?P<status>[0-9]{3})\s+"
    r"(?P<bytes>\S+)\s+"
    r'"(?P<country>[^"]*)"\s+'
    r'"(?P<user_agent>[^"]*)"\s*'
)
_BYTES_PATTERN = re.compile(r"[+-]?[0-9]+")
# Month names are matched against a fixed table so parsing ignores LC_TIME.
_TIMESTAMP_PATTERN = re.compile(
    r"(?P<day>[0-9]{1,2})/(?P<month>[A-Za-z]{3})/(?P<year>[0-9]{4}):"
    r"(?P<hour>[0-9]{1,2}):(?P<minute>[0-9]{1,2}):(?P<second>[0-9]{1,2}) "
    r"(?P<sign>[+-])(?P<offset_hours>[0-9]{2}):?(?P<offset_minutes>[0-5][0-9])"
)


class LineParser:
    """Parser owning one compiled access-log pattern.

    Instances hold no mutable state, so one parser can be shared by
    every ingest run and thread in the process.
    """

    def __init__(self) -> None:
        self._pattern = re.compile(ACCESS_LOG_LINE_REGEX)

    def parse(self, line: str) -> LogRecord:
        """Parse one access-log line.

        Args:
            line: Raw line without its terminator.

        Returns:
            Parsed record whose ``raw`` field equals ``line``.

        Raises:
            ProxyLogParseError: If the line does not match the grammar or a
                timestamp or byte count cannot be parsed.
        """
        match = self._pattern.fullmatch(line)
        if match is None:
            raise ProxyLogParseError("line did not match expected access-log format")
        url = match["url"]
        url_parts = decompose_url(url)
        return LogRecord(
            remote_addr=match["remote_addr"],
            identd=_none_if_dash(match["identd"]),
            user_or_session=_none_if_dash(match["user_or_session"]),
            timestamp=_parse_timestamp(match["timestamp"]),
            method=match["method"],
            url=url,
            scheme=url_parts.scheme,
            host=url_parts.host,
            port=url_parts.port,
            path=url_parts.path,
            query=url_parts.query,
            http_version=match["http_version"],
            status=int(match["status"]),
            bytes_sent=_parse_bytes(match["bytes"]),
            country=_none_if_blank(match["country"]),
            user_agent=_none_if_blank(match["user_agent"]),
            raw=line,
        )


_DEFAULT_PARSER = LineParser()


def parse_line(line: str) -> LogRecord:
    """Parse one line with the process-wide default parser.

    Args:
        line: Raw line without its terminator.

    Returns:
        Parsed record.

    Raises:
        ProxyLogParseError: If the line is malformed.
    """
    return _DEFAULT_PARSER.parse(line)


def default_parser() -> LineParser:
    """Return the shared default parser instance."""
    return _DEFAULT_PARSER


def _parse_timestamp(text: str) -> datetime:
    """Parse ``15/Feb/2026:00:00:04 +0000`` into an aware datetime.

    Raises:
        ProxyLogParseError: If text does not follow the access-log format.
    """
    match = _TIMESTAMP_PATTERN.fullmatch(text)
    if match is None:
        raise ProxyLogParseError(
            f"invalid timestamp '{text}': expected dd/Mon/yyyy:HH:MM:SS ±HHMM"
        )
    month = ACCESS_LOG_MONTHS.get(match["month"].lower())
    if month is None:
        raise ProxyLogParseError(
            f"invalid timestamp '{text}': unknown month '{match['month']}'"
        )
    offset = timedelta(hours=int(match["offset_hours"]), minutes=int(match["offset_minutes"]))
    if match["sign"] == "-":
        offset = -offset
    try:
        return datetime(
            int(match["year"]),
            month,
            int(match["day"]),
            int(match["hour"]),
            int(match["minute"]),
            int(match["second"]),
            tzinfo=timezone(offset),
        )
    except ValueError as error:
        raise ProxyLogParseError(f"invalid timestamp '{text}': {error}") from error


def _parse_bytes(text: str) -> int | None:
    """Parse the byte-count field; ``-`` means absent.

    Raises:
        ProxyLogParseError: If text is not a signed 64-bit integer.
    """
    if text == ABSENT_FIELD_PLACEHOLDER:
        return None
    if _BYTES_PATTERN.fullmatch(text) is None:
        raise ProxyLogParseError(f"invalid byte count '{text}'")
    digits = text.lstrip("+-").lstrip("0") or "0"
    if len(digits) > INT64_MAX_DIGITS:
        raise ProxyLogParseError(f"byte count with {len(digits)} digits exceeds the 64-bit range")
    value = -int(digits) if text.startswith("-") else int(digits)
    if not INT64_MIN <= value <= INT64_MAX:
        raise ProxyLogParseError(f"byte count '{text}' exceeds the 64-bit range")
    return value


def _none_if_dash(text: str) -> str | None:
    stripped = text.strip()
    return None if stripped == ABSENT_FIELD_PLACEHOLDER else stripped


def _none_if_blank(text: str) -> str | None:
    stripped = text.strip()
    return stripped or None
