"""Batch ingestion of access-log lines into a request sink.

This module drives lines through the line parser and forwards each
accepted record to the sink's bulk append handle in input order.
Per-line failures are counted and logged; only setup and flush
failures abort a run.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, Protocol

from core.constants import DEFAULT_PROGRESS_INTERVAL, REQUESTS_TABLE_NAME
from core.errors import ProxyLogAppendError, ProxyLogParseError
from core.logging_config import get_logger
from core.types import IngestionOutcome, LogRecord
from ingest.line_parser import LineParser, default_parser

_LOGGER = get_logger(__name__)


class BulkAppendHandle(Protocol):
    """Write side of a sink for one run."""

    def append(self, record: LogRecord) -> None: ...

    def flush(self) -> int: ...


class RecordSink(Protocol):
    """Storage contract consumed by the ingestor."""

    def create_schema(self) -> None: ...

    def open_bulk_append(self, table: str) -> BulkAppendHandle: ...


class IngestState(Enum):
    """Lifecycle of one ingest run."""

    IDLE = "idle"
    INITIALIZING = "initializing"
    STREAMING = "streaming"
    FLUSHING = "flushing"
    DONE = "done"


@dataclass
class _IngestCounters:
    accepted: int = 0
    rejected: int = 0
    lines_seen: int = 0


class BatchIngestor:
    """Single-pass ingestor for one sequence of lines.

    An ingestor instance runs once. Lines are parsed and appended strictly
    in order on the calling thread; no line is retried.
    """

    def __init__(
        self,
        sink: RecordSink,
        parser: LineParser | None = None,
        progress_interval: int = DEFAULT_PROGRESS_INTERVAL,
        should_stop: Callable[[], bool] | None = None,
    ) -> None:
        if progress_interval <= 0:
            raise ValueError(f"progress_interval must be positive, got {progress_interval}")
        self._sink = sink
        self._parser = parser or default_parser()
        self._progress_interval = progress_interval
        self._should_stop = should_stop
        self._counters = _IngestCounters()
        self._state = IngestState.IDLE

    @property
    def state(self) -> IngestState:
        """Current lifecycle state."""
        return self._state

    def run(self, lines: Iterable[str]) -> IngestionOutcome:
        """Ingest all lines and flush the sink once.

        Args:
            lines: Raw lines without terminators, in source order.

        Returns:
            Accepted, rejected, and seen line counts.

        Raises:
            ProxyLogStoreError: If the sink cannot be initialized or flushed.
        """
        if self._state is not IngestState.IDLE:
            raise RuntimeError("BatchIngestor instances can only run once")
        self._state = IngestState.INITIALIZING
        self._sink.create_schema()
        handle = self._sink.open_bulk_append(REQUESTS_TABLE_NAME)
        self._state = IngestState.STREAMING
        cancelled = self._stream_lines(lines, handle)
        self._state = IngestState.FLUSHING
        handle.flush()
        self._state = IngestState.DONE
        outcome = IngestionOutcome(
            accepted=self._counters.accepted,
            rejected=self._counters.rejected,
            lines_seen=self._counters.lines_seen,
            cancelled=cancelled,
        )
        _LOGGER.info(
            "ingest_completed",
            accepted=outcome.accepted,
            rejected=outcome.rejected,
            lines_seen=outcome.lines_seen,
            cancelled=outcome.cancelled,
        )
        return outcome

    def _stream_lines(self, lines: Iterable[str], handle: BulkAppendHandle) -> bool:
        """Process lines until exhausted; return whether a stop was requested.

        The stop check runs before the next line is pulled, so a cancelled
        run leaves unread lines in the source.
        """
        line_iterator = iter(lines)
        line_number = 0
        while True:
            if self._should_stop is not None and self._should_stop():
                _LOGGER.warning("ingest_cancelled", line_number=line_number + 1)
                return True
            line = next(line_iterator, None)
            if line is None:
                return False
            line_number += 1
            self._ingest_line(line_number, line, handle)
            if self._counters.lines_seen % self._progress_interval == 0:
                self._log_progress()

    def _ingest_line(self, line_number: int, line: str, handle: BulkAppendHandle) -> None:
        self._counters.lines_seen += 1
        try:
            record = self._parser.parse(line)
        except ProxyLogParseError as error:
            self._counters.rejected += 1
            _LOGGER.warning("line_rejected", line_number=line_number, reason=error.reason)
            return
        try:
            handle.append(record)
        except ProxyLogAppendError as error:
            self._counters.rejected += 1
            _LOGGER.warning("append_failed", line_number=line_number, reason=str(error))
            return
        self._counters.accepted += 1

    def _log_progress(self) -> None:
        _LOGGER.info(
            "ingest_progress",
            lines_seen=self._counters.lines_seen,
            accepted=self._counters.accepted,
            rejected=self._counters.rejected,
        )


def ingest(
    lines: Iterable[str],
    sink: RecordSink,
    *,
    progress_interval: int = DEFAULT_PROGRESS_INTERVAL,
    parser: LineParser | None = None,
    should_stop: Callable[[], bool] | None = None,
) -> IngestionOutcome:
    """Parse lines and bulk-append accepted records to a sink.

    Args:
        lines: Raw lines without terminators, in source order.
        sink: Store exposing schema creation and bulk append.
        progress_interval: Lines between progress events.
        parser: Optional parser; the shared default parser when omitted.
        should_stop: Optional check run before each line to end early.

    Returns:
        Ingestion outcome counters.

    Raises:
        ValueError: If progress_interval is not positive.
        ProxyLogStoreError: If the sink cannot be initialized or flushed.
    """
    ingestor = BatchIngestor(
        sink,
        parser=parser,
        progress_interval=progress_interval,
        should_stop=should_stop,
    )
    return ingestor.run(lines)
