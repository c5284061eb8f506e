"""Structured logging configuration.

This module initializes structlog loggers with a stable JSON format.
Every subsystem logs snake_case events with keyword fields to stderr,
keeping stdout free for command output.
"""

from __future__ import annotations

import sys
from typing import Any

import structlog


def get_logger(name: str) -> Any:
    """Return a module logger instance.

    Args:
        name: Logger name, usually __name__.

    Returns:
        A structlog logger with structured JSON output.
    """
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=_stderr_logger,
        cache_logger_on_first_use=False,
    )
    return structlog.get_logger(name)


def _stderr_logger(*args: Any) -> structlog.PrintLogger:
    """Build a logger writing to whatever ``sys.stderr`` currently is."""
    return structlog.PrintLogger(file=sys.stderr)
