"""proxylog exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Per-line errors are recovered by the ingestor; the rest are fatal.
"""

from __future__ import annotations


class ProxyLogError(Exception):
    """Base exception for all proxylog failures."""


class ProxyLogConfigError(ProxyLogError):
    """Raised for invalid runtime configuration."""


class ProxyLogInputError(ProxyLogError):
    """Raised when an input source cannot be opened or read."""


class ProxyLogParseError(ProxyLogError):
    """Raised when one log line does not match the access-log grammar."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class ProxyLogStoreError(ProxyLogError):
    """Raised when the request store cannot be opened or written."""


class ProxyLogSchemaError(ProxyLogStoreError):
    """Raised when the request table or its indexes cannot be created."""


class ProxyLogAppendError(ProxyLogStoreError):
    """Raised when the store rejects a single well-formed record."""


class ProxyLogDependencyError(ProxyLogError):
    """Raised when an optional runtime dependency is missing."""
