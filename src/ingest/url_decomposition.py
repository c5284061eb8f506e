"""Best-effort request target decomposition.

Only absolute URLs carrying both a scheme and a host are split. Any other
target (origin-form paths, ``host:port`` authority targets, bad ports)
yields an all-absent ``UrlParts`` and never fails the surrounding line.
"""

from __future__ import annotations

from urllib.parse import urlsplit

from core.types import UrlParts


def decompose_url(url: str) -> UrlParts:
    """Split an absolute URL into scheme, host, port, path, and query.

    Args:
        url: Raw request target from the log line.

    Returns:
        Decomposed parts, or all-absent parts when the URL is not absolute.
    """
    try:
        parts = urlsplit(url)
        port = parts.port
    except ValueError:
        return UrlParts()
    if not parts.scheme or not parts.hostname:
        return UrlParts()
    return UrlParts(
        scheme=parts.scheme,
        host=parts.hostname,
        port=port,
        path=parts.path or "/",
        query=parts.query or None,
    )
