"""Runtime configuration model for proxylog.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path

from core.constants import DEFAULT_APPEND_CHUNK_SIZE, DEFAULT_DB_PATH, DEFAULT_PROGRESS_INTERVAL
from core.errors import ProxyLogConfigError


@dataclass(frozen=True)
class ProxyLogConfig:
    """Validated runtime configuration.

    Attributes:
        db_path: DuckDB database file receiving imported requests.
        progress_interval: Lines between two ingest progress events.
        append_chunk_size: Rows buffered before a bulk write into DuckDB.
        s3_region: Optional default AWS region for S3 sources.
        s3_profile: Optional AWS profile for boto3 session initialization.
    """

    db_path: Path
    progress_interval: int
    append_chunk_size: int
    s3_region: str | None
    s3_profile: str | None

    @classmethod
    def from_env(cls) -> "ProxyLogConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            ProxyLogConfigError: If environment values are invalid.
        """
        db_path_value = os.getenv("PROXYLOG_DB_PATH", DEFAULT_DB_PATH)
        progress_interval = _parse_positive_int(
            "PROXYLOG_PROGRESS_INTERVAL",
            os.getenv("PROXYLOG_PROGRESS_INTERVAL", str(DEFAULT_PROGRESS_INTERVAL)),
        )
        append_chunk_size = _parse_positive_int(
            "PROXYLOG_APPEND_CHUNK_SIZE",
            os.getenv("PROXYLOG_APPEND_CHUNK_SIZE", str(DEFAULT_APPEND_CHUNK_SIZE)),
        )
        return cls(
            db_path=Path(db_path_value).expanduser().resolve(),
            progress_interval=progress_interval,
            append_chunk_size=append_chunk_size,
            s3_region=os.getenv("PROXYLOG_S3_REGION"),
            s3_profile=os.getenv("PROXYLOG_S3_PROFILE"),
        )


def _parse_positive_int(variable_name: str, raw_value: str) -> int:
    """Parse a positive integer environment value.

    Args:
        variable_name: Environment variable name for error context.
        raw_value: Raw string from environment.

    Returns:
        Parsed integer.

    Raises:
        ProxyLogConfigError: If value is not a positive integer.
    """
    try:
        value = int(raw_value)
    except ValueError as error:
        raise ProxyLogConfigError(
            f"Invalid {variable_name} value: "
            f"expected integer, got '{raw_value}'. "
            f"Set {variable_name} to a positive numeric value."
        ) from error
    if value <= 0:
        raise ProxyLogConfigError(
            f"Invalid {variable_name} value: expected a positive integer, got {value}. "
            f"Set {variable_name} to a value greater than zero."
        )
    return value
