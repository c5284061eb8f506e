"""Core constants used across proxylog modules.

This module centralizes non-domain-specific constants.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

DEFAULT_DB_PATH = "proxylog.duckdb"
REQUESTS_TABLE_NAME = "requests"
DEFAULT_PROGRESS_INTERVAL = 10_000
DEFAULT_APPEND_CHUNK_SIZE = 2048
ACCESS_LOG_MONTHS = {
    "jan": 1,
    "feb": 2,
    "mar": 3,
    "apr": 4,
    "may": 5,
    "jun": 6,
    "jul": 7,
    "aug": 8,
    "sep": 9,
    "oct": 10,
    "nov": 11,
    "dec": 12,
}
INT64_MAX_DIGITS = 19
ABSENT_FIELD_PLACEHOLDER = "-"
GZIP_SUFFIX = ".gz"
SOURCE_TEXT_ENCODING = "utf-8"
LINE_TERMINATOR = "\n"
INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1
INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1
DEFAULT_TOP_HOSTS_LIMIT = 15
DEFAULT_TOP_COUNTRIES_LIMIT = 20
DEFAULT_TOP_PATHS_LIMIT = 15
DEFAULT_ERROR_ANALYSIS_LIMIT = 10
UNBOUNDED_SERIES_LIMIT = 200
