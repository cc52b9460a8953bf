"""Environment-variable-based configuration."""

import os
from pathlib import Path

MEMORY = ":memory:"


def get_data_source() -> str:
    """Return the default data source from SQLITE_SHELL_DATA_SOURCE."""
    raw = os.environ.get("SQLITE_SHELL_DATA_SOURCE", MEMORY)
    if raw.lower() == MEMORY:
        return MEMORY
    return str(Path(raw).expanduser())


def get_query_timeout() -> float:
    """Return the query timeout in seconds from SQLITE_SHELL_QUERY_TIMEOUT (0 disables)."""
    return float(os.environ.get("SQLITE_SHELL_QUERY_TIMEOUT", "600"))


def get_busy_timeout() -> float:
    """Return the lock wait timeout in seconds from SQLITE_SHELL_BUSY_TIMEOUT."""
    return float(os.environ.get("SQLITE_SHELL_BUSY_TIMEOUT", "5.0"))


def is_read_only() -> bool:
    """Return True if SQLITE_SHELL_READ_ONLY is set to TRUE."""
    return os.environ.get("SQLITE_SHELL_READ_ONLY", "").upper() == "TRUE"


def get_notify_after() -> int:
    """Return the bulk copy progress interval from SQLITE_SHELL_NOTIFY_AFTER."""
    return int(os.environ.get("SQLITE_SHELL_NOTIFY_AFTER", "0"))


def get_log_level() -> str:
    """Return the logging level from SQLITE_SHELL_LOG_LEVEL."""
    return os.environ.get("SQLITE_SHELL_LOG_LEVEL", "WARNING")
