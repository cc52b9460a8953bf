"""Tests for environment-based configuration."""

from pathlib import Path
from unittest.mock import patch

from sqlite_shell.config import (
    get_busy_timeout,
    get_data_source,
    get_log_level,
    get_notify_after,
    get_query_timeout,
    is_read_only,
)


def test_defaults():
    with patch.dict("os.environ", {}, clear=True):
        assert get_data_source() == ":memory:"
        assert get_query_timeout() == 600.0
        assert get_busy_timeout() == 5.0
        assert is_read_only() is False
        assert get_notify_after() == 0
        assert get_log_level() == "WARNING"


def test_from_env():
    with patch.dict(
        "os.environ",
        {
            "SQLITE_SHELL_DATA_SOURCE": "~/data/app.db",
            "SQLITE_SHELL_QUERY_TIMEOUT": "0",
            "SQLITE_SHELL_BUSY_TIMEOUT": "1.5",
            "SQLITE_SHELL_READ_ONLY": "true",
            "SQLITE_SHELL_NOTIFY_AFTER": "500",
            "SQLITE_SHELL_LOG_LEVEL": "DEBUG",
        },
    ):
        assert get_data_source() == str(Path("~/data/app.db").expanduser())
        assert get_query_timeout() == 0.0
        assert get_busy_timeout() == 1.5
        assert is_read_only() is True
        assert get_notify_after() == 500
        assert get_log_level() == "DEBUG"


def test_memory_source_any_case():
    with patch.dict("os.environ", {"SQLITE_SHELL_DATA_SOURCE": ":MEMORY:"}):
        assert get_data_source() == ":memory:"
