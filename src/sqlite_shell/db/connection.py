"""Connection string building and connection management."""

import logging
import sqlite3
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any
from urllib.parse import quote

import aiosqlite

from sqlite_shell.config import MEMORY, get_busy_timeout, get_data_source, is_read_only
from sqlite_shell.db.sqlite_backend import SQLiteBackend
from sqlite_shell.errors import ConnectionOpenError

logger = logging.getLogger(__name__)


def is_memory(data_source: str | Path) -> bool:
    """Return True for the in-memory data source (any casing)."""
    return str(data_source).lower() == MEMORY


def resolve_data_source(data_source: str | Path) -> str:
    """Expand ``~`` and make a file data source absolute."""
    if is_memory(data_source):
        return MEMORY
    return str(Path(data_source).expanduser().resolve())


def _uri_value(value: Any) -> str:
    if isinstance(value, bool):
        return "1" if value else "0"
    return quote(str(value), safe="")


def build_connection_string(
    data_source: str | Path,
    *,
    read_only: bool = False,
    options: Mapping[str, Any] | None = None,
) -> str:
    """Build an SQLite URI for ``sqlite3.connect(..., uri=True)``.

    ``options`` become extra URI query parameters (``cache``, ``immutable``,
    ``vfs``, ...), in insertion order after ``mode``.
    """
    if is_memory(data_source):
        if read_only:
            raise ValueError("A read-only in-memory database would always be empty")
        path = ":memory:"
    else:
        path = quote(Path(resolve_data_source(data_source)).as_posix(), safe="/:")

    params: dict[str, Any] = {}
    if read_only:
        params["mode"] = "ro"
    if options:
        params.update(options)

    uri = f"file:{path}"
    if params:
        query = "&".join(f"{quote(str(k), safe='')}={_uri_value(v)}" for k, v in params.items())
        uri += "?" + query
    return uri


async def open_connection(
    data_source: str | Path | None = None,
    *,
    read_only: bool | None = None,
    busy_timeout: float | None = None,
    options: Mapping[str, Any] | None = None,
) -> SQLiteBackend:
    """Open an SQLite connection.

    Missing arguments fall back to the SQLITE_SHELL_* environment settings.
    For file databases the parent directory is created unless read-only.
    """
    source = resolve_data_source(data_source if data_source is not None else get_data_source())
    if read_only is None:
        read_only = is_read_only() and not is_memory(source)
    if busy_timeout is None:
        busy_timeout = get_busy_timeout()

    uri = build_connection_string(source, read_only=read_only, options=options)

    if not is_memory(source) and not read_only:
        Path(source).parent.mkdir(parents=True, exist_ok=True)

    try:
        conn = await aiosqlite.connect(uri, uri=True, timeout=busy_timeout, isolation_level=None)
    except sqlite3.Error as e:
        raise ConnectionOpenError(f"Cannot open data source '{source}': {e}") from e

    conn.row_factory = aiosqlite.Row
    try:
        await conn.execute("PRAGMA foreign_keys=ON")
    except sqlite3.Error as e:
        await conn.close()
        raise ConnectionOpenError(f"Cannot open data source '{source}': {e}") from e

    logger.info("Opened SQLite connection to %s", source)
    return SQLiteBackend(conn, source)


async def open_connections(
    data_sources: Iterable[str | Path], **kwargs: Any
) -> list[SQLiteBackend]:
    """Open one connection per data source, closing all of them on failure."""
    opened: list[SQLiteBackend] = []
    try:
        for source in data_sources:
            opened.append(await open_connection(source, **kwargs))
    except BaseException:
        for db in opened:
            await db.close()
        raise
    return opened
