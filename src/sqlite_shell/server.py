"""FastMCP server with lifespan management and tool registration."""

import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastmcp import FastMCP

from sqlite_shell.config import get_data_source, get_log_level, is_read_only
from sqlite_shell.db.connection import open_connection
from sqlite_shell.tools.sqlite_bulk_copy import register_sqlite_bulk_copy
from sqlite_shell.tools.sqlite_query import register_sqlite_query
from sqlite_shell.tools.sqlite_tables import register_sqlite_tables


def configure_logging() -> None:
    """Send log records to stderr; stdout carries results or the MCP transport."""
    logging.basicConfig(
        level=getattr(logging, get_log_level().upper(), logging.WARNING),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        stream=sys.stderr,
    )


@asynccontextmanager
async def lifespan(server: FastMCP) -> AsyncIterator[dict[str, Any]]:
    """Open the configured database for the server's lifetime."""
    configure_logging()
    logger = logging.getLogger(__name__)

    data_source = get_data_source()
    read_only = is_read_only()
    logger.info("Opening database at %s (read_only=%s)", data_source, read_only)
    db = await open_connection(data_source, read_only=read_only)

    try:
        yield {"db": db}
    finally:
        await db.close()
        logger.info("Database connection closed")


_INSTRUCTIONS = """\
Tools for working with one SQLite database (set by SQLITE_SHELL_DATA_SOURCE).

- sqlite_tables: list tables, or show a table's columns. Start here.
- sqlite_query: run SQL. Always pass user-supplied values through \
parameters (named :name / @name / $name, or positional ?) rather than \
pasting them into the SQL text.
- sqlite_bulk_copy: insert many rows at once. The batch is all-or-nothing: \
the first failing row rolls back everything.
"""


def create_server() -> FastMCP:
    """Create and configure the MCP server with all tools."""
    mcp = FastMCP(
        "sqlite-shell",
        instructions=_INSTRUCTIONS,
        lifespan=lifespan,
    )

    register_sqlite_tables(mcp)
    register_sqlite_query(mcp)
    if not is_read_only():
        register_sqlite_bulk_copy(mcp)

    return mcp
