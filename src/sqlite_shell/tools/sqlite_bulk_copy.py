"""sqlite_bulk_copy MCP tool — insert many rows in one transaction."""

import logging
from typing import Annotated, Any

from fastmcp import FastMCP
from fastmcp.server.context import Context
from pydantic import Field

from sqlite_shell.bulk_copy import ConflictClause, bulk_copy
from sqlite_shell.db.sqlite_backend import SQLiteBackend
from sqlite_shell.errors import BulkCopyError, SqliteShellError

logger = logging.getLogger(__name__)

_MAX_ROWS = 1000

_CONFLICTS = {c.value for c in ConflictClause}


async def copy_rows(
    db: SQLiteBackend,
    table: str,
    rows: list[dict[str, Any]],
    conflict: str | None = None,
    create: bool = False,
    force: bool = False,
) -> str:
    """Core bulk copy logic, testable without MCP context."""
    if not rows:
        return "Error: rows list is empty."
    if len(rows) > _MAX_ROWS:
        return f"Error: Maximum {_MAX_ROWS} rows per call (got {len(rows)})."
    if conflict is not None and conflict not in _CONFLICTS:
        return f"Error: Unknown conflict clause '{conflict}'. Use: {', '.join(sorted(_CONFLICTS))}"

    try:
        count = await bulk_copy(db, table, rows, conflict=conflict, create=create, force=force)
    except BulkCopyError as e:
        logger.info("Bulk copy failed at row %d: %s", e.row_index, e)
        return f"Error: {e}. No rows were written."
    except (SqliteShellError, ValueError) as e:
        return f"Error: {e}"

    return f"Copied {count} row(s) into {table}."


def register_sqlite_bulk_copy(mcp: FastMCP) -> None:
    """Register the sqlite_bulk_copy tool with the MCP server."""

    @mcp.tool()
    async def sqlite_bulk_copy(
        table: Annotated[str, Field(description="Target table name")],
        rows: Annotated[
            list[dict[str, Any]],
            Field(description="Row objects (max 1000); keys are column names"),
        ],
        conflict: Annotated[
            str | None,
            Field(description="On conflict: rollback, abort, fail, ignore, or replace"),
        ] = None,
        create: Annotated[
            bool,
            Field(description="Create the table from the rows if it does not exist"),
        ] = False,
        force: Annotated[
            bool,
            Field(description="Skip checking row keys against the table's columns"),
        ] = False,
        ctx: Context | None = None,
    ) -> str:
        """Insert rows into a table inside a single transaction.

        If any row fails, the whole batch is rolled back and nothing is written.
        Column types for a created table are inferred from the first non-null
        value of each key.
        """
        if ctx is None:
            raise RuntimeError("Context not injected")

        return await copy_rows(ctx.lifespan_context["db"], table, rows, conflict, create, force)
