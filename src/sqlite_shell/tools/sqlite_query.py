"""sqlite_query MCP tool — run a parameterized query."""

import logging
import sqlite3
from typing import Annotated, Any

from fastmcp import FastMCP
from fastmcp.server.context import Context
from pydantic import Field

from sqlite_shell.db.backend import Database
from sqlite_shell.errors import SqliteShellError
from sqlite_shell.query import ResultFormat, invoke_query
from sqlite_shell.tools.formatters import format_table, format_tables, format_value

logger = logging.getLogger(__name__)

_MAX_ROWS = 200

_FORMATS = {f.value for f in ResultFormat if f is not ResultFormat.DATAROW}


async def run_query(
    db: Database,
    query: str,
    parameters: dict[str, Any] | list[Any] | None = None,
    result_format: str = "datatable",
    append_data_source: bool = False,
) -> str:
    """Core query logic, testable without MCP context."""
    if result_format not in _FORMATS:
        return f"Error: Unknown result_format '{result_format}'. Use: {', '.join(sorted(_FORMATS))}"

    try:
        result = await invoke_query(
            db,
            query,
            parameters=parameters,
            result_format=result_format,
            append_data_source=append_data_source,
        )
    except (SqliteShellError, sqlite3.Error, ValueError) as e:
        logger.info("Query failed: %s", e)
        return f"Error: {e}"

    fmt = ResultFormat(result_format)
    if fmt is ResultFormat.SINGLE_VALUE:
        return format_value(result)
    if fmt is ResultFormat.DATASET:
        return format_tables(result, _MAX_ROWS)
    if fmt is ResultFormat.OBJECT:
        if not result:
            return "No results."
        lines = [
            ", ".join(f"{k}={format_value(v)}" for k, v in record.items())
            for record in result[:_MAX_ROWS]
        ]
        if len(result) > _MAX_ROWS:
            lines.append(f"(showing {_MAX_ROWS} of {len(result)} rows)")
        return "\n".join(lines)
    return format_table(result, _MAX_ROWS)


def register_sqlite_query(mcp: FastMCP) -> None:
    """Register the sqlite_query tool with the MCP server."""

    @mcp.tool()
    async def sqlite_query(
        query: Annotated[
            str,
            Field(description="SQL text; several statements may be separated by ';'"),
        ],
        parameters: Annotated[
            dict[str, Any] | list[Any] | None,
            Field(
                description=(
                    "Bind values: an object for named placeholders (:name, @name, $name) "
                    "or a list for ? placeholders"
                ),
            ),
        ] = None,
        result_format: Annotated[
            str,
            Field(description="datatable (default), dataset, object, or single_value"),
        ] = "datatable",
        append_data_source: Annotated[
            bool,
            Field(description="Add a DataSource column naming the database file"),
        ] = False,
        ctx: Context | None = None,
    ) -> str:
        """Run SQL against the configured SQLite database.

        Statements that return rows are shown as a text table. Data changes
        are committed immediately.
        """
        if ctx is None:
            raise RuntimeError("Context not injected")

        db: Database = ctx.lifespan_context["db"]
        return await run_query(db, query, parameters, result_format, append_data_source)
