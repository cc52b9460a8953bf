"""sqlite_tables MCP tool — list tables or describe one."""

from typing import Annotated

from fastmcp import FastMCP
from fastmcp.server.context import Context
from pydantic import Field

from sqlite_shell.db.sqlite_backend import SQLiteBackend


async def describe(db: SQLiteBackend, table: str | None = None) -> str:
    """List user tables, or the columns of one table."""
    if table is None:
        tables = await db.list_tables()
        if not tables:
            return f"No tables in {db.data_source}."
        return "\n".join(tables)

    if not await db.table_exists(table):
        return f"Error: Table '{table}' not found."
    columns = await db.table_columns(table)
    return "\n".join(f"{name} {decl}".rstrip() for name, decl in columns)


def register_sqlite_tables(mcp: FastMCP) -> None:
    """Register the sqlite_tables tool with the MCP server."""

    @mcp.tool()
    async def sqlite_tables(
        table: Annotated[
            str | None,
            Field(description="Table to describe; omit to list all tables"),
        ] = None,
        ctx: Context | None = None,
    ) -> str:
        """List the database's tables, or show one table's columns and types."""
        if ctx is None:
            raise RuntimeError("Context not injected")

        return await describe(ctx.lifespan_context["db"], table)
