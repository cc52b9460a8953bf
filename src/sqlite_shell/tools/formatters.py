"""Plain-text output formatters for tool and CLI responses."""

import json
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any

from sqlite_shell.models.table import DataTable

NULL = "NULL"
_MAX_CELL = 60


def format_value(value: Any) -> str:
    """Render a single cell: NULL, hex for blobs, ISO for dates."""
    if value is None:
        return NULL
    if isinstance(value, (bytes, bytearray, memoryview)):
        return "0x" + bytes(value).hex()
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, float):
        return repr(value)
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (dict, list)):
        return json.dumps(value, default=str)
    return str(value)


def _clip(text: str) -> str:
    text = text.replace("\n", "\\n")
    if len(text) > _MAX_CELL:
        return text[: _MAX_CELL - 3] + "..."
    return text


def format_table(table: DataTable, max_rows: int | None = 100) -> str:
    """Fixed-width text table with a header rule and a row count footer."""
    if not table.columns:
        return "No results."

    shown = table.rows if max_rows is None else table.rows[:max_rows]
    cells = [[_clip(format_value(v)) for v in row] for row in shown]
    headers = table.column_names
    widths = [len(h) for h in headers]
    for row in cells:
        widths = [max(w, len(c)) for w, c in zip(widths, row, strict=True)]

    lines = [
        "  ".join(h.ljust(w) for h, w in zip(headers, widths, strict=True)).rstrip(),
        "  ".join("-" * w for w in widths),
    ]
    lines.extend(
        "  ".join(c.ljust(w) for c, w in zip(row, widths, strict=True)).rstrip() for row in cells
    )

    total = len(table.rows)
    footer = f"({total} row{'s' if total != 1 else ''})"
    if len(shown) < total:
        footer = f"(showing {len(shown)} of {total} rows)"
    lines.append(footer)
    return "\n".join(lines)


def format_tables(tables: list[DataTable], max_rows: int | None = 100) -> str:
    """Format each result set, separated by blank lines."""
    if not tables:
        return "No results."
    return "\n\n".join(format_table(t, max_rows) for t in tables)
