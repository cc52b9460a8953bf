"""Conversion between shell objects and DataTable.

Shell objects are whatever a caller has in hand: dicts, dataclasses,
pydantic models, named tuples or plain objects. Their properties become
columns; property order follows first appearance across the input.
"""

import dataclasses
import json
import logging
from collections.abc import Iterable, Iterator, Mapping, Sequence
from enum import Enum
from typing import Any

from pydantic import BaseModel

from sqlite_shell.errors import NullConstraintError
from sqlite_shell.models.table import DataTable
from sqlite_shell.typemap import SUPPORTED_TYPES, infer_type, merge_types

logger = logging.getLogger(__name__)

SCALAR_COLUMN = "value"


def object_properties(obj: Any) -> dict[str, Any]:
    """Return an object's properties as an ordered name → value dict."""
    if isinstance(obj, Mapping):
        return {str(k): v for k, v in obj.items()}
    if isinstance(obj, BaseModel):
        return obj.model_dump()
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: getattr(obj, f.name) for f in dataclasses.fields(obj)}
    if isinstance(obj, tuple) and hasattr(obj, "_asdict"):
        return dict(obj._asdict())
    if obj is None or isinstance(obj, (*SUPPORTED_TYPES, Enum)):
        return {SCALAR_COLUMN: obj}
    if hasattr(obj, "__dict__"):
        return {
            k: v for k, v in vars(obj).items() if not k.startswith("_") and not callable(v)
        }
    return {SCALAR_COLUMN: obj}


def _cell(value: Any) -> Any:
    """Store supported values as-is; containers as JSON, everything else as text."""
    if value is None or isinstance(value, SUPPORTED_TYPES):
        return value
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (Mapping, list, tuple)):
        return json.dumps(value, default=str)
    return str(value)


def to_data_table(
    objects: Iterable[Any],
    *,
    non_nullable: Sequence[str] = (),
    name: str | None = None,
) -> DataTable:
    """Build a DataTable from shell objects.

    The first non-null value of a property fixes its column type; later
    values widen it (``int`` then ``float`` gives ``float``) and conflicting
    values leave the column untyped (``object``). Columns that only ever
    held None are untyped too. Properties first seen on a later object add
    a column, back-filled with None for earlier rows.
    """
    table = DataTable(name=name)
    types: list[type | None] = []
    required = {n.lower() for n in non_nullable}

    for obj in objects:
        props = object_properties(obj)
        row: list[Any] = [None] * len(table.columns)
        for prop, raw in props.items():
            value = _cell(raw)
            if not table.has_column(prop):
                table.add_column(prop)
                types.append(None)
                row.append(None)
            pos = table.index_of(prop)
            row[pos] = value
            types[pos] = merge_types(types[pos], infer_type(value))
        table.rows.append(row)

    missing = required - {c.lower() for c in table.column_names}
    if missing and table.rows:
        raise ValueError(f"Non-nullable columns not found: {', '.join(sorted(missing))}")

    for pos, col in enumerate(table.columns):
        if col.name.lower() not in required:
            continue
        for index, row in enumerate(table.rows):
            if row[pos] is None:
                raise NullConstraintError(
                    f"Object {index} has no value for non-nullable column {col.name!r}"
                )

    for col, col_type in zip(table.columns, types, strict=True):
        col.data_type = col_type if col_type is not None else object
        col.allow_null = col.name.lower() not in required

    logger.debug("Converted %d objects into %d columns", len(table), len(table.columns))
    return table


def _unique_names(columns: Sequence[str]) -> list[str]:
    """Make result column names unique (``a``, ``a1``, ``a2``...)."""
    seen: set[str] = set()
    names: list[str] = []
    for col in columns:
        base = col or "Column"
        candidate = base
        suffix = 1
        while candidate.lower() in seen:
            candidate = f"{base}{suffix}"
            suffix += 1
        seen.add(candidate.lower())
        names.append(candidate)
    return names


def rows_to_table(
    rows: Iterable[Sequence[Any]],
    columns: Sequence[str],
    *,
    name: str | None = None,
    source: str | None = None,
) -> DataTable:
    """Build a DataTable from driver rows and their column names."""
    names = _unique_names(columns)
    types: list[type | None] = [None] * len(names)
    table = DataTable(name=name, source=source)
    for col in names:
        table.add_column(col)
    for row in rows:
        values = [row[i] for i in range(len(names))]
        for i, value in enumerate(values):
            types[i] = merge_types(types[i], infer_type(value))
        table.rows.append(values)
    for col, col_type in zip(table.columns, types, strict=True):
        col.data_type = col_type if col_type is not None else object
    return table


def iter_records(table: DataTable) -> Iterator[dict[str, Any]]:
    """Yield one dict per row keyed by column name."""
    yield from table.records()


def to_records(table: DataTable) -> list[dict[str, Any]]:
    """Convert a DataTable back to native objects (one dict per row)."""
    return list(table.records())
