"""Python ↔ SQLite type mapping for dynamic columns.

Columns built from shell objects carry a Python type. The first non-null
value fixes it, later values may widen it, and ``object`` marks a column
whose values disagree.
"""

from datetime import date, datetime, time, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

SUPPORTED_TYPES: tuple[type, ...] = (
    bool,
    int,
    float,
    Decimal,
    str,
    bytes,
    bytearray,
    datetime,
    date,
    time,
    timedelta,
    UUID,
)

_WIDENING: dict[frozenset[type], type] = {
    frozenset({bool, int}): int,
    frozenset({bool, float}): float,
    frozenset({int, float}): float,
    frozenset({int, Decimal}): Decimal,
    frozenset({bool, Decimal}): Decimal,
    frozenset({date, datetime}): datetime,
    frozenset({bytes, bytearray}): bytes,
}

_DECLARED: dict[type, str] = {
    bool: "INTEGER",
    int: "INTEGER",
    float: "REAL",
    Decimal: "NUMERIC",
    bytes: "BLOB",
    bytearray: "BLOB",
    object: "",
}


def infer_type(value: Any) -> type | None:
    """Return the column type a value implies, or None for None.

    Exact matches win so ``True`` is ``bool`` and a ``datetime`` is not a
    ``date``. Subclasses (``IntEnum``, ``str`` subclasses) map to their
    nearest supported base; anything else is carried as ``str``.
    """
    if value is None:
        return None
    if type(value) in SUPPORTED_TYPES:
        return type(value)
    for t in type(value).__mro__[1:]:
        if t in SUPPORTED_TYPES:
            return t
    return str


def merge_types(current: type | None, new: type | None) -> type | None:
    """Widen a column type to accommodate a new value type."""
    if new is None or current is object:
        return current
    if current is None or current is new:
        return new
    return _WIDENING.get(frozenset({current, new}), object)


def declared_type(py_type: type | None) -> str:
    """Return the SQLite declared type (affinity) for a column type."""
    if py_type is None:
        return ""
    return _DECLARED.get(py_type, "TEXT")


def to_sqlite(value: Any) -> Any:
    """Adapt a Python value to a type the SQLite driver binds natively."""
    if value is None:
        return None
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, Enum):
        return to_sqlite(value.value)
    if isinstance(value, (int, float, str, bytes)):
        return value
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat(sep=" ")
    if isinstance(value, (date, time)):
        return value.isoformat()
    if isinstance(value, timedelta):
        return value.total_seconds()
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, (bytearray, memoryview)):
        return bytes(value)
    return str(value)
