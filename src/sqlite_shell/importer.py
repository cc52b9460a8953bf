"""Load CSV / JSON / JSON Lines files into a table via bulk copy."""

import csv
import json
import logging
from collections.abc import Iterator
from pathlib import Path
from typing import Any

from sqlite_shell.bulk_copy import bulk_copy
from sqlite_shell.convert import to_data_table
from sqlite_shell.db.sqlite_backend import SQLiteBackend

logger = logging.getLogger(__name__)

FORMATS = ("csv", "json", "jsonl")

_SUFFIX_FORMATS = {
    ".csv": "csv",
    ".json": "json",
    ".jsonl": "jsonl",
    ".ndjson": "jsonl",
}


def detect_format(path: Path) -> str:
    """Pick the file format from its suffix."""
    fmt = _SUFFIX_FORMATS.get(path.suffix.lower())
    if fmt is None:
        raise ValueError(f"Cannot tell the format of {path.name}; pass one of {', '.join(FORMATS)}")
    return fmt


def read_csv(path: Path) -> Iterator[dict[str, Any]]:
    """Yield CSV rows as dicts; empty or missing fields become None.

    Header names are stripped and must be unique (case-insensitive), since
    they become column names.
    """
    with open(path, newline="", encoding="utf-8-sig") as f:
        reader = csv.reader(f)
        header = next(reader, None)
        if header is None:
            raise ValueError(f"CSV file has no header row: {path}")
        columns = [c.strip() for c in header]
        seen: set[str] = set()
        for col in columns:
            if col.lower() in seen:
                raise ValueError(f"{path}: duplicate column {col!r} in CSV header")
            seen.add(col.lower())

        for values in reader:
            if not values:
                continue
            if len(values) > len(columns):
                raise ValueError(
                    f"{path}:{reader.line_num}: {len(values)} fields, header has {len(columns)}"
                )
            values += [""] * (len(columns) - len(values))
            yield {col: (value or None) for col, value in zip(columns, values, strict=True)}


def read_json(path: Path) -> list[Any]:
    """Read a JSON array of objects."""
    with open(path, encoding="utf-8-sig") as f:
        data = json.load(f)
    if isinstance(data, dict):
        return [data]
    if not isinstance(data, list):
        raise ValueError(f"JSON file must hold an object or an array of objects: {path}")
    return data


def read_jsonl(path: Path) -> Iterator[Any]:
    """Yield one object per non-blank line."""
    with open(path, encoding="utf-8-sig") as f:
        for line_no, line in enumerate(f, start=1):
            if not line.strip():
                continue
            try:
                yield json.loads(line)
            except json.JSONDecodeError as e:
                raise ValueError(f"{path}:{line_no}: invalid JSON: {e.msg}") from e


def read_objects(path: Path, fmt: str) -> Iterator[Any] | list[Any]:
    """Read shell objects from a file in the given format."""
    if fmt == "csv":
        return read_csv(path)
    if fmt == "json":
        return read_json(path)
    if fmt == "jsonl":
        return read_jsonl(path)
    raise ValueError(f"Unknown format {fmt!r}; use one of {', '.join(FORMATS)}")


async def import_file(
    db: SQLiteBackend,
    path: str | Path,
    table: str | None = None,
    *,
    fmt: str | None = None,
    **bulk_kwargs: Any,
) -> int:
    """Bulk copy a data file into ``table`` (default: the file stem)."""
    path = Path(path).expanduser()
    if not path.is_file():
        raise FileNotFoundError(f"File not found: {path}")
    fmt = fmt or detect_format(path)
    table = table or path.stem

    data = to_data_table(read_objects(path, fmt), name=table)
    logger.info("Read %d rows from %s", len(data), path)
    return await bulk_copy(db, table, data, **bulk_kwargs)
