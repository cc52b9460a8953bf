"""Tests for shell object ↔ DataTable conversion."""

from collections import namedtuple
from dataclasses import dataclass
from datetime import datetime

import pytest
from pydantic import BaseModel

from sqlite_shell.convert import object_properties, rows_to_table, to_data_table, to_records
from sqlite_shell.errors import NullConstraintError


@dataclass
class Point:
    x: int
    y: int


class Person(BaseModel):
    name: str
    age: int | None = None


Pair = namedtuple("Pair", ["left", "right"])


class Plain:
    def __init__(self):
        self.visible = 1
        self._hidden = 2

    def method(self):
        return 3


def test_properties_of_supported_objects():
    assert object_properties({"a": 1}) == {"a": 1}
    assert object_properties(Point(1, 2)) == {"x": 1, "y": 2}
    assert object_properties(Person(name="Ada")) == {"name": "Ada", "age": None}
    assert object_properties(Pair(1, 2)) == {"left": 1, "right": 2}
    assert object_properties(Plain()) == {"visible": 1}
    assert object_properties("text") == {"value": "text"}


def test_columns_follow_first_appearance():
    table = to_data_table([{"a": 1}, {"a": 2, "b": "x"}])
    assert table.column_names == ["a", "b"]
    assert table.rows == [[1, None], [2, "x"]]
    assert table.column("a").data_type is int
    assert table.column("b").data_type is str


def test_first_non_null_value_sets_type():
    table = to_data_table([{"a": None}, {"a": 1.5}])
    assert table.column("a").data_type is float


def test_types_widen_or_fall_back_to_object():
    table = to_data_table([{"n": 1, "m": 1}, {"n": 2.5, "m": "one"}])
    assert table.column("n").data_type is float
    assert table.column("m").data_type is object


def test_all_null_column_is_untyped():
    table = to_data_table([{"a": None}, {"a": None}])
    assert table.column("a").data_type is object


def test_property_names_match_case_insensitively():
    table = to_data_table([{"Name": "a"}, {"name": "b"}])
    assert table.column_names == ["Name"]
    assert table.rows == [["a"], ["b"]]


def test_unsupported_values_become_text():
    table = to_data_table(
        [{"tags": ["a", "b"], "meta": {"k": 1}, "obj": object, "pair": (1, None)}]
    )
    assert table.rows[0][0] == '["a", "b"]'
    assert table.rows[0][1] == '{"k": 1}'
    assert table.rows[0][2] == "<class 'object'>"
    assert table.rows[0][3] == "[1, null]"
    assert table.column("tags").data_type is str


def test_supported_values_kept_as_is():
    when = datetime(2024, 5, 1, 12, 0)
    table = to_data_table([Person(name="Ada", age=36), {"name": "Bob", "when": when}])
    assert table.column_names == ["name", "age", "when"]
    assert table.rows[1] == ["Bob", None, when]
    assert table.column("when").data_type is datetime


def test_scalars_use_value_column():
    table = to_data_table([1, 2, 3])
    assert table.column_names == ["value"]
    assert table.column("value").data_type is int


def test_non_nullable_column_flag():
    table = to_data_table([{"id": 1}], non_nullable=["ID"])
    assert table.column("id").allow_null is False


def test_non_nullable_rejects_missing_value():
    with pytest.raises(NullConstraintError, match="Object 0"):
        to_data_table([{"a": 1}, {"a": 2, "b": 3}], non_nullable=["b"])


def test_non_nullable_unknown_column():
    with pytest.raises(ValueError, match="nope"):
        to_data_table([{"a": 1}], non_nullable=["nope"])


def test_empty_input():
    table = to_data_table([])
    assert table.columns == []
    assert table.rows == []


def test_rows_to_table_dedupes_names():
    table = rows_to_table([(1, 2, 3)], ["a", "a", "A"])
    assert table.column_names == ["a", "a1", "A2"]
    assert table.column("a").data_type is int


def test_to_records_round_trip():
    table = to_data_table([{"a": 1, "b": None}])
    assert to_records(table) == [{"a": 1, "b": None}]
