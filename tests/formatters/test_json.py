"""Tests for JSONFormatter."""

import json

import pytest

from polydb.core.models import ColumnMeta, ResultSet
from polydb.core.values import NULL, IntegerValue, TextValue, binary_preview
from polydb.formatters.json import JSONFormatter


def _make_result():
    return ResultSet(
        columns=[
            ColumnMeta(name="id", type_tag="BIGINT"),
            ColumnMeta(name="name", type_tag="TEXT"),
            ColumnMeta(name="blob", type_tag="BLOB"),
        ],
        rows=[
            {
                "id": IntegerValue(value=1),
                "name": TextValue(value="zoë"),
                "blob": binary_preview(b"\xca\xfe"),
            },
            {"id": IntegerValue(value=2), "name": NULL, "blob": NULL},
        ],
        row_count=2,
    )


@pytest.mark.unit
def test_rows_as_objects():
    output = "\n".join(JSONFormatter().format(_make_result()))
    assert json.loads(output) == [
        {"id": 1, "name": "zoë", "blob": "0xCAFE"},
        {"id": 2, "name": None, "blob": None},
    ]


@pytest.mark.unit
def test_indented_by_default():
    lines = list(JSONFormatter().format(_make_result()))
    assert len(lines) == 1
    assert '\n  {\n    "id": 1' in lines[0]


@pytest.mark.unit
def test_compact_is_single_line_and_ordered():
    (line,) = JSONFormatter(compact=True).format(_make_result())
    assert line.startswith('[{"id":1,"name":"zoë","blob":"0xCAFE"}')
    assert "\n" not in line


@pytest.mark.unit
def test_empty_result():
    result = ResultSet(columns=[], rows=[], row_count=0)
    assert list(JSONFormatter().format(result)) == ["[]"]
