"""Tests for TableFormatter."""

import pytest

from polydb.core.models import ColumnMeta, ResultSet
from polydb.core.values import IntegerValue, TextValue
from polydb.formatters.base import Formatter
from polydb.formatters.table import TableFormatter


def _make_result(rows=None, status_message=""):
    if rows is None:
        rows = [(1, "alice"), (2, "bob")]
    return ResultSet(
        columns=[
            ColumnMeta(name="id", type_tag="BIGINT"),
            ColumnMeta(name="name", type_tag="TEXT"),
        ],
        rows=[
            {"id": IntegerValue(value=i), "name": TextValue(value=n)} for i, n in rows
        ],
        row_count=len(rows),
        status_message=status_message,
    )


@pytest.mark.unit
def test_table_formatter_implements_protocol():
    assert isinstance(TableFormatter(), Formatter)


@pytest.mark.unit
def test_outputs_headers_and_values():
    output = "\n".join(TableFormatter().format(_make_result()))
    assert "id" in output
    assert "name" in output
    assert "alice" in output
    assert "bob" in output


@pytest.mark.unit
def test_no_header():
    output = "\n".join(TableFormatter(no_header=True).format(_make_result()))
    assert "name" not in output
    assert "alice" in output


@pytest.mark.unit
def test_empty_result_shows_no_results():
    assert list(TableFormatter().format(_make_result(rows=[]))) == ["No results"]


@pytest.mark.unit
def test_empty_result_shows_status_message():
    result = _make_result(rows=[], status_message="3 rows affected")
    assert list(TableFormatter().format(result)) == ["3 rows affected"]


@pytest.mark.unit
def test_truncates_wide_values():
    result = _make_result(rows=[(1, "x" * 60)])
    output = "\n".join(TableFormatter(width=40).format(result))
    assert "x" * 39 + "…" in output
    assert "x" * 40 not in output


@pytest.mark.unit
def test_multiline_cells_truncated_per_line():
    result = _make_result(rows=[(1, "1) a\n2) " + "y" * 50)])
    output = "\n".join(TableFormatter(width=10).format(result))
    assert "1) a" in output
    assert "2) yyyyyy…" in output


@pytest.mark.unit
def test_markup_is_escaped():
    result = _make_result(rows=[(1, "[bold]raw[/bold]")])
    output = "\n".join(TableFormatter().format(result))
    assert "[bold]raw[/bold]" in output
