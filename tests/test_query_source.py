"""Tests for query source resolution."""

import io
from pathlib import Path
from unittest.mock import patch

import pytest

from polydb.core.exceptions import InputError
from polydb.core.query_source import resolve_query_source

FIXTURE_SQL = str(Path(__file__).parent / "fixtures" / "select_42.sql")
FIXTURE_SCRIPT = str(Path(__file__).parent / "fixtures" / "script.redis")


@pytest.mark.unit
def test_inline_query():
    assert resolve_query_source(inline="SELECT 1", file_path=None) == "SELECT 1"


@pytest.mark.unit
def test_inline_takes_precedence_over_file():
    assert resolve_query_source(inline="SELECT 1", file_path=FIXTURE_SQL) == "SELECT 1"


@pytest.mark.unit
def test_file_query():
    assert resolve_query_source(inline=None, file_path=FIXTURE_SQL) == "SELECT 42 AS answer\n"


@pytest.mark.unit
def test_script_file_kept_verbatim():
    text = resolve_query_source(inline=None, file_path=FIXTURE_SCRIPT)
    assert text.splitlines()[0] == "SET greeting hello"
    assert len(text.splitlines()) == 6


@pytest.mark.unit
def test_file_not_found_raises_input_error():
    with pytest.raises(InputError, match="Query file not found"):
        resolve_query_source(inline=None, file_path="/nonexistent/file.sql")


@pytest.mark.unit
def test_stdin_query():
    with (
        patch("sys.stdin", new=io.StringIO("SELECT 99")),
        patch("sys.stdin.isatty", return_value=False),
    ):
        result = resolve_query_source(inline=None, file_path=None)
    assert result == "SELECT 99"


@pytest.mark.unit
def test_no_query_source_raises_input_error():
    with (
        patch("sys.stdin.isatty", return_value=True),
        pytest.raises(InputError, match="No query provided"),
    ):
        resolve_query_source(inline=None, file_path=None)


@pytest.mark.unit
def test_utf8_file(temp_dir):
    script = temp_dir / "unicode.redis"
    script.write_text('SET name "Zoë"\n', encoding="utf-8")
    assert resolve_query_source(inline=None, file_path=str(script)) == 'SET name "Zoë"\n'
