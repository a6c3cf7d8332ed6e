"""Tests for the query command.

Unit tests replace the session; integration tests run against the
servers named in tests/integration_config.py.
"""

import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from polydb.cli.main import app
from polydb.core.models import ColumnMeta, ResultSet
from polydb.core.values import IntegerValue, TextValue
from tests.integration_config import MYSQL_ARGS, POSTGRES_ARGS, REDIS_ARGS

FIXTURES = Path(__file__).parent.parent / "fixtures"
FIXTURE_SQL = str(FIXTURES / "select_42.sql")
FIXTURE_REDIS = str(FIXTURES / "script.redis")


def _answer():
    return ResultSet(
        columns=[ColumnMeta(name="answer", type_tag="BIGINT")],
        rows=[{"answer": IntegerValue(value=42)}],
        row_count=1,
        status_message="SELECT 1",
    )


@pytest.fixture
def fake_session():
    session = MagicMock()
    session.__enter__.return_value = session
    session.run.return_value = _answer()
    with patch("polydb.cli.commands.query.get_session", return_value=session):
        yield session


@pytest.mark.unit
def test_query_help(runner):
    result = runner.invoke(app, ["query", "--help"])
    assert result.exit_code == 0
    assert "--execute" in result.stdout
    assert "--timeout" in result.stdout


@pytest.mark.unit
def test_query_inline(runner, fake_session):
    result = runner.invoke(app, ["--format", "json", "query", "-e", "SELECT 42"])
    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout) == [{"answer": 42}]
    fake_session.run.assert_called_once_with("SELECT 42")
    fake_session.__exit__.assert_called_once()


@pytest.mark.unit
def test_query_from_file(runner, fake_session):
    result = runner.invoke(app, ["--format", "csv", "query", FIXTURE_SQL])
    assert result.exit_code == 0
    assert result.stdout.splitlines() == ["answer", "42"]
    fake_session.run.assert_called_once_with("SELECT 42 AS answer\n")


@pytest.mark.unit
def test_query_from_stdin(runner, fake_session):
    result = runner.invoke(
        app, ["--format", "csv", "--no-header", "query"], input="SELECT 42\n"
    )
    assert result.exit_code == 0
    assert result.stdout.splitlines() == ["42"]
    fake_session.run.assert_called_once_with("SELECT 42\n")


@pytest.mark.unit
def test_inline_beats_file(runner, fake_session):
    runner.invoke(app, ["--format", "json", "query", FIXTURE_SQL, "-e", "SELECT 1"])
    fake_session.run.assert_called_once_with("SELECT 1")


@pytest.mark.unit
def test_missing_file_is_input_error(runner, fake_session):
    result = runner.invoke(app, ["query", "/nonexistent/query.sql"])
    assert result.exit_code == 3
    fake_session.run.assert_not_called()


@pytest.mark.unit
def test_timeout_flag_reaches_session(runner):
    session = MagicMock()
    session.__enter__.return_value = session
    session.run.return_value = _answer()
    with patch(
        "polydb.cli.commands.query.get_session", return_value=session
    ) as get_session:
        runner.invoke(app, ["--format", "json", "query", "-t", "2.5", "-e", "SELECT 1"])
    assert get_session.call_args.kwargs["timeout"] == 2.5


@pytest.mark.unit
def test_redis_script_output(runner, fake_session):
    fake_session.run.return_value = ResultSet(
        columns=[
            ColumnMeta(name="command", type_tag="TEXT"),
            ColumnMeta(name="result", type_tag="TEXT"),
        ],
        rows=[
            {"command": TextValue(value="SET a 1"), "result": TextValue(value="OK")},
            {"command": TextValue(value="NOPE"), "result": TextValue(value="Error: x")},
        ],
        row_count=2,
        status_message="2 commands, 1 failed",
    )
    result = runner.invoke(app, ["--format", "json", "query", FIXTURE_REDIS])
    assert result.exit_code == 0
    assert json.loads(result.stdout)[1] == {"command": "NOPE", "result": "Error: x"}


# -- Integration --


@pytest.mark.integration
def test_postgres_query(runner):
    result = runner.invoke(
        app, [*POSTGRES_ARGS, "--format", "json", "query", FIXTURE_SQL]
    )
    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout) == [{"answer": 42}]


@pytest.mark.integration
def test_mysql_query(runner):
    result = runner.invoke(app, [*MYSQL_ARGS, "--format", "json", "query", FIXTURE_SQL])
    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout) == [{"answer": 42}]


@pytest.mark.integration
def test_redis_script(runner):
    result = runner.invoke(
        app, [*REDIS_ARGS, "--format", "json", "query", FIXTURE_REDIS]
    )
    assert result.exit_code == 0, result.output
    rows = json.loads(result.stdout)
    assert [r["result"] for r in rows] == ["OK", "hello", "1"]
