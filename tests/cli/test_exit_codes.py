"""Tests for exit code mapping through run()."""

from unittest.mock import patch

import pytest

from polydb.cli.main import run
from polydb.core.exceptions import (
    CommandExecutionError,
    ConfigError,
    InputError,
    NetworkError,
    PolyDbError,
    QueryError,
    StatementExecutionError,
    TimeoutError,
    TranslationError,
)
from polydb.core.exit_codes import ExitCode


@pytest.mark.unit
@pytest.mark.parametrize(
    ("error", "code"),
    [
        (PolyDbError("failed"), ExitCode.GENERAL_ERROR),
        (NetworkError("connection refused"), ExitCode.NETWORK_ERROR),
        (TimeoutError("query timed out"), ExitCode.TIMEOUT),
        (InputError("file not found"), ExitCode.INPUT_ERROR),
        (ConfigError("bad config"), ExitCode.CONFIG_ERROR),
        (TranslationError("no schema"), ExitCode.TRANSLATION_ERROR),
        (QueryError("syntax"), ExitCode.EXECUTION_ERROR),
        (CommandExecutionError("WRONGTYPE"), ExitCode.EXECUTION_ERROR),
        (
            StatementExecutionError("failed", position=0, statement="DROP"),
            ExitCode.EXECUTION_ERROR,
        ),
    ],
)
def test_run_maps_error_to_exit_code(error, code, capsys):
    with patch("polydb.cli.main.app", side_effect=error):
        with pytest.raises(SystemExit) as exc_info:
            run()
    assert exc_info.value.code == code
    assert f"Error: {error.message}" in capsys.readouterr().err


@pytest.mark.unit
def test_timeout_is_a_network_error():
    assert isinstance(TimeoutError("x"), NetworkError)


@pytest.mark.unit
def test_run_unexpected_error_is_general(capsys):
    with patch("polydb.cli.main.app", side_effect=RuntimeError("kaboom")):
        with pytest.raises(SystemExit) as exc_info:
            run()
    assert exc_info.value.code == ExitCode.GENERAL_ERROR
    assert "Error: kaboom" in capsys.readouterr().err


@pytest.mark.unit
def test_run_keyboard_interrupt():
    with patch("polydb.cli.main.app", side_effect=KeyboardInterrupt):
        with pytest.raises(SystemExit) as exc_info:
            run()
    assert exc_info.value.code == 130


@pytest.mark.unit
def test_run_passes_system_exit_through():
    with patch("polydb.cli.main.app", side_effect=SystemExit(0)):
        with pytest.raises(SystemExit) as exc_info:
            run()
    assert exc_info.value.code == 0
