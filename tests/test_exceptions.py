"""Tests for the exception hierarchy and exit codes."""

import pytest

from polydb.core.exceptions import (
    CommandExecutionError,
    ConfigError,
    ConnectError,
    DecodeDegradation,
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
class TestExitCodes:
    def test_exit_code_values(self):
        assert ExitCode.SUCCESS == 0
        assert ExitCode.GENERAL_ERROR == 1
        assert ExitCode.INPUT_ERROR == 3
        assert ExitCode.NETWORK_ERROR == 5
        assert ExitCode.TIMEOUT == 6
        assert ExitCode.CONFIG_ERROR == 7
        assert ExitCode.TRANSLATION_ERROR == 8
        assert ExitCode.EXECUTION_ERROR == 9

    def test_exit_code_is_int(self):
        for code in ExitCode:
            assert isinstance(code, int)


@pytest.mark.unit
class TestPolyDbError:
    def test_base_exception(self):
        err = PolyDbError("test error")
        assert str(err) == "test error"
        assert err.message == "test error"
        assert err.exit_code == ExitCode.GENERAL_ERROR

    @pytest.mark.parametrize(
        ("exc_class", "code"),
        [
            (NetworkError, ExitCode.NETWORK_ERROR),
            (TimeoutError, ExitCode.TIMEOUT),
            (InputError, ExitCode.INPUT_ERROR),
            (ConfigError, ExitCode.CONFIG_ERROR),
            (QueryError, ExitCode.EXECUTION_ERROR),
            (TranslationError, ExitCode.TRANSLATION_ERROR),
            (CommandExecutionError, ExitCode.EXECUTION_ERROR),
        ],
    )
    def test_subclass_exit_codes(self, exc_class, code):
        err = exc_class("boom")
        assert err.exit_code == code
        assert isinstance(err, PolyDbError)


@pytest.mark.unit
class TestSpecificErrors:
    def test_connect_error_is_network_error(self):
        assert ConnectError is NetworkError

    def test_timeout_caught_by_network(self):
        with pytest.raises(NetworkError):
            raise TimeoutError("timeout")

    def test_statement_execution_error_carries_position(self):
        err = StatementExecutionError(
            "Statement 2 of 2 failed", position=1, statement="COMMENT ON ..."
        )
        assert err.position == 1
        assert err.statement == "COMMENT ON ..."
        assert err.exit_code == ExitCode.EXECUTION_ERROR

    def test_decode_degradation_is_polydb_error(self):
        assert issubclass(DecodeDegradation, PolyDbError)
