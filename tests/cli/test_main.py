"""Tests for the CLI entry point and global options."""

import pytest

from polydb import __version__
from polydb.cli.main import app


@pytest.mark.unit
class TestCliHelp:
    def test_help_flag(self, runner):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "polydb" in result.stdout
        assert "Redis" in result.stdout

    def test_no_args_shows_help(self, runner):
        result = runner.invoke(app, [])
        assert result.exit_code in (0, 2)
        assert "Usage" in result.stdout

    @pytest.mark.parametrize(
        "command",
        ["query", "alter", "databases", "tables", "columns", "indexes", "key", "config"],
    )
    def test_commands_registered(self, runner, command):
        result = runner.invoke(app, [command, "--help"])
        assert result.exit_code == 0
        assert "Usage" in result.stdout


@pytest.mark.unit
class TestCliVersion:
    def test_version_flag(self, runner):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"polydb {__version__}" in result.stdout

    def test_version_short_flag(self, runner):
        result = runner.invoke(app, ["-V"])
        assert result.exit_code == 0
        assert "polydb 0.1.0" in result.stdout


@pytest.mark.unit
class TestGlobalOptions:
    def test_verbose_flag_accepted(self, runner):
        result = runner.invoke(app, ["--verbose", "--help"])
        assert result.exit_code == 0

    def test_help_lists_connection_options(self, runner):
        result = runner.invoke(app, ["--help"])
        for option in ("--engine", "--host", "--port", "--database", "--dsn", "--format"):
            assert option in result.stdout

    def test_invalid_engine_rejected(self, runner):
        result = runner.invoke(app, ["--engine", "oracle", "databases"])
        assert result.exit_code == 2

    def test_invalid_format_rejected(self, runner):
        result = runner.invoke(app, ["--format", "xml", "databases"])
        assert result.exit_code == 2

    def test_unknown_command(self, runner):
        result = runner.invoke(app, ["frobnicate"])
        assert result.exit_code != 0
