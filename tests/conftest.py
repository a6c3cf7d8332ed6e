"""Shared test fixtures for polydb."""

from pathlib import Path
from tempfile import TemporaryDirectory

import pytest
from typer.testing import CliRunner

from polydb.cli.main import app


@pytest.fixture
def runner():
    """Typer CLI test runner."""
    return CliRunner()


@pytest.fixture
def cli_runner(runner):
    """Invoke the CLI app with the given arguments."""

    def invoke(*args: str, **kwargs):
        return runner.invoke(app, list(args), **kwargs)

    return invoke


@pytest.fixture
def temp_dir():
    """Temporary directory for test files."""
    with TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep POLYDB_* variables from the developer's shell out of tests."""
    for var in (
        "POLYDB_PROFILE",
        "POLYDB_ENGINE",
        "POLYDB_HOST",
        "POLYDB_PORT",
        "POLYDB_DATABASE",
        "POLYDB_USER",
        "POLYDB_PASSWORD",
    ):
        monkeypatch.delenv(var, raising=False)
