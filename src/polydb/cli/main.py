"""polydb entry point and command registration."""

from __future__ import annotations

import atexit
from pathlib import Path  # noqa: TC003
from typing import Annotated

import sentry_sdk
import typer

from polydb.__about__ import __version__
from polydb.cli.commands.alter import alter_command
from polydb.cli.commands.config import config_app
from polydb.cli.commands.metadata import (
    columns_command,
    databases_command,
    indexes_command,
    key_command,
    tables_command,
)
from polydb.cli.commands.query import query_command
from polydb.cli.output import OutputFormat  # noqa: TC001
from polydb.core.config import load_config
from polydb.core.exceptions import ConfigError, PolyDbError
from polydb.core.logging import get_logger, setup_logging
from polydb.core.monitoring import setup_sentry
from polydb.core.values import Engine  # noqa: TC001

app = typer.Typer(
    help="polydb - MySQL, PostgreSQL and Redis workbench",
    no_args_is_help=True,
)

app.add_typer(config_app, name="config")
app.command("query")(query_command)
app.command("alter")(alter_command)
app.command("databases")(databases_command)
app.command("tables")(tables_command)
app.command("columns")(columns_command)
app.command("indexes")(indexes_command)
app.command("key")(key_command)


def version_callback(value: bool) -> None:
    if value:
        typer.echo(f"polydb {__version__}")
        raise typer.Exit()


def _start_monitoring(ctx: typer.Context, config_file: Path | None) -> None:
    try:
        config = load_config(config_file)
    except ConfigError as e:
        # The command reports the broken config itself when it loads it.
        get_logger(__name__).debug("monitoring disabled", reason=e.message)
        return
    if not setup_sentry(config.sentry_dsn, config.sentry_environment):
        return

    transaction = sentry_sdk.start_transaction(
        op="cli", name=ctx.invoked_subcommand or "polydb"
    )
    transaction.__enter__()

    def cleanup() -> None:
        transaction.__exit__(None, None, None)
        sentry_sdk.flush(timeout=2)

    atexit.register(cleanup)


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", help="Enable verbose logging"),
    ] = False,
    profile: Annotated[
        str | None,
        typer.Option("--profile", "-P", help="Named connection profile"),
    ] = None,
    engine: Annotated[
        Engine | None,
        typer.Option("--engine", help="Database engine: mysql|postgresql|redis"),
    ] = None,
    host: Annotated[
        str | None,
        typer.Option("--host", "-H", help="Server host"),
    ] = None,
    port: Annotated[
        int | None,
        typer.Option("--port", "-p", help="Server port (default depends on engine)"),
    ] = None,
    database: Annotated[
        str | None,
        typer.Option("--database", "-d", help="Database name (Redis: db index)"),
    ] = None,
    user: Annotated[
        str | None,
        typer.Option("--user", "-U", help="User name"),
    ] = None,
    password: Annotated[
        str | None,
        typer.Option("--password", "-W", help="Password"),
    ] = None,
    dsn: Annotated[
        str | None,
        typer.Option("--dsn", help="Connection DSN (mysql://, postgresql://, redis://)"),
    ] = None,
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config file"),
    ] = None,
    format: Annotated[
        OutputFormat | None,
        typer.Option("--format", "-f", help="Output format: table|json|csv"),
    ] = None,
    compact: Annotated[
        bool,
        typer.Option("--compact", help="Compact JSON output (no indentation)"),
    ] = False,
    width: Annotated[
        int,
        typer.Option("--width", help="Column width for table format"),
    ] = 40,
    no_header: Annotated[
        bool,
        typer.Option("--no-header", help="Suppress the header row"),
    ] = False,
) -> None:
    """polydb - MySQL, PostgreSQL and Redis workbench."""
    setup_logging(verbose)
    _start_monitoring(ctx, config_file)

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["profile"] = profile
    ctx.obj["engine"] = engine.value if engine else None
    ctx.obj["host"] = host
    ctx.obj["port"] = port
    ctx.obj["database"] = database
    ctx.obj["user"] = user
    ctx.obj["password"] = password
    ctx.obj["dsn"] = dsn
    ctx.obj["config_file"] = config_file

    ctx.obj["format"] = format.value if format else None
    ctx.obj["compact"] = compact
    ctx.obj["width"] = width
    ctx.obj["no_header"] = no_header


def run() -> None:
    """Entry point with global error handling."""
    try:
        app()
    except PolyDbError as e:
        sentry_sdk.capture_exception(e)
        typer.echo(f"Error: {e.message}", err=True)
        raise SystemExit(e.exit_code) from None
    except SystemExit:
        raise
    except KeyboardInterrupt:
        raise SystemExit(130) from None
    except Exception as e:
        sentry_sdk.capture_exception(e)
        typer.echo(f"Error: {e}", err=True)
        raise SystemExit(1) from None
