from __future__ import annotations

import sys
from typing import Annotated

import typer

from polydb.cli.commands._shared import get_session, output_result
from polydb.core.exceptions import InputError
from polydb.core.exit_codes import ExitCode
from polydb.core.query_source import resolve_query_source


def query_command(
    ctx: typer.Context,
    file: Annotated[
        str | None,
        typer.Argument(help="SQL or Redis script file to execute"),
    ] = None,
    execute: Annotated[
        str | None,
        typer.Option("--execute", "-e", help="Execute an inline query or script"),
    ] = None,
    timeout: Annotated[
        float | None,
        typer.Option("--timeout", "-t", help="Query timeout in seconds"),
    ] = None,
) -> None:
    """Execute a query from file, inline (-e), or stdin.

    Relational engines run the text as one SQL statement. For Redis the
    text is a script: one command per line, every line runs in order and
    a failing command is reported inline without stopping the rest.
    """
    try:
        is_tty = sys.stdin.isatty()
    except (ValueError, AttributeError):
        is_tty = False
    if execute is None and file is None and is_tty:
        typer.echo(ctx.get_help())
        raise typer.Exit()

    try:
        text = resolve_query_source(inline=execute, file_path=file)
    except InputError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(ExitCode.INPUT_ERROR) from exc

    with get_session(ctx, timeout=timeout) as session:
        result = session.run(text)

    output_result(ctx, result)
