"""Schema alteration command."""

from __future__ import annotations

import json
from typing import Annotated

import typer

from polydb.cli.commands._shared import get_session
from polydb.core.client import alter
from polydb.core.exceptions import InputError
from polydb.core.schema_ops import parse_alter_operation


def _load_operation(raw: str) -> dict[str, object]:
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        msg = f"Operation is not valid JSON: {e}"
        raise InputError(msg) from e
    if not isinstance(data, dict):
        msg = "Operation must be a JSON object"
        raise InputError(msg)
    return data


def alter_command(
    ctx: typer.Context,
    table: Annotated[
        str,
        typer.Argument(help="Table to alter (table or schema.table)"),
    ],
    operation: Annotated[
        str,
        typer.Argument(
            help=(
                'Operation as JSON, e.g. \'{"op_type": "drop", "column_name": "x"}\' '
                'or \'{"op": "drop_column", "name": "x"}\''
            )
        ),
    ],
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Print the statements without executing them"),
    ] = False,
) -> None:
    """Translate a schema operation into DDL for the engine and run it.

    Statements run in order on one connection. Follow-up comment
    statements are best effort: their failure is reported as a warning.
    """
    op = parse_alter_operation(_load_operation(operation))

    with get_session(ctx) as session:
        if dry_run:
            plan = session.dialect.translate(table, op)
            skipped: list[str] = []
        else:
            plan, outcome = alter(session, table, op)
            skipped = outcome.skipped

    for statement in plan.statements:
        typer.echo(f"{statement.sql};")
    for notice in plan.notices:
        typer.echo(f"Notice: {notice}", err=True)
    for sql in skipped:
        typer.echo(f"Warning: follow-up statement failed: {sql}", err=True)
