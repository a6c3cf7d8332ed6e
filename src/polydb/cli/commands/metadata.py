"""Introspection commands: databases, tables, columns, indexes, key."""

from __future__ import annotations

from typing import TYPE_CHECKING, Annotated

import typer

from polydb.cli.commands._shared import get_session, output_result
from polydb.core.client import RedisSession
from polydb.core.exceptions import InputError
from polydb.core.models import ResultSet

if TYPE_CHECKING:
    from polydb.core.models import TableInfo


def _cell(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "YES" if value else "NO"
    return str(value)


def databases_command(ctx: typer.Context) -> None:
    """List databases (Redis: db0..db15 with key counts)."""
    with get_session(ctx) as session:
        names = session.dialect.list_databases(session)
    output_result(ctx, ResultSet.from_text_rows(["database"], [(n,) for n in names]))


def _table_rows(tables: list[TableInfo]) -> list[tuple[str, ...]]:
    return [
        (
            t.name,
            _cell(t.row_count),
            _cell(t.data_size),
            _cell(t.index_size),
            _cell(t.total_size),
            _cell(t.comment),
        )
        for t in tables
    ]


def tables_command(
    ctx: typer.Context,
    schema: Annotated[
        str | None,
        typer.Option(
            "--schema",
            "-s",
            help="MySQL database, PostgreSQL schema or Redis db (default: current)",
        ),
    ] = None,
) -> None:
    """List tables with sizes, row counts and comments (Redis: keys)."""
    with get_session(ctx) as session:
        tables = session.dialect.list_tables(session, schema)
    names = ["name", "rows", "data_size", "index_size", "total_size", "comment"]
    output_result(ctx, ResultSet.from_text_rows(names, _table_rows(tables)))


def columns_command(
    ctx: typer.Context,
    table: Annotated[str, typer.Argument(help="Table name (Redis: key)")],
) -> None:
    """Show column definitions of a table."""
    with get_session(ctx) as session:
        columns = session.dialect.list_columns(session, table)
    rows = [
        (
            c.name,
            c.type_name,
            _cell(c.is_pk),
            _cell(c.nullable),
            _cell(c.default_value),
            _cell(c.comment),
        )
        for c in columns
    ]
    names = ["name", "type", "primary_key", "nullable", "default", "comment"]
    output_result(ctx, ResultSet.from_text_rows(names, rows))


def indexes_command(
    ctx: typer.Context,
    table: Annotated[str, typer.Argument(help="Table name")],
) -> None:
    """Show indexes of a table with their columns in key order."""
    with get_session(ctx) as session:
        indexes = session.dialect.list_indexes(session, table)
    rows = [
        (
            i.name,
            ", ".join(i.columns),
            _cell(i.is_unique),
            _cell(i.is_pk),
            _cell(i.comment),
        )
        for i in indexes
    ]
    names = ["name", "columns", "unique", "primary_key", "comment"]
    output_result(ctx, ResultSet.from_text_rows(names, rows))


def key_command(
    ctx: typer.Context,
    key: Annotated[str, typer.Argument(help="Redis key to inspect")],
) -> None:
    """Inspect a Redis key: type, TTL, length and a preview of its value."""
    with get_session(ctx) as session:
        if not isinstance(session, RedisSession):
            msg = "The key command needs a Redis connection (--engine redis)"
            raise InputError(msg)
        info = session.dialect.key_info(session, key)
    rows = [
        ("key", info.key),
        ("type", info.key_type),
        ("ttl", str(info.ttl)),
        ("length", _cell(info.length)),
        ("value", info.value),
    ]
    output_result(ctx, ResultSet.from_text_rows(["field", "value"], rows))
