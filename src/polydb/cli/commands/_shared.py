"""Shared CLI plumbing for command modules.

Session creation from the global options and result output.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from polydb.cli.output import get_formatter, write_output
from polydb.core.client import open_session
from polydb.core.config import load_config, resolve_config

if TYPE_CHECKING:
    import typer

    from polydb.core.client import Session
    from polydb.core.config import ResolvedConfig
    from polydb.core.models import ResultSet

_CONNECTION_KEYS = ("engine", "host", "port", "database", "user", "password")


def get_resolved_config(
    ctx: typer.Context, timeout: float | None = None
) -> ResolvedConfig:
    obj = ctx.ensure_object(dict)
    config = load_config(obj.get("config_file"))

    cli_overrides: dict[str, Any] = {}
    for key in _CONNECTION_KEYS:
        val = obj.get(key)
        if val is not None:
            cli_overrides[key] = val
    if timeout is not None:
        cli_overrides["timeout"] = timeout

    resolved = resolve_config(
        config,
        profile_name=obj.get("profile"),
        dsn=obj.get("dsn"),
        **cli_overrides,
    )
    obj["default_format"] = resolved.default_format
    return resolved


def get_session(ctx: typer.Context, timeout: float | None = None) -> Session:
    return open_session(get_resolved_config(ctx, timeout=timeout))


def format_options(ctx: typer.Context) -> dict[str, Any]:
    obj = ctx.ensure_object(dict)
    return {
        "format_flag": obj.get("format"),
        "default_format": obj.get("default_format"),
        "compact": obj.get("compact", False),
        "width": obj.get("width", 40),
        "no_header": obj.get("no_header", False),
    }


def output_result(ctx: typer.Context, result: ResultSet) -> None:
    formatter = get_formatter(**format_options(ctx))
    write_output(formatter, result)
