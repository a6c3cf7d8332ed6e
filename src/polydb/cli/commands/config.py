"""Configuration management CLI commands."""

from __future__ import annotations

from typing import TYPE_CHECKING

import typer

from polydb.cli.commands._shared import get_resolved_config
from polydb.core.config import DEFAULT_CONFIG_PATH, load_config

if TYPE_CHECKING:
    from pathlib import Path

config_app = typer.Typer(help="Configuration management commands")


@config_app.callback(invoke_without_command=True)
def config_callback(ctx: typer.Context) -> None:
    if not ctx.invoked_subcommand:
        typer.echo(ctx.get_help())
        raise typer.Exit()


def _mask_password(value: str | None) -> str:
    if value is None:
        return "not set"
    return "***"


@config_app.command("show")
def config_show(ctx: typer.Context) -> None:
    """Display resolved configuration with source attribution."""
    resolved = get_resolved_config(ctx)
    config_path: Path | None = ctx.obj.get("config_file")
    sources = resolved.sources

    typer.echo("Connection Settings (resolved):")
    connection_fields = [
        ("engine", resolved.engine.value),
        ("host", resolved.host),
        ("port", str(resolved.port)),
        ("database", resolved.database or "not set"),
        ("user", resolved.user or "not set"),
        ("password", _mask_password(resolved.password)),
        ("connect_timeout", f"{resolved.connect_timeout}s"),
    ]
    for field_name, value in connection_fields:
        source = sources.get(field_name, "default")
        typer.echo(f"  {field_name}: {value} ({source})")

    typer.echo("")
    typer.echo("General:")
    timeout_source = sources.get("default_timeout", "default")
    typer.echo(f"  timeout: {resolved.default_timeout}s ({timeout_source})")
    format_source = sources.get("default_format", "default")
    typer.echo(f"  format: {resolved.default_format} ({format_source})")

    typer.echo("")
    typer.echo(f"Active Profile: {resolved.active_profile or 'none'}")
    typer.echo(f"Config File: {config_path or DEFAULT_CONFIG_PATH}")


@config_app.command("profiles")
def config_profiles(ctx: typer.Context) -> None:
    """List available connection profiles."""
    config_path: Path | None = ctx.obj.get("config_file")
    app_config = load_config(config_path)
    active_profile = ctx.obj.get("profile") or app_config.default_profile

    if not app_config.profiles:
        typer.echo("No profiles configured.")
        typer.echo(f"Add profiles to: {config_path or DEFAULT_CONFIG_PATH}")
        return

    typer.echo("Available Profiles:")
    typer.echo("")
    for name, profile in sorted(app_config.profiles.items()):
        is_active = name == active_profile
        marker = "* " if is_active else "  "
        label = " (active)" if is_active else ""
        typer.echo(f"{marker}{name}{label}")

        display_fields = [
            ("engine", profile.engine.value),
            ("host", profile.host),
            ("port", str(profile.effective_port)),
        ]
        if profile.database:
            display_fields.append(("database", profile.database))
        if profile.user:
            display_fields.append(("user", profile.user))

        for field_name, value in display_fields:
            typer.echo(f"      {field_name}: {value}")
        typer.echo("")
