"""Configuration management CLI commands."""

from __future__ import annotations

from typing import TYPE_CHECKING

import typer

from kusto_tool.cli.commands._shared import get_config
from kusto_tool.core.config import DEFAULT_CONFIG_PATH, DEFAULT_QUERY

if TYPE_CHECKING:
    from pathlib import Path

config_app = typer.Typer(help="Configuration management commands")


@config_app.callback(invoke_without_command=True)
def config_callback(ctx: typer.Context) -> None:
    if not ctx.invoked_subcommand:
        typer.echo(ctx.get_help())
        raise typer.Exit()


@config_app.command("show")
def config_show(ctx: typer.Context) -> None:
    """Display resolved configuration with source attribution."""
    resolved = get_config(ctx)
    sources = resolved.sources
    config_path: Path | None = ctx.obj.get("config_file")

    typer.echo("Connection Settings (resolved):")
    connection_fields = [
        ("cluster", resolved.cluster or "not set"),
        ("database", resolved.database or "not set"),
        ("region", resolved.region),
    ]
    for field_name, value in connection_fields:
        source = sources.get(field_name, "default")
        typer.echo(f"  {field_name}: {value} ({source})")

    typer.echo("")
    typer.echo("Query:")
    query_source = sources.get("query", "default")
    typer.echo(f"  query: {resolved.query or DEFAULT_QUERY} ({query_source})")
    timeout_source = sources.get("query_timeout", "default")
    typer.echo(f"  timeout: {resolved.query_timeout}s ({timeout_source})")

    typer.echo("")
    typer.echo("Probe:")
    probe_fields = [
        ("sample_table", resolved.sample_table),
        ("expect_message", resolved.expect_message),
        ("probe_timeout", f"{resolved.probe_timeout}s"),
        ("init_timeout", f"{resolved.init_timeout}s"),
    ]
    for field_name, value in probe_fields:
        source = sources.get(field_name, "default")
        typer.echo(f"  {field_name}: {value} ({source})")

    typer.echo("")
    display_path = config_path or DEFAULT_CONFIG_PATH
    typer.echo(f"Config File: {display_path}")
