"""kusto-tool main entry point and command registration."""

from __future__ import annotations

import atexit
from pathlib import Path  # noqa: TC003
from typing import Annotated

import sentry_sdk
import typer

from kusto_tool.__about__ import __version__
from kusto_tool.cli.commands._shared import get_config
from kusto_tool.cli.commands.config import config_app
from kusto_tool.cli.commands.init_sample import init_sample_command
from kusto_tool.cli.commands.probe import probe_command
from kusto_tool.cli.commands.query import query_command, run_query
from kusto_tool.core.exceptions import KustoToolError
from kusto_tool.core.logging import setup_logging
from kusto_tool.core.monitoring import setup_sentry

app = typer.Typer(
    help="kusto-tool - Azure Data Explorer query, probe and sample-data tool",
)

app.add_typer(config_app, name="config")
app.command("query")(query_command)
app.command("probe")(probe_command)
app.command("init-sample")(init_sample_command)


def version_callback(value: bool) -> None:
    if value:
        typer.echo(f"kusto-tool {__version__}")
        raise typer.Exit()


@app.callback(invoke_without_command=True)
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
    cluster: Annotated[
        str | None,
        typer.Option("--cluster", "-c", help="Cluster URI or short cluster name"),
    ] = None,
    database: Annotated[
        str | None,
        typer.Option("--database", "-d", help="Database name"),
    ] = None,
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config file"),
    ] = None,
) -> None:
    """kusto-tool - Azure Data Explorer query, probe and sample-data tool.

    Without a command, runs KUSTO_QUERY (or a demo query) against
    KUSTO_CLUSTER/KUSTO_DATABASE and prints one JSON object per row.
    """
    setup_logging(verbose, command=ctx.invoked_subcommand or "query")
    setup_sentry()

    transaction = sentry_sdk.start_transaction(
        op="cli", name=ctx.invoked_subcommand or "kusto-tool"
    )
    transaction.__enter__()

    def cleanup() -> None:
        transaction.__exit__(None, None, None)
        sentry_sdk.flush(timeout=2)

    atexit.register(cleanup)

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["cluster"] = cluster
    ctx.obj["database"] = database
    ctx.obj["config_file"] = config_file

    if ctx.invoked_subcommand is None:
        run_query(get_config(ctx))


def run() -> None:
    """Entry point with global error handling."""
    try:
        app()
    except KustoToolError as e:
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
