"""Probe command: endpoint, database and sample-data health checks."""

from __future__ import annotations

from typing import TYPE_CHECKING, Annotated

import typer

from kusto_tool.cli.commands._shared import get_client, get_config
from kusto_tool.core.config import parse_duration
from kusto_tool.core.exceptions import InputError
from kusto_tool.core.exit_codes import ExitCode
from kusto_tool.core.probe import SUCCESS_LINE, run_probe

if TYPE_CHECKING:
    from kusto_tool.core.probe import StepOutcome


def _print_outcome(outcome: StepOutcome) -> None:
    for line in outcome.lines():
        typer.echo(line)


def probe_command(
    ctx: typer.Context,
    cluster_name: Annotated[
        str | None,
        typer.Argument(help="Short cluster name (defaults to KUSTO_CLUSTER)"),
    ] = None,
    timeout: Annotated[
        str | None,
        typer.Option("--timeout", "-t", help="Per-step timeout (e.g. 3s, 500ms)"),
    ] = None,
) -> None:
    """
    Validate endpoint reachability, database access and sample data.

    Runs `.show version`, `print 1` and a lookup of the expected row in
    the sample table, in that order, stopping at the first failure.
    Exits non-zero when any step fails.
    """
    probe_timeout = None
    if timeout is not None:
        probe_timeout = parse_duration(timeout)
        if probe_timeout is None:
            msg = f"Invalid timeout: '{timeout}'. Use a duration such as 3s or 500ms"
            raise InputError(msg)

    config = get_config(ctx, cluster_name=cluster_name, probe_timeout=probe_timeout)
    config.require_cluster()

    with get_client(config) as client:
        report = run_probe(client, config, on_outcome=_print_outcome)

    if not report.passed:
        raise typer.Exit(ExitCode.GENERAL_ERROR)
    typer.echo(SUCCESS_LINE)
