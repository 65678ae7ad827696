"""init-sample command: create the probe's sample table and marker row."""

from __future__ import annotations

from typing import Annotated

import typer

from kusto_tool.cli.commands._shared import get_client, get_config
from kusto_tool.core.sample import init_sample


def init_sample_command(
    ctx: typer.Context,
    cluster_name: Annotated[
        str | None,
        typer.Argument(help="Short cluster name (defaults to KUSTO_CLUSTER)"),
    ] = None,
) -> None:
    """Create or merge the sample table and append one expected row."""
    config = get_config(ctx, cluster_name=cluster_name)
    config.require_cluster()

    with get_client(config) as client:
        message = init_sample(client, config)

    typer.echo(message)
