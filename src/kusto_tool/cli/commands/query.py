"""Query mode: stream a KQL query as NDJSON on stdout."""

from __future__ import annotations

from typing import TYPE_CHECKING, Annotated

import typer

from kusto_tool.cli.commands._shared import get_client, get_config
from kusto_tool.cli.output import get_formatter, write_output
from kusto_tool.core.config import DEFAULT_QUERY, parse_duration
from kusto_tool.core.exceptions import InputError
from kusto_tool.core.kql import kql, unsafe_kql
from kusto_tool.core.projector import iter_records

if TYPE_CHECKING:
    from kusto_tool.core.config import ResolvedConfig
    from kusto_tool.core.kql import KqlQuery


def build_query(config: ResolvedConfig) -> KqlQuery:
    """Use the built-in demo query unless one was supplied from outside."""
    if config.query is None:
        return kql(DEFAULT_QUERY)
    return unsafe_kql(config.query)


def run_query(config: ResolvedConfig) -> int:
    """Run the configured query and print one JSON object per row."""
    config.require_cluster()
    database = config.require_database()
    query = build_query(config)

    with (
        get_client(config) as client,
        client.stream_query(
            query, database=database, timeout=config.query_timeout
        ) as stream,
    ):
        return write_output(get_formatter(), iter_records(stream))


def query_command(
    ctx: typer.Context,
    execute: Annotated[
        str | None,
        typer.Option("--execute", "-e", help="Query text (overrides KUSTO_QUERY)"),
    ] = None,
    timeout: Annotated[
        str | None,
        typer.Option("--timeout", "-t", help="Overall query timeout (e.g. 2m, 90s)"),
    ] = None,
) -> None:
    """Execute a KQL query and print NDJSON, one object per row."""
    query_timeout = None
    if timeout is not None:
        query_timeout = parse_duration(timeout)
        if query_timeout is None:
            msg = f"Invalid timeout: '{timeout}'. Use a duration such as 90s or 2m"
            raise InputError(msg)

    config = get_config(ctx, execute=execute, query_timeout=query_timeout)
    run_query(config)
