"""Sample-data initializer for the probe's data-sample step."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

from kusto_tool.core.exceptions import KustoToolError, TimeoutError
from kusto_tool.core.kql import quote_string, unsafe_kql
from kusto_tool.core.logging import get_logger

if TYPE_CHECKING:
    from kusto_tool.core.client import AdxClient
    from kusto_tool.core.config import ResolvedConfig
    from kusto_tool.core.kql import KqlQuery


def create_table_command(table: str) -> KqlQuery:
    return unsafe_kql(f".create-merge table {table} (Message:string, When:datetime)")


def append_row_command(table: str, message: str) -> KqlQuery:
    return unsafe_kql(
        f".set-or-append {table} <| print Message={quote_string(message)}, When=now()"
    )


def _remaining(deadline: float, total: float) -> float:
    remaining = deadline - time.monotonic()
    if remaining <= 0:
        msg = f"Sample initialization timeout after {total}s"
        raise TimeoutError(msg)
    return remaining


def init_sample(client: AdxClient, config: ResolvedConfig) -> str:
    """Ensure the sample table exists and append one row with the marker.

    Safe to repeat: the schema is merged, never dropped, and each run adds
    one more matching row. Both commands share one ``init_timeout`` budget.
    """
    log = get_logger("sample")
    table = config.sample_table
    database = config.probe_database
    total = config.init_timeout
    deadline = time.monotonic() + total

    try:
        client.execute(
            create_table_command(table),
            database=database,
            timeout=_remaining(deadline, total),
        )
    except KustoToolError as e:
        raise e.with_context("failed to create/merge sample table") from e
    log.debug("sample table ready", table=table, database=database)

    try:
        client.execute(
            append_row_command(table, config.expect_message),
            database=database,
            timeout=_remaining(deadline, total),
        )
    except KustoToolError as e:
        raise e.with_context("failed to append sample row") from e
    log.debug("sample row appended", table=table, message=config.expect_message)

    return f"Initialized sample table {table} with message '{config.expect_message}'"
