"""Shared CLI plumbing for command modules.

Configuration resolution and client creation from the global options
stored on the typer context.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from kusto_tool.core.client import AdxClient
from kusto_tool.core.config import load_config, resolve_config
from kusto_tool.core.monitoring import tag_target

if TYPE_CHECKING:
    import typer

    from kusto_tool.core.config import ResolvedConfig


def get_config(
    ctx: typer.Context,
    cluster_name: str | None = None,
    **overrides: Any,
) -> ResolvedConfig:
    obj = ctx.ensure_object(dict)
    config = load_config(obj.get("config_file"))

    cli_overrides: dict[str, Any] = {}
    for key in ("cluster", "database"):
        val = obj.get(key)
        if val is not None:
            cli_overrides[key] = val
    cli_overrides.update({k: v for k, v in overrides.items() if v is not None})

    resolved = resolve_config(config, cluster_name=cluster_name, **cli_overrides)
    tag_target(resolved)
    return resolved


def get_client(config: ResolvedConfig) -> AdxClient:
    return AdxClient(config)
