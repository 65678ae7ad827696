"""Sentry error tracking for kusto-tool.

Disabled unless SENTRY_DSN is set. Events carry the cluster and
database of the invocation as tags, never query text or row data.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import sentry_sdk

from kusto_tool.__about__ import __version__

if TYPE_CHECKING:
    from kusto_tool.core.config import ResolvedConfig

UNSET_TAG = "unset"


def setup_sentry(environment: str = "local") -> None:
    """Initialize Sentry from SENTRY_DSN and SENTRY_ENVIRONMENT."""
    sentry_sdk.init(
        dsn=os.environ.get("SENTRY_DSN") or None,
        traces_sample_rate=0.03,
        environment=os.environ.get("SENTRY_ENVIRONMENT", environment),
        release=__version__,
        attach_stacktrace=True,
        send_default_pii=False,
    )


def tag_target(config: ResolvedConfig) -> None:
    """Tag subsequent Sentry events with the resolved cluster and database."""
    sentry_sdk.set_tag("kusto.cluster", config.cluster or UNSET_TAG)
    sentry_sdk.set_tag("kusto.database", config.database or UNSET_TAG)
