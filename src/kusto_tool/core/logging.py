"""Logging configuration using structlog.

Logs go to stderr so stdout carries only NDJSON rows and probe lines.
Every event is tagged with the running command (query, probe, ...) so
interleaved stderr from scripted runs stays attributable.
"""

import logging
import sys
from typing import Any

import structlog


class _LazyStderrFactory:
    """Resolve sys.stderr at logger creation time, not at configure() time.

    Under CliRunner tests a handle captured at configure() time goes stale
    once the runner swaps stderr between invocations.
    """

    def __call__(self, *args: Any, **kwargs: Any) -> structlog.PrintLogger:
        return structlog.PrintLogger(file=sys.stderr)


def setup_logging(verbose: bool = False, command: str | None = None) -> None:
    """Configure structlog for kusto-tool.

    Args:
        verbose: Show debug events (one per Kusto call) as well as info.
        command: Bound to every event as ``command=...`` when given.
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.DEBUG if verbose else logging.INFO
        ),
        context_class=dict,
        logger_factory=_LazyStderrFactory(),
        cache_logger_on_first_use=False,
    )
    structlog.contextvars.clear_contextvars()
    if command:
        structlog.contextvars.bind_contextvars(command=command)


def get_logger(name: str | None = None) -> Any:
    """Get a structlog logger, optionally bound with a component name.

    Call inside functions, after setup_logging(); a module-level logger
    would miss the configuration done by the CLI callback.
    """
    logger = structlog.get_logger()
    if name:
        logger = logger.bind(logger=name)
    return logger
