"""Health probe: endpoint, database and sample-data checks.

Steps run strictly in order and stop at the first failure:

1. ``mgmt``: ``.show version`` against the cluster (no database).
2. ``database``: ``print 1`` against the configured database.
3. ``data-sample``: the sample table filtered on the expected marker must
   return at least one row.

Each step gets its own timeout; a slow step never eats into the next
step's budget. Errors are classified by the rules in core.classify.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

import sentry_sdk

from kusto_tool.core.classify import (
    AUTH_SUGGESTION,
    DATABASE_RULES,
    MGMT_RULES,
    SAMPLE_RULES,
    classify,
)
from kusto_tool.core.exceptions import KustoToolError
from kusto_tool.core.kql import kql, quote_string, unsafe_kql
from kusto_tool.core.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Callable

    from kusto_tool.core.classify import ErrorRule
    from kusto_tool.core.client import AdxClient
    from kusto_tool.core.config import ResolvedConfig
    from kusto_tool.core.kql import KqlQuery

CLIENT_STEP = "auth/client"
SUCCESS_LINE = "OK probe: endpoint, db, and data access validated"


class StepStatus(StrEnum):
    OK = "OK"
    FAIL = "FAIL"


@dataclass
class StepOutcome:
    step: str
    status: StepStatus
    message: str
    duration_ms: int | None = None
    error: str | None = None
    suggestion: str | None = None

    @property
    def passed(self) -> bool:
        return self.status is StepStatus.OK

    def lines(self) -> list[str]:
        timing = f" ({self.duration_ms}ms)" if self.duration_ms is not None else ""
        detail = f"{self.message}: {self.error}" if self.error else self.message
        out = [f"{self.status} {self.step}{timing}: {detail}"]
        if not self.passed and self.suggestion:
            out.append(f"SUGGEST {self.step}: {self.suggestion}")
        return out


@dataclass
class ProbeReport:
    outcomes: list[StepOutcome] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return bool(self.outcomes) and all(o.passed for o in self.outcomes)

    def lines(self) -> list[str]:
        out = [line for outcome in self.outcomes for line in outcome.lines()]
        if self.passed:
            out.append(SUCCESS_LINE)
        return out


class StepFailed(Exception):
    """Soft failure: the call worked but the result was not what we expected."""

    def __init__(self, message: str, suggestion: str) -> None:
        super().__init__(message)
        self.message = message
        self.suggestion = suggestion


@dataclass(frozen=True)
class ProbeStep:
    name: str
    failure_message: str
    rules: tuple[ErrorRule, ...]
    check: Callable[[AdxClient, ResolvedConfig], str]


def sample_filter_query(table: str, expect_message: str) -> KqlQuery:
    """Build the sample-data lookup; the marker is quoted, the table validated."""
    return unsafe_kql(
        f"{table} | where Message == {quote_string(expect_message)} | take 1"
    )


def _check_mgmt(client: AdxClient, config: ResolvedConfig) -> str:
    client.execute(kql(".show version"), database=None, timeout=config.probe_timeout)
    return "cluster reachable"


def _check_database(client: AdxClient, config: ResolvedConfig) -> str:
    database = config.probe_database
    client.execute(kql("print 1"), database=database, timeout=config.probe_timeout)
    return f"db ok: {database}"


def _check_sample(client: AdxClient, config: ResolvedConfig) -> str:
    table = config.sample_table
    query = sample_filter_query(table, config.expect_message)
    found = client.has_any_row(
        query, database=config.probe_database, timeout=config.probe_timeout
    )
    if not found:
        raise StepFailed(
            f"expected row not found in {table} (Message=='{config.expect_message}')",
            "Initialize sample data via 'kusto-tool init-sample' or verify ingestion.",
        )
    return f"sample table ok: {table} contains expected data"


PROBE_STEPS: tuple[ProbeStep, ...] = (
    ProbeStep("mgmt", ".show version failed", MGMT_RULES, _check_mgmt),
    ProbeStep("database", "basic query failed", DATABASE_RULES, _check_database),
    ProbeStep("data-sample", "query failed for sample table", SAMPLE_RULES, _check_sample),
)


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


def run_step(client: AdxClient, config: ResolvedConfig, step: ProbeStep) -> StepOutcome:
    """Run one step and turn its result or error into a StepOutcome."""
    log = get_logger("probe")
    with sentry_sdk.start_span(op="probe.step", description=step.name) as span:
        start = time.monotonic()
        try:
            message = step.check(client, config)
        except StepFailed as e:
            outcome = StepOutcome(
                step=step.name,
                status=StepStatus.FAIL,
                message=e.message,
                duration_ms=_elapsed_ms(start),
                suggestion=e.suggestion,
            )
        except KustoToolError as e:
            verdict = classify(
                e,
                step.rules,
                cluster=config.cluster or "",
                database=config.probe_database,
                table=config.sample_table,
            )
            outcome = StepOutcome(
                step=step.name,
                status=StepStatus.FAIL,
                message=verdict.message or step.failure_message,
                duration_ms=_elapsed_ms(start),
                error=e.message,
                suggestion=verdict.suggestion,
            )
            log.debug("probe step error classified", step=step.name, category=verdict.category)
        else:
            outcome = StepOutcome(
                step=step.name,
                status=StepStatus.OK,
                message=message,
                duration_ms=_elapsed_ms(start),
            )
        span.set_status("ok" if outcome.passed else "internal_error")
        span.set_data("duration_ms", outcome.duration_ms)
    return outcome


def run_probe(
    client: AdxClient,
    config: ResolvedConfig,
    on_outcome: Callable[[StepOutcome], None] | None = None,
    steps: tuple[ProbeStep, ...] = PROBE_STEPS,
) -> ProbeReport:
    """Run the probe steps in order, stopping at the first failure.

    ``on_outcome`` is called as soon as each step (or the client setup)
    finishes, so callers can print progress while later steps run.
    """
    report = ProbeReport()

    def record(outcome: StepOutcome) -> None:
        report.outcomes.append(outcome)
        if on_outcome is not None:
            on_outcome(outcome)

    try:
        client.connect()
    except KustoToolError as e:
        record(
            StepOutcome(
                step=CLIENT_STEP,
                status=StepStatus.FAIL,
                message="failed to create Kusto client",
                error=e.message,
                suggestion=AUTH_SUGGESTION,
            )
        )
        return report

    for step in steps:
        outcome = run_step(client, config, step)
        record(outcome)
        if not outcome.passed:
            break
    return report
