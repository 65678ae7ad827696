"""Heuristic classification of Kusto errors into remediation hints.

Each probe step owns an ordered tuple of ErrorRules. classify() walks the
rules top-down over the lower-cased error text and returns the first
match; every rule set ends with a fallback that always matches. New
service error phrasings are added by inserting a rule, not by changing
the probe.

The substrings below track the service's current error wording and must
be revalidated when it changes; they are not a stable interface.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from kusto_tool.core.exceptions import AuthenticationError, NetworkError

AUTH_SUGGESTION = (
    "Ensure Azure auth is available: run 'az login' or configure "
    "DefaultAzureCredential (AZURE_TENANT_ID, AZURE_CLIENT_ID/SECRET)."
)
PERMISSION_SUGGESTION = (
    "Grant your identity read access to the database/table (e.g., Admin/User role)."
)


class ErrorCategory(StrEnum):
    NETWORK = "network"
    AUTHENTICATION = "authentication"
    PERMISSION = "permission"
    DATABASE_NOT_FOUND = "database-not-found"
    TABLE_NOT_FOUND = "table-not-found"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ErrorRule:
    """Match when all of ``require_all`` and one of ``require_any`` occur.

    ``error_types`` match by exception class regardless of the text.
    ``message`` optionally replaces the step's failure message; both
    ``message`` and ``suggestion`` are format templates filled with the
    keyword context passed to classify().
    """

    category: ErrorCategory
    suggestion: str
    require_all: tuple[str, ...] = ()
    require_any: tuple[str, ...] = ()
    error_types: tuple[type[BaseException], ...] = ()
    message: str | None = None

    def matches(self, error: BaseException, text: str) -> bool:
        if self.error_types and isinstance(error, self.error_types):
            return True
        if not self.require_all and not self.require_any:
            return not self.error_types
        if not all(marker in text for marker in self.require_all):
            return False
        return not self.require_any or any(marker in text for marker in self.require_any)


@dataclass(frozen=True)
class Classification:
    category: ErrorCategory
    suggestion: str
    message: str | None = None


def normalize(error: BaseException) -> str:
    return str(error).lower()


def classify(
    error: BaseException,
    rules: tuple[ErrorRule, ...],
    **context: str,
) -> Classification:
    text = normalize(error)
    for rule in rules:
        if rule.matches(error, text):
            return Classification(
                category=rule.category,
                suggestion=rule.suggestion.format(**context),
                message=rule.message.format(**context) if rule.message else None,
            )
    return Classification(category=ErrorCategory.UNKNOWN, suggestion="")


NETWORK_RULE = ErrorRule(
    ErrorCategory.NETWORK,
    "Verify KUSTO_CLUSTER endpoint is correct "
    "(https://<cluster>.<region>.kusto.windows.net) and reachable.",
    require_any=(
        "no such host",
        "connection refused",
        "timeout",
        "name or service not known",
        "network request",
    ),
    error_types=(NetworkError,),
)

AUTH_RULE = ErrorRule(
    ErrorCategory.AUTHENTICATION,
    AUTH_SUGGESTION,
    require_any=(
        "aadsts",
        "token",
        "credential",
        "unauthorized",
        "401",
        "authorization",
    ),
    error_types=(AuthenticationError,),
)

_PERMISSION_MARKERS = ("forbidden", "403", "insufficient", "permission")

MGMT_RULES: tuple[ErrorRule, ...] = (
    NETWORK_RULE,
    AUTH_RULE,
    ErrorRule(ErrorCategory.UNKNOWN, "Check endpoint and authentication."),
)

DATABASE_RULES: tuple[ErrorRule, ...] = (
    ErrorRule(
        ErrorCategory.DATABASE_NOT_FOUND,
        "Database '{database}' not found. Verify KUSTO_DATABASE or create it "
        "(az kusto database create).",
        require_all=("database", "not found"),
    ),
    ErrorRule(
        ErrorCategory.PERMISSION,
        "You may lack database permissions. Ensure your identity has access "
        "(e.g., Admin/User role).",
        require_any=_PERMISSION_MARKERS,
    ),
    ErrorRule(ErrorCategory.UNKNOWN, "Verify KUSTO_DATABASE and your permissions."),
)

SAMPLE_RULES: tuple[ErrorRule, ...] = (
    ErrorRule(
        ErrorCategory.TABLE_NOT_FOUND,
        "Run 'kusto-tool init-sample' to initialize the sample table.",
        require_all=("semantic", "not"),
        require_any=("table", "name"),
        message="sample table not found: {table}",
    ),
    ErrorRule(
        ErrorCategory.PERMISSION,
        PERMISSION_SUGGESTION,
        require_any=_PERMISSION_MARKERS,
        message="no access to sample table: {table}",
    ),
    ErrorRule(
        ErrorCategory.UNKNOWN,
        "Investigate query or connectivity issues for table '{table}'.",
        message="query failed for sample table",
    ),
)
