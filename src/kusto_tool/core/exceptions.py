"""Exception hierarchy for kusto-tool.

All exceptions carry an exit_code for CLI return value mapping.
Exit codes are defined in exit_codes.py.

Streaming failures are split in two families: StreamError means the
result stream itself is broken, ElementError (TableError, RowError)
means one specific table or row could not be read.
"""

from __future__ import annotations

from kusto_tool.core.exit_codes import ExitCode


class KustoToolError(Exception):
    """Base exception for all kusto-tool errors."""

    exit_code: int = ExitCode.GENERAL_ERROR

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def with_context(self, prefix: str) -> KustoToolError:
        """Return a copy of this error with ``prefix`` prepended to the message."""
        return type(self)(f"{prefix}: {self.message}")


class NetworkError(KustoToolError):
    """Connection failures, unreachable cluster."""

    exit_code: int = ExitCode.NETWORK_ERROR


class TimeoutError(NetworkError):
    """Request timeout, stream deadline exceeded."""

    exit_code: int = ExitCode.TIMEOUT


class AuthenticationError(KustoToolError):
    """Credential could not be obtained or was rejected."""

    exit_code: int = ExitCode.AUTH_ERROR


class InputError(KustoToolError):
    """Invalid parameters."""

    exit_code: int = ExitCode.INPUT_ERROR


class ConfigError(KustoToolError):
    """Missing cluster or database, malformed config file."""

    exit_code: int = ExitCode.CONFIG_ERROR


class QueryError(KustoToolError):
    """The service rejected a query or management command."""


class StreamError(QueryError):
    """The result stream broke; no further tables can be read."""


class ElementError(KustoToolError):
    """A single table or row of a result stream failed."""


class TableError(ElementError):
    def __init__(self, message: str, table_index: int | None = None) -> None:
        super().__init__(message)
        self.table_index = table_index

    def with_context(self, prefix: str) -> TableError:
        return TableError(f"{prefix}: {self.message}", self.table_index)


class RowError(ElementError):
    def __init__(
        self,
        message: str,
        table_name: str | None = None,
        row_index: int | None = None,
    ) -> None:
        super().__init__(message)
        self.table_name = table_name
        self.row_index = row_index

    def with_context(self, prefix: str) -> RowError:
        return RowError(f"{prefix}: {self.message}", self.table_name, self.row_index)
