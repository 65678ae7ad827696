"""Azure Data Explorer client for kusto-tool.

Wraps azure-kusto-data's KustoClient authenticated with
DefaultAzureCredential, with per-call timeouts, streamed query results
and exception mapping to the KustoToolError hierarchy.

Every SDK call runs through a StreamGuard, so the configured timeout is
enforced on the client side too. The SDK itself only sends it to the
service and waits 30s longer on the socket, and its cloud-metadata lookup
has no timeout at all.
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from datetime import timedelta
from typing import TYPE_CHECKING, Any

import ijson
import requests
import sentry_sdk
import urllib3
from azure.core.exceptions import ClientAuthenticationError
from azure.identity import DefaultAzureCredential
from azure.kusto.data import (
    ClientRequestProperties,
    KustoClient,
    KustoConnectionStringBuilder,
)
from azure.kusto.data.exceptions import (
    KustoAuthenticationError,
    KustoError,
    KustoNetworkError,
    KustoServiceError,
    KustoStreamingQueryError,
)

from kusto_tool.core.exceptions import (
    AuthenticationError,
    ConfigError,
    KustoToolError,
    NetworkError,
    QueryError,
    StreamError,
    TimeoutError,
)
from kusto_tool.core.logging import get_logger
from kusto_tool.core.models import ColumnMeta, QueryResult
from kusto_tool.core.stream import ResultStream, ResultTable, StreamGuard

if TYPE_CHECKING:
    from collections.abc import Iterator

    from kusto_tool.core.config import ResolvedConfig
    from kusto_tool.core.kql import KqlQuery

# Exceptions raised by the SDK and its HTTP/auth/JSON stack that map onto
# KustoToolError. Anything else is a bug and propagates unchanged.
# A connection dropped while a streamed body is read surfaces from urllib3
# directly, not wrapped by requests.
SDK_ERRORS: tuple[type[BaseException], ...] = (
    KustoError,
    ClientAuthenticationError,
    requests.RequestException,
    urllib3.exceptions.HTTPError,
    ijson.JSONError,
)

_TRANSPORT_TIMEOUTS = (requests.Timeout, urllib3.exceptions.TimeoutError)


def translate_error(error: BaseException, timeout: float | None = None) -> KustoToolError:
    """Map an SDK/HTTP exception onto the KustoToolError hierarchy."""
    if isinstance(error, KustoToolError):
        return error
    if isinstance(error, KustoNetworkError):
        if isinstance(error.__cause__, _TRANSPORT_TIMEOUTS):
            return TimeoutError(f"Request timeout after {timeout}s: {error.__cause__}")
        return NetworkError(f"Network error: {error}")
    if isinstance(error, urllib3.exceptions.NewConnectionError):
        return NetworkError(f"Network error: {error}")
    if isinstance(error, _TRANSPORT_TIMEOUTS):
        return TimeoutError(f"Request timeout after {timeout}s: {error}")
    if isinstance(error, (requests.RequestException, urllib3.exceptions.HTTPError)):
        return NetworkError(f"Network error: {error}")
    if isinstance(error, (KustoStreamingQueryError, ijson.JSONError)):
        return StreamError(f"Malformed response: {error}")
    if isinstance(error, (KustoAuthenticationError, ClientAuthenticationError)):
        return AuthenticationError(f"Authentication failed: {error}")
    if isinstance(error, KustoServiceError):
        return QueryError(str(error))
    return KustoToolError(str(error))


def _table_kind(table: Any) -> str:
    kind = getattr(table, "table_kind", None)
    if kind is None:
        return ""
    return str(getattr(kind, "value", kind))


def _columns(table: Any) -> list[ColumnMeta]:
    return [
        ColumnMeta(name=col.column_name, type_name=str(col.column_type))
        for col in table.columns
    ]


def _guard(timeout: float, label: str = "Stream") -> StreamGuard:
    return StreamGuard(timeout, SDK_ERRORS, lambda e: translate_error(e, timeout), label)


class AdxClient:
    """Synchronous Azure Data Explorer client using azure-kusto-data."""

    def __init__(self, config: ResolvedConfig) -> None:
        self.config = config
        self._client: KustoClient | None = None
        self._credential: DefaultAzureCredential | None = None
        self._last_response: requests.Response | None = None

    def __enter__(self) -> AdxClient:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def connect(self) -> None:
        """Build the SDK client eagerly so setup errors surface early."""
        self._connect()

    def _connect(self) -> KustoClient:
        if self._client is not None:
            return self._client

        cluster = self.config.require_cluster()
        log = get_logger("client")
        log.debug("building kusto client", cluster=cluster)
        try:
            self._credential = DefaultAzureCredential()
            kcsb = KustoConnectionStringBuilder.with_azure_token_credential(
                cluster, self._credential
            )
            self._client = KustoClient(kcsb)
        except ClientAuthenticationError as e:
            raise AuthenticationError(f"Credential setup failed: {e}") from e
        except (KustoError, ValueError) as e:
            raise ConfigError(f"Invalid cluster endpoint '{cluster}': {e}") from e

        # KustoClient keeps the streaming HTTP response to itself; the
        # session hook hands it to stream_query() so it can be closed.
        self._client._session.hooks["response"].append(self._track_response)
        return self._client

    def _track_response(self, response: requests.Response, *args: Any, **kwargs: Any) -> None:
        self._last_response = response

    @staticmethod
    def _properties(timeout: float) -> ClientRequestProperties:
        properties = ClientRequestProperties()
        properties.set_option(
            ClientRequestProperties.request_timeout_option_name,
            timedelta(seconds=timeout),
        )
        return properties

    def execute(
        self,
        query: KqlQuery,
        *,
        database: str | None,
        timeout: float,
    ) -> QueryResult:
        """Run a query or management command and buffer its primary result."""
        log = get_logger("client")
        client = self._connect()
        op = "kusto.mgmt" if query.is_management else "kusto.query"
        text = query.normalized()
        log.debug(
            "executing",
            op=op,
            kql=text,
            database=database,
            trusted=query.trusted,
            timeout=timeout,
        )

        def submit() -> Any:
            if query.is_management:
                return client.execute_mgmt(
                    database, query.text, self._properties(timeout)
                )
            return client.execute_query(
                database, query.text, self._properties(timeout)
            )

        with sentry_sdk.start_span(op=op, description=text[:100]) as span:
            start_time = time.monotonic()
            guard = _guard(timeout, "Request")
            try:
                response = guard.call(submit)
            except (*SDK_ERRORS, TimeoutError) as e:
                duration_ms = (time.monotonic() - start_time) * 1000
                span.set_data("duration_ms", duration_ms)
                err = translate_error(e, timeout)
                span.set_status(
                    "deadline_exceeded" if isinstance(err, TimeoutError) else "internal_error"
                )
                log.error(
                    "kusto call failed",
                    op=op,
                    kql=text,
                    duration_ms=f"{duration_ms:.1f}",
                    error=err.message,
                )
                if err is e:
                    raise
                raise err from e
            finally:
                guard.close()

            columns: list[ColumnMeta] = []
            rows: list[tuple[Any, ...]] = []
            if response.primary_results:
                primary = response.primary_results[0]
                columns = _columns(primary)
                rows = [tuple(row.to_list()) for row in primary.rows]

            duration_ms = (time.monotonic() - start_time) * 1000
            span.set_data("row_count", len(rows))
            span.set_data("duration_ms", duration_ms)
            log.debug(
                "call complete",
                op=op,
                duration_ms=f"{duration_ms:.1f}",
                row_count=len(rows),
            )
            return QueryResult(columns=columns, rows=rows, row_count=len(rows))

    @contextmanager
    def stream_query(
        self,
        query: KqlQuery,
        *,
        database: str,
        timeout: float,
    ) -> Iterator[ResultStream]:
        """Submit a query and stream its tables and rows.

        Connection and submission failures are raised before anything is
        yielded. ``timeout`` bounds submission and reading together. The
        stream and its HTTP response are closed when the block exits,
        including on early break or error. Tables may be skipped or read
        partially.
        """
        log = get_logger("client")
        client = self._connect()
        text = query.normalized()
        log.debug(
            "streaming query",
            kql=text,
            database=database,
            trusted=query.trusted,
            timeout=timeout,
        )
        with sentry_sdk.start_span(op="kusto.query", description=text[:100]):
            guard = _guard(timeout)
            self._last_response = None
            try:
                response = guard.call(
                    lambda: client.execute_streaming_query(
                        database, query.text, properties=self._properties(timeout)
                    )
                )
            except (*SDK_ERRORS, TimeoutError) as e:
                guard.close()
                err = translate_error(e, timeout)
                log.error("query submission failed", kql=text, error=err.message)
                if err is e:
                    raise
                raise err from e

            http_response = self._last_response
            response.set_skip_incomplete_tables(True)
            tables = (
                ResultTable(
                    table.table_name,
                    _table_kind(table),
                    _columns(table),
                    (tuple(row.to_list()) for row in table),
                    guard=guard,
                )
                for table in response
            )
            stream = ResultStream(
                tables,
                guard=guard,
                on_close=http_response.close if http_response is not None else None,
            )
            try:
                yield stream
            finally:
                stream.close()
                log.debug("stream closed", kql=text)

    def has_any_row(
        self,
        query: KqlQuery,
        *,
        database: str,
        timeout: float,
    ) -> bool:
        """Return True if the primary result of ``query`` has at least one row."""
        with self.stream_query(query, database=database, timeout=timeout) as stream:
            for table in stream:
                if not table.is_primary:
                    continue
                for _ in table.rows():
                    return True
        return False

    def close(self) -> None:
        """Close the SDK client and credential."""
        if self._client is not None:
            self._client.close()
            self._client = None
        if self._credential is not None:
            self._credential.close()
            self._credential = None
