"""In-memory stand-ins for AdxClient and SDK response objects."""

from __future__ import annotations

import io
import json
from contextlib import contextmanager
from typing import Any

from azure.kusto.data.response import KustoStreamingResponseDataSet
from azure.kusto.data.streaming_response import (
    JsonTokenReader,
    StreamingDataSetEnumerator,
)

from kusto_tool.core.exceptions import QueryError
from kusto_tool.core.models import ColumnMeta, QueryResult
from kusto_tool.core.stream import ResultStream, ResultTable, StreamGuard


def make_guard(timeout: float | None = None) -> StreamGuard:
    return StreamGuard(timeout, (ValueError,), lambda e: QueryError(str(e)))


def make_table(
    name: str = "PrimaryResult",
    kind: str = "PrimaryResult",
    columns: list[tuple[str, str]] | None = None,
    rows: list[tuple[Any, ...]] | None = None,
    guard: StreamGuard | None = None,
) -> ResultTable:
    if columns is None:
        columns = [("Message", "string"), ("When", "datetime")]
    return ResultTable(
        name,
        kind,
        [ColumnMeta(name=n, type_name=t) for n, t in columns],
        rows or [],
        guard=guard or make_guard(),
    )


class FakeClient:
    """Scripted AdxClient.

    ``results`` maps normalized query text to a QueryResult, a list of
    ResultTables (for streamed queries) or an exception to raise.
    """

    def __init__(
        self,
        results: dict[str, Any] | None = None,
        connect_error: Exception | None = None,
    ) -> None:
        self.results = results or {}
        self.connect_error = connect_error
        self.calls: list[tuple[str, str | None, float]] = []
        self.closed = False
        self.streams_closed = 0

    def __enter__(self) -> FakeClient:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def connect(self) -> None:
        if self.connect_error is not None:
            raise self.connect_error

    def _lookup(self, text: str) -> Any:
        result = self.results.get(text)
        if isinstance(result, Exception):
            raise result
        return result

    def execute(self, query, *, database, timeout) -> QueryResult:
        text = query.normalized()
        self.calls.append((text, database, timeout))
        result = self._lookup(text)
        if result is None:
            return QueryResult(columns=[], rows=[], row_count=0)
        return result

    @contextmanager
    def stream_query(self, query, *, database, timeout):
        text = query.normalized()
        self.calls.append((text, database, timeout))
        tables = self._lookup(text) or []
        stream = ResultStream(iter(tables), guard=make_guard(timeout))
        try:
            yield stream
        finally:
            stream.close()
            self.streams_closed += 1

    def has_any_row(self, query, *, database, timeout) -> bool:
        with self.stream_query(query, database=database, timeout=timeout) as stream:
            for table in stream:
                if not table.is_primary:
                    continue
                for _ in table.rows():
                    return True
        return False

    def close(self) -> None:
        self.closed = True


class SdkColumn:
    def __init__(self, column_name: str, column_type: str) -> None:
        self.column_name = column_name
        self.column_type = column_type


class SdkRow:
    def __init__(self, values: list[Any]) -> None:
        self._values = values

    def to_list(self) -> list[Any]:
        return list(self._values)


class SdkTable:
    """Mimics the SDK's result tables: metadata attributes, iterable rows."""

    def __init__(
        self,
        table_name: str,
        columns: list[tuple[str, str]],
        rows: list[list[Any]],
        table_kind: str = "PrimaryResult",
        fail_at: int | None = None,
        error: Exception | None = None,
    ) -> None:
        self.table_name = table_name
        self.table_kind = table_kind
        self.columns = [SdkColumn(n, t) for n, t in columns]
        self._rows = [SdkRow(r) for r in rows]
        self.fail_at = fail_at
        self.error = error

    @property
    def rows(self) -> list[SdkRow]:
        return self._rows

    def __iter__(self):
        for i, row in enumerate(self._rows):
            if self.fail_at is not None and i == self.fail_at:
                raise self.error
            yield row


class SdkDataSet(list):
    """List of SdkTables standing in for a streaming response data set."""

    skip_incomplete_tables = False

    def set_skip_incomplete_tables(self, value: bool) -> None:
        self.skip_incomplete_tables = value


def v2_table(
    name: str,
    columns: list[tuple[str, str]],
    rows: list[list[Any]],
    kind: str = "PrimaryResult",
    table_id: int = 0,
) -> dict[str, Any]:
    """One DataTable frame of a v2 query response."""
    return {
        "FrameType": "DataTable",
        "TableId": table_id,
        "TableKind": kind,
        "TableName": name,
        "Columns": [{"ColumnName": n, "ColumnType": t} for n, t in columns],
        "Rows": rows,
    }


def v2_body(*tables: dict[str, Any]) -> bytes:
    """Serialize DataTable frames into a complete v2 response body."""
    frames = [
        {"FrameType": "DataSetHeader", "IsProgressive": False, "Version": "v2.0"},
        *tables,
        {"FrameType": "DataSetCompletion", "HasErrors": False, "Cancelled": False},
    ]
    return json.dumps(frames).encode("utf-8")


def sdk_dataset(body: Any) -> KustoStreamingResponseDataSet:
    """Parse ``body`` (a file-like response body) with the SDK's streaming reader."""
    return KustoStreamingResponseDataSet(
        StreamingDataSetEnumerator(JsonTokenReader(body))
    )


class FailingBody:
    """Response body that raises ``error`` once ``data`` is exhausted."""

    def __init__(self, data: bytes, error: Exception) -> None:
        self._buffer = io.BytesIO(data)
        self._error = error

    def read(self, size: int = -1) -> bytes:
        if size == 0:
            return b""
        chunk = self._buffer.read(size)
        if not chunk:
            raise self._error
        return chunk
