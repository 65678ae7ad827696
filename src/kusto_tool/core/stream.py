"""Lazy result streams.

A ResultStream yields ResultTables in arrival order; each table yields
Rows in arrival order. Nothing is buffered beyond the current row.

Failures are tagged to where they happened:

* transport or framing failures while advancing raise StreamError,
* other failures while advancing to the next table raise TableError,
* other failures while advancing to the next row raise RowError,
* exceeding the stream deadline raises TimeoutError.

Blocking reads run on a worker thread owned by the StreamGuard, so a
stalled connection cannot hold the caller past the deadline.

Streams are meant to be used through AdxClient.stream_query(), which
closes them on every exit path.
"""

from __future__ import annotations

import queue
import threading
import time
from collections.abc import Generator
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TypeVar

from kusto_tool.core.exceptions import (
    KustoToolError,
    NetworkError,
    RowError,
    StreamError,
    TableError,
    TimeoutError,
)
from kusto_tool.core.models import PRIMARY_RESULT

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator, Sequence

    from kusto_tool.core.models import ColumnMeta

T = TypeVar("T")


def _close_iterator(iterator: object) -> None:
    if isinstance(iterator, Generator):
        iterator.close()


def _is_broken(error: KustoToolError) -> bool:
    return isinstance(error, (NetworkError, StreamError))


@dataclass(frozen=True)
class Row:
    index: int
    values: tuple[Any, ...]


class _Worker:
    """Daemon thread that runs blocking calls one at a time."""

    def __init__(self) -> None:
        self._calls: queue.SimpleQueue = queue.SimpleQueue()
        self._results: queue.SimpleQueue = queue.SimpleQueue()
        self._thread = threading.Thread(
            target=self._serve, daemon=True, name="kusto-tool-io"
        )
        self._thread.start()

    def _serve(self) -> None:
        while True:
            fn = self._calls.get()
            if fn is None:
                return
            try:
                self._results.put((True, fn()))
            except BaseException as e:  # handed back to the waiting caller
                self._results.put((False, e))

    def run(self, fn: Callable[[], T], timeout: float) -> T:
        """Run ``fn`` on the worker; raise queue.Empty if it takes too long."""
        self._calls.put(fn)
        ok, value = self._results.get(timeout=timeout)
        if ok:
            return value
        raise value

    def stop(self) -> None:
        self._calls.put(None)


class StreamGuard:
    """Deadline and exception translation shared by a stream and its tables.

    With a timeout, every call made through ``call()`` runs on a worker
    thread and the caller waits at most until the deadline. A call that
    overruns leaves the worker blocked; the guard is then ``stuck`` and
    refuses further calls.
    """

    def __init__(
        self,
        timeout: float | None,
        errors: tuple[type[BaseException], ...],
        translate: Callable[[BaseException], KustoToolError],
        label: str = "Stream",
    ) -> None:
        self.timeout = timeout
        self.errors = errors
        self.translate = translate
        self.label = label
        self.stuck = False
        self._deadline = time.monotonic() + timeout if timeout is not None else None
        self._worker: _Worker | None = None

    def _expired(self) -> TimeoutError:
        return TimeoutError(f"{self.label} timeout after {self.timeout}s")

    def check(self) -> None:
        if self._deadline is not None and time.monotonic() > self._deadline:
            raise self._expired()

    def call(self, fn: Callable[[], T]) -> T:
        """Run a blocking call, bounded by the deadline."""
        self.check()
        if self._deadline is None:
            return fn()
        if self.stuck:
            raise self._expired()
        if self._worker is None:
            self._worker = _Worker()
        remaining = max(self._deadline - time.monotonic(), 0.0)
        try:
            return self._worker.run(fn, remaining)
        except queue.Empty:
            self.stuck = True
            raise self._expired() from None

    def close(self) -> None:
        if self._worker is not None:
            self._worker.stop()
            self._worker = None


class ResultTable:
    """One table of a result stream. Rows can be iterated once."""

    def __init__(
        self,
        name: str,
        kind: str,
        columns: Sequence[ColumnMeta],
        raw_rows: Iterable[Sequence[Any]],
        *,
        guard: StreamGuard,
    ) -> None:
        self.name = name
        self.kind = kind
        self.columns = list(columns)
        self._raw_rows = raw_rows
        self._guard = guard
        self._rows: Generator[Row, None, None] | None = None

    @property
    def is_primary(self) -> bool:
        return self.kind == PRIMARY_RESULT

    def rows(self) -> Iterator[Row]:
        if self._rows is None:
            self._rows = self._iter_rows()
        return self._rows

    def _iter_rows(self) -> Generator[Row, None, None]:
        iterator = iter(self._raw_rows)
        index = 0
        try:
            while True:
                try:
                    values = self._guard.call(lambda: next(iterator))
                except StopIteration:
                    return
                except self._guard.errors as e:
                    err = self._guard.translate(e)
                    if _is_broken(err):
                        raise StreamError(f"Stream broken: {err.message}") from e
                    msg = f"Row {index} of table {self.name} failed: {err.message}"
                    raise RowError(msg, table_name=self.name, row_index=index) from e
                yield Row(index=index, values=tuple(values))
                index += 1
        finally:
            if not self._guard.stuck:
                _close_iterator(iterator)

    def close(self) -> None:
        if self._rows is not None:
            self._rows.close()


class ResultStream:
    """Ordered sequence of ResultTables backed by a live response.

    ``on_close`` releases the underlying response; it runs once, on the
    first close().
    """

    def __init__(
        self,
        raw_tables: Iterable[ResultTable],
        *,
        guard: StreamGuard,
        on_close: Callable[[], None] | None = None,
    ) -> None:
        self._raw_tables = raw_tables
        self._guard = guard
        self._on_close = on_close
        self._tables = self._iter_tables()
        self._current: ResultTable | None = None
        self.closed = False

    def __iter__(self) -> Iterator[ResultTable]:
        return self._tables

    def _iter_tables(self) -> Generator[ResultTable, None, None]:
        iterator = iter(self._raw_tables)
        index = 0
        try:
            while True:
                if self._current is not None:
                    self._current.close()
                try:
                    table = self._guard.call(lambda: next(iterator))
                except StopIteration:
                    return
                except self._guard.errors as e:
                    err = self._guard.translate(e)
                    if _is_broken(err):
                        raise StreamError(f"Stream broken: {err.message}") from e
                    msg = f"Table {index} failed: {err.message}"
                    raise TableError(msg, table_index=index) from e
                self._current = table
                yield table
                index += 1
        finally:
            if not self._guard.stuck:
                _close_iterator(iterator)

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        if self._current is not None:
            self._current.close()
        self._tables.close()
        if self._on_close is not None:
            self._on_close()
        self._guard.close()
