"""Row-to-record projection.

Dynamic columns may arrive as opaque byte payloads that are usually, but
not always, valid JSON. A malformed payload degrades to its text form and
never fails the row.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from kusto_tool.core.models import ColumnMeta
    from kusto_tool.core.stream import ResultTable, Row

TABLE_KEY = "_table"
KIND_KEY = "_kind"
ROW_INDEX_KEY = "_rowIndex"

_BYTES_TYPES = (bytes, bytearray, memoryview)


def decode_dynamic(raw: Any) -> Any:
    """Parse a dynamic payload; fall back to its text if it is not JSON."""
    if raw is None:
        return None
    if not isinstance(raw, _BYTES_TYPES):
        return raw
    payload = bytes(raw)
    try:
        return json.loads(payload)
    except ValueError:
        return payload.decode("utf-8", errors="replace")


def project_values(columns: list[ColumnMeta], values: tuple[Any, ...]) -> dict[str, Any]:
    record: dict[str, Any] = {}
    for position, column in enumerate(columns):
        if position >= len(values):
            continue
        value = values[position]
        if column.is_dynamic:
            value = decode_dynamic(value)
        record[column.name] = value
    return record


def project_row(table: ResultTable, row: Row) -> dict[str, Any]:
    """Map a row to a flat record tagged with its table name, kind and index.

    The synthetic keys are written last, so a column that happens to be
    named ``_table``, ``_kind`` or ``_rowIndex`` never replaces them.
    """
    record = project_values(table.columns, row.values)
    record[TABLE_KEY] = table.name
    record[KIND_KEY] = table.kind
    record[ROW_INDEX_KEY] = row.index
    return record


def iter_records(tables: Iterable[ResultTable]) -> Iterator[dict[str, Any]]:
    """Project every row of every table, preserving arrival order."""
    for table in tables:
        for row in table.rows():
            yield project_row(table, row)
