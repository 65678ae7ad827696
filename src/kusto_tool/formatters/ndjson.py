"""NDJSON formatter: one compact JSON object per line."""

from __future__ import annotations

import base64
import json
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator


def _serialize_value(val: Any) -> Any:
    if isinstance(val, (datetime, date, time)):
        return val.isoformat()
    if isinstance(val, timedelta):
        return val.total_seconds()
    if isinstance(val, Decimal):
        return str(val)
    if isinstance(val, (bytes, bytearray, memoryview)):
        return base64.b64encode(bytes(val)).decode("ascii")
    return str(val)


def dumps_record(record: dict[str, Any]) -> str:
    """Serialize one record deterministically (sorted keys, no spaces)."""
    return json.dumps(
        record,
        default=_serialize_value,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )


class NDJSONFormatter:
    def format(self, records: Iterable[dict[str, Any]]) -> Iterator[str]:
        for record in records:
            yield dumps_record(record)
