"""Output helpers: record formatting and line writers."""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING, Any

from kusto_tool.formatters.ndjson import NDJSONFormatter

if TYPE_CHECKING:
    from collections.abc import Iterable

    from kusto_tool.formatters.base import Formatter


def get_formatter() -> Formatter:
    """Build and return the record formatter."""
    return NDJSONFormatter()


def write_output(formatter: Formatter, records: Iterable[dict[str, Any]]) -> int:
    """Write formatted records to stdout as they arrive; return the line count."""
    count = 0
    for line in formatter.format(records):
        sys.stdout.write(line + "\n")
        count += 1
    sys.stdout.flush()
    return count
