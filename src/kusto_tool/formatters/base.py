"""Formatter protocol for record output."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator


@runtime_checkable
class Formatter(Protocol):
    """Protocol for output formatters.

    Each formatter transforms a stream of records into lines of text.
    Yielding strings (rather than returning a single string) enables
    streaming output for large result sets without buffering everything
    in memory.
    """

    def format(self, records: Iterable[dict[str, Any]]) -> Iterator[str]:
        """Transform records into formatted output lines."""
        ...
