"""KQL query construction.

Two constructors exist and call sites must pick one:

* ``kql()`` takes a string literal written in the source. ``LiteralString``
  lets type checkers reject anything assembled at runtime.
* ``unsafe_kql()`` takes text from the environment, the command line or
  string interpolation. No escaping or validation is applied; callers are
  responsible for quoting interpolated values with ``quote_string()``.

Client methods accept only ``KqlQuery`` objects, never bare strings.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import LiteralString


@dataclass(frozen=True)
class KqlQuery:
    text: str
    trusted: bool

    @property
    def is_management(self) -> bool:
        """Management (control-plane) commands start with a dot."""
        return self.text.lstrip().startswith(".")

    def normalized(self) -> str:
        return " ".join(self.text.split())

    def __str__(self) -> str:
        return self.text


def kql(text: LiteralString) -> KqlQuery:
    """Build a trusted query from a source literal."""
    return KqlQuery(text=text, trusted=True)


def unsafe_kql(text: str) -> KqlQuery:
    """Wrap externally supplied or interpolated query text as-is."""
    return KqlQuery(text=text, trusted=False)


def quote_string(value: str) -> str:
    """Render ``value`` as a single-quoted KQL string literal.

    Backslashes are escaped first, then embedded single quotes are
    doubled, so the value cannot terminate the literal early.
    """
    return "'" + value.replace("\\", "\\\\").replace("'", "''") + "'"
