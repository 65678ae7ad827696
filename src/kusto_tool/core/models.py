"""Query result models for kusto-tool.

Pydantic models for column metadata and buffered results returned by
AdxClient.execute(). Streamed results use the classes in core.stream.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict

DYNAMIC_TYPE = "dynamic"
PRIMARY_RESULT = "PrimaryResult"


class ColumnMeta(BaseModel):
    """Metadata for a single result column."""

    name: str
    type_name: str

    @property
    def is_dynamic(self) -> bool:
        return self.type_name.lower() == DYNAMIC_TYPE


class QueryResult(BaseModel):
    """Primary result of a management command or a small query."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    columns: list[ColumnMeta]
    rows: list[tuple[Any, ...]]
    row_count: int
