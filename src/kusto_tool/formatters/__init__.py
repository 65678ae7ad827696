"""Output formatters for kusto-tool."""

from kusto_tool.formatters.base import Formatter
from kusto_tool.formatters.ndjson import NDJSONFormatter, dumps_record

__all__ = ["Formatter", "NDJSONFormatter", "dumps_record"]
