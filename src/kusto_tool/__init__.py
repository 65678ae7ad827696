"""kusto-tool: Azure Data Explorer query, probe and sample-data CLI."""

from kusto_tool.__about__ import __version__

__all__ = ["__version__"]
