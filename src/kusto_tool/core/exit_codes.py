"""Process exit codes for kusto-tool.

A failed probe exits GENERAL_ERROR. Usage errors (bad options) exit 2;
typer reports those itself before any command runs.
"""

from enum import IntEnum


class ExitCode(IntEnum):
    """Exit status per KustoToolError family."""

    SUCCESS = 0
    GENERAL_ERROR = 1
    INPUT_ERROR = 3
    NETWORK_ERROR = 5
    TIMEOUT = 6
    CONFIG_ERROR = 7
    AUTH_ERROR = 8
