"""Process exit codes used by the dlbridge CLI."""

from enum import IntEnum


class ExitCode(IntEnum):
    """Exit codes returned by dlbridge commands."""

    SUCCESS = 0
    GENERAL_ERROR = 1  # Any BridgeError, tool not found
    VALIDATION_ERROR = 2  # Rejected arguments or style options
    INTERRUPTED = 130  # Ctrl-C
