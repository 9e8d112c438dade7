"""Classification of a finished process into success or failure."""

from __future__ import annotations

from dlbridge.exceptions import AmbiguousTerminationError, ExitCodeError
from dlbridge.executor.runner import ProcessResult

# A signal-terminated run still counts as done if stdout shows one of these
COMPLETION_MARKERS = ("完成", "100%")


def has_completion_marker(output: str) -> bool:
    return any(marker in output for marker in COMPLETION_MARKERS)


def classify_exit(result: ProcessResult) -> str:
    """Return stdout of a successful run or raise a descriptive error.

    - exit code 0: success.
    - nonzero exit code: ExitCodeError with both streams.
    - no exit code (signal): success only if stdout carries a completion
      marker, otherwise AmbiguousTerminationError.
    """
    if result.exit_code == 0:
        return result.stdout
    if result.exit_code is not None:
        raise ExitCodeError(result.exit_code, result.stdout, result.stderr)
    if has_completion_marker(result.stdout):
        return result.stdout
    raise AmbiguousTerminationError(result.stdout, result.stderr, result.signal)
