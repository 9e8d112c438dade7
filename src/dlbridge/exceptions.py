"""Custom exceptions for external tool orchestration.

This module provides specific exception types for every failure an
invocation can hit, enabling callers to handle different error conditions
appropriately. All messages are human readable and carry enough captured
output to diagnose the root cause without consulting raw log files.
"""

from __future__ import annotations


class BridgeError(Exception):
    """Base exception for dlbridge errors.

    All dlbridge exceptions inherit from this class, allowing callers
    to catch all orchestration errors with a single except clause.
    """


class ValidationError(BridgeError):
    """Raised when an argument list fails safety validation.

    Attributes:
        argument: The offending flag or value.
        reason: Short description of why it was rejected.
    """

    def __init__(self, argument: str, reason: str) -> None:
        """Initialize the exception.

        Args:
            argument: The offending flag or value.
            reason: Why the argument was rejected.
        """
        self.argument = argument
        self.reason = reason
        super().__init__(f"Invalid argument {argument!r}: {reason}")


class ToolNotFoundError(BridgeError):
    """Raised when an external tool cannot be located.

    Attributes:
        tool_name: Logical tool name that was requested.
        path: Best-known path that was checked, if any.
    """

    def __init__(self, tool_name: str, path: str | None = None) -> None:
        self.tool_name = tool_name
        self.path = path
        detail = f" (checked {path})" if path else ""
        super().__init__(f"Tool not found: {tool_name}{detail}")


class ProcessError(BridgeError):
    """Base exception for failures inside the process runner."""


class SpawnError(ProcessError):
    """Raised when the child process cannot be started."""

    def __init__(self, executable: str, cause: BaseException) -> None:
        self.executable = executable
        self.cause = cause
        super().__init__(f"Failed to start {executable}: {cause}")


class StreamAcquisitionError(ProcessError):
    """Raised when a stdout/stderr pipe handle is unavailable."""

    def __init__(self, stream_name: str) -> None:
        self.stream_name = stream_name
        super().__init__(f"Unable to acquire {stream_name} of child process")


class WaitError(ProcessError):
    """Raised when waiting for the child process to exit fails."""

    def __init__(self, cause: BaseException) -> None:
        self.cause = cause
        super().__init__(f"Failed while waiting for process to exit: {cause}")


class ReaderJoinError(ProcessError):
    """Raised when an output reader thread fails or does not finish."""

    def __init__(self, stream_name: str, cause: BaseException | None = None) -> None:
        self.stream_name = stream_name
        self.cause = cause
        detail = f": {cause}" if cause is not None else ": reader did not finish"
        super().__init__(f"Failed to collect {stream_name} output{detail}")


class ExitCodeError(BridgeError):
    """Raised when a tool exits with a nonzero status code.

    Attributes:
        exit_code: The process exit code.
        stdout: Captured standard output, verbatim.
        stderr: Captured standard error, verbatim.
    """

    def __init__(self, exit_code: int, stdout: str, stderr: str) -> None:
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr
        super().__init__(
            f"Command failed with exit code: {exit_code}\n"
            f"stdout: {stdout}\n"
            f"stderr: {stderr}"
        )


class AmbiguousTerminationError(BridgeError):
    """Raised when a process was terminated by a signal without finishing.

    The process reported no exit code and its output carried no
    completion marker, so the invocation is treated as failed.
    """

    def __init__(self, stdout: str, stderr: str, signal: int | None = None) -> None:
        self.stdout = stdout
        self.stderr = stderr
        self.signal = signal
        via = f" by signal {signal}" if signal is not None else ""
        super().__init__(
            f"Command was interrupted{via} (terminated or timed out)\n"
            f"stdout: {stdout}\n"
            f"stderr: {stderr}"
        )


class EncoderFallbackExhaustedError(BridgeError):
    """Raised when both the hardware and software transcode attempts fail.

    Attributes:
        hardware_encoder: Encoder used for the first attempt.
        software_encoder: Encoder used for the retry.
        hardware_error: Failure from the hardware attempt.
        software_error: Failure from the software retry.
    """

    def __init__(
        self,
        hardware_encoder: str,
        software_encoder: str,
        hardware_error: BridgeError,
        software_error: BridgeError,
    ) -> None:
        self.hardware_encoder = hardware_encoder
        self.software_encoder = software_encoder
        self.hardware_error = hardware_error
        self.software_error = software_error
        super().__init__(
            f"Subtitle burn failed with hardware encoder {hardware_encoder} "
            f"and software encoder {software_encoder}\n"
            f"[{hardware_encoder}] {hardware_error}\n"
            f"[{software_encoder}] {software_error}"
        )
