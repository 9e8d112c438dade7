"""Blocking child-process execution with concurrent output capture.

ProcessRunner starts a tool, drains stdout and stderr on two reader
threads so neither pipe can fill up and stall the child, hands every line
to an optional callback as it arrives, and returns the complete output once
the process has exited and both readers have finished.
"""

from __future__ import annotations

import contextvars
import logging
import subprocess  # nosec B404 - subprocess is required to run external tools
import threading
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import IO

from dlbridge.exceptions import (
    ReaderJoinError,
    SpawnError,
    StreamAcquisitionError,
    WaitError,
)

logger = logging.getLogger(__name__)

LineCallback = Callable[[str], None]

# Seconds to wait for a reader after the process has exited
READER_JOIN_TIMEOUT = 30.0


@dataclass(frozen=True)
class ProcessResult:
    """Captured outcome of one process run."""

    stdout: str
    stderr: str
    exit_code: int | None
    """Exit status, or None when the process was ended by a signal."""

    signal: int | None = None
    """Terminating signal number when exit_code is None."""


class _StreamReader:
    """Accumulates one pipe's text and forwards each line."""

    def __init__(
        self, name: str, stream: IO[str], callback: LineCallback | None
    ) -> None:
        self.name = name
        self._stream = stream
        self._callback = callback
        self._chunks: list[str] = []
        self.error: BaseException | None = None

    @property
    def text(self) -> str:
        return "".join(self._chunks)

    def run(self) -> None:
        try:
            for raw in self._stream:
                line = raw.rstrip("\r\n")
                self._chunks.append(line + "\n")
                if self._callback is None:
                    continue
                try:
                    self._callback(line)
                except Exception as e:
                    logger.warning("%s line callback failed: %s", self.name, e)
        except Exception as e:
            self.error = e
        finally:
            self._stream.close()


class ProcessRunner:
    """Run external processes with concurrent stdout/stderr draining."""

    def __init__(self, join_timeout: float = READER_JOIN_TIMEOUT) -> None:
        self.join_timeout = join_timeout

    def run(
        self,
        executable: str | Path,
        args: Sequence[str],
        cwd: Path | None = None,
        on_stdout_line: LineCallback | None = None,
        on_stderr_line: LineCallback | None = None,
    ) -> ProcessResult:
        """Run executable with args and wait for it to finish.

        Callbacks run on the reader threads; they must be thread-safe
        with respect to each other.

        Args:
            executable: Program to start.
            args: Arguments (copied, never modified).
            cwd: Working directory for the child.
            on_stdout_line: Called with each stdout line (no newline).
            on_stderr_line: Called with each stderr line (no newline).

        Returns:
            ProcessResult built after both readers have finished.

        Raises:
            SpawnError: If the process cannot be started.
            StreamAcquisitionError: If a pipe is unavailable.
            WaitError: If waiting for the process fails.
            ReaderJoinError: If a reader fails or does not finish.
        """
        cmd = [str(executable), *args]
        try:
            process = subprocess.Popen(  # nosec B603 - validated args, no shell
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                stdin=subprocess.DEVNULL,
                cwd=cwd,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except (OSError, ValueError) as e:
            raise SpawnError(str(executable), e) from e

        logger.debug("Started %s (pid %d)", executable, process.pid)

        if process.stdout is None or process.stderr is None:
            process.kill()
            process.wait()
            missing = "stdout" if process.stdout is None else "stderr"
            raise StreamAcquisitionError(missing)

        readers = [
            _StreamReader("stdout", process.stdout, on_stdout_line),
            _StreamReader("stderr", process.stderr, on_stderr_line),
        ]
        threads = []
        for reader in readers:
            # Each reader gets a copy of the caller's context so log records
            # emitted from callbacks keep the invocation tag.
            ctx = contextvars.copy_context()
            thread = threading.Thread(
                target=ctx.run,
                args=(reader.run,),
                name=f"dlbridge-{reader.name}",
                daemon=True,
            )
            thread.start()
            threads.append(thread)

        try:
            returncode = process.wait()
        except Exception as e:
            process.kill()
            raise WaitError(e) from e

        for reader, thread in zip(readers, threads):
            thread.join(timeout=self.join_timeout)
            if thread.is_alive():
                raise ReaderJoinError(reader.name)
            if reader.error is not None:
                raise ReaderJoinError(reader.name, reader.error) from reader.error

        if returncode < 0:
            exit_code, signal = None, -returncode
        else:
            exit_code, signal = returncode, None

        logger.debug(
            "%s exited",
            executable,
            extra={"exit_code": exit_code, "signal": signal},
        )
        return ProcessResult(
            stdout=readers[0].text,
            stderr=readers[1].text,
            exit_code=exit_code,
            signal=signal,
        )
