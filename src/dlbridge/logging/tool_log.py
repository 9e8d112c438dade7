"""Persistent per-tool log writer.

Tool output and forwarded events are appended to a daily plain-text file in
the dlbridge data directory (~/.dlbridge/logs/). Every line has the form::

    [2024-05-01 12:00:00.123] [INFO] [N_m3u8DL-RE] 开始下载

An external log viewer reads these files; rotation, listing and reading
are not handled here.
"""

from __future__ import annotations

import logging
import threading
from datetime import date
from pathlib import Path
from typing import Protocol

from dlbridge.events import now_timestamp

logger = logging.getLogger(__name__)

DEFAULT_FILE_PREFIX = "gaga-client"


def format_log_line(level: str, message: str, tool: str | None = None) -> str:
    """Format one persisted log line (without trailing newline).

    Args:
        level: Level name (INFO, WARN, ERROR).
        message: Message text.
        tool: Optional tool name tag.

    Returns:
        ``[timestamp] [LEVEL] [tool] message``, omitting the tool tag if None.
    """
    tool_prefix = f"[{tool}] " if tool else ""
    return f"[{now_timestamp()}] [{level}] {tool_prefix}{message}"


class ToolLog(Protocol):
    """Durable log of tool activity."""

    def write(self, level: str, message: str, tool: str | None = None) -> None:
        """Append one line. Must never raise."""
        ...


class NullToolLog:
    """Tool log that drops every line."""

    def write(self, level: str, message: str, tool: str | None = None) -> None:
        return None


class FileToolLog:
    """Append-only daily log file shared by all invocations.

    Thread-safe: stdout and stderr readers of several invocations may write
    at the same time. Failures to open or write the file are logged and
    swallowed so that logging never aborts an invocation.

    Example:
        tool_log = FileToolLog(Path("~/.dlbridge/logs").expanduser())
        tool_log.write("INFO", "开始下载", "N_m3u8DL-RE")
    """

    def __init__(
        self,
        directory: Path,
        file_prefix: str = DEFAULT_FILE_PREFIX,
    ) -> None:
        """Initialize the writer.

        Args:
            directory: Directory the daily log files live in.
            file_prefix: Prefix of each file name before the date.
        """
        self.directory = directory
        self.file_prefix = file_prefix
        self._lock = threading.Lock()

    def path_for(self, day: date | None = None) -> Path:
        """Return the log file path for a given day (default today)."""
        day = day or date.today()
        return self.directory / f"{self.file_prefix}_{day.isoformat()}.log"

    def write(self, level: str, message: str, tool: str | None = None) -> None:
        line = format_log_line(level, message, tool)
        with self._lock:
            try:
                self.directory.mkdir(parents=True, exist_ok=True)
                with self.path_for().open("a", encoding="utf-8") as f:
                    f.write(line + "\n")
                    f.flush()
            except OSError as e:
                logger.debug("Failed to write tool log line: %s", e)
