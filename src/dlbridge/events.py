"""Structured events emitted while external tools run.

This module defines the LogEvent record produced by the downloader log
parser, the channel names events are published on, and the EventSink
protocol together with the sinks shipped with dlbridge.
"""

from __future__ import annotations

import json
import logging
import queue
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import IO, TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from dlbridge.logging.tool_log import ToolLog

logger = logging.getLogger(__name__)

# Event channel names
DOWNLOAD_LOG_CHANNEL = "download-log"
BURN_STATUS_CHANNEL = "burn-subtitle-status"
BURN_PROGRESS_CHANNEL = "burn-subtitle-progress"

# Status values published on BURN_STATUS_CHANNEL
BURN_ENCODER_SELECTED = "encoder_selected"
BURN_SUCCESS = "success"
BURN_FALLBACK = "fallback"
BURN_FAILURE = "failure"


def now_timestamp() -> str:
    """Return the local time as ``YYYY-MM-DD HH:MM:SS.mmm``."""
    return datetime.now().strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]


class LogLevel(str, Enum):
    """Severity of a LogEvent."""

    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"


@dataclass(frozen=True)
class LogEvent:
    """A single structured status or progress record.

    Produced only by the downloader log parser and immutable once built.
    """

    level: LogLevel
    message: str
    progress: float | None = None
    speed: str | None = None
    timestamp: str = field(default_factory=now_timestamp)

    @property
    def dedup_key(self) -> str:
        """Key used to suppress repeated identical events."""
        return f"{self.message}{self.progress}"

    def to_payload(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict for an EventSink."""
        return {
            "level": self.level.value,
            "message": self.message,
            "progress": self.progress,
            "speed": self.speed,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> LogEvent:
        """Rebuild a LogEvent from a payload produced by to_payload().

        Raises:
            ValueError: If the level is unknown.
            KeyError: If required fields are missing.
        """
        progress = payload.get("progress")
        return cls(
            level=LogLevel(payload["level"]),
            message=payload["message"],
            progress=float(progress) if progress is not None else None,
            speed=payload.get("speed"),
            timestamp=payload.get("timestamp") or now_timestamp(),
        )


class EventSink(Protocol):
    """Receiver of structured events for UI display."""

    def emit(self, channel: str, payload: dict[str, Any]) -> None:
        """Publish a payload on a named channel."""
        ...


class NullEventSink:
    """Sink that discards every event."""

    def emit(self, channel: str, payload: dict[str, Any]) -> None:
        return None


class CallbackEventSink:
    """Sink that hands every event to a callable."""

    def __init__(self, callback: Callable[[str, dict[str, Any]], None]) -> None:
        self._callback = callback

    def emit(self, channel: str, payload: dict[str, Any]) -> None:
        self._callback(channel, payload)


class QueueEventSink:
    """Thread-safe sink that buffers events in a queue.

    Reader threads emit concurrently, so the queue is the hand-off point
    to whichever consumer drains it (UI loop, tests).
    """

    def __init__(self) -> None:
        self._queue: queue.Queue[tuple[str, dict[str, Any]]] = queue.Queue()

    def emit(self, channel: str, payload: dict[str, Any]) -> None:
        self._queue.put((channel, payload))

    def drain(self) -> list[tuple[str, dict[str, Any]]]:
        """Return and remove every buffered event in emission order."""
        items: list[tuple[str, dict[str, Any]]] = []
        while True:
            try:
                items.append(self._queue.get_nowait())
            except queue.Empty:
                return items

    def events(self, channel: str) -> list[dict[str, Any]]:
        """Drain the queue and keep only payloads for one channel."""
        return [payload for ch, payload in self.drain() if ch == channel]


class JsonLinesEventSink:
    """Sink that writes one JSON object per event to a text stream."""

    def __init__(self, stream: IO[str]) -> None:
        self._stream = stream
        self._lock = threading.Lock()

    def emit(self, channel: str, payload: dict[str, Any]) -> None:
        line = json.dumps({"channel": channel, "payload": payload}, ensure_ascii=False)
        with self._lock:
            self._stream.write(line + "\n")
            self._stream.flush()


def emit_safely(sink: EventSink, channel: str, payload: dict[str, Any]) -> None:
    """Emit a payload, logging instead of raising if the sink fails."""
    try:
        sink.emit(channel, payload)
    except Exception as e:
        logger.warning("Event sink rejected %s event: %s", channel, e)


def forward_event(
    sink: EventSink,
    tool_log: ToolLog,
    tool_name: str,
    event: LogEvent,
    channel: str = DOWNLOAD_LOG_CHANNEL,
) -> None:
    """Deliver a LogEvent to the UI sink and the persistent tool log.

    Both deliveries are best effort: a failing sink or log never aborts
    the invocation that produced the event.
    """
    emit_safely(sink, channel, event.to_payload())
    tool_log.write(event.level.value, event.message, tool_name)
