"""Interpretation of N_m3u8DL-RE console output.

The downloader prints a mix of progress bars, per-track chatter, status
lines and errors. LogLineParser classifies each line through an ordered
rule table and turns the interesting ones into LogEvents. ProgressTracker
wraps the parser with the per-invocation state shared by the stdout and
stderr readers, throttling progress and dropping repeated events.
"""

from __future__ import annotations

import logging
import re
import threading
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from dlbridge.events import LogEvent, LogLevel

logger = logging.getLogger(__name__)

# Canonical status messages
MSG_DOWNLOADING = "正在下载"
MSG_LOADING = "正在加载..."
MSG_STARTED = "开始下载"
MSG_MERGING = "正在合并..."
MSG_DECRYPTING = "正在解密..."
MSG_COMPLETED = "下载完成"

# Progress events are throttled to one per bucket of this many percent
PROGRESS_BUCKET = 5

# Characters that make up progress bars and counters
_DECORATION_CHARS = frozenset("━─█▉▊▋▌▍▎▏░▒▓■□|/\\=>#<[]") | frozenset(
    "0123456789%.:- "
)

_IGNORED_PREFIXES = ("Sub ", "Aud ")
_VIDEO_PREFIX = "Vid "

_ERROR_TOKENS_CI = ("error", "permission denied", "exception")
_ERROR_TOKENS = ("错误", "失败")
_WARNING_TOKENS = ("WARN", "warning", "Warning", "警告")
_INFO_MARKER = "INFO"

# "downloading" must not count as "loading"
_LOADING = re.compile(r"\bloading\b")

SPEED_UNITS = ("MBps", "KBps", "GBps", "MB/s", "KB/s", "GB/s", "Bps")


@dataclass
class ProgressState:
    """Mutable parse state for one invocation."""

    last_integer_progress: int = -1
    last_emitted_key: str = ""


@dataclass(frozen=True)
class ClassificationRule:
    """One entry of the classification table.

    Rules are evaluated in order; the first whose ``matches`` returns True
    decides the outcome through ``handle``.
    """

    name: str
    matches: Callable[[str], bool]
    handle: Callable[[str, ProgressState], LogEvent | None]


def extract_progress(line: str) -> float | None:
    """Extract the percentage preceding the first "%" in line.

    Scans back over digits and at most one decimal point.
    """
    end = line.find("%")
    if end <= 0:
        return None

    start = end
    seen_dot = False
    while start > 0:
        ch = line[start - 1]
        if ch.isdigit():
            start -= 1
        elif ch == "." and not seen_dot:
            seen_dot = True
            start -= 1
        else:
            break

    number = line[start:end]
    try:
        return float(number)
    except ValueError:
        return None


def extract_speed(line: str) -> str | None:
    """Extract a transfer speed such as "10.5MBps" from line.

    Units are tried in SPEED_UNITS order; the number is everything between
    the preceding whitespace and the unit.
    """
    for unit in SPEED_UNITS:
        idx = line.find(unit)
        if idx < 0:
            continue
        start = idx
        while start > 0 and not line[start - 1].isspace():
            start -= 1
        if start == idx:
            return None
        return line[start : idx + len(unit)]
    return None


def should_emit_progress(progress: float, state: ProgressState) -> bool:
    """Decide whether a new progress value is worth an event.

    The value must increase the integer progress and either enter a new
    PROGRESS_BUCKET or reach 100. Updates state when it returns True.
    """
    current = int(progress)
    last = state.last_integer_progress
    if current <= last:
        return False
    # int() truncates toward zero, so the initial -1 falls in bucket 0
    if int(current / PROGRESS_BUCKET) > int(last / PROGRESS_BUCKET) or current == 100:
        state.last_integer_progress = current
        return True
    return False


def _is_decoration(line: str) -> bool:
    return all(ch in _DECORATION_CHARS for ch in line)


def _is_error(line: str) -> bool:
    lowered = line.lower()
    return any(t in lowered for t in _ERROR_TOKENS_CI) or any(
        t in line for t in _ERROR_TOKENS
    )


def _is_warning(line: str) -> bool:
    return any(t in line for t in _WARNING_TOKENS)


def _is_video_progress(line: str) -> bool:
    return line.startswith(_VIDEO_PREFIX) and "%" in line


def _ignore(line: str, state: ProgressState) -> LogEvent | None:
    return None


def _handle_error(line: str, state: ProgressState) -> LogEvent | None:
    return LogEvent(level=LogLevel.ERROR, message=line)


def _handle_video_progress(line: str, state: ProgressState) -> LogEvent | None:
    progress = extract_progress(line)
    if progress is None or not should_emit_progress(progress, state):
        return None
    return LogEvent(
        level=LogLevel.INFO,
        message=MSG_DOWNLOADING,
        progress=progress,
        speed=extract_speed(line),
    )


def _handle_info(line: str, state: ProgressState) -> LogEvent | None:
    lowered = line.lower()
    if "start downloading" in lowered or MSG_STARTED in line:
        return LogEvent(level=LogLevel.INFO, message=MSG_STARTED, progress=0.0)
    if _LOADING.search(lowered):
        return LogEvent(level=LogLevel.INFO, message=MSG_LOADING)
    if "merg" in lowered or "mux" in lowered:
        return LogEvent(level=LogLevel.INFO, message=MSG_MERGING)
    if "decrypt" in lowered:
        return LogEvent(level=LogLevel.INFO, message=MSG_DECRYPTING)
    if "done" in lowered or "完成" in line:
        return LogEvent(level=LogLevel.INFO, message=MSG_COMPLETED, progress=100.0)
    return None


DEFAULT_RULES: tuple[ClassificationRule, ...] = (
    ClassificationRule("blank", lambda line: not line, _ignore),
    ClassificationRule("decoration", _is_decoration, _ignore),
    ClassificationRule(
        "track-chatter", lambda line: line.startswith(_IGNORED_PREFIXES), _ignore
    ),
    ClassificationRule("error", _is_error, _handle_error),
    ClassificationRule("warning", _is_warning, _ignore),
    ClassificationRule("video-progress", _is_video_progress, _handle_video_progress),
    ClassificationRule("info", lambda line: _INFO_MARKER in line, _handle_info),
    ClassificationRule("other", lambda line: True, _ignore),
)


class LogLineParser:
    """Classify downloader output lines into LogEvents."""

    def __init__(self, rules: Sequence[ClassificationRule] = DEFAULT_RULES) -> None:
        self.rules = tuple(rules)

    def classify(self, line: str) -> ClassificationRule | None:
        """Return the first rule matching the stripped line."""
        text = line.strip()
        for rule in self.rules:
            if rule.matches(text):
                return rule
        return None

    def parse(self, line: str, state: ProgressState) -> LogEvent | None:
        """Parse one raw line, returning an event or None.

        Progress throttling updates state; de-duplication is left to
        ProgressTracker.
        """
        text = line.strip()
        rule = self.classify(text)
        if rule is None:
            return None
        return rule.handle(text, state)


class ProgressTracker:
    """Thread-safe parser front end for one downloader invocation.

    The stdout and stderr readers both feed lines through offer(); parsing
    and de-duplication happen under a single lock so the two streams see a
    consistent ProgressState.
    """

    def __init__(self, parser: LogLineParser | None = None) -> None:
        self.parser = parser or LogLineParser()
        self.state = ProgressState()
        self._lock = threading.Lock()

    def offer(self, line: str) -> LogEvent | None:
        """Parse a line and return its event unless it repeats the last one."""
        with self._lock:
            event = self.parser.parse(line, self.state)
            if event is None:
                return None
            key = event.dedup_key
            if key == self.state.last_emitted_key:
                return None
            self.state.last_emitted_key = key
        return event
