"""Process execution and the caller-facing ToolBridge."""

from dlbridge.executor.exit_status import COMPLETION_MARKERS, classify_exit
from dlbridge.executor.runner import ProcessResult, ProcessRunner
from dlbridge.executor.service import ToolBridge, build_tool_log
from dlbridge.executor.subtitle import SubtitleBurner, SubtitleStyle

__all__ = [
    "COMPLETION_MARKERS",
    "ProcessResult",
    "ProcessRunner",
    "SubtitleBurner",
    "SubtitleStyle",
    "ToolBridge",
    "build_tool_log",
    "classify_exit",
]
