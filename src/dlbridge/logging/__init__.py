"""Structured logging module for dlbridge.

Provides configurable logging with JSON format support and file rotation,
invocation context injection, and the persistent per-tool log writer.
"""

from dlbridge.logging.config import configure_logging
from dlbridge.logging.context import (
    InvocationContextFilter,
    get_invocation_context,
    invocation_context,
)
from dlbridge.logging.handlers import JSONFormatter
from dlbridge.logging.tool_log import FileToolLog, NullToolLog, ToolLog

__all__ = [
    "FileToolLog",
    "InvocationContextFilter",
    "JSONFormatter",
    "NullToolLog",
    "ToolLog",
    "configure_logging",
    "get_invocation_context",
    "invocation_context",
]
