"""Invocation context for structured logging.

Provides context propagation across the worker and reader threads of one
tool invocation using contextvars, enabling automatic injection of the
tool name and invocation id into log records.
"""

from __future__ import annotations

import contextvars
import logging
import uuid
from contextlib import contextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Generator

_tool: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "tool", default=None
)
_invocation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "invocation_id", default=None
)


@contextmanager
def invocation_context(
    tool: str,
    invocation_id: str | None = None,
) -> Generator[str, None, None]:
    """Context manager marking log records with the running invocation.

    Restores the previous context on exit. Reader threads do not inherit
    contextvars automatically; the process runner copies the context into
    them.

    Args:
        tool: Logical tool name (e.g., "N_m3u8DL-RE").
        invocation_id: Identifier for this invocation. Generated if None.

    Yields:
        The invocation id in effect.

    Example:
        with invocation_context("ffmpeg") as inv_id:
            logger.info("Starting transcode")  # includes tool and id
    """
    inv_id = invocation_id or uuid.uuid4().hex[:8]
    tool_token = _tool.set(tool)
    id_token = _invocation_id.set(inv_id)
    try:
        yield inv_id
    finally:
        _tool.reset(tool_token)
        _invocation_id.reset(id_token)


def get_invocation_context() -> tuple[str | None, str | None]:
    """Get current invocation context.

    Returns:
        Tuple of (tool, invocation_id), either may be None.
    """
    return _tool.get(), _invocation_id.get()


class InvocationContextFilter(logging.Filter):
    """Logging filter that injects invocation context into log records.

    Adds tool and invocation_id attributes to LogRecord from contextvars,
    and a compact invocation_tag like ``[ffmpeg:1a2b3c4d] `` for text logs.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        tool, invocation_id = get_invocation_context()

        record.tool = tool
        record.invocation_id = invocation_id

        if tool:
            if invocation_id:
                record.invocation_tag = f"[{tool}:{invocation_id}] "
            else:
                record.invocation_tag = f"[{tool}] "
        else:
            record.invocation_tag = ""

        return True
