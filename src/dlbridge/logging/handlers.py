"""JSON log formatting for dlbridge.

Each record becomes one JSON line. The invocation fields injected by
InvocationContextFilter and the process outcome fields that the runner,
service and resolver attach through ``extra=`` are top-level keys so
that log processors can filter on them directly.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

# Attributes present on every record; anything else arrived through extra=
_RECORD_ATTRS = frozenset(
    logging.LogRecord("", logging.NOTSET, "", 0, "", None, None).__dict__
) | {"message", "asctime", "taskName", "invocation_tag"}

# Keys promoted out of the extra mapping, in output order
TOP_LEVEL_FIELDS: tuple[str, ...] = (
    "tool",
    "invocation_id",
    "exit_code",
    "signal",
    "candidates",
)


class JSONFormatter(logging.Formatter):
    """Format log records as single-line JSON objects.

    Output keys: ``timestamp`` (ISO-8601 UTC), ``level``, ``logger``,
    ``message``, then whichever of TOP_LEVEL_FIELDS are set, an ``extra``
    mapping for other extras and ``exception`` when exc_info is present.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for field in TOP_LEVEL_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                entry[field] = value

        extra = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRS
            and key not in TOP_LEVEL_FIELDS
            and not key.startswith("_")
        }
        if extra:
            entry["extra"] = extra

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str, ensure_ascii=False)
