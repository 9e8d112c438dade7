"""Logging configuration factory.

Merges CLI logging options into the LoggingConfig loaded from file and
environment.
"""

from __future__ import annotations

from pathlib import Path

from dlbridge.config.models import LoggingConfig


def build_logging_config(
    base: LoggingConfig,
    *,
    level: str | None = None,
    file: Path | None = None,
    format: str | None = None,
    include_stderr: bool | None = None,
) -> LoggingConfig:
    """Return a new LoggingConfig with non-None overrides applied.

    Validation runs via LoggingConfig.__post_init__, so invalid values
    raise ValueError.
    """
    return LoggingConfig(
        level=level or base.level,
        file=file or base.file,
        format=format or base.format,
        include_stderr=(
            base.include_stderr if include_stderr is None else include_stderr
        ),
        max_bytes=base.max_bytes,
        backup_count=base.backup_count,
    )
