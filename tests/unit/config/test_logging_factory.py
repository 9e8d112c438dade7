"""Tests for config/logging_factory.py."""

from pathlib import Path

import pytest

from dlbridge.config.logging_factory import build_logging_config
from dlbridge.config.models import LoggingConfig


def test_no_overrides_keeps_base() -> None:
    base = LoggingConfig(level="warning", file=Path("/tmp/x.log"), max_bytes=100)
    assert build_logging_config(base) == base


def test_overrides_applied() -> None:
    base = LoggingConfig()
    result = build_logging_config(
        base, level="debug", file=Path("/tmp/y.log"), format="json", include_stderr=True
    )
    assert result.level == "debug"
    assert result.file == Path("/tmp/y.log")
    assert result.format == "json"
    assert result.include_stderr is True
    assert base.level == "info"


def test_include_stderr_false_overrides() -> None:
    base = LoggingConfig(include_stderr=True)
    assert build_logging_config(base, include_stderr=False).include_stderr is False


def test_invalid_override() -> None:
    with pytest.raises(ValueError):
        build_logging_config(LoggingConfig(), level="loud")
