"""Shared test fixtures for dlbridge."""

import stat
import sys
from collections.abc import Callable
from pathlib import Path

import pytest

from dlbridge.config.models import BridgeConfig, ToolLogConfig, ToolPathsConfig
from dlbridge.events import QueueEventSink
from dlbridge.logging.tool_log import FileToolLog
from dlbridge.tools.platform import PlatformInfo


@pytest.fixture
def linux_platform() -> PlatformInfo:
    return PlatformInfo(system="linux")


@pytest.fixture
def windows_platform() -> PlatformInfo:
    return PlatformInfo(system="windows")


@pytest.fixture
def macos_platform() -> PlatformInfo:
    return PlatformInfo(system="macos")


@pytest.fixture
def event_sink() -> QueueEventSink:
    """Sink that buffers events for inspection."""
    return QueueEventSink()


@pytest.fixture
def bin_dir(tmp_path: Path) -> Path:
    """Development bin directory for fake tools."""
    path = tmp_path / "bin"
    path.mkdir()
    return path


@pytest.fixture
def bridge_config(tmp_path: Path, bin_dir: Path) -> BridgeConfig:
    """Config pointing tools at bin_dir and the tool log at tmp_path/logs."""
    return BridgeConfig(
        tools=ToolPathsConfig(dev_bin_dir=bin_dir),
        tool_log=ToolLogConfig(directory=tmp_path / "logs"),
        data_dir=tmp_path,
    )


@pytest.fixture
def tool_log(tmp_path: Path) -> FileToolLog:
    return FileToolLog(tmp_path / "logs")


@pytest.fixture
def make_python_tool(bin_dir: Path) -> Callable[[str, str], Path]:
    """Factory writing an executable Python script into bin_dir.

    The script runs under the current interpreter, so tests can stand in
    for N_m3u8DL-RE or ffmpeg without either being installed.
    """

    def _make(name: str, body: str) -> Path:
        path = bin_dir / name
        path.write_text(f"#!{sys.executable}\n{body}", encoding="utf-8")
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return path

    return _make
