"""Fixtures for CLI tests."""

from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from dlbridge.config.models import BridgeConfig
from dlbridge.executor.service import ToolBridge


@pytest.fixture(autouse=True)
def no_logging_setup():
    """Keep CLI invocations from reconfiguring the root logger."""
    with patch("dlbridge.cli._configure_logging") as mock:
        yield mock


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def mock_bridge() -> MagicMock:
    """ToolBridge double whose coroutine methods are AsyncMocks."""
    bridge = MagicMock(spec=ToolBridge)
    bridge.config = BridgeConfig()
    return bridge


@pytest.fixture
def cli_obj(mock_bridge: MagicMock) -> dict:
    return {"config": mock_bridge.config, "bridge": mock_bridge}
