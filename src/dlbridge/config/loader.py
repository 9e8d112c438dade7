"""Configuration loader with precedence handling.

Configuration is loaded with the following precedence (highest to lowest):
1. CLI arguments (passed directly to get_config)
2. Environment variables (DLBRIDGE_*)
3. Config file (~/.dlbridge/config.toml)
4. Default values

Environment variables:
- DLBRIDGE_CONFIG_PATH: Path to config file (overrides default location)
- DLBRIDGE_DATA_DIR: Base directory for logs and config (overrides ~/.dlbridge/)
- DLBRIDGE_RESOURCE_DIR: Directory holding the bundled "bin" directory
- DLBRIDGE_BIN_DIR: Development bin directory
- DLBRIDGE_DOWNLOADER / DLBRIDGE_TRANSCODER: Logical tool names
- DLBRIDGE_TOOL_LOG_ENABLED / DLBRIDGE_TOOL_LOG_DIR: Persistent tool log
- DLBRIDGE_LOG_LEVEL / DLBRIDGE_LOG_FILE / DLBRIDGE_LOG_FORMAT: Logging
- DLBRIDGE_HW_ACCEL / DLBRIDGE_SW_PRESET / DLBRIDGE_SW_CRF: Subtitle burning
"""

from __future__ import annotations

import logging
from pathlib import Path

from dlbridge.config.builder import (
    ConfigBuilder,
    ConfigSource,
    source_from_env,
    source_from_file,
)
from dlbridge.config.env import EnvReader
from dlbridge.config.models import BridgeConfig
from dlbridge.config.toml_parser import load_toml_file

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = Path.home() / ".dlbridge"
CONFIG_FILE_NAME = "config.toml"


def get_data_dir(env_reader: EnvReader | None = None) -> Path:
    """Get the dlbridge data directory.

    Holds config.toml and the logs/ directory of the persistent tool log.
    Can be overridden by DLBRIDGE_DATA_DIR (tilde expansion supported).
    """
    reader = env_reader or EnvReader()
    return reader.get_path("DLBRIDGE_DATA_DIR", default=DEFAULT_DATA_DIR)


def get_default_config_path(env_reader: EnvReader | None = None) -> Path:
    """Get the config file path.

    DLBRIDGE_CONFIG_PATH wins; otherwise config.toml in the data directory.
    """
    reader = env_reader or EnvReader()
    env_path = reader.get_path("DLBRIDGE_CONFIG_PATH")
    if env_path is not None:
        return env_path
    return get_data_dir(reader) / CONFIG_FILE_NAME


def get_tool_log_dir(config: BridgeConfig) -> Path:
    """Directory of the daily tool log files for a loaded config."""
    if config.tool_log.directory is not None:
        return config.tool_log.directory
    return (config.data_dir or DEFAULT_DATA_DIR) / "logs"


def get_config(
    config_path: Path | None = None,
    # CLI overrides (highest precedence)
    resource_dir: Path | None = None,
    dev_bin_dir: Path | None = None,
    hardware_acceleration: bool | None = None,
    # Optional dependency injection for testing
    env_reader: EnvReader | None = None,
    *,
    strict: bool = False,
) -> BridgeConfig:
    """Get dlbridge configuration with full precedence handling.

    Args:
        config_path: Path to config file (overrides DLBRIDGE_CONFIG_PATH).
        resource_dir: CLI override for the bundled resource directory.
        dev_bin_dir: CLI override for the development bin directory.
        hardware_acceleration: CLI override for hardware encoder use.
        env_reader: Optional EnvReader for testing (uses os.environ if None).
        strict: If True, raise TomlParseError on config file parse failures.

    Returns:
        BridgeConfig with merged configuration. data_dir is always set.

    Raises:
        TomlParseError: When strict=True and the config file cannot be parsed.
        ValueError: When a merged value fails model validation.
    """
    reader = env_reader or EnvReader()

    path = config_path or get_default_config_path(reader)
    file_config = load_toml_file(path, strict=strict)

    cli_source = ConfigSource(
        resource_dir=resource_dir,
        dev_bin_dir=dev_bin_dir,
        subtitle_hardware_acceleration=hardware_acceleration,
    )

    # file < env < cli
    builder = ConfigBuilder()
    builder.apply(source_from_file(file_config), source_name="file")
    builder.apply(source_from_env(reader), source_name="env")
    builder.apply(cli_source, source_name="cli")

    config = builder.build()
    if config.data_dir is None:
        config.data_dir = get_data_dir(reader)
    logger.debug(
        "Loaded configuration",
        extra={"config_path": str(path), "data_dir": str(config.data_dir)},
    )
    return config
