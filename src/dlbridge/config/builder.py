"""Configuration builder with explicit layering.

This module provides ConfigBuilder for building BridgeConfig by composing
multiple configuration sources with explicit precedence handling.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

from dlbridge.config.env import EnvReader
from dlbridge.config.models import (
    BridgeConfig,
    LoggingConfig,
    SubtitleConfig,
    ToolLogConfig,
    ToolPathsConfig,
)


@dataclass
class ConfigSource:
    """Configuration values from a single source.

    None values indicate "not specified in this source" and will not
    override values from lower-precedence sources.
    """

    # Tools
    resource_dir: Path | None = None
    dev_bin_dir: Path | None = None
    downloader: str | None = None
    transcoder: str | None = None

    # Data directory
    data_dir: Path | None = None

    # Tool log
    tool_log_enabled: bool | None = None
    tool_log_directory: Path | None = None
    tool_log_file_prefix: str | None = None

    # Logging
    logging_level: str | None = None
    logging_file: Path | None = None
    logging_format: str | None = None
    logging_include_stderr: bool | None = None
    logging_max_bytes: int | None = None
    logging_backup_count: int | None = None

    # Subtitle
    subtitle_hardware_acceleration: bool | None = None
    subtitle_software_preset: str | None = None
    subtitle_software_crf: int | None = None


class ConfigBuilder:
    """Builds BridgeConfig by layering ConfigSources with precedence.

    Later sources override earlier ones (for non-None values).

    Example:
        builder = ConfigBuilder()
        builder.apply(source_from_file(file_config))
        builder.apply(source_from_env(reader))
        builder.apply(cli_source)
        config = builder.build()
    """

    def __init__(self) -> None:
        self._values: dict[str, Any] = {}
        self._sources: dict[str, str] = {}

    def apply(self, source: ConfigSource, source_name: str = "unknown") -> None:
        """Apply configuration source, overriding existing values.

        Args:
            source: Configuration source to apply.
            source_name: Label recorded for each value it sets.
        """
        for field_obj in fields(source):
            value = getattr(source, field_obj.name)
            if value is not None:
                self._values[field_obj.name] = value
                self._sources[field_obj.name] = source_name

    def source_of(self, key: str) -> str:
        """Return which source set a value ("default" if none did)."""
        return self._sources.get(key, "default")

    def _get(self, key: str, default: Any) -> Any:
        return self._values.get(key, default)

    def build(self) -> BridgeConfig:
        """Build the final BridgeConfig with defaults for unset values.

        Raises:
            ValueError: If a resulting value fails model validation.
        """
        tools = ToolPathsConfig(
            resource_dir=self._get("resource_dir", None),
            dev_bin_dir=self._get("dev_bin_dir", None),
            downloader=self._get("downloader", "N_m3u8DL-RE"),
            transcoder=self._get("transcoder", "ffmpeg"),
        )

        tool_log = ToolLogConfig(
            enabled=self._get("tool_log_enabled", True),
            directory=self._get("tool_log_directory", None),
            file_prefix=self._get("tool_log_file_prefix", "gaga-client"),
        )

        logging_config = LoggingConfig(
            level=self._get("logging_level", "info"),
            file=self._get("logging_file", None),
            format=self._get("logging_format", "text"),
            include_stderr=self._get("logging_include_stderr", False),
            max_bytes=self._get("logging_max_bytes", 10_485_760),
            backup_count=self._get("logging_backup_count", 5),
        )

        subtitle = SubtitleConfig(
            hardware_acceleration=self._get("subtitle_hardware_acceleration", True),
            software_preset=self._get("subtitle_software_preset", "medium"),
            software_crf=self._get("subtitle_software_crf", 23),
        )

        return BridgeConfig(
            tools=tools,
            tool_log=tool_log,
            logging=logging_config,
            subtitle=subtitle,
            data_dir=self._get("data_dir", None),
        )


def _optional_path(value: Any) -> Path | None:
    return Path(value).expanduser() if value else None


def source_from_file(file_config: dict[str, Any]) -> ConfigSource:
    """Create ConfigSource from parsed TOML config file.

    Expected layout::

        data_dir = "~/.dlbridge"

        [tools]
        resource_dir = "/opt/gaga"
        dev_bin_dir = "~/src/gaga/bin"

        [tool_log]
        enabled = true

        [logging]
        level = "debug"

        [subtitle]
        hardware_acceleration = false
    """
    tools = file_config.get("tools", {})
    tool_log = file_config.get("tool_log", {})
    logging_conf = file_config.get("logging", {})
    subtitle = file_config.get("subtitle", {})

    return ConfigSource(
        resource_dir=_optional_path(tools.get("resource_dir")),
        dev_bin_dir=_optional_path(tools.get("dev_bin_dir")),
        downloader=tools.get("downloader"),
        transcoder=tools.get("transcoder"),
        data_dir=_optional_path(file_config.get("data_dir")),
        tool_log_enabled=tool_log.get("enabled"),
        tool_log_directory=_optional_path(tool_log.get("directory")),
        tool_log_file_prefix=tool_log.get("file_prefix"),
        logging_level=logging_conf.get("level"),
        logging_file=_optional_path(logging_conf.get("file")),
        logging_format=logging_conf.get("format"),
        logging_include_stderr=logging_conf.get("include_stderr"),
        logging_max_bytes=logging_conf.get("max_bytes"),
        logging_backup_count=logging_conf.get("backup_count"),
        subtitle_hardware_acceleration=subtitle.get("hardware_acceleration"),
        subtitle_software_preset=subtitle.get("software_preset"),
        subtitle_software_crf=subtitle.get("software_crf"),
    )


def source_from_env(reader: EnvReader) -> ConfigSource:
    """Create ConfigSource from DLBRIDGE_* environment variables."""
    return ConfigSource(
        resource_dir=reader.get_path("DLBRIDGE_RESOURCE_DIR"),
        dev_bin_dir=reader.get_path("DLBRIDGE_BIN_DIR"),
        downloader=reader.get_str("DLBRIDGE_DOWNLOADER"),
        transcoder=reader.get_str("DLBRIDGE_TRANSCODER"),
        data_dir=reader.get_path("DLBRIDGE_DATA_DIR"),
        tool_log_enabled=reader.get_bool("DLBRIDGE_TOOL_LOG_ENABLED"),
        tool_log_directory=reader.get_path("DLBRIDGE_TOOL_LOG_DIR"),
        tool_log_file_prefix=None,  # No env var
        logging_level=reader.get_str("DLBRIDGE_LOG_LEVEL"),
        logging_file=reader.get_path("DLBRIDGE_LOG_FILE"),
        logging_format=reader.get_str("DLBRIDGE_LOG_FORMAT"),
        logging_include_stderr=reader.get_bool("DLBRIDGE_LOG_INCLUDE_STDERR"),
        logging_max_bytes=reader.get_int("DLBRIDGE_LOG_MAX_BYTES"),
        logging_backup_count=reader.get_int("DLBRIDGE_LOG_BACKUP_COUNT"),
        subtitle_hardware_acceleration=reader.get_bool("DLBRIDGE_HW_ACCEL"),
        subtitle_software_preset=reader.get_str("DLBRIDGE_SW_PRESET"),
        subtitle_software_crf=reader.get_int("DLBRIDGE_SW_CRF"),
    )
