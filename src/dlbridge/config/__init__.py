"""Configuration management for dlbridge.

Configuration is loaded with precedence handling:
1. CLI flags (highest priority)
2. Environment variables (DLBRIDGE_*)
3. Config file (~/.dlbridge/config.toml)
4. Default values (lowest priority)
"""

from dlbridge.config.builder import (
    ConfigBuilder,
    ConfigSource,
    source_from_env,
    source_from_file,
)
from dlbridge.config.env import EnvReader
from dlbridge.config.loader import (
    get_config,
    get_data_dir,
    get_default_config_path,
    get_tool_log_dir,
)
from dlbridge.config.logging_factory import build_logging_config
from dlbridge.config.models import (
    BridgeConfig,
    LoggingConfig,
    SubtitleConfig,
    ToolLogConfig,
    ToolPathsConfig,
)
from dlbridge.config.toml_parser import TomlParseError, load_toml_file, parse_toml

__all__ = [
    # Models
    "BridgeConfig",
    "LoggingConfig",
    "SubtitleConfig",
    "ToolLogConfig",
    "ToolPathsConfig",
    # Loader
    "get_config",
    "get_data_dir",
    "get_default_config_path",
    "get_tool_log_dir",
    # Builder
    "ConfigBuilder",
    "ConfigSource",
    "EnvReader",
    "source_from_env",
    "source_from_file",
    # Logging
    "build_logging_config",
    # TOML
    "TomlParseError",
    "load_toml_file",
    "parse_toml",
]
