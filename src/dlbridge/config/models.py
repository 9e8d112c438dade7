"""Configuration data models.

This module defines dataclasses for dlbridge configuration options.
"""

from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class ToolPathsConfig:
    """Configuration for locating external tools.

    All paths are optional. The resolver falls back to the bundled
    resource directory of a frozen build, then the development ``bin``
    directory next to the project.
    """

    # Directory holding bundled tools (its "bin" subdirectory is searched)
    resource_dir: Path | None = None

    # Development-time bin directory override
    dev_bin_dir: Path | None = None

    # Logical names of the two tools
    downloader: str = "N_m3u8DL-RE"
    transcoder: str = "ffmpeg"


@dataclass
class ToolLogConfig:
    """Configuration for the persistent per-tool log."""

    enabled: bool = True

    # Directory for daily log files (None = <data_dir>/logs)
    directory: Path | None = None

    file_prefix: str = "gaga-client"

    def __post_init__(self) -> None:
        """Validate configuration."""
        if not self.file_prefix or "/" in self.file_prefix or "\\" in self.file_prefix:
            raise ValueError(
                f"file_prefix must be a plain file name prefix, got {self.file_prefix!r}"
            )


@dataclass
class LoggingConfig:
    """Configuration for structured application logging."""

    # Log level: debug, info, warning, error
    level: str = "info"

    # Log file path (None = stderr only)
    file: Path | None = None

    # Log format: text or json
    format: str = "text"

    # Also log to stderr when file is set
    include_stderr: bool = False

    # Rotation threshold in bytes (default 10MB)
    max_bytes: int = 10_485_760

    # Number of rotated files to keep
    backup_count: int = 5

    def __post_init__(self) -> None:
        """Validate configuration."""
        valid_levels = {"debug", "info", "warning", "error"}
        if self.level.lower() not in valid_levels:
            raise ValueError(f"level must be one of {valid_levels}, got {self.level}")
        valid_formats = {"text", "json"}
        if self.format.lower() not in valid_formats:
            raise ValueError(
                f"format must be one of {valid_formats}, got {self.format}"
            )


@dataclass
class SubtitleConfig:
    """Configuration for subtitle burning."""

    # Allow hardware encoders; False always uses the software encoder
    hardware_acceleration: bool = True

    # Software encoder settings used for software runs and fallback retries
    software_preset: str = "medium"
    software_crf: int = 23

    def __post_init__(self) -> None:
        """Validate configuration."""
        if not 0 <= self.software_crf <= 51:
            raise ValueError(
                f"software_crf must be between 0 and 51, got {self.software_crf}"
            )


@dataclass
class BridgeConfig:
    """Top-level dlbridge configuration."""

    tools: ToolPathsConfig = field(default_factory=ToolPathsConfig)
    tool_log: ToolLogConfig = field(default_factory=ToolLogConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    subtitle: SubtitleConfig = field(default_factory=SubtitleConfig)

    # Base directory for logs and config (None = ~/.dlbridge)
    data_dir: Path | None = None
