"""External tool handling: argument validation, path resolution, encoder
selection and output parsing for N_m3u8DL-RE and ffmpeg.
"""

from dlbridge.tools.arguments import (
    DOWNLOADER_ALLOWED_ARGUMENTS,
    TRANSCODER_ALLOWED_ARGUMENTS,
    mask_arguments,
    validate_arguments,
)
from dlbridge.tools.downloader_log import (
    ClassificationRule,
    LogLineParser,
    ProgressState,
    ProgressTracker,
    extract_progress,
    extract_speed,
)
from dlbridge.tools.encoders import (
    EncoderSelection,
    EncoderSelector,
    software_encoder_args,
)
from dlbridge.tools.ffmpeg_progress import extract_time_token
from dlbridge.tools.platform import PlatformInfo, detect_platform
from dlbridge.tools.resolver import ToolPathResolver

__all__ = [
    # Arguments
    "DOWNLOADER_ALLOWED_ARGUMENTS",
    "TRANSCODER_ALLOWED_ARGUMENTS",
    "mask_arguments",
    "validate_arguments",
    # Downloader log
    "ClassificationRule",
    "LogLineParser",
    "ProgressState",
    "ProgressTracker",
    "extract_progress",
    "extract_speed",
    # Encoders
    "EncoderSelection",
    "EncoderSelector",
    "software_encoder_args",
    # FFmpeg progress
    "extract_time_token",
    # Platform / resolver
    "PlatformInfo",
    "ToolPathResolver",
    "detect_platform",
]
