"""Hardware encoder detection and selection for subtitle burning.

This module picks the H.264 encoder used when burning subtitles:

- macOS always uses VideoToolbox.
- Windows queries ``ffmpeg -encoders`` for NVENC, then Quick Sync, and
  otherwise uses libx264.
- Every other platform uses libx264.

It also defines the software argument set used when a hardware attempt
fails and has to be retried.
"""

from __future__ import annotations

import logging
import re
import subprocess  # nosec B404 - subprocess is required for FFmpeg probing
from dataclasses import dataclass
from typing import Literal

from dlbridge.tools.platform import PlatformInfo, detect_platform

logger = logging.getLogger(__name__)

SOFTWARE_ENCODER = "libx264"
SOFTWARE_PRESET = "medium"
SOFTWARE_CRF = 23

MACOS_ENCODER = "h264_videotoolbox"

# Windows hardware encoders in priority order
WINDOWS_HARDWARE_ENCODERS: dict[str, str] = {
    "nvenc": "h264_nvenc",
    "qsv": "h264_qsv",
}

# Timeout for listing encoders (seconds)
ENCODER_LIST_TIMEOUT = 10

_CODEC_LINE = re.compile(r"\s+[VASFXBDI.]{6}\s+(\w\S*)")


@dataclass(frozen=True)
class EncoderSelection:
    """Result of encoder selection."""

    encoder: str
    """FFmpeg encoder name (e.g., 'libx264', 'h264_nvenc')."""

    encoder_type: Literal["hardware", "software"]
    """Whether this is a hardware or software encoder."""

    hw_platform: str | None = None
    """Hardware platform if hardware encoder (e.g., 'nvenc', 'qsv', 'videotoolbox')."""

    @property
    def is_hardware(self) -> bool:
        return self.encoder_type == "hardware"


SOFTWARE_SELECTION = EncoderSelection(encoder=SOFTWARE_ENCODER, encoder_type="software")


def software_encoder_args(
    preset: str = SOFTWARE_PRESET, crf: int = SOFTWARE_CRF
) -> list[str]:
    """Video encoder arguments for a software run or fallback retry."""
    return ["-c:v", SOFTWARE_ENCODER, "-preset", preset, "-crf", str(crf)]


def parse_encoder_list(output: str) -> set[str]:
    """Parse ``ffmpeg -encoders`` output into a set of encoder names."""
    # Format: " V....D libx264    libx264 H.264 / AVC ..."
    return {
        match.group(1).casefold()
        for line in output.split("\n")
        if (match := _CODEC_LINE.match(line))
    }


def list_encoders(ffmpeg: str) -> set[str] | None:
    """List the encoders an ffmpeg binary reports.

    Returns:
        Set of encoder names, or None if the listing failed.
    """
    try:
        result = subprocess.run(  # nosec B603 - ffmpeg path and fixed flags
            [ffmpeg, "-hide_banner", "-encoders"],
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=ENCODER_LIST_TIMEOUT,
        )
    except (subprocess.TimeoutExpired, OSError) as e:
        logger.warning("Encoder listing failed for %s: %s", ffmpeg, e)
        return None

    if result.returncode != 0:
        logger.warning(
            "Encoder listing exited with %d: %s", result.returncode, result.stderr.strip()
        )
        return None
    return parse_encoder_list(result.stdout)


class EncoderSelector:
    """Choose the H.264 encoder for the host platform."""

    def __init__(self, platform: PlatformInfo | None = None) -> None:
        self.platform = platform or detect_platform()

    def select(self, ffmpeg: str) -> EncoderSelection:
        """Select the encoder for the given ffmpeg executable.

        Args:
            ffmpeg: Path or bare name of the ffmpeg executable to query.

        Returns:
            EncoderSelection; software when nothing better is available.
        """
        if self.platform.is_macos:
            return EncoderSelection(
                encoder=MACOS_ENCODER,
                encoder_type="hardware",
                hw_platform="videotoolbox",
            )

        if not self.platform.is_windows:
            return SOFTWARE_SELECTION

        available = list_encoders(ffmpeg)
        if available is None:
            return SOFTWARE_SELECTION

        for hw_type, encoder in WINDOWS_HARDWARE_ENCODERS.items():
            if encoder in available:
                logger.info("Selected hardware encoder: %s", encoder)
                return EncoderSelection(
                    encoder=encoder, encoder_type="hardware", hw_platform=hw_type
                )

        logger.info("No hardware encoder available, using %s", SOFTWARE_ENCODER)
        return SOFTWARE_SELECTION
