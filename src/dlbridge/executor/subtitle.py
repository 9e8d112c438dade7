"""Burning subtitles into a video with hardware-to-software fallback.

The burn runs ffmpeg with the ``subtitles`` filter. When the selected
encoder is a hardware one and the run fails, it is retried exactly once
with libx264 and a conservative argument set. A failing software run is
final.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

from dlbridge.config.models import SubtitleConfig
from dlbridge.events import (
    BURN_ENCODER_SELECTED,
    BURN_FAILURE,
    BURN_FALLBACK,
    BURN_PROGRESS_CHANNEL,
    BURN_STATUS_CHANNEL,
    BURN_SUCCESS,
    EventSink,
    emit_safely,
)
from dlbridge.exceptions import (
    AmbiguousTerminationError,
    BridgeError,
    EncoderFallbackExhaustedError,
    ExitCodeError,
)
from dlbridge.executor.exit_status import classify_exit
from dlbridge.executor.runner import ProcessRunner
from dlbridge.logging.tool_log import ToolLog
from dlbridge.tools.encoders import (
    SOFTWARE_ENCODER,
    SOFTWARE_SELECTION,
    EncoderSelection,
    EncoderSelector,
    software_encoder_args,
)
from dlbridge.tools.ffmpeg_progress import extract_time_token

logger = logging.getLogger(__name__)

_ASS_COLOR = re.compile(r"^&H[0-9A-F]{6,8}$", re.IGNORECASE)

# Special characters of the filter option parser and of the filtergraph parser
_OPTION_SPECIAL = re.compile(r"([\\:'])")
_GRAPH_SPECIAL = re.compile(r"([\\'\[\],;])")


class SubtitleStyle(BaseModel):
    """Rendering style for burned subtitles.

    Colors use the ASS ``&HAABBGGRR`` notation.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    font_size: int = Field(default=24, gt=0, le=200)
    primary_color: str = "&H00FFFFFF"
    outline_width: float = Field(default=2, ge=0)
    outline_color: str = "&H00000000"
    shadow_depth: float = Field(default=1, ge=0)
    background_color: str = "&H80000000"

    @field_validator("primary_color", "outline_color", "background_color")
    @classmethod
    def validate_color(cls, v: str) -> str:
        """Validate ASS color format."""
        if not _ASS_COLOR.match(v):
            raise ValueError(
                f"Invalid color '{v}'. Must be in &HBBGGRR or &HAABBGGRR format."
            )
        return "&H" + v[2:].upper()

    def to_force_style(self) -> str:
        """Render as the value of the subtitles filter force_style option."""
        return ",".join(
            [
                f"FontSize={self.font_size}",
                f"PrimaryColour={self.primary_color}",
                f"OutlineColour={self.outline_color}",
                f"BackColour={self.background_color}",
                f"Outline={_format_number(self.outline_width)}",
                f"Shadow={_format_number(self.shadow_depth)}",
            ]
        )


def _format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def escape_filter_path(path: str | Path) -> str:
    """Escape a file path for use as a filter option inside ``-vf``.

    The value is unescaped twice by ffmpeg, once by the filtergraph parser
    and once by the filter option parser, so it is escaped for the option
    level first and the graph level second. ``C:\\subs\\a.srt`` becomes
    ``C\\\\:/subs/a.srt``.
    """
    text = str(path).replace("\\", "/")
    text = _OPTION_SPECIAL.sub(r"\\\1", text)
    return _GRAPH_SPECIAL.sub(r"\\\1", text)


def build_subtitle_filter(subtitle_path: str | Path, style: SubtitleStyle) -> str:
    """Build the -vf value that renders subtitle_path with style."""
    return (
        f"subtitles={escape_filter_path(subtitle_path)}"
        f":force_style='{style.to_force_style()}'"
    )


def build_burn_args(
    video_path: str | Path,
    subtitle_path: str | Path,
    output_path: str | Path,
    style: SubtitleStyle,
    encoder_args: list[str],
) -> list[str]:
    """Build the full ffmpeg argument list for one burn attempt."""
    return [
        "-hide_banner",
        "-y",
        "-i",
        str(video_path),
        "-vf",
        build_subtitle_filter(subtitle_path, style),
        *encoder_args,
        "-c:a",
        "copy",
        str(output_path),
    ]


class SubtitleBurner:
    """Run subtitle burns and report status and progress to a sink."""

    def __init__(
        self,
        runner: ProcessRunner,
        selector: EncoderSelector,
        sink: EventSink,
        tool_log: ToolLog,
        config: SubtitleConfig | None = None,
        tool_name: str = "ffmpeg",
    ) -> None:
        self.runner = runner
        self.selector = selector
        self.sink = sink
        self.tool_log = tool_log
        self.config = config or SubtitleConfig()
        self.tool_name = tool_name

    def select_encoder(self, ffmpeg: str) -> EncoderSelection:
        if not self.config.hardware_acceleration:
            return SOFTWARE_SELECTION
        return self.selector.select(ffmpeg)

    def encoder_args(self, selection: EncoderSelection) -> list[str]:
        if selection.is_hardware:
            return ["-c:v", selection.encoder]
        return software_encoder_args(
            self.config.software_preset, self.config.software_crf
        )

    def _status(self, status: str, encoder: str, message: str) -> None:
        level = "ERROR" if status == BURN_FAILURE else "INFO"
        emit_safely(
            self.sink,
            BURN_STATUS_CHANNEL,
            {"status": status, "encoder": encoder, "message": message},
        )
        self.tool_log.write(level, message.partition("\n")[0], self.tool_name)

    def _on_stderr(self, line: str) -> None:
        token = extract_time_token(line)
        if token is not None:
            emit_safely(self.sink, BURN_PROGRESS_CHANNEL, {"progress": token})

    def _attempt(self, ffmpeg: str, args: list[str]) -> str:
        result = self.runner.run(ffmpeg, args, on_stderr_line=self._on_stderr)
        return classify_exit(result)

    def burn(
        self,
        ffmpeg: str,
        video_path: str | Path,
        subtitle_path: str | Path,
        output_path: str | Path,
        style: SubtitleStyle | None = None,
    ) -> str:
        """Burn subtitle_path into video_path, writing output_path.

        Returns:
            Confirmation message; mentions the fallback when one was used.

        Raises:
            ExitCodeError: The software encoder failed on the first attempt.
            EncoderFallbackExhaustedError: Hardware and software both failed.
            ProcessError: The process could not be run at all.
        """
        style = style or SubtitleStyle()
        selection = self.select_encoder(ffmpeg)
        self._status(
            BURN_ENCODER_SELECTED,
            selection.encoder,
            f"Using {selection.encoder_type} encoder {selection.encoder}",
        )

        args = build_burn_args(
            video_path, subtitle_path, output_path, style, self.encoder_args(selection)
        )
        try:
            self._attempt(ffmpeg, args)
        except (ExitCodeError, AmbiguousTerminationError) as hw_error:
            if not selection.is_hardware:
                self._status(BURN_FAILURE, selection.encoder, str(hw_error))
                raise
            return self._fallback(
                ffmpeg, selection, hw_error, video_path, subtitle_path, output_path, style
            )
        except BridgeError as e:
            self._status(BURN_FAILURE, selection.encoder, str(e))
            raise

        message = f"Subtitle burned into {output_path} using {selection.encoder}"
        self._status(BURN_SUCCESS, selection.encoder, message)
        return message

    def _fallback(
        self,
        ffmpeg: str,
        selection: EncoderSelection,
        hw_error: ExitCodeError | AmbiguousTerminationError,
        video_path: str | Path,
        subtitle_path: str | Path,
        output_path: str | Path,
        style: SubtitleStyle,
    ) -> str:
        logger.warning(
            "Hardware encoder %s failed, retrying with %s",
            selection.encoder,
            SOFTWARE_ENCODER,
        )
        self._status(
            BURN_FALLBACK,
            SOFTWARE_ENCODER,
            f"Hardware encoder {selection.encoder} failed, "
            f"retrying with {SOFTWARE_ENCODER}",
        )

        args = build_burn_args(
            video_path,
            subtitle_path,
            output_path,
            style,
            software_encoder_args(),
        )
        try:
            self._attempt(ffmpeg, args)
        except (ExitCodeError, AmbiguousTerminationError) as sw_error:
            error = EncoderFallbackExhaustedError(
                selection.encoder, SOFTWARE_ENCODER, hw_error, sw_error
            )
            self._status(BURN_FAILURE, SOFTWARE_ENCODER, str(error))
            raise error from sw_error
        except BridgeError as e:
            self._status(BURN_FAILURE, SOFTWARE_ENCODER, str(e))
            raise

        message = (
            f"Subtitle burned into {output_path} using {SOFTWARE_ENCODER} "
            f"(fallback from {selection.encoder})"
        )
        self._status(BURN_SUCCESS, SOFTWARE_ENCODER, message)
        return message
