"""Tests for executor/subtitle.py - subtitle burning and encoder fallback."""

from unittest.mock import MagicMock

import pytest
from pydantic import ValidationError

from dlbridge.config.models import SubtitleConfig
from dlbridge.events import (
    BURN_ENCODER_SELECTED,
    BURN_FAILURE,
    BURN_FALLBACK,
    BURN_PROGRESS_CHANNEL,
    BURN_STATUS_CHANNEL,
    BURN_SUCCESS,
)
from dlbridge.exceptions import EncoderFallbackExhaustedError, ExitCodeError, SpawnError
from dlbridge.executor.runner import ProcessResult
from dlbridge.executor.subtitle import (
    SubtitleBurner,
    SubtitleStyle,
    build_burn_args,
    build_subtitle_filter,
    escape_filter_path,
)
from dlbridge.logging.tool_log import NullToolLog
from dlbridge.tools.encoders import SOFTWARE_SELECTION, EncoderSelection

NVENC = EncoderSelection(encoder="h264_nvenc", encoder_type="hardware", hw_platform="nvenc")

OK = ProcessResult(stdout="", stderr="", exit_code=0)
FAILED = ProcessResult(stdout="", stderr="Cannot load nvcuda.dll", exit_code=1)
FAILED_SW = ProcessResult(stdout="", stderr="Invalid data found", exit_code=1)


class TestSubtitleStyle:
    """Tests for SubtitleStyle model."""

    def test_defaults(self) -> None:
        style = SubtitleStyle()
        assert style.font_size == 24
        assert style.primary_color == "&H00FFFFFF"
        assert style.background_color == "&H80000000"

    def test_force_style_string(self) -> None:
        assert SubtitleStyle().to_force_style() == (
            "FontSize=24,PrimaryColour=&H00FFFFFF,OutlineColour=&H00000000,"
            "BackColour=&H80000000,Outline=2,Shadow=1"
        )

    def test_fractional_outline(self) -> None:
        assert "Outline=1.5" in SubtitleStyle(outline_width=1.5).to_force_style()

    def test_color_normalized(self) -> None:
        assert SubtitleStyle(primary_color="&h00ffff00").primary_color == "&H00FFFF00"

    def test_invalid_color_rejected(self) -> None:
        with pytest.raises(ValidationError):
            SubtitleStyle(primary_color="red")

    def test_invalid_font_size_rejected(self) -> None:
        with pytest.raises(ValidationError):
            SubtitleStyle(font_size=0)

    def test_unknown_option_rejected(self) -> None:
        with pytest.raises(ValidationError):
            SubtitleStyle(font_name="Arial")

    def test_frozen(self) -> None:
        style = SubtitleStyle()
        with pytest.raises(ValidationError):
            style.font_size = 30


class TestFilterBuilding:
    """Tests for filter and argument construction."""

    def test_escape_windows_path(self) -> None:
        # Graph level leaves "C\:/subs/ep1.srt", option level leaves the path
        assert escape_filter_path("C:\\subs\\ep1.srt") == r"C\\:/subs/ep1.srt"

    def test_escape_quotes(self) -> None:
        assert escape_filter_path("it's.srt") == r"it\\\'s.srt"

    def test_escape_graph_separators(self) -> None:
        assert escape_filter_path("/m/a,b [1];c.srt") == r"/m/a\,b \[1\]\;c.srt"

    def test_windows_subtitle_filter(self) -> None:
        vf = build_subtitle_filter("D:\\media\\ep1.srt", SubtitleStyle())
        assert vf.startswith(r"subtitles=D\\:/media/ep1.srt:force_style='")

    def test_subtitle_filter(self) -> None:
        vf = build_subtitle_filter("/tmp/a.srt", SubtitleStyle(font_size=30))
        assert vf.startswith("subtitles=/tmp/a.srt:force_style='FontSize=30,")

    def test_burn_args(self) -> None:
        args = build_burn_args(
            "in.mp4", "a.srt", "out.mp4", SubtitleStyle(), ["-c:v", "libx264"]
        )
        assert args[:4] == ["-hide_banner", "-y", "-i", "in.mp4"]
        assert args[4] == "-vf"
        assert args[6:8] == ["-c:v", "libx264"]
        assert args[-3:] == ["-c:a", "copy", "out.mp4"]


class TestSubtitleBurner:
    """Tests for SubtitleBurner.burn."""

    @pytest.fixture
    def runner(self) -> MagicMock:
        return MagicMock()

    @pytest.fixture
    def selector(self) -> MagicMock:
        selector = MagicMock()
        selector.select.return_value = NVENC
        return selector

    @pytest.fixture
    def burner(self, runner, selector, event_sink) -> SubtitleBurner:
        return SubtitleBurner(runner, selector, event_sink, NullToolLog())

    def statuses(self, event_sink) -> list[str]:
        return [p["status"] for p in event_sink.events(BURN_STATUS_CHANNEL)]

    def test_hardware_success(self, burner, runner, event_sink) -> None:
        runner.run.return_value = OK
        message = burner.burn("ffmpeg", "in.mp4", "a.srt", "out.mp4")

        assert "h264_nvenc" in message
        assert "fallback" not in message
        assert runner.run.call_count == 1
        args = runner.run.call_args[0][1]
        assert args[args.index("-c:v") + 1] == "h264_nvenc"
        assert self.statuses(event_sink) == [BURN_ENCODER_SELECTED, BURN_SUCCESS]

    def test_hardware_failure_retries_once_with_software(
        self, burner, runner, event_sink
    ) -> None:
        runner.run.side_effect = [FAILED, OK]
        message = burner.burn("ffmpeg", "in.mp4", "a.srt", "out.mp4")

        assert "fallback" in message
        assert runner.run.call_count == 2
        retry_args = runner.run.call_args_list[1][0][1]
        assert retry_args[retry_args.index("-c:v") : retry_args.index("-c:v") + 6] == [
            "-c:v",
            "libx264",
            "-preset",
            "medium",
            "-crf",
            "23",
        ]
        assert self.statuses(event_sink) == [
            BURN_ENCODER_SELECTED,
            BURN_FALLBACK,
            BURN_SUCCESS,
        ]

    def test_both_attempts_fail(self, burner, runner, event_sink) -> None:
        runner.run.side_effect = [FAILED, FAILED_SW]
        with pytest.raises(EncoderFallbackExhaustedError) as exc_info:
            burner.burn("ffmpeg", "in.mp4", "a.srt", "out.mp4")

        error = exc_info.value
        assert runner.run.call_count == 2
        assert error.hardware_encoder == "h264_nvenc"
        assert error.software_encoder == "libx264"
        assert "nvcuda.dll" in str(error)
        assert "Invalid data found" in str(error)
        assert self.statuses(event_sink)[-1] == BURN_FAILURE

    def test_software_failure_is_terminal(self, burner, runner, selector, event_sink) -> None:
        selector.select.return_value = SOFTWARE_SELECTION
        runner.run.return_value = FAILED_SW
        with pytest.raises(ExitCodeError):
            burner.burn("ffmpeg", "in.mp4", "a.srt", "out.mp4")

        assert runner.run.call_count == 1
        assert self.statuses(event_sink) == [BURN_ENCODER_SELECTED, BURN_FAILURE]

    def test_spawn_error_not_retried(self, burner, runner) -> None:
        runner.run.side_effect = SpawnError("ffmpeg", FileNotFoundError("ffmpeg"))
        with pytest.raises(SpawnError):
            burner.burn("ffmpeg", "in.mp4", "a.srt", "out.mp4")
        assert runner.run.call_count == 1

    def test_spawn_error_reports_failure(self, burner, runner, event_sink) -> None:
        runner.run.side_effect = SpawnError(
            "/nonexistent/ffmpeg", FileNotFoundError("/nonexistent/ffmpeg")
        )
        with pytest.raises(SpawnError):
            burner.burn("/nonexistent/ffmpeg", "in.mp4", "a.srt", "out.mp4")

        payloads = event_sink.events(BURN_STATUS_CHANNEL)
        assert [p["status"] for p in payloads] == [BURN_ENCODER_SELECTED, BURN_FAILURE]
        assert payloads[-1]["encoder"] == "h264_nvenc"
        assert "Failed to start /nonexistent/ffmpeg" in payloads[-1]["message"]

    def test_spawn_error_on_retry_reports_failure(
        self, burner, runner, event_sink
    ) -> None:
        runner.run.side_effect = [FAILED, SpawnError("ffmpeg", PermissionError("denied"))]
        with pytest.raises(SpawnError):
            burner.burn("ffmpeg", "in.mp4", "a.srt", "out.mp4")

        assert self.statuses(event_sink) == [
            BURN_ENCODER_SELECTED,
            BURN_FALLBACK,
            BURN_FAILURE,
        ]

    def test_retry_ignores_configured_software_settings(
        self, runner, selector, event_sink
    ) -> None:
        burner = SubtitleBurner(
            runner,
            selector,
            event_sink,
            NullToolLog(),
            SubtitleConfig(software_preset="fast", software_crf=30),
        )
        runner.run.side_effect = [FAILED, OK]
        burner.burn("ffmpeg", "in.mp4", "a.srt", "out.mp4")

        retry_args = runner.run.call_args_list[1][0][1]
        assert retry_args[retry_args.index("-preset") + 1] == "medium"
        assert retry_args[retry_args.index("-crf") + 1] == "23"

    def test_hardware_acceleration_disabled(self, runner, selector, event_sink) -> None:
        burner = SubtitleBurner(
            runner,
            selector,
            event_sink,
            NullToolLog(),
            SubtitleConfig(hardware_acceleration=False, software_crf=20),
        )
        runner.run.return_value = OK
        burner.burn("ffmpeg", "in.mp4", "a.srt", "out.mp4")

        selector.select.assert_not_called()
        args = runner.run.call_args[0][1]
        assert args[args.index("-crf") + 1] == "20"

    def test_progress_tokens_forwarded(self, burner, runner, event_sink) -> None:
        def fake_run(executable, args, on_stderr_line=None, **kwargs):
            on_stderr_line("frame=  10 fps=0.0 time=00:00:01.00 speed=2x")
            on_stderr_line("Stream mapping:")
            on_stderr_line("frame=  20 fps=20 time=00:00:02.00 speed=2x")
            return OK

        runner.run.side_effect = fake_run
        burner.burn("ffmpeg", "in.mp4", "a.srt", "out.mp4")

        progress = event_sink.events(BURN_PROGRESS_CHANNEL)
        assert progress == [
            {"progress": "time=00:00:01.00"},
            {"progress": "time=00:00:02.00"},
        ]
