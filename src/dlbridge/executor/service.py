"""Caller-facing operations for running the downloader and the transcoder.

ToolBridge ties the pieces together: it validates arguments, resolves the
executable, runs the process on a worker thread, turns output into events
and log lines, and classifies the exit status. Every public operation is a
coroutine so callers on an event loop are never blocked.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from pathlib import Path

from dlbridge.config.loader import get_tool_log_dir
from dlbridge.config.models import BridgeConfig
from dlbridge.events import EventSink, NullEventSink, forward_event
from dlbridge.exceptions import BridgeError, ToolNotFoundError
from dlbridge.executor.exit_status import classify_exit
from dlbridge.executor.runner import ProcessResult, ProcessRunner
from dlbridge.executor.subtitle import SubtitleBurner, SubtitleStyle
from dlbridge.logging.context import invocation_context
from dlbridge.logging.tool_log import FileToolLog, NullToolLog, ToolLog
from dlbridge.tools.arguments import (
    DOWNLOADER_ALLOWED_ARGUMENTS,
    TRANSCODER_ALLOWED_ARGUMENTS,
    mask_arguments,
    validate_arguments,
)
from dlbridge.tools.downloader_log import ProgressTracker
from dlbridge.tools.encoders import EncoderSelection, EncoderSelector
from dlbridge.tools.platform import PlatformInfo, detect_platform
from dlbridge.tools.resolver import ToolPathResolver

logger = logging.getLogger(__name__)


def build_tool_log(config: BridgeConfig) -> ToolLog:
    """Create the persistent tool log described by config."""
    if not config.tool_log.enabled:
        return NullToolLog()
    return FileToolLog(get_tool_log_dir(config), config.tool_log.file_prefix)


class ToolBridge:
    """Run N_m3u8DL-RE and ffmpeg on behalf of a client.

    Example:
        bridge = ToolBridge(config, sink=QueueEventSink())
        stdout = await bridge.run_download("N_m3u8DL-RE", [url, "--save-dir", d])
    """

    def __init__(
        self,
        config: BridgeConfig | None = None,
        sink: EventSink | None = None,
        tool_log: ToolLog | None = None,
        *,
        platform: PlatformInfo | None = None,
        resolver: ToolPathResolver | None = None,
        runner: ProcessRunner | None = None,
        encoder_selector: EncoderSelector | None = None,
    ) -> None:
        """Initialize the bridge.

        Args:
            config: Configuration (defaults when None).
            sink: Receiver of structured events (discarded when None).
            tool_log: Persistent log (built from config when None).
            platform: Host platform (detected once when None).
            resolver: Tool path resolver (built from config when None).
            runner: Process runner.
            encoder_selector: Encoder selector for subtitle burning.
        """
        self.config = config or BridgeConfig()
        self.sink = sink or NullEventSink()
        self.tool_log = tool_log if tool_log is not None else build_tool_log(self.config)
        self.platform = platform or detect_platform()
        self.resolver = resolver or ToolPathResolver(self.config.tools, self.platform)
        self.runner = runner or ProcessRunner()
        self.encoder_selector = encoder_selector or EncoderSelector(self.platform)

    # Blocking implementations -------------------------------------------------

    def download(
        self,
        tool_invocation_name: str,
        args: Sequence[str],
        working_directory: Path | None = None,
    ) -> str:
        """Blocking body of run_download()."""
        with invocation_context(tool_invocation_name):
            validate_arguments(args, DOWNLOADER_ALLOWED_ARGUMENTS, self.platform)

            tool = self.config.tools.downloader
            path = self.resolver.resolve(tool)
            if not path.exists():
                raise ToolNotFoundError(tool, str(path))

            logger.info("Running %s %s", path, " ".join(mask_arguments(args)))
            tracker = ProgressTracker()

            def on_line(line: str) -> None:
                event = tracker.offer(line)
                if event is not None:
                    forward_event(self.sink, self.tool_log, tool_invocation_name, event)

            result = self.runner.run(
                path,
                args,
                cwd=working_directory,
                on_stdout_line=on_line,
                on_stderr_line=on_line,
            )
            return self._finish(tool_invocation_name, result)

    def transcode(self, tool_invocation_name: str, args: Sequence[str]) -> str:
        """Blocking body of run_transcode()."""
        with invocation_context(tool_invocation_name):
            validate_arguments(args, TRANSCODER_ALLOWED_ARGUMENTS, self.platform)

            executable = self.resolver.resolve_or_bare(self.config.tools.transcoder)
            logger.info("Running %s %s", executable, " ".join(args))

            def on_line(line: str) -> None:
                self.tool_log.write("INFO", line, tool_invocation_name)

            result = self.runner.run(
                executable, args, on_stdout_line=on_line, on_stderr_line=on_line
            )
            return self._finish(tool_invocation_name, result)

    def burn(
        self,
        video_path: str | Path,
        subtitle_path: str | Path,
        output_path: str | Path,
        style: SubtitleStyle | None = None,
    ) -> str:
        """Blocking body of burn_subtitle()."""
        tool = self.config.tools.transcoder
        with invocation_context(tool):
            executable = self.resolver.resolve_or_bare(tool)
            burner = SubtitleBurner(
                self.runner,
                self.encoder_selector,
                self.sink,
                self.tool_log,
                self.config.subtitle,
                tool_name=tool,
            )
            return burner.burn(executable, video_path, subtitle_path, output_path, style)

    def select_encoder(self) -> EncoderSelection:
        """Encoder a subtitle burn would start with."""
        executable = self.resolver.resolve_or_bare(self.config.tools.transcoder)
        return self.encoder_selector.select(executable)

    def _finish(self, tool_name: str, result: ProcessResult) -> str:
        try:
            stdout = classify_exit(result)
        except BridgeError as e:
            logger.error("%s failed: %s", tool_name, str(e).partition("\n")[0])
            self.tool_log.write("ERROR", str(e).partition("\n")[0], tool_name)
            raise
        logger.info("%s finished", tool_name, extra={"exit_code": result.exit_code})
        return stdout

    # Async operations ---------------------------------------------------------

    async def run_download(
        self,
        tool_invocation_name: str,
        args: Sequence[str],
        working_directory: Path | None = None,
    ) -> str:
        """Run the downloader and stream its progress as events.

        Returns:
            Captured stdout.

        Raises:
            ValidationError: Arguments rejected; nothing was spawned.
            ToolNotFoundError: The downloader is not installed.
            ProcessError: The process could not be run or drained.
            ExitCodeError: The downloader exited with a nonzero status.
            AmbiguousTerminationError: Killed by a signal before finishing.
        """
        return await asyncio.to_thread(
            self.download, tool_invocation_name, list(args), working_directory
        )

    async def run_transcode(self, tool_invocation_name: str, args: Sequence[str]) -> str:
        """Run ffmpeg, persisting every output line to the tool log.

        Raises the same errors as run_download() except ToolNotFoundError;
        a missing local ffmpeg falls back to PATH.
        """
        return await asyncio.to_thread(self.transcode, tool_invocation_name, list(args))

    async def burn_subtitle(
        self,
        video_path: str | Path,
        subtitle_path: str | Path,
        output_path: str | Path,
        style: SubtitleStyle | None = None,
    ) -> str:
        """Burn subtitles into a video, falling back to software encoding.

        Returns:
            Confirmation message.
        """
        return await asyncio.to_thread(
            self.burn, video_path, subtitle_path, output_path, style
        )

    async def resolve_tool_path(self, name: str) -> str:
        """Resolved path of a tool, as a string."""
        return str(await asyncio.to_thread(self.resolver.resolve, name))

    async def check_tool_available(self, name: str) -> bool:
        """True if the tool exists locally or on PATH."""
        return await asyncio.to_thread(self.resolver.check_available, name)
