"""Commands that run the external tools.

Structured events are written to stdout as JSON lines, one object per
event: ``{"channel": "download-log", "payload": {...}}``. Diagnostics and
the final confirmation go to stderr.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from collections.abc import Coroutine
from pathlib import Path
from typing import Any

import click
from pydantic import ValidationError as StyleValidationError

from dlbridge.cli.exit_codes import ExitCode
from dlbridge.events import JsonLinesEventSink
from dlbridge.exceptions import BridgeError, ValidationError
from dlbridge.executor.service import ToolBridge
from dlbridge.executor.subtitle import SubtitleStyle

logger = logging.getLogger(__name__)

_PASSTHROUGH = {"ignore_unknown_options": True, "allow_interspersed_args": False}


def get_bridge(ctx: click.Context) -> ToolBridge:
    """Return the ToolBridge for this invocation (tests may inject one)."""
    bridge = ctx.obj.get("bridge")
    if bridge is None:
        sink = JsonLinesEventSink(sys.stdout)
        bridge = ToolBridge(ctx.obj["config"], sink=sink)
        ctx.obj["bridge"] = bridge
    return bridge


def run_operation(coro: Coroutine[Any, Any, str]) -> str:
    """Run a bridge coroutine, mapping errors to exit codes."""
    try:
        return asyncio.run(coro)
    except ValidationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(ExitCode.VALIDATION_ERROR)
    except BridgeError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(ExitCode.GENERAL_ERROR)
    except KeyboardInterrupt:
        click.echo("Interrupted.", err=True)
        sys.exit(ExitCode.INTERRUPTED)


@click.command("download", context_settings=_PASSTHROUGH)
@click.option(
    "--name",
    "tool_name",
    default=None,
    help="Name the invocation is logged under (default: downloader name).",
)
@click.option(
    "--cwd",
    type=click.Path(path_type=Path, file_okay=False, exists=True),
    default=None,
    help="Working directory for the downloader.",
)
@click.option(
    "--print-output",
    is_flag=True,
    help="Print the downloader's captured stdout when it finishes.",
)
@click.argument("url")
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def download_command(
    ctx: click.Context,
    tool_name: str | None,
    cwd: Path | None,
    print_output: bool,
    url: str,
    args: tuple[str, ...],
) -> None:
    """Download URL with N_m3u8DL-RE.

    ARGS are passed to the downloader after validation, for example:

        dlbridge download https://example.com/a.m3u8 --save-dir ./out
    """
    bridge = get_bridge(ctx)
    name = tool_name or bridge.config.tools.downloader
    stdout = run_operation(bridge.run_download(name, [url, *args], cwd))
    if print_output:
        click.echo(stdout, nl=False)
    click.echo("Download finished.", err=True)


@click.command("transcode", context_settings=_PASSTHROUGH)
@click.option(
    "--name",
    "tool_name",
    default=None,
    help="Name the invocation is logged under (default: transcoder name).",
)
@click.option(
    "--print-output",
    is_flag=True,
    help="Print ffmpeg's captured stdout when it finishes.",
)
@click.argument("args", nargs=-1, required=True, type=click.UNPROCESSED)
@click.pass_context
def transcode_command(
    ctx: click.Context,
    tool_name: str | None,
    print_output: bool,
    args: tuple[str, ...],
) -> None:
    """Run ffmpeg with validated ARGS (merge, remux, transcode).

    Example:

        dlbridge transcode -y -i video.mp4 -i audio.m4a -c copy out.mp4
    """
    bridge = get_bridge(ctx)
    name = tool_name or bridge.config.tools.transcoder
    stdout = run_operation(bridge.run_transcode(name, list(args)))
    if print_output:
        click.echo(stdout, nl=False)
    click.echo("Transcode finished.", err=True)


@click.command("burn-subtitle")
@click.argument("video", type=click.Path(path_type=Path, dir_okay=False, exists=True))
@click.argument(
    "subtitle", type=click.Path(path_type=Path, dir_okay=False, exists=True)
)
@click.argument("output", type=click.Path(path_type=Path, dir_okay=False))
@click.option("--font-size", type=int, default=None, help="Font size (default 24).")
@click.option("--primary-color", default=None, help="Text color, e.g. &H00FFFFFF.")
@click.option("--outline-width", type=float, default=None, help="Outline width.")
@click.option("--outline-color", default=None, help="Outline color.")
@click.option("--shadow-depth", type=float, default=None, help="Shadow depth.")
@click.option("--background-color", default=None, help="Background color.")
@click.pass_context
def burn_subtitle_command(
    ctx: click.Context,
    video: Path,
    subtitle: Path,
    output: Path,
    **style_options: Any,
) -> None:
    """Burn SUBTITLE into VIDEO, writing OUTPUT.

    Uses a hardware encoder when one is available and retries once with
    libx264 if it fails.
    """
    given = {k: v for k, v in style_options.items() if v is not None}
    try:
        style = SubtitleStyle(**given)
    except StyleValidationError as e:
        click.echo(f"Error: invalid subtitle style: {e}", err=True)
        sys.exit(ExitCode.VALIDATION_ERROR)

    bridge = get_bridge(ctx)
    message = run_operation(bridge.burn_subtitle(video, subtitle, output, style))
    click.echo(message, err=True)
