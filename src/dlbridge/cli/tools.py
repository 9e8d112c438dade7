"""Commands for inspecting the external tools."""

from __future__ import annotations

import asyncio
import json
from dataclasses import asdict

import click

from dlbridge.cli.exit_codes import ExitCode
from dlbridge.cli.run import get_bridge


@click.group("tools")
def tools_group() -> None:
    """Inspect N_m3u8DL-RE and ffmpeg installations."""


@tools_group.command("path")
@click.argument("name")
@click.pass_context
def path_command(ctx: click.Context, name: str) -> None:
    """Print the resolved path of tool NAME."""
    bridge = get_bridge(ctx)
    click.echo(asyncio.run(bridge.resolve_tool_path(name)))


@tools_group.command("check")
@click.argument("name")
@click.pass_context
def check_command(ctx: click.Context, name: str) -> None:
    """Check whether tool NAME is available (exit 1 if not)."""
    bridge = get_bridge(ctx)
    if asyncio.run(bridge.check_tool_available(name)):
        click.echo(f"{name}: available")
        return
    click.echo(f"{name}: not found", err=True)
    ctx.exit(ExitCode.GENERAL_ERROR)


@tools_group.command("encoder")
@click.option("--json", "json_output", is_flag=True, help="Output as JSON.")
@click.pass_context
def encoder_command(ctx: click.Context, json_output: bool) -> None:
    """Show the encoder a subtitle burn would start with."""
    bridge = get_bridge(ctx)
    selection = bridge.select_encoder()
    if json_output:
        click.echo(json.dumps(asdict(selection)))
        return
    detail = f", {selection.hw_platform}" if selection.hw_platform else ""
    click.echo(f"{selection.encoder} ({selection.encoder_type}{detail})")
