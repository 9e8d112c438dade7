"""CLI module for dlbridge."""

import logging
from pathlib import Path

import click

from dlbridge import __version__

_logging_configured: bool = False

logger = logging.getLogger(__name__)


def _configure_logging(
    config,
    log_level: str | None,
    log_file: Path | None,
    log_json: bool,
) -> None:
    """Configure logging from CLI options layered over config."""
    global _logging_configured
    if _logging_configured:
        return

    from dlbridge.config.logging_factory import build_logging_config
    from dlbridge.logging import configure_logging

    configure_logging(
        build_logging_config(
            config.logging,
            level=log_level,
            file=log_file,
            format="json" if log_json else None,
        )
    )
    _logging_configured = True


@click.group()
@click.version_option(version=__version__, prog_name="dlbridge")
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="Config file (default: ~/.dlbridge/config.toml).",
)
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    default=None,
    help="Override log level (default: info).",
)
@click.option(
    "--log-file",
    type=click.Path(path_type=Path),
    default=None,
    help="Override log file path.",
)
@click.option(
    "--log-json",
    is_flag=True,
    default=False,
    help="Use JSON log format.",
)
@click.pass_context
def main(
    ctx: click.Context,
    config_path: Path | None,
    log_level: str | None,
    log_file: Path | None,
    log_json: bool,
) -> None:
    """dlbridge - Run N_m3u8DL-RE and ffmpeg with validated arguments and
    structured progress events."""
    from dlbridge.config import TomlParseError, get_config

    ctx.ensure_object(dict)

    # Tests may inject a ready-made config
    if "config" not in ctx.obj:
        try:
            ctx.obj["config"] = get_config(config_path=config_path, strict=True)
        except (TomlParseError, ValueError) as e:
            raise click.ClickException(f"Invalid configuration: {e}") from e

    _configure_logging(ctx.obj["config"], log_level, log_file, log_json)
    logger.debug("dlbridge %s starting", __version__)


# Defer import to avoid circular dependency
def _register_commands():
    from dlbridge.cli.run import burn_subtitle_command, download_command, transcode_command
    from dlbridge.cli.tools import tools_group

    main.add_command(download_command)
    main.add_command(transcode_command)
    main.add_command(burn_subtitle_command)
    main.add_command(tools_group)


_register_commands()
