# src/shelter/cli/format_cmds.py

"""
Renders an event stream as JUnit XML or as a human-readable report.
"""

import io
from pathlib import Path
from typing import BinaryIO

import click
import structlog

from shelter.cli.utils import (
    apply_config_logging,
    config_option,
    load_cli_config,
    logging_options,
    setup_command_logging,
)
from shelter.config import ErrexitPolicy
from shelter.exceptions import ShelterError
from shelter.formatters import EXIT_FRAMEWORK_ERROR, write_human, write_structured
from shelter.telemetry import StructLogger

log: StructLogger = structlog.get_logger("cli.format")

POLICY_CHOICES = click.Choice([policy.value for policy in ErrexitPolicy])


@click.command(name="format")
@click.argument("style", type=click.Choice(["junit", "human"]))
@click.argument("input_file", type=click.File("rb"), default="-")
@click.option(
    "--errexit-on",
    type=POLICY_CHOICES,
    default=None,
    help="Exit status policy (defaults to the configured one, env SHELTER_FORMATTER_ERREXIT_ON).",
)
@click.option("--color/--no-color", default=None, help="Force coloured human output on or off.")
@config_option
@logging_options
@click.pass_context
def format_cli(
    ctx: click.Context,
    style: str,
    input_file: BinaryIO,
    errexit_on: str | None,
    color: bool | None,
    config_path: Path | None,
    **kwargs,
):
    """Format the event stream read from INPUT_FILE (default: stdin)."""
    setup_command_logging(ctx, kwargs)
    # Lines end at "\n" only; a bare "\r" inside captured output is kept.
    lines = io.TextIOWrapper(input_file, encoding="utf-8", errors="replace", newline="\n")
    out = click.get_text_stream("stdout")

    try:
        config = load_cli_config(config_path)
        apply_config_logging(ctx, config)
        policy = errexit_on or config.global_config.errexit_on
        log.debug("Formatting event stream", style=style, policy=str(policy), emoji_key="format")
        if style == "junit":
            exit_code = write_structured(lines, out, policy)
        else:
            exit_code = write_human(lines, out, policy, color=color)
    except ShelterError as e:
        out.flush()
        log.error("Formatting aborted by a framework error", error=str(e))
        click.echo(f"Error: {e}", err=True)
        ctx.exit(EXIT_FRAMEWORK_ERROR)

    out.flush()
    ctx.exit(exit_code)


# 🔼⚙️
