# src/shelter/cli/run_cmds.py

"""
Commands that run cases, classes, suites and suite collections, streaming
the event protocol to stdout.
"""

import asyncio
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

import attrs
import click
import structlog

from shelter.cli.utils import (
    apply_config_logging,
    config_option,
    load_cli_config,
    logging_options,
    setup_command_logging,
)
from shelter.exceptions import ShelterError
from shelter.formatters import EXIT_FRAMEWORK_ERROR
from shelter.patching import patcher_from_config
from shelter.runtime import RunContext, StreamEmitter, build_context, run_case, run_class, run_suite, run_suites
from shelter.telemetry import StructLogger

log: StructLogger = structlog.get_logger("cli.run")

Runner = Callable[[RunContext], Awaitable[Any]]


def skip_option(f):
    return click.option(
        "-s",
        "--skip",
        multiple=True,
        help="Case name to skip (may be repeated; adds to the configured skip-list).",
    )(f)


def _execute(ctx: click.Context, config_path: Path | None, skip: tuple[str, ...], runner: Runner) -> None:
    """Loads the plan, applies patches and runs ``runner`` against a stdout emitter."""
    try:
        config = load_cli_config(config_path)
        apply_config_logging(ctx, config)
        emitter = StreamEmitter(click.get_text_stream("stdout"))
        with patcher_from_config(config.patches) as patcher:
            run_ctx = build_context(config, emitter, patcher if config.patches else None)
            if skip:
                run_ctx = attrs.evolve(run_ctx, skip=run_ctx.skip + tuple(skip))
            asyncio.run(runner(run_ctx))
    except ShelterError as e:
        log.error("Run aborted by a framework error", error=str(e))
        click.echo(f"Error: {e}", err=True)
        ctx.exit(EXIT_FRAMEWORK_ERROR)
    except KeyboardInterrupt:
        log.warning("Run interrupted by KeyboardInterrupt (CTRL-C).")
        ctx.exit(130)


@click.command(name="run-case")
@click.argument("name")
@config_option
@skip_option
@logging_options
@click.pass_context
def run_case_cli(ctx: click.Context, name: str, config_path: Path | None, skip: tuple[str, ...], **kwargs):
    """Run a single case (a registered name or a shell command)."""
    setup_command_logging(ctx, kwargs)
    _execute(ctx, config_path, skip, lambda run_ctx: run_case(run_ctx, name))


@click.command(name="run-class")
@click.argument("class_name")
@click.argument("prefix")
@config_option
@skip_option
@logging_options
@click.pass_context
def run_class_cli(
    ctx: click.Context, class_name: str, prefix: str, config_path: Path | None, skip: tuple[str, ...], **kwargs
):
    """Run every registered case starting with PREFIX as class CLASS_NAME."""
    setup_command_logging(ctx, kwargs)
    _execute(ctx, config_path, skip, lambda run_ctx: run_class(run_ctx, class_name, prefix))


@click.command(name="run-suite")
@click.argument("name")
@config_option
@skip_option
@logging_options
@click.pass_context
def run_suite_cli(ctx: click.Context, name: str, config_path: Path | None, skip: tuple[str, ...], **kwargs):
    """Run a registered suite with SUITE_* totals."""
    setup_command_logging(ctx, kwargs)
    _execute(ctx, config_path, skip, lambda run_ctx: run_suite(run_ctx, name))


@click.command(name="run-suites")
@click.argument("name")
@click.argument("prefix", default="")
@config_option
@skip_option
@logging_options
@click.pass_context
def run_suites_cli(
    ctx: click.Context, name: str, prefix: str, config_path: Path | None, skip: tuple[str, ...], **kwargs
):
    """Run every registered suite starting with PREFIX as collection NAME."""
    setup_command_logging(ctx, kwargs)
    _execute(ctx, config_path, skip, lambda run_ctx: run_suites(run_ctx, name, prefix))


# 🔼⚙️
