# src/shelter/cli/main.py

"""
Main CLI entry point for shelter using Click.
Handles global options like logging level.
"""

import click
import structlog

from shelter.cli.assert_cmds import assert_cli
from shelter.cli.config_cmds import config_cli
from shelter.cli.format_cmds import format_cli
from shelter.cli.run_cmds import run_case_cli, run_class_cli, run_suite_cli, run_suites_cli
from shelter.cli.utils import logging_options, setup_logging_from_context
from shelter.cli.version_cmds import version_check_cli
from shelter.telemetry import StructLogger
from shelter.versions import __version__

log: StructLogger = structlog.get_logger("cli.main")


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(__version__, "-V", "--version", package_name="shelter")
@logging_options
@click.pass_context
def cli(
    ctx: click.Context,
    log_level: str | None,
    log_file: str | None,
    json_logs: bool | None,
):
    """
    Shelter: run shell test cases and report them as JUnit XML or text.

    The run-* commands write the event stream to stdout; pipe it into
    `shelter format junit` or `shelter format human`.
    Configuration precedence: CLI options > Environment Variables > Config File > Defaults.
    """
    ctx.ensure_object(dict)

    ctx.obj["LOG_LEVEL"] = log_level
    ctx.obj["LOG_FILE"] = log_file
    ctx.obj["JSON_LOGS"] = json_logs if json_logs is not None else False

    setup_logging_from_context(ctx, default_log_level="WARNING")
    log.debug(
        "Main CLI group initialized",
        log_level=log_level,
        log_file=log_file,
        json_logs=json_logs,
    )


cli.add_command(run_case_cli)
cli.add_command(run_class_cli)
cli.add_command(run_suite_cli)
cli.add_command(run_suites_cli)
cli.add_command(format_cli)
cli.add_command(assert_cli)
cli.add_command(config_cli)
cli.add_command(version_check_cli)

if __name__ == "__main__":
    cli()

# 🖥️⚙️
