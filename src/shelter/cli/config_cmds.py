# src/shelter/cli/config_cmds.py

from pathlib import Path

import click
import structlog
from rich.pretty import pretty_repr

from shelter.cli.utils import (
    apply_config_logging,
    config_option,
    load_cli_config,
    logging_options,
    setup_command_logging,
)
from shelter.exceptions import ConfigurationError
from shelter.telemetry import StructLogger

log: StructLogger = structlog.get_logger("cli.config")


@click.group(name="config")
def config_cli():
    """Commands for inspecting and validating configuration."""
    pass


@config_cli.command(name="show")
@config_option
@logging_options
@click.pass_context
def show_config(ctx: click.Context, config_path: Path | None, **kwargs):
    """Load, validate, and display the configuration."""
    setup_command_logging(ctx, kwargs)
    log.info("Executing 'config show' command", config_path=str(config_path))

    try:
        config = load_cli_config(config_path)
    except ConfigurationError as e:
        log.error("Failed to load or validate configuration", error=str(e))
        click.echo(f"Error: Configuration problem in '{config_path}':\n{e}", err=True)
        ctx.exit(1)

    apply_config_logging(ctx, config)
    click.echo(pretty_repr(config, expand_all=True))

    # Suite steps naming unknown cases still run, as ad hoc shell commands.
    unknown = sorted(
        {
            step.case
            for suite in config.suites.values()
            for step in suite.steps
            if hasattr(step, "case") and step.case not in config.cases
        }
    )
    if unknown:
        log.warning("Suite steps reference unregistered cases", cases=unknown)


# 🔼⚙️
