# src/shelter/cli/utils.py

import logging
from pathlib import Path
from typing import Any

import click
import structlog

from shelter.config import ShelterConfig, default_config, load_config
from shelter.telemetry.logger import setup_logging as core_setup_logging

log = structlog.get_logger("cli.utils")

LOG_LEVEL_CHOICES = click.Choice(list(logging._nameToLevel.keys()), case_sensitive=False)
DEFAULT_CONFIG_PATH = Path("shelter.toml")


def logging_options(f):
    """Decorator to add logging options to any command."""
    f = click.option(
        "-l",
        "--log-level",
        type=LOG_LEVEL_CHOICES,
        default=None,
        envvar="SHELTER_LOG_LEVEL",
        help="Set the logging level (overrides config file).",
    )(f)
    f = click.option(
        "--log-file",
        type=click.Path(dir_okay=False, writable=True, resolve_path=True),
        default=None,
        envvar="SHELTER_LOG_FILE",
        help="Path to write logs to a file (JSON format).",
    )(f)
    f = click.option(
        "--json-logs",
        is_flag=True,
        default=None,
        envvar="SHELTER_JSON_LOGS",
        help="Output console logs as JSON.",
    )(f)
    return f


def config_option(f):
    """Decorator adding the test plan / configuration file option."""
    return click.option(
        "-c",
        "--config-path",
        type=click.Path(exists=True, file_okay=True, dir_okay=False, readable=True, path_type=Path),
        default=None,
        envvar="SHELTER_CONF",
        show_envvar=True,
        help=f"Path to the shelter configuration file (defaults to ./{DEFAULT_CONFIG_PATH} when present).",
    )(f)


def load_cli_config(config_path: Path | None) -> ShelterConfig:
    """Loads the given file, ./shelter.toml if present, or defaults plus environment overrides."""
    if config_path is None and DEFAULT_CONFIG_PATH.is_file():
        config_path = DEFAULT_CONFIG_PATH
    if config_path is None:
        log.debug("No configuration file, using defaults")
        return default_config()
    return load_config(config_path)


def setup_logging_from_context(
    ctx: click.Context,
    local_log_level: str | None = None,
    local_log_file: str | None = None,
    local_json_logs: bool | None = None,
    default_log_level: str = "WARNING",
) -> None:
    """
    Setup logging using context values, allowing local overrides.
    """
    obj: dict[str, Any] = ctx.obj or {}
    log_level_str = local_log_level or obj.get("LOG_LEVEL") or default_log_level
    log_file_path = local_log_file or obj.get("LOG_FILE")
    use_json_logs = local_json_logs if local_json_logs is not None else obj.get("JSON_LOGS", False)

    numeric_level = logging.getLevelName(log_level_str.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.WARNING
        log_level_str = "WARNING"

    core_setup_logging(
        level=numeric_level,
        json_logs=use_json_logs,
        log_file=log_file_path,
    )

    log.debug(
        "CLI logging initialized via utils",
        level=log_level_str,
        file=log_file_path or "console",
        json=use_json_logs,
    )


def setup_command_logging(ctx: click.Context, kwargs: dict[str, Any]) -> None:
    setup_logging_from_context(
        ctx,
        local_log_level=kwargs.get("log_level"),
        local_log_file=kwargs.get("log_file"),
        local_json_logs=kwargs.get("json_logs"),
    )


def apply_config_logging(ctx: click.Context, config: ShelterConfig) -> None:
    """Re-applies logging at the configured log_level unless a CLI option or SHELTER_LOG_LEVEL chose one."""
    obj: dict[str, Any] = ctx.obj or {}
    if ctx.params.get("log_level") or obj.get("LOG_LEVEL"):
        return
    setup_logging_from_context(
        ctx,
        local_log_level=config.global_config.log_level,
        local_log_file=ctx.params.get("log_file"),
        local_json_logs=ctx.params.get("json_logs"),
    )


# ⚙️🛠️
