#
# config/loader.py
#
"""
Loads the shelter TOML file into attrs models, applying environment overrides.

Example file::

    [global]
    errexit_on = "failures-present"
    skip = ["test_slow"]
    timeout = 30

    [cases]
    test_echo = "echo hello"
    test_argv = ["printf", "%s\\n", "hi"]

    [suites.suite_basic]
    steps = [
        { case = "test_echo" },
        { class = "Argv", prefix = "test_argv" },
    ]

    [[patches]]
    strategy = "path"
    name = "curl"
    command = "echo offline"
"""

import os
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import structlog

from shelter.config.models import (
    CaseStep,
    ClassStep,
    Command,
    GlobalConfig,
    PatchConfig,
    ShelterConfig,
    SuiteConfig,
    SuiteStep,
)
from shelter.exceptions import ConfigurationError
from shelter.telemetry import StructLogger

log: StructLogger = structlog.get_logger("config.loader")

ENV_ERREXIT_ON = "SHELTER_FORMATTER_ERREXIT_ON"
ENV_SKIP = "SHELTER_SKIP_TEST_CASES"
ENV_LOG_LEVEL = "SHELTER_LOG_LEVEL"
ENV_TIMEOUT = "SHELTER_TIMEOUT"


def _global_overrides(environ: Mapping[str, str]) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    if environ.get(ENV_ERREXIT_ON):
        overrides["errexit_on"] = environ[ENV_ERREXIT_ON]
    if environ.get(ENV_SKIP):
        overrides["skip"] = environ[ENV_SKIP].split()
    if environ.get(ENV_LOG_LEVEL):
        overrides["log_level"] = environ[ENV_LOG_LEVEL]
    if environ.get(ENV_TIMEOUT):
        try:
            overrides["timeout"] = float(environ[ENV_TIMEOUT])
        except ValueError as e:
            raise ConfigurationError(f"Invalid {ENV_TIMEOUT} value: {environ[ENV_TIMEOUT]!r}") from e
    return overrides


def _build_global(data: Mapping[str, Any], environ: Mapping[str, str], base_dir: Path | None) -> GlobalConfig:
    values = dict(data)
    values.update(_global_overrides(environ))
    if "cwd" in values and values["cwd"] is not None:
        cwd = Path(values["cwd"]).expanduser()
        if base_dir is not None and not cwd.is_absolute():
            cwd = base_dir / cwd
        values["cwd"] = cwd
    try:
        return GlobalConfig(**values)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid [global] section: {e}") from e


def _build_command(name: str, value: Any) -> Command:
    if isinstance(value, str):
        return value
    if isinstance(value, list) and value and all(isinstance(item, str) for item in value):
        return tuple(value)
    raise ConfigurationError(
        f"Case '{name}' must be a shell string or a non-empty list of strings, got {value!r}"
    )


def _build_step(suite_name: str, raw: Any) -> SuiteStep:
    if isinstance(raw, str):
        raw = {"case": raw}
    if not isinstance(raw, Mapping):
        raise ConfigurationError(f"Suite '{suite_name}' has a malformed step: {raw!r}")
    try:
        if "case" in raw:
            return CaseStep(case=raw["case"])
        if "class" in raw:
            return ClassStep(name=raw["class"], prefix=raw.get("prefix", ""))
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Suite '{suite_name}' has an invalid step {dict(raw)!r}: {e}") from e
    raise ConfigurationError(
        f"Suite '{suite_name}' step must contain 'case' or 'class', got {dict(raw)!r}"
    )


def _build_suite(name: str, raw: Any) -> SuiteConfig:
    if not isinstance(raw, Mapping):
        raise ConfigurationError(f"Suite '{name}' must be a table")
    steps = raw.get("steps", [])
    if not isinstance(steps, list):
        raise ConfigurationError(f"Suite '{name}' steps must be a list")
    return SuiteConfig(steps=[_build_step(name, step) for step in steps])


def _build_patch(raw: Any) -> PatchConfig:
    if not isinstance(raw, Mapping):
        raise ConfigurationError(f"Malformed [[patches]] entry: {raw!r}")
    try:
        return PatchConfig(**raw)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid [[patches]] entry {dict(raw)!r}: {e}") from e


def build_config(
    data: Mapping[str, Any],
    environ: Mapping[str, str] | None = None,
    config_file_path: Path | None = None,
) -> ShelterConfig:
    """Builds a ShelterConfig from already-parsed TOML data."""
    if environ is None:
        environ = os.environ
    base_dir = config_file_path.parent if config_file_path is not None else None

    unknown = set(data) - {"global", "cases", "suites", "patches"}
    if unknown:
        raise ConfigurationError(f"Unknown configuration sections: {sorted(unknown)}")

    global_config = _build_global(data.get("global", {}), environ, base_dir)
    cases = {name: _build_command(name, value) for name, value in data.get("cases", {}).items()}
    for name in cases:
        if "\n" in name:
            raise ConfigurationError(f"Case name {name!r} must be a single line")
    suites = {name: _build_suite(name, raw) for name, raw in data.get("suites", {}).items()}
    patches = [_build_patch(raw) for raw in data.get("patches", [])]

    return ShelterConfig(
        global_config=global_config,
        cases=cases,
        suites=suites,
        patches=patches,
        config_file_path=config_file_path,
    )


def load_config(config_path: Path, environ: Mapping[str, str] | None = None) -> ShelterConfig:
    """Loads, validates and returns the configuration stored at ``config_path``."""
    log.debug("Loading configuration", path=str(config_path), emoji_key="config")
    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except FileNotFoundError as e:
        raise ConfigurationError(f"Configuration file not found: {config_path}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(f"Invalid TOML in '{config_path}': {e}") from e

    config = build_config(data, environ=environ, config_file_path=config_path)
    log.info(
        "Configuration loaded",
        path=str(config_path),
        cases=len(config.cases),
        suites=len(config.suites),
        patches=len(config.patches),
    )
    return config


def default_config(environ: Mapping[str, str] | None = None) -> ShelterConfig:
    """Configuration used when no file is given: defaults plus environment overrides."""
    return build_config({}, environ=environ)


# 🔼⚙️
