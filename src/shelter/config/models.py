#
# config/models.py
#
"""
Attrs-based data models for the shelter configuration and test plan.
"""

import logging
from enum import Enum
from pathlib import Path
from typing import Any, TypeAlias

from attrs import define, field


class ErrexitPolicy(str, Enum):
    """When the formatters should report a non-zero exit status."""

    NONE = "none"
    FAILURES_PRESENT = "failures-present"
    FIRST_FAILING = "first-failing"


PATCH_STRATEGIES = ("function", "mount", "path")
DEFAULT_SHELL: tuple[str, ...] = ("bash", "-o", "errexit", "-o", "nounset", "-o", "pipefail", "-c")

Command: TypeAlias = str | tuple[str, ...]


# --- Validators ---
def _validate_log_level(inst: Any, attr: Any, value: str) -> None:
    """Validator for standard logging level names."""
    valid = logging._nameToLevel.keys()
    if value.upper() not in valid:
        raise ValueError(f"Invalid log_level '{value}'. Must be one of {list(valid)}.")


def _validate_timeout(inst: Any, attr: Any, value: float | None) -> None:
    """Validator ensures the timeout is positive when set."""
    if value is not None and value <= 0:
        raise ValueError(f"Field '{attr.name}' must be a positive number, got {value}")


def _validate_single_line(inst: Any, attr: Any, value: str) -> None:
    if not value or "\n" in value:
        raise ValueError(f"Field '{attr.name}' must be a non-empty single line, got {value!r}")


def _validate_strategy(inst: Any, attr: Any, value: str) -> None:
    if value not in PATCH_STRATEGIES:
        raise ValueError(f"Unsupported patch strategy '{value}'. Must be one of {list(PATCH_STRATEGIES)}.")


def _to_policy(value: "ErrexitPolicy | str") -> ErrexitPolicy:
    return ErrexitPolicy(value)


def _to_tuple(value: Any) -> tuple[str, ...]:
    return tuple(value)


# --- Plan steps ---
@define(frozen=True, slots=True)
class CaseStep:
    """Run a single registered (or ad hoc) case."""

    case: str = field(validator=_validate_single_line)


@define(frozen=True, slots=True)
class ClassStep:
    """Run every registered case whose name starts with ``prefix``."""

    name: str = field(validator=_validate_single_line)
    prefix: str = field()


SuiteStep: TypeAlias = CaseStep | ClassStep


@define(frozen=True, slots=True)
class SuiteConfig:
    """Ordered steps making up one suite."""

    steps: tuple[SuiteStep, ...] = field(factory=tuple, converter=tuple)


@define(frozen=True, slots=True)
class PatchConfig:
    """A command replaced by a mock for the duration of a run."""

    strategy: str = field(validator=_validate_strategy)
    name: str = field(validator=_validate_single_line)
    command: str = field()


# --- Global and root models ---
@define(frozen=True, slots=True)
class GlobalConfig:
    """Global settings for runners and formatters."""

    log_level: str = field(default="WARNING", validator=_validate_log_level)
    errexit_on: ErrexitPolicy = field(default=ErrexitPolicy.FAILURES_PRESENT, converter=_to_policy)
    skip: tuple[str, ...] = field(factory=tuple, converter=_to_tuple)
    shell: tuple[str, ...] = field(default=DEFAULT_SHELL, converter=_to_tuple)
    timeout: float | None = field(default=None, validator=_validate_timeout)
    cwd: Path | None = field(default=None)


@define(frozen=True, slots=True)
class ShelterConfig:
    """Root configuration object: settings plus the test plan."""

    global_config: GlobalConfig = field(factory=GlobalConfig, metadata={"toml_name": "global"})
    cases: dict[str, Command] = field(factory=dict)
    suites: dict[str, SuiteConfig] = field(factory=dict)
    patches: tuple[PatchConfig, ...] = field(factory=tuple, converter=tuple)
    config_file_path: Path | None = field(default=None)


# 🔼⚙️
