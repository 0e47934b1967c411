#
# src/shelter/runtime/plan.py
#
"""
Turns a loaded ShelterConfig into a ready-to-use RunContext.
"""

from typing import TYPE_CHECKING

import structlog

from shelter.config.models import CaseStep, Command, ShelterConfig, SuiteConfig
from shelter.runtime.context import EventCallback, RunContext, SuiteFunction
from shelter.runtime.driver import run_case, run_class
from shelter.runtime.registry import Registry

if TYPE_CHECKING:
    from shelter.patching import CommandPatcher

log = structlog.get_logger("runtime.plan")


def suite_function(suite: SuiteConfig) -> SuiteFunction:
    """Builds a suite function running the configured steps in order."""

    async def run_steps(ctx: RunContext) -> None:
        for step in suite.steps:
            if isinstance(step, CaseStep):
                await run_case(ctx, step.case)
            else:
                await run_class(ctx, step.name, step.prefix)

    return run_steps


def build_context(
    config: ShelterConfig,
    emit: EventCallback,
    patcher: "CommandPatcher | None" = None,
) -> RunContext:
    """Creates a RunContext with the config's cases, suites and global settings."""
    cases: Registry[Command] = Registry(config.cases)
    suites: Registry[SuiteFunction] = Registry(
        {name: suite_function(suite) for name, suite in config.suites.items()}
    )
    settings = config.global_config
    log.debug(
        "Run context built",
        cases=len(cases),
        suites=len(suites),
        skip=list(settings.skip),
        timeout=settings.timeout,
    )
    return RunContext(
        emit=emit,
        cases=cases,
        suites=suites,
        skip=settings.skip,
        shell=settings.shell,
        cwd=settings.cwd,
        timeout=settings.timeout,
        patcher=patcher,
    )


# 🔼⚙️
