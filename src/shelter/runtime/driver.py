#
# src/shelter/runtime/driver.py
#
"""
Runs named cases and prefix-based classes of cases.
"""

import structlog

from shelter.events import Event, EventKind
from shelter.exceptions import MalformedCommandError
from shelter.runtime.capture import capture
from shelter.runtime.context import RunContext
from shelter.telemetry import StructLogger

log: StructLogger = structlog.get_logger("runtime.driver")


async def run_case(ctx: RunContext, name: str) -> int | None:
    """
    Runs one case, or emits ``SKIPPED <name>`` if it is on the skip-list.

    Returns the case's exit status, or None when it was skipped.
    """
    if not name or "\n" in name:
        raise MalformedCommandError("Case names must be non-empty single lines", command=name)
    if ctx.is_skipped(name):
        log.info("Skipping test case", case=name, emoji_key="case")
        ctx.emit(Event(EventKind.SKIPPED, name))
        return None
    return await capture(ctx, name)


async def run_class(ctx: RunContext, class_name: str, prefix: str) -> int:
    """
    Runs every registered case whose name starts with ``prefix``.

    Each case block is terminated by ``CLASS <class_name>``. Returns the
    number of cases visited; zero matches is not an error.
    """
    if not class_name or "\n" in class_name:
        raise MalformedCommandError("Class names must be non-empty single lines", command=class_name)
    matches = ctx.cases.matching(prefix)
    log.debug("Running test class", class_name=class_name, prefix=prefix, cases=len(matches))
    for name, _ in matches:
        await run_case(ctx, name)
        ctx.emit(Event(EventKind.CLASS, class_name))
    return len(matches)


# 🔼⚙️
