#
# src/shelter/runtime/aggregate.py
#
"""
Suite and suite-collection aggregation.

An aggregator runs its children against a collecting emitter, keeps running
totals while the events stream in, and once the children are done emits the
summary header followed by the buffered body. Totals use exact decimal
arithmetic for time.
"""

from decimal import Decimal
from typing import ClassVar

import structlog
from attrs import define, field

from shelter.events import Event, EventKind
from shelter.exceptions import ConfigurationError, MalformedCommandError
from shelter.runtime.context import RunContext, SuiteFunction
from shelter.telemetry import StructLogger

log: StructLogger = structlog.get_logger("runtime.aggregate")


@define(slots=True)
class Summary:
    """Aggregate counts for one scope."""

    # name, tests, errors, failures, skipped, time
    HEADER_KINDS: ClassVar[tuple[EventKind, ...]] = ()

    name: str = field()
    tests: int = field(default=0)
    errors: int = field(default=0)
    failures: int = field(default=0)
    skipped: int = field(default=0)
    time: Decimal = field(factory=lambda: Decimal("0.0"))

    @property
    def successes(self) -> int:
        return self.tests - self.errors - self.failures - self.skipped

    def header(self) -> list[Event]:
        """The summary lines, name first, in their fixed order."""
        values = (self.name, self.tests, self.errors, self.failures, self.skipped, self.time)
        return [Event(kind, str(value)) for kind, value in zip(self.HEADER_KINDS, values)]


@define(slots=True)
class SuiteSummary(Summary):
    HEADER_KINDS: ClassVar[tuple[EventKind, ...]] = (
        EventKind.SUITE_NAME,
        EventKind.SUITE_TESTS,
        EventKind.SUITE_ERRORS,
        EventKind.SUITE_FAILURES,
        EventKind.SUITE_SKIPPED,
        EventKind.SUITE_TIME,
    )


@define(slots=True)
class CollectionSummary(Summary):
    HEADER_KINDS: ClassVar[tuple[EventKind, ...]] = (
        EventKind.SUITES_NAME,
        EventKind.SUITES_TESTS,
        EventKind.SUITES_ERRORS,
        EventKind.SUITES_FAILURES,
        EventKind.SUITES_SKIPPED,
        EventKind.SUITES_TIME,
    )

    suites: int = field(default=0)

    def add(self, child: SuiteSummary) -> None:
        self.suites += 1
        self.tests += child.tests
        self.errors += child.errors
        self.failures += child.failures
        self.skipped += child.skipped
        self.time += child.time


class CaseTally:
    """
    Folds case events into a summary.

    A case is classified when its block ends (next CMD/SKIPPED or the end of
    the suite), so an ASSERT counts as one failure whatever its position
    relative to EXIT, and never also as an error.
    """

    def __init__(self, summary: Summary):
        self.summary = summary
        self._open = False
        self._exit_code: int | None = None
        self._asserted = False

    def observe(self, event: Event) -> None:
        kind = event.kind
        if kind is EventKind.CMD:
            self.close()
            self._open = True
            self.summary.tests += 1
        elif kind is EventKind.SKIPPED:
            self.close()
            self.summary.tests += 1
            self.summary.skipped += 1
        elif kind is EventKind.EXIT:
            self._exit_code = event.exit_code
        elif kind is EventKind.ASSERT:
            self._asserted = True
        elif kind is EventKind.TIME:
            self.summary.time += event.duration

    def close(self) -> None:
        if self._open:
            if self._asserted:
                self.summary.failures += 1
            elif self._exit_code != 0:
                self.summary.errors += 1
        self._open = False
        self._exit_code = None
        self._asserted = False


def _check_name(kind: str, name: str) -> None:
    if not name or "\n" in name:
        raise MalformedCommandError(f"{kind} names must be non-empty single lines", command=name)


async def run_suite(ctx: RunContext, name: str, suite_fn: SuiteFunction | None = None) -> SuiteSummary:
    """
    Runs ``suite_fn`` (or the registered suite ``name``) as one suite.

    The emitted block is the SUITE_* header followed by every event the suite
    produced, unmodified and in order.
    """
    _check_name("Suite", name)
    if suite_fn is None:
        suite_fn = ctx.suites.get(name)
        if suite_fn is None:
            raise ConfigurationError(f"Unknown suite '{name}'. Registered suites: {ctx.suites.names()}")

    suite_log = log.bind(suite=name)
    suite_log.debug("Starting suite", emoji_key="suite")

    summary = SuiteSummary(name=name)
    tally = CaseTally(summary)
    body: list[Event] = []

    def collect(event: Event) -> None:
        tally.observe(event)
        body.append(event)

    await suite_fn(ctx.with_emitter(collect))
    tally.close()

    for event in summary.header():
        ctx.emit(event)
    for event in body:
        ctx.emit(event)

    suite_log.info(
        "Suite finished",
        tests=summary.tests,
        errors=summary.errors,
        failures=summary.failures,
        skipped=summary.skipped,
        time=str(summary.time),
        emoji_key="suite",
    )
    return summary


async def run_suites(ctx: RunContext, name: str, prefix: str = "") -> CollectionSummary:
    """Runs every registered suite whose name starts with ``prefix`` as one collection."""
    _check_name("Collection", name)
    collection_log = log.bind(collection=name)
    matches = ctx.suites.matching(prefix)
    collection_log.debug("Starting suite collection", prefix=prefix, count=len(matches), emoji_key="suites")

    summary = CollectionSummary(name=name)
    body: list[Event] = []
    child_ctx = ctx.with_emitter(body.append)

    for suite_name, suite_fn in matches:
        summary.add(await run_suite(child_ctx, suite_name, suite_fn))

    for event in summary.header():
        ctx.emit(event)
    for event in body:
        ctx.emit(event)

    collection_log.info(
        "Suite collection finished",
        suites=summary.suites,
        tests=summary.tests,
        errors=summary.errors,
        failures=summary.failures,
        skipped=summary.skipped,
        time=str(summary.time),
        emoji_key="suites",
    )
    return summary


# 🔼⚙️
