#
# src/shelter/formatters/core.py
#
"""
Generic event-stream formatter.

Reads the flat event stream line by line and rebuilds the nested
suite-collection / suite / testcase structure with a four-state block
machine. Rendering is delegated to a sink. Only the current block is held
in memory.
"""

from collections.abc import Iterable
from enum import Enum, IntEnum
from typing import Any, Protocol, runtime_checkable

import structlog
from attrs import define, field

from shelter.config.models import ErrexitPolicy
from shelter.events import Event, EventKind, parse_stream
from shelter.exceptions import ConfigurationError
from shelter.telemetry import StructLogger

log: StructLogger = structlog.get_logger("formatters.core")

EXIT_OK = 0
EXIT_FAILURES = 1
EXIT_ERRORS = 2
EXIT_FRAMEWORK_ERROR = 3


class Block(IntEnum):
    ROOT = 0
    SUITES = 1
    SUITE = 2
    TESTCASE = 3


class CaseStatus(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    FAILURE = "failure"
    SKIPPED = "skipped"


ATTRIBUTE_MAP: dict[EventKind, str] = {
    EventKind.SUITES_ERRORS: "errors",
    EventKind.SUITES_FAILURES: "failures",
    EventKind.SUITES_NAME: "name",
    EventKind.SUITES_SKIPPED: "skipped",
    EventKind.SUITES_TESTS: "tests",
    EventKind.SUITES_TIME: "time",
    EventKind.SUITE_ERRORS: "errors",
    EventKind.SUITE_FAILURES: "failures",
    EventKind.SUITE_NAME: "name",
    EventKind.SUITE_SKIPPED: "skipped",
    EventKind.SUITE_TESTS: "tests",
    EventKind.SUITE_TIME: "time",
    EventKind.CMD: "name",
    EventKind.CLASS: "classname",
    EventKind.SKIPPED: "name",
    EventKind.TIME: "time",
    EventKind.EXIT: "status",
}

# Keywords that open a new block.
TRANSITIONS: dict[EventKind, Block] = {
    EventKind.SUITES_NAME: Block.SUITES,
    EventKind.SUITE_NAME: Block.SUITE,
    EventKind.CMD: Block.TESTCASE,
    EventKind.SKIPPED: Block.TESTCASE,
}


@define(slots=True)
class BlockState:
    """Everything accumulated for the block currently open."""

    block: Block = field(default=Block.ROOT)
    depth: int = field(default=0)
    attributes: dict[str, str] = field(factory=dict)
    body: list[Any] = field(factory=list)
    stdout: dict[int, str] = field(factory=dict)
    stderr: dict[int, str] = field(factory=dict)
    exit_code: int | None = field(default=None)
    asserted: bool = field(default=False)
    skipped: bool = field(default=False)

    @property
    def status(self) -> CaseStatus:
        """Derived case status; an assertion failure always wins over the exit code."""
        if self.skipped:
            return CaseStatus.SKIPPED
        if self.asserted:
            return CaseStatus.FAILURE
        if self.exit_code is None or self.exit_code != 0:
            return CaseStatus.ERROR
        return CaseStatus.SUCCESS

    @property
    def has_output(self) -> bool:
        return bool(self.stdout or self.stderr)

    def merged_output(self) -> list[tuple[int, EventKind, str]]:
        """Captured lines of both streams ordered by their global sequence number."""
        merged = [(seq, EventKind.STDOUT, text) for seq, text in self.stdout.items()]
        merged += [(seq, EventKind.STDERR, text) for seq, text in self.stderr.items()]
        merged.sort(key=lambda item: (item[0], item[1] is EventKind.STDERR))
        return merged


@define(slots=True)
class Totals:
    success: int = field(default=0)
    failure: int = field(default=0)
    error: int = field(default=0)
    skipped: int = field(default=0)

    def record(self, status: CaseStatus) -> None:
        setattr(self, status.value, getattr(self, status.value) + 1)

    @property
    def failing(self) -> int:
        return self.failure + self.error


@runtime_checkable
class FormatterSink(Protocol):
    """Callbacks the formatter drives to render one output format."""

    def header(self) -> None: ...

    def footer(self, totals: Totals) -> None: ...

    def suites_open(self, block: BlockState) -> None: ...

    def suites_close(self) -> None: ...

    def suite_open(self, block: BlockState) -> None: ...

    def suite_close(self) -> None: ...

    def testcase_open(self, block: BlockState) -> None: ...

    def testcase_body(self, block: BlockState) -> None: ...

    def testcase_close(self, block: BlockState) -> None: ...

    def body_add_failure(self, block: BlockState, function: str, message: str) -> None: ...

    def body_add_skipped(self, block: BlockState) -> None: ...

    def body_add_error(self, block: BlockState) -> None: ...

    def add_stdout_line(self, block: BlockState, sequence: int, text: str) -> None: ...

    def add_stderr_line(self, block: BlockState, sequence: int, text: str) -> None: ...


class BaseSink:
    """No-op sink that stores captured lines at their sequence index."""

    def header(self) -> None:
        pass

    def footer(self, totals: Totals) -> None:
        pass

    def suites_open(self, block: BlockState) -> None:
        pass

    def suites_close(self) -> None:
        pass

    def suite_open(self, block: BlockState) -> None:
        pass

    def suite_close(self) -> None:
        pass

    def testcase_open(self, block: BlockState) -> None:
        pass

    def testcase_body(self, block: BlockState) -> None:
        pass

    def testcase_close(self, block: BlockState) -> None:
        pass

    def body_add_failure(self, block: BlockState, function: str, message: str) -> None:
        pass

    def body_add_skipped(self, block: BlockState) -> None:
        pass

    def body_add_error(self, block: BlockState) -> None:
        pass

    def add_stdout_line(self, block: BlockState, sequence: int, text: str) -> None:
        block.stdout[sequence] = text

    def add_stderr_line(self, block: BlockState, sequence: int, text: str) -> None:
        block.stderr[sequence] = text


def coerce_policy(policy: ErrexitPolicy | str) -> ErrexitPolicy:
    try:
        return ErrexitPolicy(policy)
    except ValueError:
        raise ConfigurationError(
            f"Unsupported errexit policy '{policy}'. "
            f"Must be one of {[p.value for p in ErrexitPolicy]}"
        ) from None


class EventStreamFormatter:
    """Drives a sink from an event stream."""

    def __init__(self, sink: FormatterSink, policy: ErrexitPolicy | str = ErrexitPolicy.FAILURES_PRESENT):
        self.sink = sink
        self.policy = coerce_policy(policy)
        self.totals = Totals()
        self.state = BlockState()
        self.stopped_early = False
        self._in_suites = False
        self._in_suite = False

    # --- Block transitions ---
    def _depth_for(self, block: Block) -> int:
        if block is Block.SUITE:
            return int(self._in_suites)
        if block is Block.TESTCASE:
            return int(self._in_suites) + int(self._in_suite)
        return 0

    def _close_suite(self) -> None:
        if self._in_suite:
            self.sink.suite_close()
            self._in_suite = False

    def _close_suites(self) -> None:
        if self._in_suites:
            self.sink.suites_close()
            self._in_suites = False

    def _flush_testcase(self, state: BlockState) -> None:
        status = state.status
        self.sink.testcase_open(state)
        if status is CaseStatus.ERROR:
            self.sink.body_add_error(state)
        self.sink.testcase_body(state)
        self.sink.testcase_close(state)
        self.totals.record(status)

    def transition(self, next_block: Block) -> None:
        """Closes out the current block (and any containers it leaves), then opens ``next_block``."""
        state = self.state
        if state.block is Block.SUITES:
            self.sink.suites_open(state)
        elif state.block is Block.SUITE:
            self.sink.suite_open(state)
        elif state.block is Block.TESTCASE:
            self._flush_testcase(state)

        if next_block in (Block.ROOT, Block.SUITES):
            self._close_suite()
            self._close_suites()
        elif next_block is Block.SUITE:
            self._close_suite()

        if next_block is Block.SUITES:
            self._in_suites = True
        elif next_block is Block.SUITE:
            self._in_suite = True

        self.state = BlockState(block=next_block, depth=self._depth_for(next_block))

    # --- Event handling ---
    def _failing_seen(self) -> bool:
        if self.totals.failing:
            return True
        return self.state.block is Block.TESTCASE and self.state.status in (CaseStatus.FAILURE, CaseStatus.ERROR)

    def apply(self, event: Event) -> None:
        state = self.state
        kind = event.kind

        attribute = ATTRIBUTE_MAP.get(kind)
        if attribute is not None:
            state.attributes[attribute] = event.value

        if kind is EventKind.SKIPPED:
            state.skipped = True
            self.sink.body_add_skipped(state)
        elif kind is EventKind.EXIT:
            state.exit_code = event.exit_code
        elif kind is EventKind.ASSERT:
            state.asserted = True
            function, message = event.assertion
            self.sink.body_add_failure(state, function, message)
        elif kind is EventKind.STDOUT:
            sequence, text = event.sequenced
            self.sink.add_stdout_line(state, sequence, text)
        elif kind is EventKind.STDERR:
            sequence, text = event.sequenced
            self.sink.add_stderr_line(state, sequence, text)

    def run(self, lines: Iterable[str]) -> int:
        """Consumes the stream and returns the exit status dictated by the policy."""
        self.sink.header()
        for event in parse_stream(lines):
            next_block = TRANSITIONS.get(event.kind)
            if next_block is not None:
                if self.policy is ErrexitPolicy.FIRST_FAILING and self._failing_seen():
                    self.stopped_early = True
                    log.info("Stopping at the first failing test case", emoji_key="format")
                    break
                self.transition(next_block)
            self.apply(event)

        self.transition(Block.ROOT)
        self.sink.footer(self.totals)
        log.debug(
            "Event stream formatted",
            passed=self.totals.success,
            failed=self.totals.failure,
            errors=self.totals.error,
            skipped=self.totals.skipped,
            stopped_early=self.stopped_early,
        )
        return self.exit_code()

    def exit_code(self) -> int:
        if self.policy is ErrexitPolicy.NONE:
            return EXIT_OK
        if self.totals.failure:
            return EXIT_FAILURES
        if self.totals.error:
            return EXIT_ERRORS
        return EXIT_OK


def as_lines(stream: Iterable[str] | str) -> Iterable[str]:
    """Accepts either a whole document or an iterable of lines."""
    if isinstance(stream, str):
        return stream.split("\n")
    return stream


def format_stream(
    stream: Iterable[str] | str,
    sink: FormatterSink,
    policy: ErrexitPolicy | str = ErrexitPolicy.FAILURES_PRESENT,
) -> int:
    return EventStreamFormatter(sink, policy).run(as_lines(stream))


# 🔼⚙️
