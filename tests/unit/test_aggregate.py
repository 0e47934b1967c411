# tests/unit/test_aggregate.py

"""Tests for suite and suite-collection aggregation."""

import shutil
from decimal import Decimal

import pytest

from shelter.events import Event, EventKind
from shelter.exceptions import ConfigurationError
from shelter.formatters import structured_format
from shelter.runtime import Registry, RunContext, run_case, run_suite, run_suites
from shelter.runtime.aggregate import CaseTally, SuiteSummary


def emitting(*lines: str):
    """A suite function that replays raw protocol lines."""

    async def suite(ctx: RunContext) -> None:
        for line in lines:
            ctx.emit(Event.parse(line))

    return suite


PASS_AND_ASSERT = emitting(
    "CMD test_1",
    "TIME 0.01",
    "EXIT 0",
    "CMD test_2",
    "ASSERT foo bar",
    "TIME 1.5",
    "EXIT 1",
)


class TestCaseTally:
    def _tally(self, *lines: str) -> SuiteSummary:
        summary = SuiteSummary(name="s")
        tally = CaseTally(summary)
        for line in lines:
            tally.observe(Event.parse(line))
        tally.close()
        return summary

    def test_assert_after_exit_is_one_failure(self) -> None:
        summary = self._tally("CMD t", "EXIT 1", "ASSERT f m", "TIME 0.1")
        assert (summary.tests, summary.failures, summary.errors) == (1, 1, 0)

    def test_multiple_asserts_count_once(self) -> None:
        summary = self._tally("CMD t", "ASSERT f one", "ASSERT f two", "EXIT 0")
        assert (summary.failures, summary.errors) == (1, 0)

    def test_nonzero_exit_without_assert_is_error(self) -> None:
        summary = self._tally("CMD t", "EXIT 2")
        assert (summary.failures, summary.errors) == (0, 1)

    def test_missing_exit_is_error(self) -> None:
        summary = self._tally("CMD t", "STDOUT 1 partial", "CMD u", "EXIT 0")
        assert (summary.tests, summary.errors) == (2, 1)

    def test_skipped(self) -> None:
        summary = self._tally("SKIPPED t", "CMD u", "EXIT 0")
        assert (summary.tests, summary.skipped, summary.successes) == (2, 1, 1)


@pytest.mark.asyncio
class TestRunSuite:
    async def test_header_precedes_unmodified_body(self, make_ctx, collector) -> None:
        summary = await run_suite(make_ctx(), "suite_1", PASS_AND_ASSERT)

        assert summary.time == Decimal("1.51")
        assert collector.lines() == [
            "SUITE_NAME suite_1",
            "SUITE_TESTS 2",
            "SUITE_ERRORS 0",
            "SUITE_FAILURES 1",
            "SUITE_SKIPPED 0",
            "SUITE_TIME 1.51",
            "CMD test_1",
            "TIME 0.01",
            "EXIT 0",
            "CMD test_2",
            "ASSERT foo bar",
            "TIME 1.5",
            "EXIT 1",
        ]

    async def test_empty_suite(self, make_ctx, collector) -> None:
        summary = await run_suite(make_ctx(), "suite_empty", emitting())

        assert summary.tests == 0
        assert collector.lines()[-1] == "SUITE_TIME 0.0"

    async def test_registered_suite_is_looked_up(self, make_ctx, collector) -> None:
        ctx = make_ctx()
        ctx.suites.add("suite_registered", emitting("SKIPPED test_x"))

        summary = await run_suite(ctx, "suite_registered")

        assert (summary.tests, summary.skipped) == (1, 1)

    async def test_unknown_suite_raises(self, make_ctx, collector) -> None:
        with pytest.raises(ConfigurationError):
            await run_suite(make_ctx(), "suite_missing")
        assert collector.events == []

    async def test_feeds_structured_formatter(self, make_ctx, collector) -> None:
        await run_suite(make_ctx(), "suite_1", PASS_AND_ASSERT)

        xml, exit_code = structured_format(collector.lines())

        assert exit_code == 1
        assert '<testsuite errors="0" failures="1" name="suite_1" skipped="0" tests="2" time="1.51">' in xml

    @pytest.mark.skipif(shutil.which("bash") is None, reason="bash is not available")
    async def test_real_cases(self, make_ctx, collector) -> None:
        ctx = make_ctx(cases={"test_ok": "true", "test_broken": "exit 3"})

        async def suite(run_ctx: RunContext) -> None:
            await run_case(run_ctx, "test_ok")
            await run_case(run_ctx, "test_broken")

        summary = await run_suite(ctx, "suite_real", suite)

        assert (summary.tests, summary.errors, summary.failures) == (2, 1, 0)
        assert collector.lines()[0] == "SUITE_NAME suite_real"


@pytest.mark.asyncio
class TestRunSuites:
    async def test_collection_sums_matching_suites(self, make_ctx, collector) -> None:
        ctx = make_ctx()
        ctx.suites.add("suite_a", PASS_AND_ASSERT)
        ctx.suites.add("other", emitting("CMD never", "EXIT 0"))
        ctx.suites.add("suite_b", emitting("SKIPPED test_3", "CMD test_4", "TIME 0.49", "EXIT 7"))

        summary = await run_suites(ctx, "All", "suite_")

        assert summary.suites == 2
        assert (summary.tests, summary.errors, summary.failures, summary.skipped) == (4, 1, 1, 1)
        assert summary.time == Decimal("2.00")

        lines = collector.lines()
        assert lines[:6] == [
            "SUITES_NAME All",
            "SUITES_TESTS 4",
            "SUITES_ERRORS 1",
            "SUITES_FAILURES 1",
            "SUITES_SKIPPED 1",
            "SUITES_TIME 2.00",
        ]
        assert [line for line in lines if line.startswith("SUITE_NAME")] == [
            "SUITE_NAME suite_a",
            "SUITE_NAME suite_b",
        ]
        assert "CMD never" not in lines

    async def test_no_matching_suites(self, make_ctx, collector) -> None:
        summary = await run_suites(make_ctx(), "Nothing", "zzz")

        assert summary.tests == 0
        assert collector.lines() == [
            "SUITES_NAME Nothing",
            "SUITES_TESTS 0",
            "SUITES_ERRORS 0",
            "SUITES_FAILURES 0",
            "SUITES_SKIPPED 0",
            "SUITES_TIME 0.0",
        ]

    async def test_registry_order_is_run_order(self, collector) -> None:
        order: list[str] = []

        def recording(name: str):
            async def suite(ctx: RunContext) -> None:
                order.append(name)

            return suite

        suites = Registry({"s_2": recording("s_2"), "s_1": recording("s_1"), "s_3": recording("s_3")})
        await run_suites(RunContext(emit=collector, suites=suites), "Ordered", "s_")

        assert order == ["s_2", "s_1", "s_3"]
