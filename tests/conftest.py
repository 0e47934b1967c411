import logging
import os
from collections.abc import Callable

import pytest

from shelter.runtime import CollectingEmitter, Registry, RunContext
from shelter.telemetry import setup_logging


@pytest.fixture(autouse=True, scope="session")
def quiet_logging():
    # Keeps structlog's default stdout printer out of captured output.
    setup_logging(level=logging.WARNING)


@pytest.fixture
def collector() -> CollectingEmitter:
    return CollectingEmitter()


@pytest.fixture
def minimal_env() -> dict[str, str]:
    """A small, predictable environment for test commands."""
    return {"PATH": os.environ.get("PATH", "/usr/bin:/bin"), "LC_ALL": "C"}


@pytest.fixture
def make_ctx(collector: CollectingEmitter, minimal_env: dict[str, str]) -> Callable[..., RunContext]:
    """Builds a RunContext emitting into ``collector``."""

    def factory(cases: dict | None = None, **kwargs) -> RunContext:
        kwargs.setdefault("env", minimal_env)
        return RunContext(emit=collector, cases=Registry(cases or {}), **kwargs)

    return factory


@pytest.fixture
def suite_stream() -> str:
    """Event stream of one suite with a passing and an asserted case."""
    return (
        "SUITE_NAME suite_1\n"
        "SUITE_TESTS 2\n"
        "SUITE_ERRORS 0\n"
        "SUITE_FAILURES 1\n"
        "SUITE_SKIPPED 0\n"
        "SUITE_TIME 1.51\n"
        "CMD test_1\n"
        "TIME 0.01\n"
        "EXIT 0\n"
        "CMD test_2\n"
        "ASSERT foo bar\n"
        "TIME 1.5\n"
        "EXIT 1\n"
    )
