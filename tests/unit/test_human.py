# tests/unit/test_human.py

"""Tests for the human-readable report."""

import io

from shelter.config import ErrexitPolicy
from shelter.formatters import EXIT_ERRORS, EXIT_FAILURES, human_format, write_human


def test_suite_report(suite_stream: str) -> None:
    report, exit_code = human_format(suite_stream)

    assert exit_code == EXIT_FAILURES
    assert report.splitlines() == [
        "Suite: suite_1 (1.51s)",
        "",
        " [+] test_1 (0.01s)",
        " [F] test_2 (exit 1) (1.5s)",
        "     bar (foo)",
        "",
        "",
        "Test results: 1 passed, 1 failed, 0 errors, 0 skipped",
    ]


def test_captured_output_is_interleaved_by_sequence() -> None:
    stream = "CMD test_out\nSTDOUT 1 first\nSTDERR 2 second\nSTDOUT 3 third\nTIME 0.2\nEXIT 0\n"

    report, _ = human_format(stream)

    assert report.splitlines() == [
        "[+] test_out (0.2s)",
        "    captured output:",
        "    ---------------",
        "    first",
        "    second",
        "    third",
        "",
        "",
        "Test results: 1 passed, 0 failed, 0 errors, 0 skipped",
    ]


def test_collection_with_classes_and_skips() -> None:
    stream = (
        "SUITES_NAME All\n"
        "SUITE_NAME suite_a\n"
        "SUITE_TIME 0.5\n"
        "SKIPPED test_skip\n"
        "CLASS Basics\n"
        "SUITE_NAME suite_b\n"
        "SUITE_TIME 0.25\n"
        "CMD test_err\n"
        "TIME 0.25\n"
        "EXIT 4\n"
    )

    report, exit_code = human_format(stream)

    assert exit_code == EXIT_ERRORS
    assert report.splitlines() == [
        "Suites: All",
        "",
        " Suite: suite_a (0.5s)",
        "",
        "  [-] Basics/test_skip",
        "",
        " Suite: suite_b (0.25s)",
        "",
        "  [E] test_err (exit 4) (0.25s)",
        "",
        "Test results: 0 passed, 0 failed, 1 errors, 1 skipped",
    ]


def test_first_failing_still_prints_totals() -> None:
    stream = "CMD a\nEXIT 1\nCMD b\nEXIT 0\n"

    report, exit_code = human_format(stream, ErrexitPolicy.FIRST_FAILING)

    assert exit_code == EXIT_ERRORS
    assert "[E] a (exit 1) (?s)" in report.splitlines()
    assert not any(line.startswith("[+] b") for line in report.splitlines())
    assert report.splitlines()[-1] == "Test results: 0 passed, 0 failed, 1 errors, 0 skipped"


def test_color_output_uses_ansi_styles(suite_stream: str) -> None:
    out = io.StringIO()
    write_human(suite_stream, out, color=True)
    assert "\x1b[" in out.getvalue()


def test_no_color_output_is_plain(suite_stream: str) -> None:
    report, _ = human_format(suite_stream, color=False)
    assert "\x1b[" not in report


def test_captured_control_characters_are_kept() -> None:
    stream = "CMD test_progress\nSTDOUT 1 progress 50%\rprogress 100%\nSTDERR 2 a\tb\nTIME 0.1\nEXIT 0\n"

    report, _ = human_format(stream)

    assert "    progress 50%\rprogress 100%\n" in report
    assert "    a\tb\n" in report


def test_captured_output_is_styled_with_color() -> None:
    out = io.StringIO()
    write_human("CMD test_tab\nSTDERR 1 a\tb\nTIME 0.1\nEXIT 0\n", out, color=True)

    report = out.getvalue()
    assert "a\tb" in report
    assert "    \x1b[33ma\tb\x1b[0m\n" in report
