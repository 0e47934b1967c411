#
# tests/unit/test_cli.py
#
"""
Tests for the command-line interface.
"""

import logging
import shutil
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from shelter.cli.main import cli

requires_bash = pytest.mark.skipif(shutil.which("bash") is None, reason="bash is not available")

PLAN = """
[cases]
test_ok = "echo fine"
test_broken = "echo broken >&2; exit 3"

[suites.suite_basic]
steps = ["test_ok", "test_broken"]

[suites.suite_extra]
steps = ["test_ok"]
"""


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


class TestMainCLI:
    def test_cli_help(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--help"])

        assert result.exit_code == 0
        for command in ("run-case", "run-class", "run-suite", "run-suites", "format", "assert", "config"):
            assert command in result.output

    def test_cli_version(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "version" in result.output

    def test_invalid_log_level(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--log-level", "INVALID", "config", "show", "--help"])
        assert result.exit_code != 0


class TestFormatCommand:
    def test_junit_from_stdin(self, runner: CliRunner, suite_stream: str) -> None:
        result = runner.invoke(cli, ["format", "junit"], input=suite_stream)

        assert result.exit_code == 1
        assert '<testcase name="test_2" status="1" time="1.5">' in result.output
        assert result.output.rstrip().endswith("</testsuite>")

    def test_human_from_file(self, runner: CliRunner, suite_stream: str, tmp_path: Path) -> None:
        events = tmp_path / "events.txt"
        events.write_text(suite_stream, encoding="utf-8")

        result = runner.invoke(cli, ["format", "human", "--no-color", str(events)])

        assert result.exit_code == 1
        assert "Test results: 1 passed, 1 failed, 0 errors, 0 skipped" in result.output

    def test_errexit_option(self, runner: CliRunner, suite_stream: str) -> None:
        result = runner.invoke(cli, ["format", "junit", "--errexit-on", "none"], input=suite_stream)
        assert result.exit_code == 0

    def test_errexit_from_environment(self, runner: CliRunner, suite_stream: str) -> None:
        with runner.isolated_filesystem():
            result = runner.invoke(
                cli,
                ["format", "junit"],
                input=suite_stream,
                env={"SHELTER_FORMATTER_ERREXIT_ON": "none"},
            )
        assert result.exit_code == 0

    def test_carriage_return_stays_in_output(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["format", "junit"], input="CMD t\nSTDOUT 1 a\rb\nEXIT 0\n")

        assert result.exit_code == 0
        assert "1 a\rb" in result.output

    def test_malformed_stream_is_framework_error(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["format", "human"], input="CMD t\nWHAT is this\n")

        assert result.exit_code == 3
        assert "Unknown event keyword 'WHAT'" in result.output


@requires_bash
class TestRunCommands:
    def test_run_case_ad_hoc(self, runner: CliRunner) -> None:
        with runner.isolated_filesystem():
            result = runner.invoke(cli, ["run-case", "echo hi"])

        assert result.exit_code == 0
        lines = result.output.splitlines()
        assert lines[0] == "CMD echo hi"
        assert "STDOUT 1 hi" in lines
        assert lines[-1] == "EXIT 0"

    def test_run_case_skipped(self, runner: CliRunner) -> None:
        with runner.isolated_filesystem():
            result = runner.invoke(cli, ["run-case", "--skip", "test_x", "test_x"])

        assert result.exit_code == 0
        assert result.output == "SKIPPED test_x\n"

    def test_run_suite_from_plan(self, runner: CliRunner) -> None:
        with runner.isolated_filesystem():
            Path("shelter.toml").write_text(PLAN, encoding="utf-8")
            result = runner.invoke(cli, ["run-suite", "suite_basic"])

        assert result.exit_code == 0
        lines = result.output.splitlines()
        assert lines[:5] == [
            "SUITE_NAME suite_basic",
            "SUITE_TESTS 2",
            "SUITE_ERRORS 1",
            "SUITE_FAILURES 0",
            "SUITE_SKIPPED 0",
        ]
        assert "EXIT 3" in lines

    def test_run_suites_then_format(self, runner: CliRunner, tmp_path: Path) -> None:
        plan = tmp_path / "plan.toml"
        plan.write_text(PLAN, encoding="utf-8")

        ran = runner.invoke(cli, ["run-suites", "-c", str(plan), "All", "suite_"])
        assert ran.exit_code == 0
        assert ran.output.startswith("SUITES_NAME All\nSUITES_TESTS 3\n")

        formatted = runner.invoke(cli, ["format", "junit", "-c", str(plan)], input=ran.output)
        assert formatted.exit_code == 2
        assert '<testsuites errors="1" failures="0" name="All" skipped="0" tests="3"' in formatted.output

    def test_run_class(self, runner: CliRunner, tmp_path: Path) -> None:
        plan = tmp_path / "plan.toml"
        plan.write_text(PLAN, encoding="utf-8")

        result = runner.invoke(cli, ["run-class", "-c", str(plan), "Basics", "test_"])

        assert result.exit_code == 0
        assert result.output.splitlines().count("CLASS Basics") == 2

    def test_unknown_suite_is_framework_error(self, runner: CliRunner) -> None:
        with runner.isolated_filesystem():
            result = runner.invoke(cli, ["run-suite", "suite_missing"])

        assert result.exit_code == 3
        assert "Unknown suite 'suite_missing'" in result.output


@requires_bash
class TestAssertCommands:
    def test_success(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["assert", "success", "true"], env={"SHELTER_ASSERT_FD": None})
        assert result.exit_code == 0

    def test_success_failing(self, runner: CliRunner) -> None:
        result = runner.invoke(
            cli, ["assert", "success", "exit 4", "it broke"], env={"SHELTER_ASSERT_FD": None}
        )
        assert result.exit_code == 4
        assert "assert_success it broke" in result.output

    def test_fail_with_exit_code(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["assert", "fail", "--exit-code", "2", "exit 2"], env={"SHELTER_ASSERT_FD": None})
        assert result.exit_code == 0

    def test_stdout_contains(self, runner: CliRunner) -> None:
        result = runner.invoke(
            cli, ["assert", "stdout-contains", "echo needle", "^nee"], env={"SHELTER_ASSERT_FD": None}
        )
        assert result.exit_code == 0


class TestOtherCommands:
    def test_config_show(self, runner: CliRunner) -> None:
        with runner.isolated_filesystem():
            Path("shelter.toml").write_text(PLAN, encoding="utf-8")
            result = runner.invoke(cli, ["config", "show"])

        assert result.exit_code == 0
        assert "ShelterConfig(" in result.output
        assert "suite_basic" in result.output

    def test_config_show_invalid(self, runner: CliRunner) -> None:
        with runner.isolated_filesystem():
            Path("shelter.toml").write_text("[bogus]\n", encoding="utf-8")
            result = runner.invoke(cli, ["config", "show"])

        assert result.exit_code == 1
        assert "Unknown configuration sections" in result.output

    def test_version_check(self, runner: CliRunner) -> None:
        assert runner.invoke(cli, ["version-check", "0"]).exit_code == 0
        assert runner.invoke(cli, ["version-check", "99", "98.1"]).exit_code == 1


class TestConfiguredLogLevel:
    @patch("shelter.cli.utils.core_setup_logging")
    def test_config_file_level_is_applied(self, mock_setup, runner: CliRunner, suite_stream: str) -> None:
        with runner.isolated_filesystem():
            Path("shelter.toml").write_text('[global]\nlog_level = "DEBUG"\n', encoding="utf-8")
            result = runner.invoke(cli, ["format", "junit"], input=suite_stream, env={"SHELTER_LOG_LEVEL": None})

        assert result.exit_code == 1
        assert mock_setup.call_args.kwargs["level"] == logging.DEBUG

    @patch("shelter.cli.utils.core_setup_logging")
    def test_cli_option_beats_config_file(self, mock_setup, runner: CliRunner) -> None:
        with runner.isolated_filesystem():
            Path("shelter.toml").write_text('[global]\nlog_level = "DEBUG"\n', encoding="utf-8")
            result = runner.invoke(cli, ["config", "show", "-l", "ERROR"], env={"SHELTER_LOG_LEVEL": None})

        assert result.exit_code == 0
        assert {c.kwargs["level"] for c in mock_setup.call_args_list} == {logging.WARNING, logging.ERROR}
        assert mock_setup.call_args.kwargs["level"] == logging.ERROR


class TestInterrupts:
    def test_keyboard_interrupt_exits_130(self, runner: CliRunner) -> None:
        with runner.isolated_filesystem(), patch("shelter.cli.run_cmds.asyncio.run", side_effect=KeyboardInterrupt):
            result = runner.invoke(cli, ["run-case", "true"])
        assert result.exit_code == 130
