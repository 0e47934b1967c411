#
# src/shelter/assertions.py
#
"""
Assertion helpers for use inside test commands.

On failure each helper writes ``<helper-name> <message>`` to the assertion
side-channel (the descriptor published as SHELTER_ASSERT_FD, or stderr when
running outside shelter), so the diagnostic never mixes with the captured
stdout/stderr of the test itself.
"""

import difflib
import os
import re
import subprocess
import sys
from collections.abc import Mapping

import structlog

from shelter.runtime.capture import ASSERT_FD_VAR
from shelter.telemetry import StructLogger

log: StructLogger = structlog.get_logger("assertions")

ASSERT_SHELL = "bash"


def report_failure(function: str, message: str, environ: Mapping[str, str] | None = None) -> None:
    """Writes one assertion record to the side-channel."""
    if environ is None:
        environ = os.environ
    line = f"{function} {' '.join(message.splitlines())}\n"
    fd = environ.get(ASSERT_FD_VAR, "")
    if fd.isdigit():
        try:
            os.write(int(fd), line.encode("utf-8"))
            return
        except OSError as e:
            log.warning("Assertion side-channel is not writable, using stderr", fd=fd, error=str(e))
    sys.stderr.write(line)
    sys.stderr.flush()


def _run(cmd: str, errexit: bool, capture_stdout: bool = False) -> subprocess.CompletedProcess:
    argv = [ASSERT_SHELL, "-e", "-c", cmd] if errexit else [ASSERT_SHELL, "-c", cmd]
    log.debug("Running asserted command", cmd=cmd, errexit=errexit)
    return subprocess.run(
        argv,
        stdout=subprocess.PIPE if capture_stdout else None,
        text=capture_stdout,
        check=False,
    )


def assert_success(cmd: str, msg: str | None = None) -> int:
    """Fails when ``cmd`` exits non-zero; returns the command's exit status."""
    returncode = _run(cmd, errexit=True).returncode
    if returncode != 0:
        report_failure("assert_success", msg or f'"{cmd}" failed')
    return returncode


def assert_fail(cmd: str, exit_code: int | None = None, msg: str | None = None) -> int:
    """
    Fails when ``cmd`` succeeds, or when it does not exit with ``exit_code``.

    Returns 0 when the expectation holds and 1 otherwise. An expected exit
    code of 0 is rejected.
    """
    if exit_code == 0:
        print(f"Invalid value for exit_code ({exit_code})", file=sys.stderr)
        return 1
    returncode = _run(cmd, errexit=True).returncode
    holds = returncode > 0 if exit_code is None else returncode == exit_code
    if holds:
        return 0
    report_failure("assert_fail", msg or f'"{cmd}" did not fail')
    return 1


def _read_expected(expected_file: str) -> str:
    if expected_file == "-":
        return sys.stdin.read()
    with open(expected_file, encoding="utf-8") as f:
        return f.read()


def assert_stdout(cmd: str, expected_file: str = "-", msg: str | None = None) -> int:
    """Fails when the stdout of ``cmd`` differs from the expected file; prints a unified diff."""
    actual = _run(cmd, errexit=False, capture_stdout=True).stdout
    expected = _read_expected(expected_file)
    if actual == expected:
        return 0
    diff = difflib.unified_diff(
        actual.splitlines(keepends=True),
        expected.splitlines(keepends=True),
        fromfile="actual",
        tofile=expected_file,
    )
    sys.stdout.writelines(diff)
    sys.stdout.flush()
    report_failure(
        "assert_stdout",
        msg or f'STDOUT of "{cmd}" does not match the contents of "{expected_file}"',
    )
    return 1


def _stdout_matches(cmd: str, regex: str) -> bool:
    pattern = re.compile(regex)
    output = _run(cmd, errexit=False, capture_stdout=True).stdout
    return any(pattern.search(line) for line in output.splitlines())


def assert_stdout_contains(cmd: str, regex: str, msg: str | None = None) -> int:
    """Fails unless some stdout line of ``cmd`` matches ``regex``."""
    if _stdout_matches(cmd, regex):
        return 0
    report_failure("assert_stdout_contains", msg or f'STDOUT of "{cmd}" does not contain "{regex}"')
    return 1


def assert_stdout_not_contains(cmd: str, regex: str, msg: str | None = None) -> int:
    """Fails when any stdout line of ``cmd`` matches ``regex``."""
    if not _stdout_matches(cmd, regex):
        return 0
    report_failure("assert_stdout_not_contains", msg or f'STDOUT of "{cmd}" contains "{regex}"')
    return 1


# 🔼⚙️
