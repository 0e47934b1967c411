#
# src/shelter/formatters/human.py
#
"""
Human-readable, colourised report rendered with rich.
"""

import io
from collections.abc import Iterable
from typing import TextIO

from rich.console import COLOR_SYSTEMS, Console
from rich.text import Text

from shelter.config.models import ErrexitPolicy
from shelter.events import EventKind
from shelter.formatters.core import BaseSink, BlockState, CaseStatus, Totals, format_stream

STATUS_GLYPHS = {
    CaseStatus.SUCCESS: "+",
    CaseStatus.ERROR: "E",
    CaseStatus.FAILURE: "F",
    CaseStatus.SKIPPED: "-",
}

STATUS_STYLES = {
    CaseStatus.SUCCESS: "bold bright_green",
    CaseStatus.ERROR: "bold red",
    CaseStatus.FAILURE: "bold bright_red",
    CaseStatus.SKIPPED: "bold bright_black",
}

OUTPUT_STYLES = {
    EventKind.STDOUT: "bright_black",
    EventKind.STDERR: "yellow",
}

BODY_INDENT = "    "


def make_console(out: TextIO, color: bool | None = None) -> Console:
    """A console that prints exactly what it is given: no wrapping, markup or highlighting.

    ``color`` forces colours on (True) or off (False); None auto-detects.
    """
    return Console(
        file=out,
        force_terminal=color,
        color_system=None if color is False else ("standard" if color else "auto"),
        no_color=color is False,
        highlight=False,
        markup=False,
        emoji=False,
        soft_wrap=True,
    )


class HumanSink(BaseSink):
    """Indents by nesting depth, one status line per testcase, summary line at the end."""

    def __init__(self, out: TextIO, color: bool | None = None):
        self.console = make_console(out, color)
        self._first_suite = True

    def _print(self, line: Text | str = "") -> None:
        self.console.print(line)

    def _print_captured(self, indent: str, text: str, style: str) -> None:
        # Written past rich, which would drop control codes and expand tabs.
        system = self.console.color_system
        if system and not self.console.no_color:
            text = self.console.get_style(style).render(text, color_system=COLOR_SYSTEMS[system])
        self.console.file.write(f"{indent}{text}\n")

    def suites_open(self, block: BlockState) -> None:
        self._print(f"Suites: {block.attributes.get('name', '')}")
        self._print()

    def suite_open(self, block: BlockState) -> None:
        if self._first_suite:
            self._first_suite = False
        else:
            self._print()
        indent = " " * block.depth
        self._print(f"{indent}Suite: {block.attributes.get('name', '')} ({block.attributes.get('time', '?')}s)")
        self._print()

    def testcase_open(self, block: BlockState) -> None:
        status = block.status
        attributes = block.attributes
        name = attributes.get("name", "")
        if attributes.get("classname"):
            name = f"{attributes['classname']}/{name}"

        line = Text(" " * block.depth)
        line.append("[")
        line.append(STATUS_GLYPHS[status], style=STATUS_STYLES[status])
        line.append("] ")
        line.append(name, style="bold bright_white")
        if block.exit_code is not None and block.exit_code > 0:
            line.append(" (exit ")
            line.append(str(block.exit_code), style="bold red")
            line.append(")")
        if status is not CaseStatus.SKIPPED:
            line.append(f" ({attributes.get('time', '?')}s)")
        self._print(line)

    def testcase_body(self, block: BlockState) -> None:
        indent = " " * block.depth + BODY_INDENT
        if block.body:
            for item in block.body:
                self._print(Text(indent) + item)
            self._print()

        if block.has_output:
            self._print(f"{indent}captured output:")
            self._print(f"{indent}---------------")
            for _, kind, text in block.merged_output():
                self._print_captured(indent, text, OUTPUT_STYLES[kind])
            self._print()

    def body_add_failure(self, block: BlockState, function: str, message: str) -> None:
        entry = Text(message, style="bold bright_red")
        entry.append(f" ({function})")
        block.body.append(entry)

    def footer(self, totals: Totals) -> None:
        self._print()
        self._print(
            f"Test results: {totals.success} passed, {totals.failure} failed, "
            f"{totals.error} errors, {totals.skipped} skipped"
        )


def write_human(
    stream: Iterable[str] | str,
    out: TextIO,
    policy: ErrexitPolicy | str = ErrexitPolicy.FAILURES_PRESENT,
    color: bool | None = None,
) -> int:
    """Streams the human-readable report of ``stream`` to ``out``; returns the exit status."""
    return format_stream(stream, HumanSink(out, color=color), policy)


def human_format(
    stream: Iterable[str] | str,
    policy: ErrexitPolicy | str = ErrexitPolicy.FAILURES_PRESENT,
    color: bool = False,
) -> tuple[str, int]:
    """Renders ``stream`` as a report, returning the text and the exit status."""
    with io.StringIO() as buffer:
        exit_code = write_human(stream, buffer, policy, color=color)
        return buffer.getvalue(), exit_code


# 🔼⚙️
