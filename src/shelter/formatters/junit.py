#
# src/shelter/formatters/junit.py
#
"""
JUnit-style XML sink.
"""

import io
from collections.abc import Iterable, Mapping
from typing import TextIO
from xml.sax.saxutils import escape

from shelter.config.models import ErrexitPolicy
from shelter.formatters.core import BaseSink, BlockState, format_stream

_XML_ENTITIES = {'"': "&quot;", "'": "&apos;"}


def xml_escaped(value: str) -> str:
    """Escapes ``& < > " '``."""
    return escape(value, _XML_ENTITIES)


def xml_attributes(attributes: Mapping[str, str]) -> str:
    """Renders attributes as ``key="value"`` pairs sorted by key."""
    return " ".join(f'{key}="{xml_escaped(attributes[key])}"' for key in sorted(attributes))


def _open_tag(tag: str, attributes: Mapping[str, str]) -> str:
    rendered = xml_attributes(attributes)
    return f"<{tag} {rendered}>" if rendered else f"<{tag}>"


class JUnitSink(BaseSink):
    """Writes each block as an XML element as soon as it is complete."""

    def __init__(self, out: TextIO):
        self.out = out

    def _write(self, text: str) -> None:
        self.out.write(text + "\n")

    def header(self) -> None:
        self._write('<?xml version="1.0" encoding="UTF-8"?>')

    def suites_open(self, block: BlockState) -> None:
        self._write(_open_tag("testsuites", block.attributes))

    def suites_close(self) -> None:
        self._write("</testsuites>")

    def suite_open(self, block: BlockState) -> None:
        self._write(_open_tag("testsuite", block.attributes))

    def suite_close(self) -> None:
        self._write("</testsuite>")

    def testcase_open(self, block: BlockState) -> None:
        self._write(_open_tag("testcase", block.attributes))

    def testcase_body(self, block: BlockState) -> None:
        for item in block.body:
            self._write(item)
        self._write_stream("system-out", block.stdout)
        self._write_stream("system-err", block.stderr)

    def _write_stream(self, tag: str, lines: Mapping[int, str]) -> None:
        if not lines:
            return
        self._write(f"<{tag}>")
        for sequence in sorted(lines):
            self._write(f"{sequence} {xml_escaped(lines[sequence])}")
        self._write(f"</{tag}>")

    def testcase_close(self, block: BlockState) -> None:
        self._write("</testcase>")

    def body_add_failure(self, block: BlockState, function: str, message: str) -> None:
        block.body.append(f"<failure {xml_attributes({'type': function, 'message': message})}></failure>")

    def body_add_skipped(self, block: BlockState) -> None:
        block.body.append("<skipped></skipped>")

    def body_add_error(self, block: BlockState) -> None:
        block.body.append("<error></error>")


def write_structured(
    stream: Iterable[str] | str,
    out: TextIO,
    policy: ErrexitPolicy | str = ErrexitPolicy.FAILURES_PRESENT,
) -> int:
    """Streams the JUnit XML rendering of ``stream`` to ``out``; returns the exit status."""
    return format_stream(stream, JUnitSink(out), policy)


def structured_format(
    stream: Iterable[str] | str,
    policy: ErrexitPolicy | str = ErrexitPolicy.FAILURES_PRESENT,
) -> tuple[str, int]:
    """Renders ``stream`` as JUnit XML, returning the document and the exit status."""
    with io.StringIO() as buffer:
        exit_code = write_structured(stream, buffer, policy)
        return buffer.getvalue(), exit_code


# 🔼⚙️
