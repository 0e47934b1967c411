#
# src/shelter/events.py
#
"""
The event-line protocol connecting runners, aggregators and formatters.

Every line is ``KEYWORD<space>REST``; the shape of REST depends on the keyword.
"""

import re
import shlex
from decimal import Decimal, InvalidOperation
from enum import Enum

from attrs import define, field

from shelter.exceptions import EventStreamError


class EventKind(str, Enum):
    """All keywords understood by the event protocol."""

    CMD = "CMD"
    ENV = "ENV"
    SKIPPED = "SKIPPED"
    STDOUT = "STDOUT"
    STDERR = "STDERR"
    TIME = "TIME"
    EXIT = "EXIT"
    ASSERT = "ASSERT"
    CLASS = "CLASS"

    SUITE_NAME = "SUITE_NAME"
    SUITE_TESTS = "SUITE_TESTS"
    SUITE_ERRORS = "SUITE_ERRORS"
    SUITE_FAILURES = "SUITE_FAILURES"
    SUITE_SKIPPED = "SUITE_SKIPPED"
    SUITE_TIME = "SUITE_TIME"

    SUITES_NAME = "SUITES_NAME"
    SUITES_TESTS = "SUITES_TESTS"
    SUITES_ERRORS = "SUITES_ERRORS"
    SUITES_FAILURES = "SUITES_FAILURES"
    SUITES_SKIPPED = "SUITES_SKIPPED"
    SUITES_TIME = "SUITES_TIME"


OUTPUT_KINDS = frozenset({EventKind.STDOUT, EventKind.STDERR})

COUNT_KINDS = frozenset(
    {
        EventKind.SUITE_TESTS,
        EventKind.SUITE_ERRORS,
        EventKind.SUITE_FAILURES,
        EventKind.SUITE_SKIPPED,
        EventKind.SUITES_TESTS,
        EventKind.SUITES_ERRORS,
        EventKind.SUITES_FAILURES,
        EventKind.SUITES_SKIPPED,
    }
)

DECIMAL_KINDS = frozenset({EventKind.TIME, EventKind.SUITE_TIME, EventKind.SUITES_TIME})

_KINDS_BY_KEYWORD = {kind.value: kind for kind in EventKind}

_SEQUENCE = re.compile(r"[0-9]+")
_INTEGER = re.compile(r"-?[0-9]+")


@define(frozen=True, slots=True)
class Event:
    """One tagged line of the event stream."""

    kind: EventKind = field()
    value: str = field(default="")

    # --- Constructors ---
    @classmethod
    def output(cls, kind: EventKind, sequence: int, text: str) -> "Event":
        return cls(kind, f"{sequence} {text}")

    @classmethod
    def env(cls, name: str, value: str) -> "Event":
        return cls(EventKind.ENV, f"{name} {quote_declaration(name, value)}")

    @classmethod
    def assertion_failure(cls, function: str, message: str) -> "Event":
        return cls(EventKind.ASSERT, f"{function} {message}")

    # --- Structured accessors ---
    @property
    def sequenced(self) -> tuple[int, str]:
        """(sequence, text) of a STDOUT/STDERR event."""
        sequence, _, text = self.value.partition(" ")
        return int(sequence), text

    @property
    def assertion(self) -> tuple[str, str]:
        """(assertion function, message) of an ASSERT event."""
        function, _, message = self.value.partition(" ")
        return function, message

    @property
    def exit_code(self) -> int:
        return int(self.value)

    @property
    def count(self) -> int:
        return int(self.value)

    @property
    def duration(self) -> Decimal:
        return Decimal(self.value)

    def to_line(self) -> str:
        return f"{self.kind.value} {self.value}"

    @classmethod
    def parse(cls, line: str, lineno: int | None = None) -> "Event":
        """Parses and validates a single protocol line."""
        line = line.rstrip("\n")
        keyword, _, rest = line.partition(" ")
        kind = _KINDS_BY_KEYWORD.get(keyword)
        if kind is None:
            raise EventStreamError(f"Unknown event keyword '{keyword}'", line=line, lineno=lineno)

        if kind in OUTPUT_KINDS:
            sequence, _, _ = rest.partition(" ")
            if not _SEQUENCE.fullmatch(sequence):
                raise EventStreamError(
                    f"{keyword} event without a sequence number", line=line, lineno=lineno
                )
        elif kind is EventKind.EXIT or kind in COUNT_KINDS:
            if not _INTEGER.fullmatch(rest):
                raise EventStreamError(f"{keyword} event requires an integer", line=line, lineno=lineno)
        elif kind in DECIMAL_KINDS:
            try:
                number = Decimal(rest)
            except InvalidOperation:
                raise EventStreamError(
                    f"{keyword} event requires a decimal number", line=line, lineno=lineno
                ) from None
            if not number.is_finite():
                raise EventStreamError(
                    f"{keyword} event requires a finite number", line=line, lineno=lineno
                )
        elif kind is EventKind.ENV:
            name, _, declaration = rest.partition(" ")
            if not name or not declaration:
                raise EventStreamError("ENV event requires a name and a declaration", line=line, lineno=lineno)

        return cls(kind, rest)


def parse_stream(lines):
    """Yields parsed events for every non-empty line of an iterable of lines."""
    for lineno, line in enumerate(lines, start=1):
        if not line.strip("\r\n"):
            continue
        yield Event.parse(line, lineno=lineno)


# --- ENV declaration quoting ---
_ANSI_C_ESCAPES = {
    "\\": "\\\\",
    "'": "\\'",
    "\n": "\\n",
    "\t": "\\t",
    "\r": "\\r",
    "\a": "\\a",
    "\b": "\\b",
    "\x1b": "\\E",
    "\f": "\\f",
    "\v": "\\v",
}

_ANSI_C_UNESCAPES = {
    "\\": "\\",
    "'": "'",
    '"': '"',
    "?": "?",
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "a": "\a",
    "b": "\b",
    "e": "\x1b",
    "E": "\x1b",
    "f": "\f",
    "v": "\v",
}


def _is_control(char: str) -> bool:
    return ord(char) < 32 or ord(char) == 127


def quote_declaration(name: str, value: str) -> str:
    """Shell-quotes ``name=value`` so the result never spans more than one line.

    Plain values use POSIX single quoting; values with control characters use
    bash ANSI-C quoting (``$'...'``).
    """
    declaration = f"{name}={value}"
    if not any(_is_control(char) for char in declaration):
        return shlex.quote(declaration)

    escaped = []
    for char in declaration:
        if char in _ANSI_C_ESCAPES:
            escaped.append(_ANSI_C_ESCAPES[char])
        elif _is_control(char):
            escaped.append(f"\\x{ord(char):02x}")
        else:
            escaped.append(char)
    return "$'" + "".join(escaped) + "'"


def _ansi_c_unquote(body: str) -> str:
    result = []
    i = 0
    while i < len(body):
        char = body[i]
        if char != "\\" or i + 1 == len(body):
            result.append(char)
            i += 1
            continue
        nxt = body[i + 1]
        if nxt == "x":
            digits = ""
            j = i + 2
            while j < len(body) and len(digits) < 2 and body[j] in "0123456789abcdefABCDEF":
                digits += body[j]
                j += 1
            if digits:
                result.append(chr(int(digits, 16)))
                i = j
                continue
        if nxt in _ANSI_C_UNESCAPES:
            result.append(_ANSI_C_UNESCAPES[nxt])
        else:
            result.append(char + nxt)
        i += 2
    return "".join(result)


def unquote_declaration(text: str) -> tuple[str, str]:
    """Inverse of :func:`quote_declaration`."""
    if text.startswith("$'") and text.endswith("'") and len(text) >= 3:
        declaration = _ansi_c_unquote(text[2:-1])
    else:
        parts = shlex.split(text)
        if len(parts) != 1:
            raise EventStreamError(f"Malformed ENV declaration: {text!r}")
        declaration = parts[0]
    name, sep, value = declaration.partition("=")
    if not sep:
        raise EventStreamError(f"Malformed ENV declaration: {text!r}")
    return name, value


# 🔼⚙️
