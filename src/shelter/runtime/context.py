#
# src/shelter/runtime/context.py
#
"""
Explicit run configuration handed to every runner, plus the event emitters.
"""

import os
from collections.abc import Awaitable, Callable, Mapping
from pathlib import Path
from typing import TYPE_CHECKING, TextIO, TypeAlias

import attrs
from attrs import define, field

from shelter.config.models import DEFAULT_SHELL, Command
from shelter.events import Event
from shelter.runtime.registry import Registry

if TYPE_CHECKING:
    from shelter.patching import CommandPatcher

EventCallback: TypeAlias = Callable[[Event], None]
SuiteFunction: TypeAlias = Callable[["RunContext"], Awaitable[None]]


class StreamEmitter:
    """Writes every event as a protocol line to a text stream."""

    def __init__(self, stream: TextIO):
        self._stream = stream

    def __call__(self, event: Event) -> None:
        self._stream.write(event.to_line() + "\n")
        self._stream.flush()


class CollectingEmitter:
    """Keeps events in memory, in emission order."""

    def __init__(self) -> None:
        self.events: list[Event] = []

    def __call__(self, event: Event) -> None:
        self.events.append(event)

    def lines(self) -> list[str]:
        return [event.to_line() for event in self.events]


@define(frozen=True, slots=True)
class RunContext:
    """
    Everything a runner needs, passed explicitly instead of living in globals.

    Aggregators derive child contexts with :meth:`with_emitter` so that the
    events of the cases they wrap flow into their own collectors.
    """

    emit: EventCallback = field()
    cases: Registry[Command] = field(factory=Registry)
    suites: Registry[SuiteFunction] = field(factory=Registry)
    skip: tuple[str, ...] = field(factory=tuple, converter=tuple)
    shell: tuple[str, ...] = field(default=DEFAULT_SHELL, converter=tuple)
    env: Mapping[str, str] | None = field(default=None)
    cwd: Path | None = field(default=None)
    timeout: float | None = field(default=None)
    patcher: "CommandPatcher | None" = field(default=None)

    def with_emitter(self, emit: EventCallback) -> "RunContext":
        return attrs.evolve(self, emit=emit)

    def is_skipped(self, name: str) -> bool:
        return name in self.skip

    def resolve(self, name: str) -> Command:
        """The command registered for ``name``; unregistered names are shell commands themselves."""
        command = self.cases.get(name)
        return name if command is None else command

    def environment(self) -> dict[str, str]:
        """The variables visible to a case started right now."""
        environ = dict(os.environ if self.env is None else self.env)
        if self.patcher is not None:
            environ = self.patcher.apply(environ)
        return environ


# 🔼⚙️
