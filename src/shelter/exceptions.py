# src/shelter/exceptions.py

"""
Exception hierarchy for shelter.

Test outcomes (failures, errors, skips) are never raised. Everything in here
signals a framework problem: the run or the event stream cannot be trusted.
"""


class ShelterError(Exception):
    """Base class for all shelter framework errors."""

    pass


class ConfigurationError(ShelterError):
    """Raised when the configuration or test plan is invalid."""

    pass


class MalformedCommandError(ShelterError):
    """Raised when a command or case name cannot be represented in the event protocol."""

    def __init__(self, message: str, command: str | None = None):
        self.command = command
        super().__init__(message)
        if command is not None and hasattr(self, "add_note"):
            self.add_note(f"Command: {command!r}")


class EventStreamError(ShelterError):
    """Raised when an event line cannot be parsed."""

    def __init__(
        self,
        message: str,
        line: str | None = None,
        lineno: int | None = None,
    ):
        self.line = line
        self.lineno = lineno
        full_message = message
        if lineno is not None:
            full_message = f"{message} (line {lineno})"
        super().__init__(full_message)
        if line is not None and hasattr(self, "add_note"):
            self.add_note(f"Offending line: {line!r}")


class PatchError(ShelterError):
    """Raised when a command cannot be patched or unpatched."""

    pass


# 🔼⚙️
