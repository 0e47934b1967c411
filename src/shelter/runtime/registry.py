#
# src/shelter/runtime/registry.py
#
"""
Ordered name registries for cases and suites.
"""

from collections.abc import Callable, Iterator
from typing import Generic, TypeVar

T = TypeVar("T")


class Registry(Generic[T]):
    """
    An ordered mapping of names to entries.

    Prefix lookups return entries in registration order, which is the order
    classes and suite collections run them in.
    """

    def __init__(self, entries: dict[str, T] | None = None):
        self._entries: dict[str, T] = {}
        for name, entry in (entries or {}).items():
            self.add(name, entry)

    def add(self, name: str, entry: T) -> T:
        if name in self._entries:
            raise KeyError(f"'{name}' is already registered")
        self._entries[name] = entry
        return entry

    def register(self, name: str | None = None) -> Callable[[T], T]:
        """Decorator form of :meth:`add`, defaulting to the callable's name."""

        def decorator(entry: T) -> T:
            return self.add(name or entry.__name__, entry)

        return decorator

    def get(self, name: str, default: T | None = None) -> T | None:
        return self._entries.get(name, default)

    def matching(self, prefix: str) -> list[tuple[str, T]]:
        """All (name, entry) pairs whose name starts with ``prefix``."""
        return [(name, entry) for name, entry in self._entries.items() if name.startswith(prefix)]

    def names(self) -> list[str]:
        return list(self._entries)

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.names()!r})"


# 🔼⚙️
