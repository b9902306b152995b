"""
Class registry for serialism.

Class instances are written to a buffer as a class name plus their state.
The registry is the only place that name is turned back into a class, so
the classes a buffer may contain have to be registered up front, on both
the serializing and the deserializing side.

Names must be unique within one registry. Registering the same class twice
is harmless; registering a different class under a name that is already
taken raises DuplicateClassError.
"""

from __future__ import annotations

import logging
import threading
from typing import Iterator

from serialism.errors import DuplicateClassError


logger = logging.getLogger(__name__)


class ClassRegistry:
    """
    Append-only mapping between class names and classes.

    Example:
        >>> registry = ClassRegistry().register(Point, Line)
        >>> registry.get("Point") is Point
        True
        >>> registry.name_of(Line)
        'Line'
    """

    def __init__(self, classes: tuple[type, ...] | list[type] = ()):
        self._by_name: dict[str, type] = {}
        # id(cls) -> name; the class itself is kept alive by _by_name
        self._by_class: dict[int, str] = {}
        self._lock = threading.Lock()
        self.register(*classes)

    def register(self, *classes: type) -> ClassRegistry:
        """
        Register classes under their __name__.

        Returns:
            The registry, for chaining.

        Raises:
            DuplicateClassError: If a name is already bound to another class.
            TypeError: If an argument is not a class.
        """
        for cls in classes:
            self.register_as(getattr(cls, "__name__", None), cls)
        return self

    def register_as(self, name: str, cls: type) -> ClassRegistry:
        """Register a class under an explicit name."""
        if not isinstance(cls, type):
            raise TypeError(f"Only classes can be registered, got {cls!r}")
        if not isinstance(name, str) or not name:
            raise TypeError(f"Class names must be non-empty strings, got {name!r}")

        with self._lock:
            existing = self._by_name.get(name)
            if existing is cls:
                return self
            if existing is not None:
                raise DuplicateClassError(name)
            self._by_name[name] = cls
            self._by_class[id(cls)] = name

        logger.debug("Registered class %s.%s as %r", cls.__module__, cls.__qualname__, name)
        return self

    def get(self, name: str) -> type | None:
        """Return the class registered under name, or None."""
        return self._by_name.get(name)

    def name_of(self, cls: type) -> str | None:
        """Return the name a class is registered under, or None."""
        name = self._by_class.get(id(cls))
        if name is not None and self._by_name[name] is cls:
            return name
        return None

    @property
    def classes(self) -> tuple[type, ...]:
        return tuple(self._by_name.values())

    def __contains__(self, item: object) -> bool:
        if isinstance(item, str):
            return item in self._by_name
        return isinstance(item, type) and self.name_of(item) is not None

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._by_name))

    def __len__(self) -> int:
        return len(self._by_name)

    def __repr__(self) -> str:
        return f"ClassRegistry({', '.join(self._by_name)})"


__all__ = ["ClassRegistry"]
