"""
Symbols and the process-wide symbol registry.

A Symbol is a unique, identity-compared token that can be used as a value
or as a mapping key. Symbols come in two flavours:

- Private symbols, created with ``Symbol(description)``. Each call returns a
  new symbol that only exists in this process and therefore cannot be
  serialized.
- Global symbols, obtained with ``Symbol.for_(key)``. The registry hands out
  the same symbol for the same key for the lifetime of the process, so a
  global symbol can be written to a buffer as its key and looked up again
  on the other side.

Example:
    >>> a = Symbol.for_("app.cache")
    >>> a is Symbol.for_("app.cache")
    True
    >>> Symbol.key_for(a)
    'app.cache'
    >>> Symbol.key_for(Symbol("local")) is None
    True
"""

from __future__ import annotations

import threading

from serialism.errors import DataCloneError


# Registry mapping keys to their global symbols. Entries are never evicted.
_GLOBAL_SYMBOLS: dict[str, "Symbol"] = {}
_GLOBAL_LOCK = threading.Lock()


class Symbol:
    """A unique token, private unless obtained through Symbol.for_()."""

    __slots__ = ("description", "_key", "__weakref__")

    def __init__(self, description: str | None = None):
        self.description = description
        self._key: str | None = None

    @classmethod
    def for_(cls, key: str) -> Symbol:
        """Return the global symbol for key, creating it on first request."""
        if not isinstance(key, str):
            raise TypeError(f"Symbol keys must be str, got {type(key).__name__}")
        with _GLOBAL_LOCK:
            symbol = _GLOBAL_SYMBOLS.get(key)
            if symbol is None:
                symbol = cls(key)
                symbol._key = key
                _GLOBAL_SYMBOLS[key] = symbol
            return symbol

    @staticmethod
    def key_for(symbol: Symbol) -> str | None:
        """Return the registry key of a global symbol, or None if private."""
        return symbol._key

    @property
    def is_global(self) -> bool:
        return self._key is not None

    def __repr__(self) -> str:
        if self._key is not None:
            return f"Symbol.for_({self._key!r})"
        if self.description is None:
            return "Symbol()"
        return f"Symbol({self.description!r})"

    # Symbols have no identity outside this process; the codec must never
    # see one. Copies keep identity, like other singletons.

    def __copy__(self) -> Symbol:
        return self

    def __deepcopy__(self, memo) -> Symbol:
        return self

    def __reduce__(self):
        raise DataCloneError(f"{self!r} could not be cloned.")


__all__ = ["Symbol"]
