"""
Exception hierarchy for serialism.

Every failure raised by the transforms, the class registry and the codec
derives from SerialismError so callers can catch the whole family at once:

- DataCloneError: a value cannot be represented in a buffer at all
  (private symbols, functions, values the codec refuses).
- ReservedPrefixError: user data collides with the directive prefix.
- UnregisteredClassError: an instance's class (serialize) or a class name
  found in a buffer (deserialize) is missing from the registry.
- DuplicateClassError: two different classes registered under one name.
- UnknownDirectiveError: a decoded value carries an unrecognized directive.
- DecodeError: the codec could not read the buffer.
"""

from __future__ import annotations

from typing import Literal


class SerialismError(Exception):
    """Base class for all serialism errors."""


class DataCloneError(SerialismError):
    """Raised when a value cannot be cloned into a buffer."""

    def __init__(self, message: str):
        super().__init__(f"Data clone error: {message}")


class ReservedPrefixError(DataCloneError):
    """
    Raised when user data would be mistaken for a directive.

    The reserved prefix is not escaped. serialize() refuses, rather than
    writes, any of the following:

    - a list or tuple whose first item is a str starting with "@serialism:",
      e.g. ["@serialism:sym", "x"]
    - a str mapping key starting with "@serialism:sym:"
    - an instance attribute name starting with "@serialism:"

    Strings carrying the prefix anywhere else round-trip unchanged.

    Attributes:
        value: The offending string.
    """

    def __init__(self, value: str):
        self.value = value
        super().__init__(
            f"{value!r} uses the reserved '@serialism:' prefix and would not "
            f"survive a round trip"
        )


class UnregisteredClassError(SerialismError):
    """
    Raised when a class is not present in the class registry.

    Attributes:
        class_name: Name of the missing class.
        phase: "serialize" when an instance of an unregistered class was
            found in the value graph, "deserialize" when a buffer names a
            class the reviving registry does not know.
    """

    def __init__(self, class_name: str, phase: Literal["serialize", "deserialize"]):
        self.class_name = class_name
        self.phase = phase
        if phase == "serialize":
            message = f"No registered class found for {class_name}"
        else:
            message = f"No registered class found for: {class_name}"
        super().__init__(message)


class DuplicateClassError(SerialismError):
    """Raised when a name is already bound to a different class."""

    def __init__(self, class_name: str):
        self.class_name = class_name
        super().__init__(
            f"A different class with the name '{class_name}' is already registered"
        )


class UnknownDirectiveError(SerialismError):
    """Raised when a decoded directive is corrupt or not recognized."""

    def __init__(self, directive: str, detail: str | None = None):
        self.directive = directive
        message = f"Unknown directive {directive}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class DecodeError(SerialismError):
    """Raised when a buffer is malformed or incompatible."""


__all__ = [
    "SerialismError",
    "DataCloneError",
    "ReservedPrefixError",
    "UnregisteredClassError",
    "DuplicateClassError",
    "UnknownDirectiveError",
    "DecodeError",
]
