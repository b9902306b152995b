"""
serialism - binary serialization of Python value graphs.

This library serializes Python values to bytes and back, preserving object
identity, shared references and cycles, including values a plain binary
codec cannot represent on its own:

- Primitives (None, bool, int, float incl. -0.0/nan/inf, str, bytes)
- Collections (list, tuple, dict, OrderedDict, set, frozenset)
- Native values (datetime types, compiled regular expressions, complex,
  Decimal, Fraction, UUID, bytearray)
- Instances of registered classes, rebuilt without calling __init__,
  including as set members and mapping keys
- Global symbols, as values and as mapping keys

Basic Usage:
    >>> from serialism import Serialism
    >>>
    >>> serializer = Serialism()
    >>> buffer = serializer.serialize({"key": [1, 2, 3]})
    >>> serializer.deserialize(buffer)
    {'key': [1, 2, 3]}

Registered Classes:
    >>> class Point:
    ...     def __init__(self, x, y):
    ...         self.x = x
    ...         self.y = y
    >>>
    >>> serializer = Serialism().register(Point)
    >>> point = serializer.deserialize(serializer.serialize(Point(1, 2)))
    >>> isinstance(point, Point), point.x, point.y
    (True, 1, 2)

    Instances of classes that are not registered raise
    UnregisteredClassError on serialize, and a buffer naming a class the
    deserializing side has not registered raises on deserialize.

Symbols:
    >>> from serialism import Symbol
    >>> tag = Symbol.for_("app.tag")
    >>> result = serializer.deserialize(serializer.serialize({tag: "x"}))
    >>> result[tag]
    'x'

    Private symbols (Symbol()) cannot be written as values. Used as a key,
    the entry is left out.

Reserved prefix:
    Strings starting with "@serialism:" tag directives in a buffer. A list or
    tuple whose first item is such a string, and a mapping key starting with
    "@serialism:sym:", raise ReservedPrefixError on serialize instead of being
    misread on the way back:

    >>> serialize(["@serialism:sym", "x"])
    Traceback (most recent call last):
    ...
    serialism.errors.ReservedPrefixError: Data clone error: ...

Raw codec:
    serialize_native() and deserialize_native() expose the restricted codec
    directly, without the entomb/revive transforms.
"""

import logging
from typing import Any, Iterable

from serialism.codec import decode as deserialize_native
from serialism.codec import encode as serialize_native
from serialism.config import CodecConfig
from serialism.errors import (
    DataCloneError,
    DecodeError,
    DuplicateClassError,
    ReservedPrefixError,
    SerialismError,
    UnknownDirectiveError,
    UnregisteredClassError,
)
from serialism.registry import ClassRegistry
from serialism.serializer import Serialism
from serialism.symbols import Symbol


logging.getLogger(__name__).addHandler(logging.NullHandler())


def serialize(
    value: Any,
    *,
    classes: Iterable[type] = (),
    config: CodecConfig | None = None,
) -> bytes:
    """
    Serialize a value with a one-off Serialism instance.

    Args:
        value: The value to serialize.
        classes: Classes whose instances may appear in value.
        config: Optional codec configuration.

    Returns:
        The serialized buffer.

    Example:
        >>> buffer = serialize([1, 2, {"nested": True}])
    """
    return Serialism(classes, config).serialize(value)


def deserialize(
    buffer: bytes,
    *,
    classes: Iterable[type] = (),
    config: CodecConfig | None = None,
) -> Any:
    """
    Deserialize a buffer with a one-off Serialism instance.

    Args:
        buffer: Bytes produced by serialize().
        classes: Classes the buffer may name.
        config: Optional codec configuration.

    Returns:
        The reconstructed value.

    Example:
        >>> deserialize(serialize([1, 2, 3]))
        [1, 2, 3]
    """
    return Serialism(classes, config).deserialize(buffer)


__all__ = [
    # Core API
    "Serialism",
    "serialize",
    "deserialize",
    "serialize_native",
    "deserialize_native",
    # Building blocks
    "ClassRegistry",
    "CodecConfig",
    "Symbol",
    # Errors
    "SerialismError",
    "DataCloneError",
    "ReservedPrefixError",
    "UnregisteredClassError",
    "DuplicateClassError",
    "UnknownDirectiveError",
    "DecodeError",
]
