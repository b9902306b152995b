"""
Binary codec for codec-safe values.

The codec turns a value made only of codec-safe shapes into bytes and back.
It is built on the pickle protocol, restricted in both directions:

- CodecPickler refuses any object that is not a primitive, a builtin
  container, or one of the native value types below, so a class instance
  or a function can never slip into a buffer by way of pickle's generic
  object support.
- CodecUnpickler only resolves the handful of globals those native value
  types reduce to. A buffer that names any other global is rejected
  instead of importing and calling it.

Within one buffer pickle's memo preserves shared references and cycles
among lists, dicts, sets and the other codec-safe shapes.

Codec-safe shapes:
    None, bool, int, float, str, bytes
    list, tuple, dict, collections.OrderedDict, set, frozenset
    datetime.datetime, date, time, timedelta, timezone
    re.Pattern
    complex, decimal.Decimal, fractions.Fraction, uuid.UUID, bytearray
    any type listed in CodecConfig.extra_types
"""

from __future__ import annotations

import collections
import datetime
import decimal
import fractions
import io
import pickle
import re
import types
import uuid
from typing import Any

from serialism.config import DEFAULT_CONFIG, CodecConfig
from serialism.errors import DataCloneError, DecodeError


# =============================================================================
# Codec-safe Types
# =============================================================================

# Immutable values written as they are
PRIMITIVE_TYPES: tuple[type, ...] = (type(None), bool, int, float, str, bytes)

# Temporal, pattern and boxed-value types the codec represents natively
NATIVE_TYPES: tuple[type, ...] = (
    datetime.datetime,
    datetime.date,
    datetime.time,
    datetime.timedelta,
    datetime.timezone,
    re.Pattern,
    complex,
    decimal.Decimal,
    fractions.Fraction,
    uuid.UUID,
    bytearray,
)

CONTAINER_TYPES: tuple[type, ...] = (
    list,
    tuple,
    dict,
    collections.OrderedDict,
    set,
    frozenset,
)


def _global_name(obj: Any) -> tuple[str, str]:
    return (getattr(obj, "__module__", None), getattr(obj, "__qualname__", None))


# Globals the native types reduce to. Sets and frozensets are only listed
# for completeness; protocol 4 and above write them with dedicated opcodes.
SAFE_GLOBALS: frozenset[tuple[str, str]] = frozenset(
    {_global_name(t) for t in NATIVE_TYPES if t is not re.Pattern}
    | {
        ("re", "_compile"),
        ("collections", "OrderedDict"),
        ("builtins", "set"),
        ("builtins", "frozenset"),
    }
)


# =============================================================================
# Pickler / Unpickler
# =============================================================================


class CodecPickler(pickle.Pickler):
    """Pickler that only accepts codec-safe values."""

    def __init__(self, file, config: CodecConfig = DEFAULT_CONFIG):
        super().__init__(file, protocol=config.protocol)
        self.allowed_types = frozenset(
            PRIMITIVE_TYPES + NATIVE_TYPES + CONTAINER_TYPES + config.extra_types
        )
        self.allowed_globals = SAFE_GLOBALS | {
            _global_name(t) for t in config.extra_types
        }

    def reducer_override(self, obj):
        # Exact type match: a subclass of an allowed type would be pickled
        # by reference to the subclass, which the unpickler cannot resolve.
        if type(obj) in self.allowed_types:
            return NotImplemented

        # Classes and functions reach this point as the callables of the
        # reductions above (datetime.datetime, re._compile, ...).
        if isinstance(obj, (type, types.FunctionType, types.BuiltinFunctionType)):
            if _global_name(obj) in self.allowed_globals:
                return NotImplemented
            raise DataCloneError(f"<{getattr(obj, '__qualname__', obj)}> could not be cloned.")

        raise DataCloneError(f"<{type(obj).__name__}> could not be cloned.")


class CodecUnpickler(pickle.Unpickler):
    """Unpickler that only resolves the globals of codec-safe types."""

    def __init__(self, file, config: CodecConfig = DEFAULT_CONFIG):
        super().__init__(file)
        self.allowed_globals = SAFE_GLOBALS | {
            _global_name(t) for t in config.extra_types
        }

    def find_class(self, module, name):
        if (module, name) in self.allowed_globals:
            return super().find_class(module, name)
        raise pickle.UnpicklingError(f"global '{module}.{name}' is forbidden")


# =============================================================================
# Public API
# =============================================================================


def encode(value: Any, config: CodecConfig | None = None) -> bytes:
    """
    Encode a codec-safe value to bytes.

    Args:
        value: The value to encode. It must only contain codec-safe shapes;
            run arbitrary values through entomb() first.
        config: Optional codec configuration.

    Returns:
        The encoded buffer.

    Raises:
        DataCloneError: If the value contains something the codec cannot
            represent. Nothing is returned in that case.
    """
    buffer = io.BytesIO()
    try:
        CodecPickler(buffer, config or DEFAULT_CONFIG).dump(value)
    except pickle.PicklingError as exc:
        raise DataCloneError(str(exc)) from exc
    return buffer.getvalue()


def decode(buffer: bytes, config: CodecConfig | None = None) -> Any:
    """
    Decode a buffer produced by encode().

    Args:
        buffer: A bytes-like object.
        config: Optional codec configuration. Must admit the same
            extra_types as the configuration the buffer was encoded with.

    Returns:
        The decoded codec-safe value.

    Raises:
        DecodeError: If the buffer is not bytes-like, is truncated or
            malformed, or references a global outside the allowlist.
    """
    if not isinstance(buffer, (bytes, bytearray, memoryview)):
        raise DecodeError(f"Expected a bytes-like buffer, got {type(buffer).__name__}")
    try:
        return CodecUnpickler(io.BytesIO(buffer), config or DEFAULT_CONFIG).load()
    except (
        pickle.UnpicklingError,
        EOFError,
        AttributeError,
        IndexError,
        KeyError,
        OverflowError,
        TypeError,
        ValueError,
    ) as exc:
        raise DecodeError(f"Malformed buffer: {exc}") from exc


__all__ = [
    "PRIMITIVE_TYPES",
    "NATIVE_TYPES",
    "CONTAINER_TYPES",
    "SAFE_GLOBALS",
    "CodecPickler",
    "CodecUnpickler",
    "encode",
    "decode",
]
