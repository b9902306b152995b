"""
Entomb: rewrite an arbitrary value graph into codec-safe values.

The codec can only write primitives, builtin containers and a few native
value types. entomb() walks a value graph before it is handed to the codec
and replaces everything else:

- instances of registered classes become TypeDirective lists
- global symbols become SymbolDirective lists, or prefixed string keys when
  they are used as mapping keys
- sets holding registered instances and mappings keyed by them become
  SetDirective and MapDirective lists, since an entombed instance is a list
  and cannot sit in a codec set or be a codec mapping key
- private symbols used as values, functions, modules and instances of
  unregistered classes are rejected

Containers are copied, never mutated. Every copy is recorded in the identity
map before its members are visited, so shared references and cycles in the
input come out as shared references and cycles in the output, which the
codec then preserves.
"""

from __future__ import annotations

import collections
import types
import weakref
from typing import Any

from serialism.codec import NATIVE_TYPES, PRIMITIVE_TYPES
from serialism.config import DEFAULT_CONFIG, CodecConfig
from serialism.directives import (
    DROP,
    RESERVED_PREFIX,
    SYMBOL_KEY_PREFIX,
    MapDirective,
    SetDirective,
    SymbolDirective,
    TypeDirective,
    symbol_key,
)
from serialism.errors import DataCloneError, ReservedPrefixError
from serialism.memo import Known
from serialism.registry import ClassRegistry
from serialism.symbols import Symbol


# Objects that only make sense inside the running interpreter
RUNTIME_TYPES: tuple[type, ...] = (
    type,
    types.FunctionType,
    types.BuiltinFunctionType,
    types.MethodType,
    types.ModuleType,
    types.CodeType,
    types.FrameType,
    types.TracebackType,
    types.GeneratorType,
    types.CoroutineType,
    types.AsyncGeneratorType,
    weakref.ReferenceType,
    property,
    classmethod,
    staticmethod,
)

_MAPPING_TYPES = (dict, collections.OrderedDict)


class EntombContext:
    """
    State for one entomb walk.

    Attributes:
        registry: Classes whose instances may be written.
        config: Codec configuration; its extra_types pass through unchanged.
        known: Identity map from input objects to their entombed copies.
    """

    def __init__(
        self,
        registry: ClassRegistry,
        config: CodecConfig | None = None,
        known: Known | None = None,
    ):
        self.registry = registry
        self.config = config or DEFAULT_CONFIG
        self.known = known if known is not None else Known()
        self.passthrough_types = frozenset(PRIMITIVE_TYPES + NATIVE_TYPES + self.config.extra_types)

    def entomb(self, value: Any) -> Any:
        """
        Return the codec-safe counterpart of value.

        Raises:
            DataCloneError: For private symbols used as values and for
                runtime-only objects.
            ReservedPrefixError: For user data that looks like a directive.
            UnregisteredClassError: For instances of unregistered classes.
        """
        # Already visited - shared reference or cycle
        if value in self.known:
            return self.known.get(value)

        value_type = type(value)

        if value_type is list:
            _check_head(value)
            result = self.known.set(value, [])
            for item in value:
                result.append(self.entomb(item))
            return result

        if value_type is tuple:
            _check_head(value)
            result = tuple([self.entomb(item) for item in value])
            # A cycle through this tuple may have produced it already
            if value in self.known:
                return self.known.get(value)
            return self.known.set(value, result)

        if isinstance(value, Symbol):
            return SymbolDirective.entomb(value, self)

        if value_type in self.passthrough_types:
            return value

        if value_type in _MAPPING_TYPES:
            if not all(self._is_plain_key(key) for key in value):
                return MapDirective.entomb(value, self)
            result = self.known.set(value, value_type())
            for key, item in value.items():
                entombed_key = self.entomb_key(key)
                if entombed_key is DROP:
                    continue
                result[entombed_key] = self.entomb(item)
            return result

        if value_type is set or value_type is frozenset:
            if not all(self._is_plain_hashable(item) for item in value):
                return SetDirective.entomb(value, self)

        if value_type is set:
            result = self.known.set(value, set())
            for item in value:
                result.add(self._entomb_hashable(item))
            return result

        if value_type is frozenset:
            result = frozenset([self._entomb_hashable(item) for item in value])
            if value in self.known:
                return self.known.get(value)
            return self.known.set(value, result)

        if isinstance(value, RUNTIME_TYPES):
            name = getattr(value, "__qualname__", None) or value_type.__name__
            raise DataCloneError(f"<{name}> could not be cloned.")

        return TypeDirective.entomb(value, self)

    def entomb_key(self, key: Any, hashable: bool = True) -> Any:
        """
        Entomb a mapping key.

        Global symbol keys become prefixed strings and private symbol keys
        return DROP. With ``hashable`` false the key is written into a pair
        list rather than a codec mapping and may be any entombed value.
        """
        if isinstance(key, Symbol):
            registry_key = Symbol.key_for(key)
            if registry_key is None:
                return DROP
            return symbol_key(registry_key)
        if isinstance(key, str):
            if key.startswith(SYMBOL_KEY_PREFIX):
                raise ReservedPrefixError(key)
            return key
        if hashable:
            return self._entomb_hashable(key)
        return self.entomb(key)

    def _is_plain_key(self, key: Any) -> bool:
        return isinstance(key, (Symbol, str)) or self._is_plain_hashable(key)

    def _is_plain_hashable(self, value: Any) -> bool:
        """Check whether value entombs to something a codec set can hold."""
        value_type = type(value)
        if value_type is tuple or value_type is frozenset:
            return all(self._is_plain_hashable(item) for item in value)
        return value_type is Symbol or value_type in self.passthrough_types

    def _entomb_hashable(self, value: Any) -> Any:
        """
        Entomb a set member or mapping key that _is_plain_hashable accepts.

        Symbol directives are written in their tuple form here, including
        inside tuple and frozenset keys, so the result stays hashable.
        """
        if isinstance(value, Symbol):
            return tuple(SymbolDirective.entomb(value, self))

        value_type = type(value)
        if value_type is tuple or value_type is frozenset:
            # Reuse the copy made elsewhere in the graph when it is hashable
            if value in self.known:
                existing = self.known.get(value)
                try:
                    hash(existing)
                except TypeError:
                    pass
                else:
                    return existing
            if value_type is tuple:
                _check_head(value)
                result = tuple([self._entomb_hashable(item) for item in value])
            else:
                result = frozenset([self._entomb_hashable(item) for item in value])
            if value not in self.known:
                self.known.set(value, result)
            return result

        return self.entomb(value)


def _check_head(sequence: list | tuple) -> None:
    """Reject user sequences that would be read back as directives."""
    if sequence and isinstance(sequence[0], str) and sequence[0].startswith(RESERVED_PREFIX):
        raise ReservedPrefixError(sequence[0])


def entomb(
    value: Any,
    registry: ClassRegistry,
    known: Known | None = None,
    config: CodecConfig | None = None,
) -> Any:
    """
    Rewrite value into a graph the codec can encode.

    Args:
        value: Any value built from supported shapes.
        registry: Classes whose instances may appear in value.
        known: Optional identity map; a fresh one is used when omitted.
        config: Optional codec configuration.

    Returns:
        The codec-safe counterpart of value.

    Example:
        >>> registry = ClassRegistry().register(Point)
        >>> entomb({"p": Point(1, 2)}, registry)
        {'p': ['@serialism:type', 'Point', [['x', 1], ['y', 2]]]}
    """
    return EntombContext(registry, config, known).entomb(value)


__all__ = ["EntombContext", "RUNTIME_TYPES", "entomb"]
