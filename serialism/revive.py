"""
Revive: rebuild the original value graph from decoded codec-safe values.

revive() is the inverse of entomb(). It walks the graph produced by the
codec and rebuilds:

- directive lists as global symbols or as instances of registered classes
  (created without calling __init__)
- prefixed string keys as global symbol keys
- every container as a fresh container of the same type

Every rebuilt container is recorded in the identity map before its members
are visited, so the shared references and cycles the codec preserved are
carried over to the result.
"""

from __future__ import annotations

import collections
from typing import Any

from serialism.directives import is_directive, parse_directive, parse_symbol_key
from serialism.memo import Known
from serialism.registry import ClassRegistry
from serialism.symbols import Symbol


_MAPPING_TYPES = (dict, collections.OrderedDict)


class ReviveContext:
    """
    State for one revive walk.

    Attributes:
        registry: Classes that typed-instance directives may name. It may
            differ from the registry that produced the buffer.
        known: Identity map from decoded objects to their revived values.
    """

    def __init__(self, registry: ClassRegistry, known: Known | None = None):
        self.registry = registry
        self.known = known if known is not None else Known()

    def revive(self, value: Any) -> Any:
        """
        Return the revived counterpart of a decoded value.

        Raises:
            UnregisteredClassError: If a directive names a class missing
                from the registry.
            UnknownDirectiveError: If a directive is corrupt or unknown.
        """
        # Already revived - shared reference or cycle
        if value in self.known:
            return self.known.get(value)

        value_type = type(value)

        if is_directive(value):
            return parse_directive(value).revive(value, self)

        if value_type is list:
            result = self.known.set(value, [])
            for item in value:
                result.append(self.revive(item))
            return result

        if value_type is tuple:
            result = tuple([self.revive(item) for item in value])
            # A cycle through this tuple may have produced it already
            if value in self.known:
                return self.known.get(value)
            return self.known.set(value, result)

        if value_type in _MAPPING_TYPES:
            result = self.known.set(value, value_type())
            for key, item in value.items():
                result[self.revive_key(key)] = self.revive(item)
            return result

        if value_type is set:
            result = self.known.set(value, set())
            for item in value:
                result.add(self.revive(item))
            return result

        if value_type is frozenset:
            result = frozenset([self.revive(item) for item in value])
            if value in self.known:
                return self.known.get(value)
            return self.known.set(value, result)

        # Primitives and native value types
        return value

    def revive_key(self, key: Any) -> Any:
        """Revive a mapping key; prefixed strings become global symbols."""
        registry_key = parse_symbol_key(key)
        if registry_key is not None:
            return Symbol.for_(registry_key)
        return self.revive(key)


def revive(value: Any, registry: ClassRegistry, known: Known | None = None) -> Any:
    """
    Rebuild the value graph that entomb() rewrote.

    Args:
        value: A value returned by the codec's decode().
        registry: Classes that typed-instance directives may name.
        known: Optional identity map; a fresh one is used when omitted.

    Returns:
        The revived value.
    """
    return ReviveContext(registry, known).revive(value)


__all__ = ["ReviveContext", "revive"]
