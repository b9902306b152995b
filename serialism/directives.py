"""
Directive definitions for the serialism wire format.

The binary codec only understands plain containers and a handful of value
types. Anything else that has to survive a round trip is rewritten into a
directive: a list whose first element is a reserved tag string, followed by
a payload made of codec-safe values.

- SymbolDirective:  ["@serialism:sym", key]
- TypeDirective:    ["@serialism:type", class_name, [[key, value], ...]]
- SetDirective:     ["@serialism:set", "set" | "frozenset", [member, ...]]
- MapDirective:     ["@serialism:map", "dict" | "OrderedDict", [[key, value], ...]]

The two collection directives are only used for sets and mappings that
hold registered instances as members or keys; every other set and mapping
is handed to the codec as it is.

Inside the process each directive is a Pydantic model with a literal ``tag``
discriminator. Like the rest of the library, each model knows both
directions:

- entomb(): Class method that builds the wire list for a live object
- revive(): Instance method that rebuilds the live object from a parsed
  directive

Global symbols used as mapping or attribute keys are not directives; they
are written as ordinary string keys carrying SYMBOL_KEY_PREFIX.
"""

from __future__ import annotations

import collections
from typing import TYPE_CHECKING, Any, ClassVar, Literal

from pydantic import BaseModel, ValidationError

from serialism.errors import (
    DataCloneError,
    ReservedPrefixError,
    UnknownDirectiveError,
    UnregisteredClassError,
)
from serialism.symbols import Symbol

if TYPE_CHECKING:
    from serialism.entomb import EntombContext
    from serialism.revive import ReviveContext
else:
    EntombContext = Any
    ReviveContext = Any


# =============================================================================
# Reserved Prefixes
# =============================================================================

RESERVED_PREFIX = "@serialism:"

# Global symbol keys are stored as "@serialism:sym:<key>"
SYMBOL_KEY_PREFIX = RESERVED_PREFIX + "sym:"

# Sole entry key of a TypeDirective whose class pickles its own state
STATE_KEY = RESERVED_PREFIX + "state"

# Returned by EntombContext.entomb_key for keys that are left out
DROP = object()


def is_directive(value: Any) -> bool:
    """Check whether a decoded value carries a directive tag."""
    return (
        type(value) in (list, tuple)
        and len(value) > 0
        and isinstance(value[0], str)
        and value[0].startswith(RESERVED_PREFIX)
    )


def symbol_key(key: str) -> str:
    """Return the string mapping key that stands in for a global symbol key."""
    return SYMBOL_KEY_PREFIX + key


def parse_symbol_key(key: Any) -> str | None:
    """Return the symbol registry key encoded in a mapping key, if any."""
    if isinstance(key, str) and key.startswith(SYMBOL_KEY_PREFIX):
        return key[len(SYMBOL_KEY_PREFIX):]
    return None


# =============================================================================
# Base Class
# =============================================================================


class Directive(BaseModel):
    """
    Base class for directives.

    Subclasses declare a literal ``tag`` and list the fields that make up
    the wire payload, in order, in ``payload_fields``.
    """

    tag: str

    payload_fields: ClassVar[tuple[str, ...]] = ()

    def to_wire(self) -> list:
        """Return the codec-safe list form of this directive."""
        return [RESERVED_PREFIX + self.tag] + [
            getattr(self, name) for name in self.payload_fields
        ]

    @classmethod
    def from_payload(cls, payload: list | tuple) -> Directive:
        """Validate a wire payload (the items after the tag)."""
        if len(payload) != len(cls.payload_fields):
            raise ValueError(
                f"expected {len(cls.payload_fields)} payload items, got {len(payload)}"
            )
        return cls.model_validate(dict(zip(cls.payload_fields, payload)))

    def revive(self, wire: list | tuple, context: ReviveContext):
        """Rebuild the live value; ``wire`` is the decoded list it came from."""
        raise NotImplementedError


# =============================================================================
# Symbol Directive
# =============================================================================


class SymbolDirective(Directive):
    """A global symbol, stored by its registry key."""

    tag: Literal["sym"] = "sym"
    key: str

    payload_fields: ClassVar[tuple[str, ...]] = ("key",)

    @classmethod
    def entomb(cls, symbol: Symbol, context: EntombContext) -> list:
        key = Symbol.key_for(symbol)
        if key is None:
            raise DataCloneError(f"{symbol!r} could not be cloned.")
        return cls.model_construct(key=key).to_wire()

    def revive(self, wire, context: ReviveContext) -> Symbol:
        return context.known.set(wire, Symbol.for_(self.key))


# =============================================================================
# Instance State
# =============================================================================

_OBJECT_GETSTATE = getattr(object, "__getstate__", None)


def _uses_state_protocol(cls: type) -> bool:
    """A class pickles its own state when it overrides both state hooks."""
    getstate = getattr(cls, "__getstate__", None)
    return (
        getstate is not None
        and getstate is not _OBJECT_GETSTATE
        and getattr(cls, "__setstate__", None) is not None
        and not issubclass(cls, BaseException)
    )


def _slot_names(cls: type) -> list[str]:
    """
    Collect the attribute names declared in __slots__ across the MRO.

    Private names are mangled the way the interpreter stores them.
    """
    names = []
    for klass in cls.__mro__:
        slots = klass.__dict__.get("__slots__", ())
        if isinstance(slots, str):
            slots = (slots,)
        for name in slots:
            if name in ("__dict__", "__weakref__"):
                continue
            if name.startswith("__") and not name.endswith("__"):
                name = f"_{klass.__name__.lstrip('_')}{name}"
            if name not in names:
                names.append(name)
    return names


def instance_state(obj: object) -> dict:
    """
    Return the attributes that make up an instance's state, in order.

    Exceptions contribute their ``args`` first, then the instance __dict__
    follows, then any __slots__ that are currently set.
    """
    state = {}
    if isinstance(obj, BaseException):
        state["args"] = obj.args
    state.update(getattr(obj, "__dict__", {}))
    for name in _slot_names(type(obj)):
        try:
            state[name] = object.__getattribute__(obj, name)
        except AttributeError:
            pass
    return state


# =============================================================================
# Type Directive
# =============================================================================


class TypeDirective(Directive):
    """
    An instance of a registered class.

    ``entries`` holds the instance state as ordered [key, value] pairs.
    Keys are attribute names, or SYMBOL_KEY_PREFIX strings for global
    symbol keys. A class that overrides both __getstate__ and __setstate__
    is stored as the single entry [STATE_KEY, state].
    """

    tag: Literal["type"] = "type"
    name: str
    entries: list[tuple[str, Any]]

    payload_fields: ClassVar[tuple[str, ...]] = ("name", "entries")

    @classmethod
    def entomb(cls, obj: object, context: EntombContext) -> list:
        obj_cls = type(obj)
        name = context.registry.name_of(obj_cls)
        if name is None:
            raise UnregisteredClassError(obj_cls.__name__, "serialize")

        symbol_items = []
        if _uses_state_protocol(obj_cls):
            entries = [[STATE_KEY, obj.__getstate__()]]
        else:
            entries = []
            for key, value in instance_state(obj).items():
                if isinstance(key, Symbol):
                    symbol_items.append((key, value))
                elif isinstance(key, str):
                    if key.startswith(RESERVED_PREFIX):
                        raise ReservedPrefixError(key)
                    entries.append([key, value])
                else:
                    raise DataCloneError(
                        f"attribute key {key!r} of {obj_cls.__name__} is neither str nor Symbol"
                    )

        # Memoize before recursing so the instance may reference itself
        wire = cls.model_construct(name=name, entries=entries).to_wire()
        context.known.set(obj, wire)

        for entry in entries:
            entry[1] = context.entomb(entry[1])

        # Private symbol keys have no registry key and are left out
        for key, value in symbol_items:
            registry_key = Symbol.key_for(key)
            if registry_key is not None:
                entries.append([symbol_key(registry_key), context.entomb(value)])

        return wire

    def revive(self, wire, context: ReviveContext) -> object:
        cls = context.registry.get(self.name)
        if cls is None:
            raise UnregisteredClassError(self.name, "deserialize")

        # Create blank instance without calling __init__
        instance = cls.__new__(cls)

        # Memoize before setting state (for circular refs)
        context.known.set(wire, instance)

        if len(self.entries) == 1 and self.entries[0][0] == STATE_KEY:
            instance.__setstate__(context.revive(self.entries[0][1]))
            return instance

        for key, value in self.entries:
            registry_key = parse_symbol_key(key)
            if registry_key is not None:
                vars(instance)[Symbol.for_(registry_key)] = context.revive(value)
            else:
                object.__setattr__(instance, key, context.revive(value))

        return instance


# =============================================================================
# Collection Directives
# =============================================================================


class SetDirective(Directive):
    """
    A set or frozenset whose members include registered instances.

    Entombed instances are lists and cannot be members of a codec set, so
    the members are written as an ordered list instead.
    """

    tag: Literal["set"] = "set"
    kind: Literal["set", "frozenset"]
    members: list[Any]

    payload_fields: ClassVar[tuple[str, ...]] = ("kind", "members")

    @classmethod
    def entomb(cls, value: set | frozenset, context: EntombContext) -> list:
        members = []
        kind = "set" if type(value) is set else "frozenset"
        wire = cls.model_construct(kind=kind, members=members).to_wire()
        context.known.set(value, wire)
        for item in value:
            members.append(context.entomb(item))
        return wire

    def revive(self, wire, context: ReviveContext) -> set | frozenset:
        if self.kind == "set":
            result = context.known.set(wire, set())
            for item in self.members:
                result.add(context.revive(item))
            return result

        result = frozenset([context.revive(item) for item in self.members])
        # A cycle through a member instance may have produced it already
        if wire in context.known:
            return context.known.get(wire)
        return context.known.set(wire, result)


class MapDirective(Directive):
    """
    A dict or OrderedDict with registered instances among its keys.

    ``entries`` holds [key, value] pairs in insertion order. Symbol keys
    use the same SYMBOL_KEY_PREFIX strings as plain mappings.
    """

    tag: Literal["map"] = "map"
    kind: Literal["dict", "OrderedDict"]
    entries: list[tuple[Any, Any]]

    payload_fields: ClassVar[tuple[str, ...]] = ("kind", "entries")

    @classmethod
    def entomb(cls, value: dict, context: EntombContext) -> list:
        entries = []
        kind = "dict" if type(value) is dict else "OrderedDict"
        wire = cls.model_construct(kind=kind, entries=entries).to_wire()
        context.known.set(value, wire)
        for key, item in value.items():
            entombed_key = context.entomb_key(key, hashable=False)
            if entombed_key is DROP:
                continue
            entries.append([entombed_key, context.entomb(item)])
        return wire

    def revive(self, wire, context: ReviveContext) -> dict:
        mapping_type = dict if self.kind == "dict" else collections.OrderedDict
        result = context.known.set(wire, mapping_type())
        for key, item in self.entries:
            result[context.revive_key(key)] = context.revive(item)
        return result


# =============================================================================
# Directive Registry
# =============================================================================

# Maps tag strings to directive classes, used when parsing decoded values.
_DIRECTIVE_REGISTRY: dict[str, type[Directive]] = {}

for _cls in [SymbolDirective, TypeDirective, SetDirective, MapDirective]:
    _DIRECTIVE_REGISTRY[_cls.model_fields["tag"].default] = _cls


def parse_directive(value: list | tuple) -> Directive:
    """
    Parse a decoded directive into its model.

    Args:
        value: A list or tuple for which is_directive() is true.

    Returns:
        The validated directive.

    Raises:
        UnknownDirectiveError: If the tag is not recognized or the payload
            does not match the directive's shape.
    """
    tag = value[0][len(RESERVED_PREFIX):]
    directive_cls = _DIRECTIVE_REGISTRY.get(tag)
    if directive_cls is None:
        raise UnknownDirectiveError(tag)
    try:
        return directive_cls.from_payload(value[1:])
    except (ValidationError, ValueError) as exc:
        raise UnknownDirectiveError(tag, str(exc)) from exc


__all__ = [
    "RESERVED_PREFIX",
    "SYMBOL_KEY_PREFIX",
    "STATE_KEY",
    "DROP",
    "Directive",
    "SymbolDirective",
    "TypeDirective",
    "SetDirective",
    "MapDirective",
    "instance_state",
    "is_directive",
    "parse_directive",
    "parse_symbol_key",
    "symbol_key",
]
