"""Tests for directives and the entomb/revive transforms."""

import collections

import pytest

from serialism import (
    ClassRegistry,
    DataCloneError,
    ReservedPrefixError,
    Serialism,
    Symbol,
    UnknownDirectiveError,
    UnregisteredClassError,
    serialize_native,
)
from serialism.directives import (
    STATE_KEY,
    SymbolDirective,
    TypeDirective,
    instance_state,
    is_directive,
    parse_directive,
    parse_symbol_key,
    symbol_key,
)
from serialism.entomb import entomb
from serialism.memo import Known
from serialism.revive import revive


class Point:
    def __init__(self, x, y):
        self.x = x
        self.y = y


class Versioned:
    def __init__(self, payload):
        self.payload = payload

    def __getstate__(self):
        return {"v": 2, "payload": self.payload}

    def __setstate__(self, state):
        self.version = state["v"]
        self.payload = state["payload"]


class Slotted:
    __slots__ = ("a", "b")


REGISTRY = ClassRegistry([Point, Versioned])


class TestHelpers:
    """Test directive helper functions."""

    def test_is_directive(self):
        assert is_directive(["@serialism:sym", "k"])
        assert is_directive(("@serialism:sym", "k"))
        assert not is_directive(["sym", "k"])
        assert not is_directive([])
        assert not is_directive("@serialism:sym")
        assert not is_directive({"@serialism:sym": 1})

    def test_symbol_key(self):
        assert symbol_key("app.tag") == "@serialism:sym:app.tag"
        assert parse_symbol_key("@serialism:sym:app.tag") == "app.tag"
        assert parse_symbol_key("app.tag") is None
        assert parse_symbol_key(5) is None

    def test_instance_state(self):
        assert instance_state(Point(1, 2)) == {"x": 1, "y": 2}
        slotted = Slotted()
        slotted.b = 3
        assert instance_state(slotted) == {"b": 3}
        assert instance_state(KeyError("k")) == {"args": ("k",)}


class TestEntomb:
    """Test the entomb transform output."""

    def test_primitives_pass_through(self):
        assert entomb([1, "a", None], REGISTRY) == [1, "a", None]

    def test_instance(self):
        assert entomb(Point(1, 2), REGISTRY) == ["@serialism:type", "Point", [["x", 1], ["y", 2]]]

    def test_state_protocol(self):
        assert entomb(Versioned("p"), REGISTRY) == [
            "@serialism:type",
            "Versioned",
            [[STATE_KEY, {"v": 2, "payload": "p"}]],
        ]

    def test_symbol(self):
        assert entomb(Symbol.for_("d.sym"), REGISTRY) == ["@serialism:sym", "d.sym"]

    def test_symbol_key(self):
        result = entomb({Symbol.for_("d.key"): 1}, REGISTRY)
        assert result == {"@serialism:sym:d.key": 1}

    def test_symbol_set_member_uses_tuple(self):
        assert entomb({Symbol.for_("d.member")}, REGISTRY) == {("@serialism:sym", "d.member")}

    def test_does_not_mutate_input(self):
        value = {"p": Point(1, 2)}
        entomb(value, REGISTRY)
        assert isinstance(value["p"], Point)

    def test_shared_instance_is_one_directive(self):
        point = Point(0, 0)
        result = entomb([point, point], REGISTRY)
        assert result[0] is result[1]

    def test_known_is_populated(self):
        known = Known()
        value = [[1], {"a": 2}]
        entomb(value, REGISTRY, known)
        assert value in known
        assert value[0] in known
        assert len(known) == 3

    def test_ordered_dict_type_kept(self):
        result = entomb(collections.OrderedDict(a=1), REGISTRY)
        assert type(result) is collections.OrderedDict

    def test_unregistered_class(self):
        with pytest.raises(UnregisteredClassError) as excinfo:
            entomb({"s": Slotted()}, REGISTRY)
        assert excinfo.value.phase == "serialize"
        assert str(excinfo.value) == "No registered class found for Slotted"

    def test_non_str_attribute_key(self):
        point = Point(1, 2)
        vars(point)[3] = "three"
        with pytest.raises(DataCloneError):
            entomb(point, REGISTRY)


class TestReservedPrefix:
    """Test that user data cannot impersonate directives."""

    def test_list_head(self):
        with pytest.raises(ReservedPrefixError) as excinfo:
            entomb(["@serialism:type", "Point", []], REGISTRY)
        assert excinfo.value.value == "@serialism:type"

    def test_symbol_directive_lookalike(self):
        with pytest.raises(ReservedPrefixError):
            Serialism().serialize(["@serialism:sym", "x"])

    def test_tuple_head(self):
        with pytest.raises(ReservedPrefixError):
            entomb(("@serialism:anything",), REGISTRY)

    def test_symbol_prefixed_dict_key(self):
        with pytest.raises(ReservedPrefixError):
            entomb({"@serialism:sym:x": 1}, REGISTRY)

    def test_reserved_attribute_name(self):
        point = Point(1, 2)
        vars(point)["@serialism:state"] = 0
        with pytest.raises(ReservedPrefixError):
            entomb(point, REGISTRY)

    def test_is_data_clone_error(self):
        with pytest.raises(DataCloneError):
            Serialism().serialize([["@serialism:sym", "nested"]])

    def test_prefix_elsewhere_is_fine(self):
        value = ["plain", "@serialism:sym", {"@serialism:type": 1}]
        assert entomb(value, REGISTRY) == value


class TestRevive:
    """Test the revive transform and directive parsing."""

    def test_revive_instance(self):
        point = revive(["@serialism:type", "Point", [["x", 1], ["y", 2]]], REGISTRY)
        assert isinstance(point, Point)
        assert (point.x, point.y) == (1, 2)

    def test_revive_symbol_key(self):
        result = revive({"@serialism:sym:r.key": [1]}, REGISTRY)
        assert result == {Symbol.for_("r.key"): [1]}

    def test_revive_symbol_attribute(self):
        point = revive(
            ["@serialism:type", "Point", [["x", 1], ["@serialism:sym:r.attr", 2]]],
            REGISTRY,
        )
        assert vars(point)[Symbol.for_("r.attr")] == 2

    def test_revive_state_protocol(self):
        obj = revive(["@serialism:type", "Versioned", [[STATE_KEY, {"v": 2, "payload": "p"}]]], REGISTRY)
        assert obj.version == 2
        assert obj.payload == "p"

    def test_revive_unregistered(self):
        with pytest.raises(UnregisteredClassError, match="No registered class found for: Line"):
            revive(["@serialism:type", "Line", []], REGISTRY)

    def test_parse_directive(self):
        directive = parse_directive(["@serialism:sym", "k"])
        assert isinstance(directive, SymbolDirective)
        assert directive.key == "k"
        directive = parse_directive(["@serialism:type", "Point", [["x", 1]]])
        assert isinstance(directive, TypeDirective)
        assert directive.name == "Point"

    def test_unknown_tag(self):
        with pytest.raises(UnknownDirectiveError, match="Unknown directive bogus"):
            parse_directive(["@serialism:bogus"])

    @pytest.mark.parametrize(
        "wire",
        [
            ["@serialism:sym"],
            ["@serialism:sym", 42],
            ["@serialism:type", "Point"],
            ["@serialism:type", "Point", "not entries"],
            ["@serialism:type", "Point", [], "extra"],
        ],
    )
    def test_malformed_payload(self, wire):
        with pytest.raises(UnknownDirectiveError):
            parse_directive(wire)

    def test_unknown_directive_in_buffer(self):
        buffer = serialize_native({"a": ["@serialism:bogus", 1]})
        with pytest.raises(UnknownDirectiveError):
            Serialism().deserialize(buffer)

    def test_wire_directive_roundtrip(self):
        directive = SymbolDirective(key="w.key")
        assert directive.to_wire() == ["@serialism:sym", "w.key"]
        assert parse_directive(directive.to_wire()) == directive


class TestCollectionDirectives:
    """Test sets and mappings that hold registered instances."""

    def test_set_with_instance(self):
        result = entomb({Point(1, 2)}, REGISTRY)
        assert result == [
            "@serialism:set",
            "set",
            [["@serialism:type", "Point", [["x", 1], ["y", 2]]]],
        ]

    def test_plain_set_stays_native(self):
        assert entomb({1, Symbol.for_("c.plain")}, REGISTRY) == {1, ("@serialism:sym", "c.plain")}

    def test_mapping_with_instance_key(self):
        sym = Symbol.for_("c.map")
        result = entomb(collections.OrderedDict([(Point(0, 1), "p"), (sym, 2), (Symbol(), 3)]), REGISTRY)
        assert result == [
            "@serialism:map",
            "OrderedDict",
            [
                [["@serialism:type", "Point", [["x", 0], ["y", 1]]], "p"],
                ["@serialism:sym:c.map", 2],
            ],
        ]

    def test_mapping_with_instance_key_rejects_reserved_str_key(self):
        with pytest.raises(ReservedPrefixError):
            entomb({Point(0, 0): 1, "@serialism:sym:k": 2}, REGISTRY)

    def test_revive_set(self):
        result = revive(["@serialism:set", "frozenset", [["@serialism:sym", "c.rev"], 4]], REGISTRY)
        assert result == frozenset({Symbol.for_("c.rev"), 4})

    def test_revive_map(self):
        result = revive(
            ["@serialism:map", "dict", [[["@serialism:type", "Point", [["x", 5]]], "v"]]],
            REGISTRY,
        )
        ((key, value),) = result.items()
        assert isinstance(key, Point)
        assert key.x == 5
        assert value == "v"

    @pytest.mark.parametrize(
        "wire",
        [
            ["@serialism:set", "list", []],
            ["@serialism:set", "set"],
            ["@serialism:map", "dict", [["only key"]]],
            ["@serialism:map", "Counter", []],
        ],
    )
    def test_malformed_collection(self, wire):
        with pytest.raises(UnknownDirectiveError):
            parse_directive(wire)
