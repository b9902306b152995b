"""Tests for the class registry."""

import logging

import pytest

from serialism import ClassRegistry, DuplicateClassError, Serialism


class Point:
    def __init__(self, x, y):
        self.x = x
        self.y = y


class Line:
    def __init__(self, start, end):
        self.start = start
        self.end = end


class TestClassRegistry:
    """Test registration and lookup."""

    def test_register_and_lookup(self):
        registry = ClassRegistry().register(Point, Line)
        assert registry.get("Point") is Point
        assert registry.name_of(Line) == "Line"
        assert registry.get("Missing") is None
        assert registry.name_of(int) is None

    def test_constructor_classes(self):
        registry = ClassRegistry((Point,))
        assert "Point" in registry
        assert Point in registry
        assert Line not in registry
        assert len(registry) == 1

    def test_iteration_order(self):
        registry = ClassRegistry([Line, Point])
        assert list(registry) == ["Line", "Point"]
        assert registry.classes == (Line, Point)

    def test_same_class_twice(self):
        registry = ClassRegistry().register(Point).register(Point)
        assert len(registry) == 1

    def test_different_class_same_name(self):
        impostor = type("Point", (), {})
        registry = ClassRegistry().register(Point)
        with pytest.raises(DuplicateClassError, match="'Point' is already registered"):
            registry.register(impostor)
        assert registry.get("Point") is Point

    def test_register_as(self):
        registry = ClassRegistry().register_as("geometry.Point", Point)
        assert registry.get("geometry.Point") is Point
        assert registry.name_of(Point) == "geometry.Point"

    def test_register_as_alias_does_not_conflict(self):
        impostor = type("Point", (), {})
        registry = ClassRegistry().register(Point).register_as("OtherPoint", impostor)
        assert registry.name_of(impostor) == "OtherPoint"

    def test_non_class_rejected(self):
        with pytest.raises(TypeError):
            ClassRegistry().register(Point(1, 2))
        with pytest.raises(TypeError):
            ClassRegistry().register_as("", Point)

    def test_subclass_is_not_registered(self):
        class SubPoint(Point):
            pass

        registry = ClassRegistry().register(Point)
        assert registry.name_of(SubPoint) is None

    def test_logs_registration(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="serialism.registry"):
            ClassRegistry().register(Line)
        assert "Registered class" in caplog.text

    def test_repr(self):
        assert repr(ClassRegistry([Point, Line])) == "ClassRegistry(Point, Line)"


class TestRegistryRoundTrip:
    """Test how registration affects serialization."""

    def test_renamed_class_roundtrip(self):
        serializer = Serialism()
        serializer.registry.register_as("shapes.Line", Line)
        serializer.register(Point)
        result = serializer.deserialize(serializer.serialize(Line(Point(0, 0), Point(1, 1))))
        assert isinstance(result, Line)
        assert result.end.x == 1

    def test_reader_may_bind_name_to_other_class(self):
        class ReaderPoint:
            def norm(self):
                return abs(self.x) + abs(self.y)

        writer = Serialism([Point])
        reader = Serialism()
        reader.registry.register_as("Point", ReaderPoint)
        result = reader.deserialize(writer.serialize(Point(3, -4)))
        assert isinstance(result, ReaderPoint)
        assert result.norm() == 7
