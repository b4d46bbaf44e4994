"""Unit tests for the TypeRegistry and the serializable decorator."""

import pytest

from refgraph.behavior import Behavior
from refgraph.exceptions import DuplicateTypeTagError
from refgraph.exceptions import UnknownTypeError
from refgraph.properties import get_markers
from refgraph.registry import TypeRegistry
from refgraph.registry import serializable
from tests.examples.models import SpecialVector
from tests.examples.models import Vector


class TestRegister:
    """Tests for registration and lookup."""

    def test_register_and_lookup(self):
        registry = TypeRegistry(builtins=False)
        entry = registry.register("Vector", Vector)

        assert registry.lookup("Vector") is entry
        assert entry.cls is Vector
        assert entry.behavior.is_empty()
        assert registry.has("Vector")
        assert "Vector" in registry
        assert len(registry) == 1

    def test_builtins_registered_by_default(self):
        registry = TypeRegistry()
        assert registry.tags() == [
            "list",
            "tuple",
            "set",
            "frozenset",
            "dict",
            "datetime",
            "bytes",
            "class",
        ]

    def test_duplicate_tag(self):
        registry = TypeRegistry(builtins=False)
        registry.register("Vector", Vector)

        class Other:
            pass

        with pytest.raises(DuplicateTypeTagError, match="'Vector' is already registered"):
            registry.register("Vector", Other)
        assert registry.lookup("Vector").cls is Vector

    def test_duplicate_class(self):
        registry = TypeRegistry(builtins=False)
        registry.register("Vector", Vector)

        with pytest.raises(DuplicateTypeTagError, match="already registered as 'Vector'"):
            registry.register("Vector2", Vector)
        assert not registry.has("Vector2")

    def test_empty_tag_rejected(self):
        registry = TypeRegistry(builtins=False)
        with pytest.raises(ValueError, match="reserved"):
            registry.register("", Vector)

    def test_factory_function_with_cls(self):
        registry = TypeRegistry(builtins=False)
        entry = registry.register("Origin", lambda: Vector(0, 0), cls=Vector)

        assert registry.tag_for(Vector(3, 4)) == "Origin"
        assert entry.create() == Vector(0, 0)

    def test_factory_function_without_cls(self):
        registry = TypeRegistry(builtins=False)
        registry.register("Origin", lambda: Vector(0, 0))

        assert registry.tag_for(Vector()) is None
        assert registry.create("Origin") == Vector(0, 0)

    def test_lookup_unknown(self):
        registry = TypeRegistry(builtins=False)
        with pytest.raises(UnknownTypeError) as exc_info:
            registry.lookup("Missing")
        assert exc_info.value.type_name == "Missing"


class TestTagResolution:
    """Tests for class to tag resolution."""

    def test_subclass_resolves_to_base(self, registry):
        assert registry.tag_for(SpecialVector()) == "Vector"
        assert registry.tag_for_class(SpecialVector) is None
        assert registry.tag_for_class(Vector) == "Vector"

    def test_unregistered(self, registry):
        assert registry.tag_for(object()) is None

    def test_classes_resolve_to_class_tag(self, registry):
        assert registry.tag_for(Vector) == "class"


class TestCreate:
    """Tests for instance creation by tag."""

    def test_create(self, registry):
        vector = registry.create("Vector")
        assert vector == Vector()

    def test_create_returns_fresh_instances(self, registry):
        assert registry.create("Vector") is not registry.create("Vector")

    def test_create_unknown(self, registry):
        assert registry.create("Missing") is None

    def test_get_factory(self, registry):
        assert registry.get_factory("Vector") is Vector
        assert registry.get_factory("Missing") is None


class TestAddBehavior:
    """Tests for merging hooks into registered behaviors."""

    def test_add_behavior_merges_hooks(self):
        registry = TypeRegistry(builtins=False)

        def keep(obj, key):
            return True

        def finish(obj):
            return None

        registry.register("Vector", Vector, Behavior(key_filter=keep))
        entry = registry.add_behavior("Vector", Behavior(post_deserialize=finish))

        assert entry.behavior.key_filter is keep
        assert entry.behavior.post_deserialize is finish

    def test_add_behavior_replaces_hooks(self):
        registry = TypeRegistry(builtins=False)

        def first(obj, key):
            return True

        def second(obj, key):
            return False

        registry.register("Vector", Vector, Behavior(key_filter=first))
        registry.add_behavior("Vector", Behavior(key_filter=second))

        assert registry.lookup("Vector").behavior.key_filter is second

    def test_add_behavior_unknown_tag(self):
        registry = TypeRegistry(builtins=False)
        with pytest.raises(UnknownTypeError, match="before adding behavior"):
            registry.add_behavior("Missing", Behavior())


class TestSerializableDecorator:
    """Tests for the serializable class decorator."""

    def test_bare(self):
        registry = TypeRegistry(builtins=False)

        @serializable(registry=registry)
        class Point:
            pass

        assert registry.lookup("Point").cls is Point

    def test_bare_without_call(self, monkeypatch):
        registry = TypeRegistry(builtins=False)
        monkeypatch.setattr("refgraph.registry.default_registry", registry)

        @serializable
        class Point:
            pass

        assert registry.tag_for(Point()) == "Point"

    def test_explicit_tag_and_markers(self):
        registry = TypeRegistry(builtins=False)
        behavior = Behavior(post_deserialize=lambda obj: None)

        @serializable("geo.Point", behavior=behavior, exclude=["cache"], registry=registry)
        class Point:
            pass

        entry = registry.lookup("geo.Point")
        assert entry.cls is Point
        assert entry.behavior is behavior
        assert get_markers(Point) == {"cache": False}

    def test_duplicate_raises(self):
        registry = TypeRegistry(builtins=False)

        @serializable("Point", registry=registry)
        class Point:
            pass

        with pytest.raises(DuplicateTypeTagError):

            @serializable("Point", registry=registry)
            class OtherPoint:
                pass
