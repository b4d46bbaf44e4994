"""Tests for the one-shot API and JSON encoding."""

import json

import pytest

import refgraph
from refgraph.behavior import Behavior
from refgraph.encoding import decode_document
from refgraph.encoding import encode_document
from refgraph.engine import add_behavior
from refgraph.engine import compress
from refgraph.engine import create
from refgraph.engine import dumps
from refgraph.engine import get_factory
from refgraph.engine import loads
from refgraph.engine import serialize
from refgraph.exceptions import MalformedDocumentError
from refgraph.exceptions import UnknownTypeError
from refgraph.settings import RefgraphSettings
from refgraph.settings import get_global_settings
from refgraph.settings import set_global_settings
from tests.examples.models import Child
from tests.examples.models import Parent
from tests.examples.models import Transform
from tests.examples.models import Vector
from tests.examples.models import iter_chain
from tests.examples.models import make_chain


class TestEncoding:
    """Tests for document text encoding."""

    def test_compact(self):
        text = encode_document({"0": {"type": "Vector", "data": {"x": 5, "y": 5}}})
        assert text == '{"0":{"type":"Vector","data":{"x":5,"y":5}}}'

    def test_indent(self):
        document = {"0": {"type": "Vector", "data": {"x": 5}}}
        assert encode_document(document, indent=2) == json.dumps(document, indent=2)

    def test_non_ascii_text_kept(self):
        assert encode_document({"0": "héllo"}) == '{"0":"héllo"}'

    def test_re_encoding_is_stable(self, registry):
        text = dumps(Transform(Vector(5, 5), Vector(10, 8), 45), registry=registry)
        assert encode_document(decode_document(text)) == text

    def test_decode_invalid_json(self):
        with pytest.raises(MalformedDocumentError, match="Invalid document text"):
            decode_document("{not json")

    def test_decode_invalid_utf8(self):
        with pytest.raises(MalformedDocumentError):
            decode_document(b"\xff\xfe\xfa")

    def test_decode_non_mapping(self):
        with pytest.raises(MalformedDocumentError, match="must encode a mapping"):
            decode_document("[1, 2]")


class TestDumpsLoads:
    """Tests for dumps and loads."""

    def test_dumps_compresses_by_default(self, registry):
        text = dumps(Transform(Vector(5, 5), Vector(10, 8), 45), registry=registry)

        assert json.loads(text) == {
            "0": {
                "type": "Transform",
                "data": {
                    "pos": {"type": "Vector", "data": {"x": 5, "y": 5}},
                    "size": {"type": "Vector", "data": {"x": 10, "y": 8}},
                    "rotation": 45,
                },
            },
        }

    def test_dumps_without_compression(self, registry):
        text = dumps(Transform(Vector(5, 5)), registry=registry, compress=False)

        assert json.loads(text) == {
            "0": {"type": "Transform", "data": {"pos": {"ref": "1"}, "size": None, "rotation": 0}},
            "1": {"type": "Vector", "data": {"x": 5, "y": 5}},
        }

    def test_settings_control_compression_and_indent(self, registry):
        set_global_settings(RefgraphSettings(compress=False, indent=2))
        document = serialize(Transform(Vector(5, 5)), registry=registry)

        text = dumps(Transform(Vector(5, 5)), registry=registry)

        assert text == json.dumps(document, ensure_ascii=False, indent=2)

    def test_round_trip_cycle(self, registry):
        parent = Parent()
        parent.child = Child()
        parent.child.parent = parent

        copy = loads(dumps(parent, registry=registry), registry=registry)

        assert copy.child.parent is copy

    def test_primitive_round_trip(self, registry):
        assert dumps("text", registry=registry) == '{"0":"text"}'
        assert loads('{"0":"text"}', registry=registry) == "text"

    def test_overrides(self, registry):
        behavior = Behavior(serialize=lambda serializer, vector: [vector.x, vector.y])

        text = dumps(Vector(1, 2), [(Vector, behavior)], registry=registry)

        assert text == '{"0":{"type":"Vector","data":[1,2]}}'

    def test_loads_bytes(self, registry):
        vector = loads(b'{"0":{"type":"Vector","data":{"x":1,"y":2}}}', registry=registry)
        assert vector == Vector(1, 2)

    def test_loads_malformed(self, registry):
        with pytest.raises(MalformedDocumentError):
            loads('{"1": 5}', registry=registry)

    def test_compress_returns_inlined_count(self, registry):
        document = serialize(Transform(Vector(), Vector()), registry=registry)
        assert compress(document) == 2

    def test_long_chain_round_trip(self, registry):
        copy = loads(dumps(make_chain(1000), registry=registry), registry=registry)

        assert [link.second for link in iter_chain(copy)] == list(range(1000))

    def test_decode_deeply_nested_text(self):
        text = '{"0":' + "[" * 100000 + "]" * 100000 + "}"

        with pytest.raises(MalformedDocumentError, match="Invalid document text"):
            decode_document(text)


class TestRegistryShortcuts:
    """Tests for create, get_factory and add_behavior."""

    def test_create(self, registry):
        assert create("Vector", registry=registry) == Vector()
        assert create("Missing", registry=registry) is None

    def test_get_factory(self, registry):
        assert get_factory("Vector", registry=registry) is Vector
        assert get_factory("Missing", registry=registry) is None

    def test_add_behavior(self, registry):
        def finish(vector):
            vector.finished = True

        add_behavior("Vector", Behavior(post_deserialize=finish), registry=registry)

        vector = loads('{"0":{"type":"Vector","data":{"x":1,"y":2}}}', registry=registry)
        assert vector.finished is True

    def test_add_behavior_unknown(self, registry):
        with pytest.raises(UnknownTypeError):
            add_behavior("Missing", Behavior(), registry=registry)

    def test_default_registry(self):
        assert create("list") == []
        assert get_factory("dict") is dict


class TestSettings:
    def test_defaults(self):
        settings = get_global_settings()
        assert settings == RefgraphSettings()
        assert settings.anonymous_records is False
        assert settings.compress is True
        assert settings.indent is None

    def test_set_global_settings(self):
        custom = RefgraphSettings(indent=4)
        set_global_settings(custom)
        assert get_global_settings() is custom

    def test_settings_are_frozen(self):
        with pytest.raises(AttributeError):
            get_global_settings().compress = False


class TestPackage:
    def test_public_api(self):
        assert refgraph.__version__ == "0.1.0"
        assert refgraph.dumps is dumps
        assert refgraph.loads is loads
        assert set(refgraph.__all__) <= set(dir(refgraph))
