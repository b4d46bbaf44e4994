"""Tests for the pluggy-based hook system."""

import importlib.metadata
import logging
import types

import pytest

from refgraph.engine import deserialize
from refgraph.engine import dumps
from refgraph.engine import loads
from refgraph.engine import serialize
from refgraph.plugins import LoggingPlugin
from refgraph.plugins import hook_impl
from refgraph.plugins.manager import _create_plugin_manager
from refgraph.plugins.manager import _get_global_plugin_manager
from refgraph.plugins.manager import create_hook_manager_with_plugins
from refgraph.plugins.manager import register_hooks
from refgraph.plugins.manager import register_plugins_entry_points
from refgraph.plugins.manager import unregister_hooks
from refgraph.registry import default_registry
from tests.examples.models import Transform
from tests.examples.models import Vector


class RecordingPlugin:
    """Records every document event it receives."""

    def __init__(self):
        self.events = []

    @hook_impl
    def before_serialize(self, root):
        self.events.append(("before_serialize", type(root).__name__))

    @hook_impl
    def after_serialize(self, root, document):
        self.events.append(("after_serialize", len(document)))

    @hook_impl
    def after_compress(self, document, inlined):
        self.events.append(("after_compress", inlined))

    @hook_impl
    def after_deserialize(self, document, value):
        self.events.append(("after_deserialize", type(value).__name__))


class RegistryPlugin:
    """Captures the registry offered through the historic hook."""

    def __init__(self):
        self.registries = []

    @hook_impl
    def register_types(self, registry):
        self.registries.append(registry)


class TestPerCallHooks:
    """Hooks passed to a single call."""

    def test_serialize_events(self, registry):
        plugin = RecordingPlugin()
        serialize(Transform(Vector()), registry=registry, hooks=[plugin])

        assert plugin.events == [("before_serialize", "Transform"), ("after_serialize", 2)]

    def test_dumps_loads_events(self, registry):
        plugin = RecordingPlugin()
        text = dumps(Transform(Vector(), Vector()), registry=registry, hooks=[plugin])
        loads(text, registry=registry, hooks=[plugin])

        assert plugin.events == [
            ("before_serialize", "Transform"),
            ("after_serialize", 3),
            ("after_compress", 2),
            ("after_deserialize", "Transform"),
        ]

    def test_no_compress_event_without_compression(self, registry):
        plugin = RecordingPlugin()
        dumps(Vector(), registry=registry, compress=False, hooks=[plugin])

        assert [name for name, _ in plugin.events] == ["before_serialize", "after_serialize"]

    def test_per_call_hooks_do_not_leak(self, registry):
        plugin = RecordingPlugin()
        serialize(Vector(), registry=registry, hooks=[plugin])
        deserialize({"0": 1}, registry=registry)

        assert not _get_global_plugin_manager().is_registered(plugin)
        assert len(plugin.events) == 2

    def test_class_instead_of_instance(self):
        with pytest.raises(TypeError, match="forgotten the `\\(\\)`"):
            create_hook_manager_with_plugins([RecordingPlugin])


class TestGlobalHooks:
    """Hooks registered on the global plugin manager."""

    def test_register_and_unregister(self, registry):
        plugin = RecordingPlugin()
        register_hooks(plugin)
        try:
            serialize(Vector(), registry=registry)
        finally:
            unregister_hooks(plugin)
        serialize(Vector(), registry=registry)

        assert plugin.events == [("before_serialize", "Vector"), ("after_serialize", 1)]

    def test_global_hooks_run_with_per_call_hooks(self, registry):
        global_plugin = RecordingPlugin()
        call_plugin = RecordingPlugin()
        register_hooks(global_plugin)
        try:
            serialize(Vector(), registry=registry, hooks=[call_plugin])
        finally:
            unregister_hooks(global_plugin)

        assert global_plugin.events == call_plugin.events
        assert len(call_plugin.events) == 2

    def test_register_class_fails(self):
        with pytest.raises(TypeError):
            register_hooks(RecordingPlugin)

    def test_register_types_is_historic(self):
        """Plugins registered after start-up still receive the process-wide registry."""
        plugin = RegistryPlugin()
        register_hooks(plugin)
        try:
            assert plugin.registries == [default_registry]
        finally:
            unregister_hooks(plugin)


class TestLoggingPlugin:
    def test_logs_events(self, registry, caplog):
        plugin = LoggingPlugin(level=logging.INFO)

        with caplog.at_level(logging.INFO, logger="refgraph.documents"):
            text = dumps(Transform(Vector()), registry=registry, hooks=[plugin])
            loads(text, registry=registry, hooks=[plugin])

        messages = [
            record.getMessage() for record in caplog.records if record.name == "refgraph.documents"
        ]
        assert messages == [
            "Serializing Transform",
            "Serialized Transform into 2 top-level entry(ies)",
            "Inlined 1 node(s), 1 top-level entry(ies) left",
            "Deserialized Transform from 1 top-level entry(ies)",
        ]

    def test_custom_logger_name(self):
        assert LoggingPlugin(logger_name="custom").logger.name == "custom"


class TestRegisterPluginsEntryPoints:
    """Loading installed plugins from the ``refgraph.hooks`` entry point group."""

    @staticmethod
    def _install(monkeypatch, *entry_points):
        distribution = types.SimpleNamespace(
            entry_points=list(entry_points), metadata={"name": "refgraph-example"}
        )
        monkeypatch.setattr(importlib.metadata, "distributions", lambda: [distribution])

    def test_loads_matching_entry_points(self, monkeypatch):
        plugin = RecordingPlugin()
        self._install(
            monkeypatch,
            types.SimpleNamespace(group="refgraph.hooks", name="recording", load=lambda: plugin),
            types.SimpleNamespace(group="other.hooks", name="ignored", load=lambda: None),
        )
        manager = _create_plugin_manager()

        assert register_plugins_entry_points(manager) == 1
        assert manager.get_plugin("recording") is plugin

        manager.hook.before_serialize(root=Vector())
        assert plugin.events == [("before_serialize", "Vector")]

    def test_no_installed_plugins(self, monkeypatch):
        self._install(monkeypatch)
        manager = _create_plugin_manager()

        assert register_plugins_entry_points(manager) == 0

    def test_global_manager_by_default(self, monkeypatch):
        plugin = RecordingPlugin()
        self._install(
            monkeypatch,
            types.SimpleNamespace(group="refgraph.hooks", name="recording", load=lambda: plugin),
        )

        try:
            assert register_plugins_entry_points() == 1
            assert _get_global_plugin_manager().is_registered(plugin)
        finally:
            unregister_hooks(plugin)
