"""
One-shot serialization API.

These functions create a fresh `Serializer` or `Deserializer` per call, fire the plugin hooks
and apply the global settings. Everything else lives in the component modules.
"""

from __future__ import annotations

from collections.abc import Iterable
from collections.abc import Mapping
from typing import Any, Callable

from pluggy import PluginManager

from refgraph._typing import Document
from refgraph._typing import OverrideTarget
from refgraph.behavior import Behavior
from refgraph.behavior import Override
from refgraph.compression import compress as compress_document
from refgraph.deserializer import Deserializer
from refgraph.encoding import decode_document
from refgraph.encoding import encode_document
from refgraph.plugins.manager import _get_global_plugin_manager
from refgraph.plugins.manager import create_hook_manager_with_plugins
from refgraph.registry import RegisteredType
from refgraph.registry import TypeRegistry
from refgraph.registry import default_registry
from refgraph.serializer import Serializer
from refgraph.settings import get_global_settings

Overrides = Iterable[Override | tuple[OverrideTarget, Behavior]]


def serialize(
    root: Any,
    overrides: Overrides | None = (),
    *,
    registry: TypeRegistry | None = None,
    anonymous_records: bool | None = None,
    hooks: list[Any] | None = None,
) -> Document:
    """
    Serialize a value and everything reachable from it into a document.

    The document is not compressed; see `compress`.

    Args:
        root: Value to serialize.
        overrides: Ordered ``(class or predicate, Behavior)`` pairs taking precedence over
            registered behaviors.
        registry: Registry resolving type tags. Defaults to `default_registry`.
        anonymous_records: Whether unregistered objects are written as anonymous records. If
            None, uses the global settings.
        hooks: Additional hook implementations for this call only.

    Returns:
        A document rooted at ``"0"``.

    Raises:
        UnknownTypeError: If a reachable value's type is not registered.
    """
    hook_manager = _hook_manager(hooks)
    hook_manager.hook.before_serialize(root=root)
    serializer = Serializer(registry, overrides, anonymous_records)
    document = serializer.serialize_root(root)
    hook_manager.hook.after_serialize(root=root, document=document)
    return document


def compress(document: Document, *, hooks: list[Any] | None = None) -> int:
    """
    Inline singly-referenced nodes of a document in place.

    Returns:
        The number of nodes inlined.
    """
    inlined = compress_document(document)
    _hook_manager(hooks).hook.after_compress(document=document, inlined=inlined)
    return inlined


def deserialize(
    document: Mapping[str, Any],
    *,
    registry: TypeRegistry | None = None,
    anonymous_records: bool | None = None,
    hooks: list[Any] | None = None,
) -> Any:
    """
    Rebuild the value described by a document.

    Args:
        document: Document rooted at ``"0"``, compressed or not.
        registry: Registry resolving type tags. Defaults to `default_registry`.
        anonymous_records: Whether unknown tags are rebuilt as records. If None, uses the global
            settings.
        hooks: Additional hook implementations for this call only.

    Returns:
        The reconstructed root value.

    Raises:
        MalformedDocumentError: If the document is not well formed.
        MalformedReferenceError: If a reference points to a missing entry.
        UnknownTypeError: If a node's type tag is not registered.
    """
    deserializer = Deserializer(document, registry, anonymous_records)
    value = deserializer.deserialize_root()
    _hook_manager(hooks).hook.after_deserialize(document=document, value=value)
    return value


def dumps(
    obj: Any,
    overrides: Overrides | None = (),
    *,
    registry: TypeRegistry | None = None,
    compress: bool | None = None,
    indent: int | None = None,
    anonymous_records: bool | None = None,
    hooks: list[Any] | None = None,
) -> str:
    """
    Serialize a value to JSON text.

    Args:
        obj: Value to serialize.
        overrides: Ordered ``(class or predicate, Behavior)`` pairs.
        registry: Registry resolving type tags. Defaults to `default_registry`.
        compress: Whether to inline singly-referenced nodes. If None, uses the global settings.
        indent: JSON indentation. If None, uses the global settings.
        anonymous_records: Whether unregistered objects are written as anonymous records. If
            None, uses the global settings.
        hooks: Additional hook implementations for this call only.

    Examples:
        >>> from refgraph import dumps, loads
        >>> text = dumps({"numbers": [1, 2, 3]})
        >>> text
        '{"0":{"type":"dict","data":{"numbers":{"type":"list","data":[1,2,3]}}}}'
        >>> loads(text)
        {'numbers': [1, 2, 3]}
    """
    settings = get_global_settings()
    if compress is None:
        compress = settings.compress
    if indent is None:
        indent = settings.indent

    hook_manager = _hook_manager(hooks)
    hook_manager.hook.before_serialize(root=obj)
    document = Serializer(registry, overrides, anonymous_records).serialize_root(obj)
    hook_manager.hook.after_serialize(root=obj, document=document)

    if compress:
        inlined = compress_document(document)
        hook_manager.hook.after_compress(document=document, inlined=inlined)
    return encode_document(document, indent)


def loads(
    text: str | bytes,
    *,
    registry: TypeRegistry | None = None,
    anonymous_records: bool | None = None,
    hooks: list[Any] | None = None,
) -> Any:
    """
    Rebuild a value from JSON text produced by `dumps`.

    Raises:
        MalformedDocumentError: If the text is not a valid document.
    """
    document = decode_document(text)
    return deserialize(
        document, registry=registry, anonymous_records=anonymous_records, hooks=hooks
    )


def create(tag: str, *, registry: TypeRegistry | None = None) -> Any | None:
    """Construct a fresh instance of a registered type, or None if `tag` is unknown."""
    return _registry(registry).create(tag)


def get_factory(tag: str, *, registry: TypeRegistry | None = None) -> Callable[[], Any] | None:
    """Return the factory registered for `tag`, or None if `tag` is unknown."""
    return _registry(registry).get_factory(tag)


def add_behavior(
    tag: str, behavior: Behavior, *, registry: TypeRegistry | None = None
) -> RegisteredType:
    """
    Merge hooks into the registered behavior of `tag`.

    Raises:
        UnknownTypeError: If `tag` is not registered yet.
    """
    return _registry(registry).add_behavior(tag, behavior)


def _registry(registry: TypeRegistry | None) -> TypeRegistry:
    return registry if registry is not None else default_registry


def _hook_manager(hooks: list[Any] | None) -> PluginManager:
    if hooks:
        return create_hook_manager_with_plugins(hooks)
    return _get_global_plugin_manager()
