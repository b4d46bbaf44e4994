"""Reconstruction of an object graph from a document."""

from __future__ import annotations

import logging
import types
from collections.abc import Iterator
from collections.abc import Mapping
from typing import Any

from refgraph._typing import Node
from refgraph.behavior import DEFAULT_BEHAVIOR
from refgraph.behavior import Behavior
from refgraph.exceptions import MalformedDocumentError
from refgraph.exceptions import MalformedReferenceError
from refgraph.exceptions import UnknownTypeError
from refgraph.registry import TypeRegistry
from refgraph.registry import default_registry
from refgraph.settings import get_global_settings
from refgraph.utils import DATA_KEY
from refgraph.utils import REF_KEY
from refgraph.utils import ROOT_ID
from refgraph.utils import TYPE_KEY
from refgraph.utils import build_repr
from refgraph.utils import is_node
from refgraph.utils import is_primitive
from refgraph.utils import is_ref

logger = logging.getLogger(__name__)


class Deserializer:
    """
    Rebuilds the object graph described by one document.

    Each instance is stored in the reference table as soon as it is constructed, before its
    fields are populated, so references met while populating it (cycles) resolve to the same
    instance. Inline nodes left by compression are rebuilt in place and never stored.

    Population runs from an explicit stack of frames, depth-first: an instance's contents are
    populated (and their `post_deserialize` hooks run) before its own `post_deserialize` hook.
    Values reached from a `construct` hook are fully rebuilt before the hook returns.

    Args:
        document: Document to read, rooted at ``"0"``.
        registry: Registry resolving type tags. Defaults to `default_registry`.
        anonymous_records: Whether empty or unknown tags are rebuilt as
            `types.SimpleNamespace` records. If None, uses the global settings.

    Examples:
        >>> from refgraph.registry import TypeRegistry
        >>> registry = TypeRegistry()
        >>> class Vector:
        ...     pass
        >>> _ = registry.register("Vector", Vector)
        >>> document = {"0": {"type": "Vector", "data": {"x": 5, "y": 8}}}
        >>> vector = Deserializer(document, registry).deserialize_root()
        >>> vector.x, vector.y
        (5, 8)
    """

    def __init__(
        self,
        document: Mapping[str, Any],
        registry: TypeRegistry | None = None,
        anonymous_records: bool | None = None,
    ) -> None:
        if anonymous_records is None:
            anonymous_records = get_global_settings().anonymous_records
        self.document = document
        self.registry = registry if registry is not None else default_registry
        self.anonymous_records = anonymous_records
        self._refs: dict[str, Any] = {}
        self._constructing: set[str] = set()
        self._construct_depth = 0
        self._pending: list[Iterator[None]] = []

    def deserialize_root(self) -> Any:
        """
        Rebuild the root value of the document.

        Returns:
            The reconstructed root. Primitive documents unwrap to their primitive.

        Raises:
            MalformedDocumentError: If the document has no ``"0"`` entry, is not well formed,
                or nests values rebuilt by `construct` hooks too deeply.
            MalformedReferenceError: If a reference points to a missing entry.
            UnknownTypeError: If a node's tag is unknown and anonymous records are disabled.
        """
        if not isinstance(self.document, Mapping) or ROOT_ID not in self.document:
            raise MalformedDocumentError(f"Document has no root entry '{ROOT_ID}'")

        root = self.document[ROOT_ID]
        if is_primitive(root):
            return root

        try:
            value = self.resolve_reference(ROOT_ID)
            frames, self._pending = self._pending, []
            self._walk(frames)
        except RecursionError as e:
            raise MalformedDocumentError("Document is nested too deeply to rebuild") from e

        logger.debug(f"Deserialized {type(value).__name__} from {len(self._refs)} entry(ies)")
        return value

    def deserialize_property(self, value: Any) -> Any:
        """
        Rebuild one value of a node payload.

        Primitives pass through, references resolve through the reference table, inline nodes
        are rebuilt immediately and lists are rebuilt element-wise. Hooks call this for the
        nested values of their payloads.

        Raises:
            MalformedDocumentError: If the value is a mapping that is neither a reference nor a
                node.
        """
        if is_primitive(value):
            return value
        if is_ref(value):
            return self.resolve_reference(value[REF_KEY])
        if is_node(value):
            return self.deserialize_node(value)
        if isinstance(value, list):
            return [self.deserialize_property(item) for item in value]
        raise MalformedDocumentError(f"Unrecognized value in document: {value!r}")

    def resolve_reference(self, ref_id: str) -> Any:
        """
        Return the instance stored under `ref_id`, rebuilding it on first use.

        Raises:
            MalformedReferenceError: If the document has no entry `ref_id`.
            MalformedDocumentError: If the entry is not a node, or is referenced while its own
                `construct` hook is still running.
        """
        if ref_id in self._refs:
            return self._refs[ref_id]
        if ref_id in self._constructing:
            raise MalformedDocumentError(
                f"Entry '{ref_id}' is referenced from its own construction payload"
            )
        if ref_id not in self.document:
            raise MalformedReferenceError(ref_id)

        node = self.document[ref_id]
        if not is_node(node):
            raise MalformedDocumentError(f"Entry '{ref_id}' is not a node: {node!r}")
        return self.deserialize_node(node, ref_id)

    def deserialize_node(self, node: Node, ref_id: str | None = None) -> Any:
        """
        Construct and register one node, and schedule its population.

        Args:
            node: The ``{"type", "data"}`` node.
            ref_id: Id to register the instance under. None for inline nodes.

        Returns:
            The new instance. Its fields are populated by the running walk, or before this
            returns when called from inside a `construct` hook.
        """
        tag = node[TYPE_KEY]
        data = node[DATA_KEY]

        if not tag or not self.registry.has(tag):
            if not self.anonymous_records:
                raise UnknownTypeError(tag, f"Cannot deserialize unknown type tag '{tag}'")
            obj: Any = types.SimpleNamespace()
            behavior = DEFAULT_BEHAVIOR
        else:
            entry = self.registry.lookup(tag)
            behavior = entry.behavior
            if behavior.construct is not None:
                obj = self._construct(behavior, data, ref_id)
            else:
                obj = entry.create()

        if ref_id is not None:
            self._refs[ref_id] = obj

        frame = self._populate(obj, data, behavior)
        if self._construct_depth:
            self._walk([frame])
        else:
            self._pending.append(frame)
        return obj

    def default_deserialization(self, obj: Any, data: Any) -> None:
        """Assign every key of a mapping payload as an attribute of `obj`."""
        _expect_mapping(obj, data)
        for key, value in data.items():
            setattr(obj, key, self.deserialize_property(value))

    def _construct(self, behavior: Behavior, data: Any, ref_id: str | None) -> Any:
        if ref_id is not None:
            self._constructing.add(ref_id)
        self._construct_depth += 1
        try:
            return behavior.construct(self, data)
        finally:
            self._construct_depth -= 1
            if ref_id is not None:
                self._constructing.discard(ref_id)

    def _populate(self, obj: Any, data: Any, behavior: Behavior) -> Iterator[None]:
        """Populate one instance, one step per field, then run its post-deserialize hook."""
        if behavior.deserialize is not None:
            behavior.deserialize(self, obj, data)
            yield
        else:
            _expect_mapping(obj, data)
            for key, value in data.items():
                setattr(obj, key, self.deserialize_property(value))
                yield

        if behavior.post_deserialize is not None:
            behavior.post_deserialize(obj)

    def _walk(self, frames: list[Iterator[None]]) -> None:
        """Run population frames depth-first until they and everything they reach are done."""
        saved = self._pending, self._construct_depth
        self._pending, self._construct_depth = [], 0
        stack = list(reversed(frames))
        try:
            while stack:
                try:
                    next(stack[-1])
                except StopIteration:
                    stack.pop()
                stack.extend(reversed(self._pending))
                self._pending = []
        finally:
            self._pending, self._construct_depth = saved

    def __repr__(self) -> str:
        return build_repr(
            "Deserializer",
            kwargs={"entries": len(self.document), "resolved": len(self._refs)},
        )


def _expect_mapping(obj: Any, data: Any) -> None:
    if not isinstance(data, Mapping):
        raise MalformedDocumentError(
            f"Expected a mapping payload for {type(obj).__name__}, got {type(data).__name__}"
        )
