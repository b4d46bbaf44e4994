"""Graph walk turning a root value into a flat, addressable document."""

from __future__ import annotations

import logging
import types
from collections.abc import Iterable
from collections.abc import Iterator
from typing import Any

from refgraph._typing import Document
from refgraph._typing import Node
from refgraph._typing import OverrideTarget
from refgraph._typing import Reference
from refgraph.behavior import DEFAULT_BEHAVIOR
from refgraph.behavior import Behavior
from refgraph.behavior import Override
from refgraph.behavior import as_overrides
from refgraph.behavior import find_override
from refgraph.exceptions import UnknownTypeError
from refgraph.exceptions import UnsupportedCycleError
from refgraph.properties import PropertyResolver
from refgraph.registry import TypeRegistry
from refgraph.registry import default_registry
from refgraph.settings import get_global_settings
from refgraph.utils import DATA_KEY
from refgraph.utils import ROOT_ID
from refgraph.utils import build_repr
from refgraph.utils import is_primitive
from refgraph.utils import make_node
from refgraph.utils import make_ref

logger = logging.getLogger(__name__)

ANONYMOUS_TAG = ""


class Serializer:
    """
    Serializes one object graph into a document.

    Objects are visited depth-first in pre-order. Each registered object gets a reference id
    the first time it is reached, before its properties are expanded, so every later
    encounter (including through a cycle) becomes a ``{"ref": id}`` pointer. A `serialize`
    hook's payload is produced in one step, so the objects it reaches get consecutive ids and
    are expanded afterwards, in order.

    The walk keeps its frames on an explicit stack, so deep graphs such as long linked chains
    are not limited by the interpreter's recursion limit.

    A serializer holds the reference table of a single call; create a new one per root.

    Args:
        registry: Registry resolving type tags. Defaults to `default_registry`.
        overrides: Ordered ``(class or predicate, Behavior)`` pairs, or `Override` instances.
            The first entry matching an object supplies hooks ahead of its registered behavior.
        anonymous_records: Whether unregistered objects are written as anonymous records. If
            None, uses the global settings.
        resolver: Property-set resolver used for default enumeration.

    Examples:
        >>> from refgraph.registry import TypeRegistry
        >>> registry = TypeRegistry()
        >>> class Vector:
        ...     def __init__(self, x=0, y=0):
        ...         self.x, self.y = x, y
        >>> _ = registry.register("Vector", Vector)
        >>> Serializer(registry).serialize_root(Vector(5, 5))
        {'0': {'type': 'Vector', 'data': {'x': 5, 'y': 5}}}
    """

    def __init__(
        self,
        registry: TypeRegistry | None = None,
        overrides: Iterable[Override | tuple[OverrideTarget, Behavior]] | None = (),
        anonymous_records: bool | None = None,
        resolver: PropertyResolver | None = None,
    ) -> None:
        if anonymous_records is None:
            anonymous_records = get_global_settings().anonymous_records
        self.registry = registry if registry is not None else default_registry
        self.overrides = as_overrides(overrides)
        self.anonymous_records = anonymous_records
        self.resolver = resolver or PropertyResolver()
        self._refs: dict[int, str] = {}
        # Visited objects stay alive for the whole call so their ids cannot be recycled
        self._visited: list[Any] = []
        self._document: Document = {}
        self._discovered: list[Iterator[None]] = []
        # Objects still being expanded (ancestors of the current one) and their behaviors
        self._open: dict[int, Behavior] = {}

    @property
    def document(self) -> Document:
        """Document built so far."""
        return self._document

    def serialize_root(self, root: Any) -> Document:
        """
        Serialize `root` and everything reachable from it.

        Args:
            root: Value to serialize.

        Returns:
            A document rooted at ``"0"``. A primitive root yields ``{"0": root}``.

        Raises:
            UnknownTypeError: If a reachable value's type is not registered and anonymous
                records are disabled.
            UnsupportedCycleError: If a cycle passes through a value rebuilt by a `construct`
                hook.
        """
        self._refs = {}
        self._visited = []
        self._document = {}
        self._discovered = []
        self._open = {}

        if is_primitive(root):
            self._document[ROOT_ID] = root
            return self._document

        self.serialize_property(root)
        self._walk()
        logger.debug(
            f"Serialized {type(root).__name__} into {len(self._document)} node(s)"
        )
        return self._document

    def serialize_property(self, value: Any) -> Any:
        """
        Serialize one value reachable from the root.

        Primitives pass through unchanged. Registered objects get a reference id and a reserved
        node the first time they are reached and are replaced by a reference; the node's payload
        is filled in by the walk started from `serialize_root`. Hooks call this for the nested
        values of their payloads.

        Raises:
            UnknownTypeError: If the value's type is not registered and anonymous records are
                disabled (or the value has no attributes to record).
            UnsupportedCycleError: If the value is reached again from inside its own contents
                and is rebuilt by a `construct` hook.
        """
        if is_primitive(value):
            return value

        ref_id = self._refs.get(id(value))
        if ref_id is not None:
            open_behavior = self._open.get(id(value))
            if open_behavior is not None and open_behavior.construct is not None:
                raise UnsupportedCycleError(type(value).__qualname__)
            return make_ref(ref_id)

        tag = self.registry.tag_for(value)
        if tag is None:
            if not (self.anonymous_records and _is_record(value)):
                type_name = type(value).__qualname__
                raise UnknownTypeError(
                    type_name, f"Cannot serialize value of unregistered type '{type_name}'"
                )
            tag = ANONYMOUS_TAG

        return self._visit(value, tag)

    def find_behavior(self, obj: Any, tag: str) -> Behavior:
        """
        Resolve the hooks used for `obj`.

        The first matching override wins, hook by hook, over the behavior registered for `tag`;
        hooks neither defines fall back to the default algorithm.
        """
        registered = self.registry.lookup(tag).behavior if tag else DEFAULT_BEHAVIOR
        return registered.merge(find_override(self.overrides, obj))

    def default_serialization(self, obj: Any, behavior: Behavior | None = None) -> dict[str, Any]:
        """Serialize the properties selected by the resolver into a mapping payload."""
        data: dict[str, Any] = {}
        for key in self.resolver.resolve(obj, behavior):
            data[key] = self.serialize_property(getattr(obj, key))
        return data

    def _visit(self, obj: Any, tag: str) -> Reference:
        ref_id = str(len(self._refs))
        self._refs[id(obj)] = ref_id
        self._visited.append(obj)

        # Reserve the slot first so document order follows discovery order
        node = make_node(tag)
        self._document[ref_id] = node
        self._discovered.append(self._expand(obj, tag, node))
        return make_ref(ref_id)

    def _walk(self) -> None:
        """Expand discovered objects depth-first with an explicit stack of frames."""
        stack: list[Iterator[None]] = []
        while True:
            # First discovered on top, so siblings expand in discovery order
            stack.extend(reversed(self._discovered))
            self._discovered = []
            if not stack:
                return
            try:
                next(stack[-1])
            except StopIteration:
                stack.pop()

    def _expand(self, obj: Any, tag: str, node: Node) -> Iterator[None]:
        """
        Fill in the payload of one node, one step per serialized property.

        The frame stays on the stack until everything discovered while filling it has been
        expanded, which is what keeps it open.
        """
        behavior = self.find_behavior(obj, tag)
        self._open[id(obj)] = behavior
        if behavior.serialize is not None:
            node[DATA_KEY] = behavior.serialize(self, obj)
            yield
        else:
            data: dict[str, Any] = {}
            node[DATA_KEY] = data
            for key in self.resolver.resolve(obj, behavior):
                data[key] = self.serialize_property(getattr(obj, key))
                yield
        del self._open[id(obj)]

    def __repr__(self) -> str:
        return build_repr(
            "Serializer",
            kwargs={"nodes": len(self._document), "overrides": len(self.overrides)},
        )


def _is_record(value: Any) -> bool:
    """Whether an unregistered value can be written as an anonymous record."""
    if callable(value) or isinstance(value, types.ModuleType):
        return False
    return hasattr(value, "__dict__") or hasattr(type(value), "__slots__")
