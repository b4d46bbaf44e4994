"""
Per-type behavior hooks and caller-supplied overrides.

A `Behavior` bundles the optional hooks that replace individual steps of the default
serialization and deserialization algorithms. Every hook is independent: a behavior that only
sets `post_deserialize` still uses default enumeration, construction and population.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable

from refgraph._typing import OverrideTarget
from refgraph.utils import build_repr

if TYPE_CHECKING:
    from refgraph.deserializer import Deserializer
    from refgraph.serializer import Serializer

HOOK_NAMES = ("serialize", "construct", "key_filter", "deserialize", "post_deserialize")


@dataclass(frozen=True)
class Behavior:
    """
    Optional hooks overriding the default steps for one type.

    Examples:
        >>> behavior = Behavior(post_deserialize=lambda obj: None)
        >>> behavior.serialize is None
        True
        >>> merged = behavior.merge(Behavior(key_filter=lambda obj, key: True))
        >>> merged.post_deserialize is not None and merged.key_filter is not None
        True
    """

    serialize: Callable[[Serializer, Any], Any] | None = None
    """Produces the node payload directly: ``serialize(serializer, obj) -> data``."""

    construct: Callable[[Deserializer, Any], Any] | None = None
    """Builds the instance from the raw payload: ``construct(deserializer, data) -> obj``."""

    key_filter: Callable[[Any, str], bool] | None = None
    """Prunes default property enumeration: ``key_filter(obj, key) -> keep``."""

    deserialize: Callable[[Deserializer, Any, Any], None] | None = None
    """Replaces default field population: ``deserialize(deserializer, obj, data)``."""

    post_deserialize: Callable[[Any], None] | None = None
    """Runs after population, default or custom: ``post_deserialize(obj)``."""

    def merge(self, other: Behavior | None) -> Behavior:
        """
        Combine two behaviors, hooks set on ``other`` taking precedence.

        Args:
            other: Behavior whose hooks win over this one's. None returns this behavior.

        Returns:
            A new behavior (or this one, when ``other`` sets nothing).
        """
        if other is None:
            return self
        updates = {
            name: getattr(other, name)
            for name in HOOK_NAMES
            if getattr(other, name) is not None
        }
        if not updates:
            return self
        return dataclasses.replace(self, **updates)

    def is_empty(self) -> bool:
        """Whether no hook is set."""
        return all(getattr(self, name) is None for name in HOOK_NAMES)

    def __repr__(self) -> str:
        hooks = [name for name in HOOK_NAMES if getattr(self, name) is not None]
        return build_repr("Behavior", *hooks)


DEFAULT_BEHAVIOR = Behavior()


@dataclass(frozen=True)
class Override:
    """
    Caller-supplied behavior applied to objects matching ``target``.

    Args:
        target: A class (matched with `isinstance`) or a predicate called with the object.
        behavior: Hooks used for matching objects, ahead of the registered behavior.
    """

    target: OverrideTarget
    behavior: Behavior

    def matches(self, obj: Any) -> bool:
        """Whether this override applies to ``obj``."""
        if isinstance(self.target, type):
            return isinstance(obj, self.target)
        return bool(self.target(obj))


def as_overrides(
    overrides: Iterable[Override | tuple[OverrideTarget, Behavior]] | None,
) -> tuple[Override, ...]:
    """
    Normalize an ordered override list.

    Entries may be `Override` instances or ``(target, behavior)`` pairs. Order is preserved:
    the first matching entry wins.
    """
    if not overrides:
        return ()
    result: list[Override] = []
    for entry in overrides:
        if isinstance(entry, Override):
            result.append(entry)
        else:
            target, behavior = entry
            result.append(Override(target, behavior))
    return tuple(result)


def find_override(overrides: Sequence[Override], obj: Any) -> Behavior | None:
    """Return the behavior of the first override matching ``obj``, if any."""
    for override in overrides:
        if override.matches(obj):
            return override.behavior
    return None
