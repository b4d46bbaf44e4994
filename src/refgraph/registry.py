"""
Type registry mapping stable type tags to factories and default behaviors.

The registry is populated once, at process start-up, and read-only afterwards. Registration is
permanent: there is no unregister, and registering a tag twice fails.

Examples:
    >>> from refgraph.registry import TypeRegistry
    >>> registry = TypeRegistry()
    >>> class Vector:
    ...     def __init__(self, x=0, y=0):
    ...         self.x, self.y = x, y
    >>> _ = registry.register("Vector", Vector)
    >>> registry.has("Vector"), registry.tag_for(Vector(1, 2))
    (True, 'Vector')
    >>> registry.register("Vector", Vector)
    Traceback (most recent call last):
    ...
    refgraph.exceptions.DuplicateTypeTagError: Type tag 'Vector' is already registered
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable
from dataclasses import dataclass
from dataclasses import field
from typing import Any, Callable, TypeVar, overload

from refgraph.behavior import DEFAULT_BEHAVIOR
from refgraph.behavior import Behavior
from refgraph.exceptions import DuplicateTypeTagError
from refgraph.exceptions import UnknownTypeError
from refgraph.properties import mark_properties

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=type)


@dataclass
class RegisteredType:
    """A registry entry: tag, factory and default behavior."""

    tag: str
    factory: Callable[[], Any]
    behavior: Behavior = field(default=DEFAULT_BEHAVIOR)
    cls: type | None = None
    """Class whose instances serialize under `tag`, if any."""

    def create(self) -> Any:
        """Construct a fresh instance with the no-argument factory."""
        return self.factory()


class TypeRegistry:
    """
    Registry of serializable types.

    Args:
        builtins: Whether to register the built-in container, datetime, bytes and class
            reference types (see `refgraph.builtin`).
    """

    def __init__(self, builtins: bool = True) -> None:
        self._types: dict[str, RegisteredType] = {}
        self._tags: dict[type, str] = {}
        self._lock = threading.RLock()
        if builtins:
            from refgraph.builtin import register_builtins

            register_builtins(self)

    def register(
        self,
        tag: str,
        factory: Callable[[], Any],
        behavior: Behavior | None = None,
        *,
        cls: type | None = None,
    ) -> RegisteredType:
        """
        Register a type under a stable tag.

        Args:
            tag: Stable string identifying the type on the wire.
            factory: No-argument callable building an empty instance. When it is a class it is
                also the class whose instances serialize under `tag`.
            behavior: Default hooks for the type.
            cls: Class bound to `tag` when `factory` is not the class itself.

        Returns:
            The new registry entry.

        Raises:
            DuplicateTypeTagError: If `tag` is already registered, or the class is already bound
                to another tag.
            ValueError: If `tag` is empty (reserved for anonymous records).
        """
        if not tag:
            raise ValueError("The empty type tag is reserved for anonymous records")
        if cls is None and isinstance(factory, type):
            cls = factory

        with self._lock:
            if tag in self._types:
                raise DuplicateTypeTagError(tag)
            if cls is not None and cls in self._tags:
                raise DuplicateTypeTagError(
                    tag,
                    f"Class {cls.__qualname__} is already registered as '{self._tags[cls]}'",
                )
            entry = RegisteredType(tag, factory, behavior or DEFAULT_BEHAVIOR, cls)
            self._types[tag] = entry
            if cls is not None:
                self._tags[cls] = tag

        logger.debug(f"Registered type '{tag}' ({entry.behavior!r})")
        return entry

    def lookup(self, tag: str) -> RegisteredType:
        """
        Return the entry registered under `tag`.

        Raises:
            UnknownTypeError: If nothing is registered under `tag`.
        """
        try:
            return self._types[tag]
        except KeyError:
            raise UnknownTypeError(tag) from None

    def has(self, tag: str) -> bool:
        """Whether `tag` is registered."""
        return tag in self._types

    def tags(self) -> list[str]:
        """All registered tags, in registration order."""
        return list(self._types)

    def tag_for(self, obj: Any) -> str | None:
        """
        Return the tag an object serializes under.

        The object's class hierarchy is searched in MRO order, so instances of an unregistered
        subclass use the nearest registered base class's tag.

        Returns:
            The tag, or None if no class in the hierarchy is registered.
        """
        for klass in type(obj).__mro__:
            tag = self._tags.get(klass)
            if tag is not None:
                return tag
        return None

    def tag_for_class(self, cls: type) -> str | None:
        """Return the tag registered for exactly `cls`, if any."""
        return self._tags.get(cls)

    def create(self, tag: str) -> Any | None:
        """Construct a fresh instance of `tag`, or None if the tag is unknown."""
        if tag not in self._types:
            return None
        return self._types[tag].create()

    def get_factory(self, tag: str) -> Callable[[], Any] | None:
        """Return the factory registered for `tag`, or None if the tag is unknown."""
        if tag not in self._types:
            return None
        return self._types[tag].factory

    def add_behavior(self, tag: str, behavior: Behavior) -> RegisteredType:
        """
        Merge hooks into the default behavior of an already registered type.

        Hooks set on `behavior` replace the registered ones; hooks it leaves unset are kept.

        Raises:
            UnknownTypeError: If `tag` is not registered yet.
        """
        with self._lock:
            entry = self._types.get(tag)
            if entry is None:
                raise UnknownTypeError(
                    tag, f"Register the type '{tag}' before adding behavior to it"
                )
            entry.behavior = entry.behavior.merge(behavior)
        logger.debug(f"Updated behavior of '{tag}' ({entry.behavior!r})")
        return entry

    def __contains__(self, tag: object) -> bool:
        return tag in self._types

    def __len__(self) -> int:
        return len(self._types)


default_registry = TypeRegistry()
"""Process-wide registry used when no registry is passed explicitly."""


@overload
def serializable(tag: T) -> T: ...


@overload
def serializable(
    tag: str | None = None,
    *,
    behavior: Behavior | None = None,
    include: Iterable[str] = (),
    exclude: Iterable[str] = (),
    registry: TypeRegistry | None = None,
) -> Callable[[T], T]: ...


def serializable(
    tag: Any = None,
    *,
    behavior: Behavior | None = None,
    include: Iterable[str] = (),
    exclude: Iterable[str] = (),
    registry: TypeRegistry | None = None,
) -> Any:
    """
    Class decorator registering a class as serializable.

    Can be used bare (``@serializable``) or with arguments. The class must be constructible
    without arguments unless `behavior` supplies a `construct` hook.

    Args:
        tag: Stable type tag. Defaults to the class ``__name__``.
        behavior: Default hooks for the class.
        include: Attributes to serialize (include markers).
        exclude: Attributes never serialized (exclude markers).
        registry: Registry to register into. Defaults to `default_registry`.

    Examples:
        >>> from refgraph.registry import TypeRegistry, serializable
        >>> registry = TypeRegistry()
        >>> @serializable("Point", exclude=["cache"], registry=registry)
        ... class Point:
        ...     pass
        >>> registry.lookup("Point").cls is Point
        True
    """

    def decorator(cls: T) -> T:
        if include or exclude:
            mark_properties(cls, include=include, exclude=exclude)
        target = registry if registry is not None else default_registry
        target.register(tag_name or cls.__name__, cls, behavior)
        return cls

    if isinstance(tag, type):
        tag_name = None
        return decorator(tag)

    tag_name = tag
    return decorator
