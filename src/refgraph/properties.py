"""
Property markers and default property enumeration.

Classes declare which attributes are serialized with include/exclude markers. Markers can be
attached with `mark_properties`, with the ``include``/``exclude`` arguments of
`refgraph.serializable`, or with dataclass field metadata::

    @dataclass
    class Account:
        name: str
        cache: dict = field(default_factory=dict, metadata={"refgraph": False})

Markers are inherited: a subclass sees its bases' markers, its own taking precedence.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable
from typing import Any

from refgraph.behavior import Behavior

MARKERS_ATTR = "__refgraph_markers__"
METADATA_KEY = "refgraph"


def mark_properties(
    cls: type,
    include: Iterable[str] = (),
    exclude: Iterable[str] = (),
) -> type:
    """
    Attach include/exclude markers to a class.

    Args:
        cls: Class receiving the markers.
        include: Attribute names that are serialized.
        exclude: Attribute names that are never serialized.

    Returns:
        The class itself, so the function can be used as a decorator helper.

    Raises:
        ValueError: If a name is both included and excluded.

    Examples:
        >>> class Sample:
        ...     pass
        >>> _ = mark_properties(Sample, include=["a", "c"])
        >>> get_markers(Sample)
        {'a': True, 'c': True}
    """
    include = list(include)
    exclude = list(exclude)
    conflicts = set(include) & set(exclude)
    if conflicts:
        raise ValueError(f"Properties both included and excluded: {sorted(conflicts)}")

    # Own copy so bases keep their markers
    markers: dict[str, bool] = dict(cls.__dict__.get(MARKERS_ATTR, {}))
    markers.update({name: True for name in include})
    markers.update({name: False for name in exclude})
    setattr(cls, MARKERS_ATTR, markers)
    return cls


def get_markers(cls: type) -> dict[str, bool]:
    """
    Collect the markers declared on a class and its bases.

    Dataclass field metadata is read first, explicit markers override it.
    """
    markers: dict[str, bool] = {}
    if dataclasses.is_dataclass(cls):
        for f in dataclasses.fields(cls):
            if METADATA_KEY in f.metadata:
                markers[f.name] = bool(f.metadata[METADATA_KEY])
    for klass in reversed(cls.__mro__):
        markers.update(klass.__dict__.get(MARKERS_ATTR, {}))
    return markers


def own_properties(obj: Any) -> list[str]:
    """Names of the attributes set on ``obj``: instance ``__dict__`` first, then slots."""
    names = list(getattr(obj, "__dict__", {}))
    seen = set(names)
    for klass in type(obj).__mro__:
        slots = klass.__dict__.get("__slots__", ())
        if isinstance(slots, str):
            slots = (slots,)
        for name in slots:
            if name in ("__dict__", "__weakref__") or name in seen:
                continue
            if hasattr(obj, name):
                names.append(name)
                seen.add(name)
    return names


class PropertyResolver:
    """
    Default property enumeration.

    Precedence, first rule that applies wins:

    1. No markers declared: every own attribute.
    2. Every marker excludes: every own attribute except the excluded ones.
    3. Otherwise: only the attributes marked include.

    A behavior's `key_filter`, when supplied, prunes the resulting list last.

    Examples:
        >>> class Sample:
        ...     def __init__(self):
        ...         self.a, self.b, self.c = 1, 2, 3
        >>> resolver = PropertyResolver()
        >>> resolver.resolve(Sample())
        ['a', 'b', 'c']
        >>> _ = mark_properties(Sample, exclude=["b"])
        >>> resolver.resolve(Sample())
        ['a', 'c']
    """

    def resolve(self, obj: Any, behavior: Behavior | None = None) -> list[str]:
        """
        Return the ordered attribute names of ``obj`` to serialize.

        Args:
            obj: Object being serialized.
            behavior: Behavior resolved for ``obj``; only its `key_filter` is used.

        Returns:
            Attribute names in instance order.
        """
        keys = own_properties(obj)
        markers = get_markers(type(obj))

        if markers:
            if not any(markers.values()):
                keys = [key for key in keys if key not in markers]
            else:
                keys = [key for key in keys if markers.get(key) is True]

        key_filter = behavior.key_filter if behavior is not None else None
        if key_filter is not None:
            keys = [key for key in keys if key_filter(obj, key)]
        return keys
