"""Shared helpers for the refgraph wire shape."""

from __future__ import annotations

import reprlib
from collections.abc import Iterator
from collections.abc import Mapping
from typing import Any

from refgraph._typing import Node
from refgraph._typing import Reference

REF_KEY = "ref"
TYPE_KEY = "type"
DATA_KEY = "data"
ROOT_ID = "0"


def build_repr(class_name: str, *leading: str, kwargs: Mapping[str, Any] | None = None) -> str:
    """Build a concise repr string: ``ClassName(leading…, k=v, …)``."""
    parts = list(leading)
    if kwargs:
        parts.extend(f"{k}={reprlib.Repr().repr(v)}" for k, v in kwargs.items())
    return f"{class_name}({', '.join(parts)})"


def is_primitive(value: Any) -> bool:
    """
    Whether a value is written to a document unchanged.

    Examples:
        >>> is_primitive(3.5), is_primitive("x"), is_primitive(None)
        (True, True, True)
        >>> is_primitive([1, 2])
        False
    """
    return value is None or isinstance(value, (bool, int, float, str))


def is_ref(value: Any) -> bool:
    """
    Whether a value is a ``{"ref": id}`` pointer.

    Examples:
        >>> is_ref({"ref": "3"})
        True
        >>> is_ref({"ref": "3", "extra": 1})
        False
    """
    return (
        isinstance(value, dict)
        and len(value) == 1
        and isinstance(value.get(REF_KEY), str)
    )


def is_node(value: Any) -> bool:
    """
    Whether a value is a ``{"type": tag, "data": payload}`` node.

    Examples:
        >>> is_node({"type": "Vector", "data": {"x": 1}})
        True
        >>> is_node({"type": "Vector"})
        False
    """
    return (
        isinstance(value, dict)
        and len(value) == 2
        and isinstance(value.get(TYPE_KEY), str)
        and DATA_KEY in value
    )


def make_ref(ref_id: str) -> Reference:
    """Build a reference to ``ref_id``."""
    return {REF_KEY: ref_id}


def make_node(tag: str, data: Any = None) -> Node:
    """Build a node for ``tag`` carrying ``data``."""
    return {TYPE_KEY: tag, DATA_KEY: data}


def iter_refs(data: Any) -> Iterator[str]:
    """
    Ids of every reference found anywhere inside a payload.

    Nested lists and mappings are walked with an explicit stack, so arbitrarily deep payloads
    are supported.

    Examples:
        >>> sorted(iter_refs({"a": {"ref": "1"}, "b": [{"ref": "2"}, {"c": {"ref": "1"}}]}))
        ['1', '1', '2']
    """
    pending = [data]
    while pending:
        value = pending.pop()
        if is_ref(value):
            yield value[REF_KEY]
        elif isinstance(value, dict):
            pending.extend(value.values())
        elif isinstance(value, list):
            pending.extend(value)
