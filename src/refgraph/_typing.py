from typing import Any, Callable, Union

from typing_extensions import TypeAlias

Value: TypeAlias = Any
"""A primitive, a reference, an inline node, a list of values or a mapping of values."""

Reference: TypeAlias = dict[str, str]
"""A ``{"ref": id}`` pointer into a document."""

Node: TypeAlias = dict[str, Value]
"""A ``{"type": tag, "data": payload}`` pair describing one serialized object."""

Document: TypeAlias = dict[str, Value]
"""Flat mapping of reference id to node, rooted at ``"0"``."""

OverrideTarget: TypeAlias = Union[type, Callable[[Any], bool]]
"""Class matched with ``isinstance`` or a predicate called with the object."""
