"""
Built-in registered types for common Python values.

These types are registered in every `TypeRegistry` created with ``builtins=True``. Their
payloads keep nested references at the top level of the payload (list items or mapping
values), which is where the compression pass inlines them.

Aware datetimes are written as epoch milliseconds and come back in UTC, equal to the original
instant. Naive datetimes are written as ``{"ms": ..., "naive": true}``, their wall-clock time
read as UTC, and come back naive with the same wall-clock time. Sub-millisecond precision is
not kept.

Tuples and frozensets are rebuilt by `construct` hooks, so they cannot take part in a reference
cycle; serializing one that does raises `UnsupportedCycleError`.
"""

from __future__ import annotations

import base64
import datetime as dt
from typing import TYPE_CHECKING, Any

from refgraph.behavior import Behavior
from refgraph.exceptions import MalformedDocumentError
from refgraph.exceptions import UnknownTypeError

if TYPE_CHECKING:
    from refgraph.deserializer import Deserializer
    from refgraph.registry import TypeRegistry
    from refgraph.serializer import Serializer


def _populated_by_construct(deserializer: Deserializer, obj: Any, data: Any) -> None:
    """Population hook for values fully built by their `construct` hook."""


def _expect_list(tag: str, data: Any) -> list[Any]:
    if not isinstance(data, list):
        raise MalformedDocumentError(f"'{tag}' payload must be a list, got {type(data).__name__}")
    return data


# region Sequences


def _serialize_items(serializer: Serializer, obj: Any) -> list[Any]:
    return [serializer.serialize_property(item) for item in obj]


def _deserialize_list(deserializer: Deserializer, obj: list, data: Any) -> None:
    for item in _expect_list("list", data):
        obj.append(deserializer.deserialize_property(item))


def _construct_tuple(deserializer: Deserializer, data: Any) -> tuple:
    return tuple(deserializer.deserialize_property(item) for item in _expect_list("tuple", data))


LIST_BEHAVIOR = Behavior(serialize=_serialize_items, deserialize=_deserialize_list)
TUPLE_BEHAVIOR = Behavior(
    serialize=_serialize_items,
    construct=_construct_tuple,
    deserialize=_populated_by_construct,
)


# region Sets


def _deserialize_set(deserializer: Deserializer, obj: set, data: Any) -> None:
    for item in _expect_list("set", data):
        obj.add(deserializer.deserialize_property(item))


def _construct_frozenset(deserializer: Deserializer, data: Any) -> frozenset:
    return frozenset(
        deserializer.deserialize_property(item) for item in _expect_list("frozenset", data)
    )


SET_BEHAVIOR = Behavior(serialize=_serialize_items, deserialize=_deserialize_set)
FROZENSET_BEHAVIOR = Behavior(
    serialize=_serialize_items,
    construct=_construct_frozenset,
    deserialize=_populated_by_construct,
)


# region Mappings


def _serialize_dict(serializer: Serializer, obj: dict) -> Any:
    if all(isinstance(key, str) for key in obj):
        return {key: serializer.serialize_property(value) for key, value in obj.items()}

    # Non-string keys: flat [k0, v0, k1, v1, ...] so every reference stays one level deep
    flat: list[Any] = []
    for key, value in obj.items():
        flat.append(serializer.serialize_property(key))
        flat.append(serializer.serialize_property(value))
    return flat


def _deserialize_dict(deserializer: Deserializer, obj: dict, data: Any) -> None:
    if isinstance(data, dict):
        for key, value in data.items():
            obj[key] = deserializer.deserialize_property(value)
        return

    flat = _expect_list("dict", data)
    if len(flat) % 2:
        raise MalformedDocumentError("'dict' pair list must have an even length")
    for index in range(0, len(flat), 2):
        key = deserializer.deserialize_property(flat[index])
        obj[key] = deserializer.deserialize_property(flat[index + 1])


DICT_BEHAVIOR = Behavior(serialize=_serialize_dict, deserialize=_deserialize_dict)


# region Scalars


def _serialize_datetime(serializer: Serializer, value: dt.datetime) -> Any:
    # Aware values: epoch milliseconds. Naive values: their wall-clock time read as UTC,
    # flagged so they come back naive.
    if value.tzinfo is None:
        return {"ms": _to_millis(value.replace(tzinfo=dt.timezone.utc)), "naive": True}
    return _to_millis(value)


def _to_millis(value: dt.datetime) -> int:
    return int(round(value.astimezone(dt.timezone.utc).timestamp() * 1000))


def _construct_datetime(deserializer: Deserializer, data: Any) -> dt.datetime:
    naive = isinstance(data, dict) and data.get("naive") is True
    millis = data.get("ms") if naive else data
    if isinstance(millis, bool) or not isinstance(millis, (int, float)):
        raise MalformedDocumentError("'datetime' payload must be an epoch timestamp")
    value = dt.datetime.fromtimestamp(millis / 1000.0, tz=dt.timezone.utc)
    return value.replace(tzinfo=None) if naive else value


def _construct_bytes(deserializer: Deserializer, data: Any) -> bytes:
    if not isinstance(data, str):
        raise MalformedDocumentError("'bytes' payload must be base64 text")
    return base64.b64decode(data.encode("ascii"))


DATETIME_BEHAVIOR = Behavior(
    serialize=_serialize_datetime,
    construct=_construct_datetime,
    deserialize=_populated_by_construct,
)
BYTES_BEHAVIOR = Behavior(
    serialize=lambda serializer, value: base64.b64encode(value).decode("ascii"),
    construct=_construct_bytes,
    deserialize=_populated_by_construct,
)


# region Class references


def _serialize_class(serializer: Serializer, cls: type) -> str:
    tag = serializer.registry.tag_for_class(cls)
    if tag is None:
        raise UnknownTypeError(
            cls.__qualname__, f"Cannot serialize unregistered class '{cls.__qualname__}'"
        )
    return tag


def _construct_class(deserializer: Deserializer, data: Any) -> Any:
    if not isinstance(data, str):
        raise MalformedDocumentError("'class' payload must be a type tag")
    entry = deserializer.registry.lookup(data)
    return entry.cls if entry.cls is not None else entry.factory


CLASS_BEHAVIOR = Behavior(
    serialize=_serialize_class,
    construct=_construct_class,
    deserialize=_populated_by_construct,
)


# region Registration


def register_builtins(registry: TypeRegistry) -> None:
    """Register the built-in types into `registry`."""
    registry.register("list", list, LIST_BEHAVIOR)
    registry.register("tuple", tuple, TUPLE_BEHAVIOR)
    registry.register("set", set, SET_BEHAVIOR)
    registry.register("frozenset", frozenset, FROZENSET_BEHAVIOR)
    registry.register("dict", dict, DICT_BEHAVIOR)
    registry.register("datetime", dt.datetime, DATETIME_BEHAVIOR)
    registry.register("bytes", bytes, BYTES_BEHAVIOR)
    registry.register("class", type, CLASS_BEHAVIOR)


__all__ = ["register_builtins"]
