"""
Inlining of singly-referenced nodes.

Objects referenced from several places must stay addressable by id so their shared identity
survives reconstruction. Objects with exactly one holder carry no sharing semantics, so their
node can be embedded where the reference was, removing the indirection and the top-level
entry.

The pass is single-shot and snapshot based:

- Reference counts are taken once. Every reference anywhere inside a node payload counts as a
  holder, however deeply it is nested. The root has one implicit holder, its top-level entry,
  so it is never inlined.
- Only references in the direct slots of a payload (mapping values or list items) are
  replaced. A node also referenced from a deeper position has more than one holder and stays
  top-level.
- Inlining starts at the root and only descends into nodes it has just inlined. Nodes that stay
  top-level because they are shared are not visited, so their own singly-referenced children
  stay top-level as well.
- Inline nodes nest at most `MAX_INLINE_DEPTH` levels. A node that would nest deeper stays
  top-level and starts a new run of inlining, which keeps long chains encodable as JSON.
"""

from __future__ import annotations

import logging
from typing import Any

from refgraph._typing import Document
from refgraph._typing import Node
from refgraph.utils import DATA_KEY
from refgraph.utils import REF_KEY
from refgraph.utils import ROOT_ID
from refgraph.utils import is_node
from refgraph.utils import is_ref
from refgraph.utils import iter_refs

logger = logging.getLogger(__name__)

MAX_INLINE_DEPTH = 64
"""Maximum number of inline nodes nested inside one another."""


def count_references(document: Document) -> dict[str, int]:
    """
    Count the holders of every id in a document.

    Each reference found inside a node payload, at any depth, counts as one holder. The root
    starts with one implicit holder.

    Examples:
        >>> count_references({
        ...     "0": {"type": "A", "data": {"a": {"ref": "1"}, "b": [{"ref": "1"}]}},
        ...     "1": {"type": "B", "data": {"up": {"ref": "0"}}},
        ... })
        {'0': 2, '1': 2}
    """
    counts: dict[str, int] = {ROOT_ID: 1}
    for entry in document.values():
        if not is_node(entry):
            continue
        for ref_id in iter_refs(entry[DATA_KEY]):
            counts[ref_id] = counts.get(ref_id, 0) + 1
    return counts


def compress(document: Document, max_depth: int = MAX_INLINE_DEPTH) -> int:
    """
    Inline singly-referenced nodes, mutating `document` in place.

    Args:
        document: A freshly serialized document.
        max_depth: Maximum nesting of inline nodes.

    Returns:
        The number of nodes inlined.

    Examples:
        >>> document = {
        ...     "0": {"type": "Transform", "data": {"pos": {"ref": "1"}, "rotation": 45}},
        ...     "1": {"type": "Vector", "data": {"x": 5, "y": 5}},
        ... }
        >>> compress(document)
        1
        >>> list(document)
        ['0']
        >>> document["0"]["data"]["pos"]
        {'type': 'Vector', 'data': {'x': 5, 'y': 5}}
    """
    root = document.get(ROOT_ID)
    if not is_node(root):
        return 0

    counts = count_references(document)
    before = len(document)
    inlined = 0

    pending: list[tuple[Node, int]] = [(root, 0)]
    while pending:
        node, depth = pending.pop()
        for slots, key, ref_id in _direct_references(node):
            if ref_id == ROOT_ID or counts.get(ref_id) != 1:
                continue
            target = document.get(ref_id)
            if not is_node(target):
                continue
            if depth >= max_depth:
                # Kept top-level; its children are inlined into it instead
                pending.append((target, 0))
                continue
            del document[ref_id]
            slots[key] = target
            inlined += 1
            pending.append((target, depth + 1))

    logger.debug(f"Compressed document from {before} to {len(document)} top-level entry(ies)")
    return inlined


def _direct_references(node: Node) -> list[tuple[Any, Any, str]]:
    """``(container, key, ref_id)`` for every reference held in a direct slot of a payload."""
    data = node[DATA_KEY]
    if isinstance(data, dict):
        items = list(data.items())
    elif isinstance(data, list):
        items = list(enumerate(data))
    else:
        return []
    return [(data, key, value[REF_KEY]) for key, value in items if is_ref(value)]
