"""Flat form-key decoder.

Turns a flat mapping whose keys use dot and bracket notation
(``user.name``, ``cars[0].model``, ``config[theme][primary]``) into a
nested ``dict`` / ``list`` tree ready for schema validation.

Decoding runs in two passes:

1. ``build_tree()`` walks every key and grows an explicit tree of
   ``Node`` objects tagged MAPPING, SEQUENCE or SCALAR.  The kind of a
   node is fixed by the first path that creates it; any later path that
   needs a different kind at the same position raises ``KeyConflictError``.
2. ``compact()`` materialises the tree.  Sequences may be sparse while
   building (``values[0]`` and ``values[2]`` only); compaction keeps the
   assigned positions in index order and drops the holes.  Explicit
   ``None``, ``False``, ``0`` and ``""`` are assigned values, not holes.

Strict-index grammar: a segment is an index when it is one or more ASCII
digits (``[0-9]+``).  Leading zeros are accepted, ``"007"`` addresses
position 7.  ``-1``, ``1.5``, ``1e2`` and non-ASCII digits are names.
"""

from __future__ import annotations

import enum
import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from formgate.core.errors import KeyConflictError

_logger = logging.getLogger("formgate.parsing")

# ``[x]`` → ``.x``; an empty ``[]`` is left alone and stays part of the name
_BRACKET_SEGMENT = re.compile(r"\[([^\]]+)\]")

_STRICT_INDEX = re.compile(r"[0-9]+")


class NodeKind(enum.Enum):
    """Structural kind of a decoded tree position."""

    MAPPING = "mapping"
    SEQUENCE = "sequence"
    SCALAR = "scalar"


@dataclass
class Node:
    """One position in the decoded tree.

    Mappings key ``children`` by segment name, sequences by integer index.
    Scalars carry the submitted ``value`` and never have children.
    """

    kind: NodeKind
    children: dict[str | int, Node] = field(default_factory=dict)
    value: Any = None

    @classmethod
    def scalar(cls, value: Any) -> Node:
        return cls(NodeKind.SCALAR, value=value)


def split_path(key: str) -> list[str]:
    """Split a flat key into its path segments.

    >>> split_path("cars[0].model")
    ['cars', '0', 'model']
    """
    normalized = _BRACKET_SEGMENT.sub(r".\1", key)
    return [segment for segment in normalized.split(".") if segment]


def is_strict_index(segment: str) -> bool:
    return _STRICT_INDEX.fullmatch(segment) is not None


def _slot(container: Node, segment: str) -> str | int:
    if container.kind is NodeKind.SEQUENCE and is_strict_index(segment):
        return int(segment)
    return segment


def _insert(root: Node, path: str, segments: list[str], value: Any) -> None:
    current = root
    last = len(segments) - 1

    for position, segment in enumerate(segments):
        slot = _slot(current, segment)
        existing = current.children.get(slot)

        if position == last:
            if existing is not None and existing.kind is not NodeKind.SCALAR:
                raise KeyConflictError(segment, path, existing.kind.value, NodeKind.SCALAR.value)
            current.children[slot] = Node.scalar(value)
            return

        expected = NodeKind.SEQUENCE if is_strict_index(segments[position + 1]) else NodeKind.MAPPING
        if existing is None:
            existing = Node(expected)
            current.children[slot] = existing
        elif existing.kind is not expected:
            raise KeyConflictError(segment, path, existing.kind.value, expected.value)

        current = existing


def build_tree(flat_map: Mapping[str, Any]) -> Node:
    """Grow the tagged tree for *flat_map*; the root is always a mapping.

    Raises ``KeyConflictError`` when two keys disagree about the kind of a
    shared position, whichever of the two is processed first.
    """
    root = Node(NodeKind.MAPPING)
    for key, value in flat_map.items():
        segments = split_path(str(key))
        if not segments:
            _logger.debug("Skipping flat key with no path segments: %r", key)
            continue
        _insert(root, str(key), segments, value)
    return root


def compact(node: Node) -> Any:
    """Materialise *node* as plain values, closing holes in sequences."""
    if node.kind is NodeKind.SCALAR:
        return node.value
    if node.kind is NodeKind.SEQUENCE:
        return [compact(node.children[index]) for index in sorted(node.children)]
    return {name: compact(child) for name, child in node.children.items()}


def decode(flat_map: Mapping[str, Any]) -> dict[str, Any]:
    """Decode a flat dot/bracket-keyed mapping into a nested ``dict``.

    >>> decode({"users[0].name": "John", "users[0].roles[2]": "editor"})
    {'users': [{'name': 'John', 'roles': ['editor']}]}
    """
    return compact(build_tree(flat_map))
