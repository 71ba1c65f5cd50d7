"""A forest of nodes stored in a flat list and referred to by index."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Generic, Iterator, TypeVar

T = TypeVar("T")

# Node indices are 16-bit; the all-ones value is reserved as "no node".
_MAX_NODES = 0xFFFF


@dataclass
class _Node(Generic[T]):
    val: T
    parent: int | None = None
    children: list[int] = field(default_factory=list)


class Tree(Generic[T]):
    """A tree (or forest) whose nodes each hold a value."""

    def __init__(self) -> None:
        self._nodes: list[_Node[T]] = []

    def node_count(self) -> int:
        return len(self._nodes)

    def add_node(self, val: T) -> int:
        """Add a parentless node holding ``val``; return its index."""
        if len(self._nodes) >= _MAX_NODES:
            raise OverflowError("too many nodes in tree")
        self._nodes.append(_Node(val))
        return len(self._nodes) - 1

    def reparent(self, node: int, new_parent: int) -> None:
        """Detach ``node`` from its parent and make it the last child of ``new_parent``."""
        entry = self._nodes[node]
        target = self._nodes[new_parent]
        if entry.parent is not None:
            self._nodes[entry.parent].children.remove(node)
        target.children.append(node)
        entry.parent = new_parent

    def node_idxs(self) -> range:
        """All node indices, in insertion order."""
        return range(len(self._nodes))

    def children(self, node: int) -> Iterator[int]:
        """Iterate over the children of ``node`` in order."""
        return iter(tuple(self._nodes[node].children))

    def parent(self, node: int) -> int | None:
        """Return the parent of ``node``, or None for a root."""
        return self._nodes[node].parent

    def __getitem__(self, node: int) -> T:
        return self._nodes[node].val

    def __setitem__(self, node: int, val: T) -> None:
        self._nodes[node].val = val