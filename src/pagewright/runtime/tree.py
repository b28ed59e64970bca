"""Traversal helpers over schema node trees.

Traversal is depth first and visits ``children`` before each slot list, in
declaration order, so every consumer sees nodes in the same order.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass

from pagewright.runtime.schema import Node

__all__ = [
    "NodeVisit",
    "iter_nodes",
    "find_node",
    "find_node_by_id",
    "collect_nodes",
    "get_node_path",
]


@dataclass(frozen=True, slots=True)
class NodeVisit:
    """One step of a traversal.

    Fields:
        node: The visited node.
        parent: Its parent, or None for the start node.
        depth: Distance from the start node (start node = 0).
        path: Location label, e.g. "root.children[0].slots.footer[1]".
    """

    node: Node
    parent: Node | None
    depth: int
    path: str


def iter_nodes(root: Node, root_path: str = "root") -> Iterator[NodeVisit]:
    """Yield every node under ``root`` (inclusive) in depth-first order."""
    stack: list[NodeVisit] = [NodeVisit(root, None, 0, root_path)]
    while stack:
        visit = stack.pop()
        yield visit
        pending: list[NodeVisit] = []
        for label, nodes in visit.node.child_lists():
            for position, child in enumerate(nodes):
                pending.append(
                    NodeVisit(
                        child,
                        visit.node,
                        visit.depth + 1,
                        f"{visit.path}.{label}[{position}]",
                    )
                )
        stack.extend(reversed(pending))


def find_node(root: Node, predicate: Callable[[Node], bool]) -> Node | None:
    """Return the first node (traversal order) for which ``predicate`` holds."""
    return next((v.node for v in iter_nodes(root) if predicate(v.node)), None)


def find_node_by_id(root: Node, node_id: str) -> Node | None:
    return find_node(root, lambda node: node.id == node_id)


def collect_nodes(root: Node, predicate: Callable[[Node], bool]) -> list[Node]:
    """Return every node matching ``predicate``, in traversal order."""
    return [v.node for v in iter_nodes(root) if predicate(v.node)]


def get_node_path(root: Node, node_id: str) -> list[Node] | None:
    """Return the chain of nodes from ``root`` down to ``node_id``.

    Returns:
        ``[root, ..., target]``, or None if no node has that id.
    """
    parents: dict[int, Node | None] = {}
    for visit in iter_nodes(root):
        parents[id(visit.node)] = visit.parent
        if visit.node.id == node_id:
            chain = [visit.node]
            parent = visit.parent
            while parent is not None:
                chain.append(parent)
                parent = parents[id(parent)]
            chain.reverse()
            return chain
    return None
