"""Adjacency, roots, levels and spanning forests for mind-map graphs.

All helpers are pure: they read node/edge lists and return fresh mappings.
Edges whose endpoints are not in the node set are ignored here and reported
separately through ``dangling_edges``.

Defined behaviour for malformed trees:
    - Multi-parent nodes: the last edge processed wins in ``parent_of``.
    - No node without an incoming edge: the first node is the sole root.
    - Cycles: traversals keep a visited set and never re-enter a node.
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Sequence, Tuple

from mindmap_layout.models.graph import GraphEdge, GraphNode

logger = logging.getLogger(__name__)


def valid_edges(nodes: Sequence[GraphNode], edges: Iterable[GraphEdge]) -> List[GraphEdge]:
    """Edges whose source and target both exist, in input order."""
    ids = {n.id for n in nodes}
    return [e for e in edges if e.source in ids and e.target in ids]


def dangling_edges(nodes: Sequence[GraphNode], edges: Iterable[GraphEdge]) -> List[GraphEdge]:
    """Edges that reference at least one unknown node id."""
    ids = {n.id for n in nodes}
    return [e for e in edges if e.source not in ids or e.target not in ids]


def build_adjacency(
    nodes: Sequence[GraphNode], edges: Iterable[GraphEdge]
) -> Tuple[Dict[str, List[str]], Dict[str, str]]:
    """Build ordered child lists and the parent map.

    Args:
        nodes: Graph nodes
        edges: Graph edges, processed in order

    Returns:
        (children_of, parent_of). Every node has an entry in children_of;
        parent_of only holds nodes with an incoming edge.
    """
    children_of: Dict[str, List[str]] = {n.id: [] for n in nodes}
    parent_of: Dict[str, str] = {}
    for edge in edges:
        if edge.source not in children_of or edge.target not in children_of:
            continue
        children_of[edge.source].append(edge.target)
        parent_of[edge.target] = edge.source
    return children_of, parent_of


def find_roots(nodes: Sequence[GraphNode], edges: Iterable[GraphEdge]) -> List[GraphNode]:
    """Nodes without an incoming edge, or the first node as a fallback.

    Returns:
        Root nodes in input order; ``[nodes[0]]`` if every node has a parent;
        ``[]`` for an empty graph.
    """
    targets = {e.target for e in valid_edges(nodes, edges)}
    roots = [n for n in nodes if n.id not in targets]
    if roots:
        return roots
    return [nodes[0]] if nodes else []


@dataclass
class Forest:
    """Breadth-first spanning forest of a graph.

    ``children`` only lists tree edges: a node reached again through another
    parent or a cycle keeps its first parent and is not re-entered.
    """

    roots: List[str]
    children: Dict[str, List[str]]
    parent: Dict[str, str]
    depth: Dict[str, int]
    order: List[str]
    orphans: List[str] = field(default_factory=list)

    def preorder(self, root_id: str) -> List[str]:
        """Depth-first preorder of one tree (iterative)."""
        result = []
        stack = [root_id]
        while stack:
            node_id = stack.pop()
            result.append(node_id)
            stack.extend(reversed(self.children.get(node_id, [])))
        return result


def build_forest(nodes: Sequence[GraphNode], edges: Iterable[GraphEdge]) -> Forest:
    """Multi-source BFS from every root.

    Args:
        nodes: Graph nodes
        edges: Graph edges

    Returns:
        Forest covering every node reachable from a root; the rest are
        listed as orphans in input order.
    """
    edges = valid_edges(nodes, edges)
    children_of, _ = build_adjacency(nodes, edges)
    roots = [n.id for n in find_roots(nodes, edges)]

    tree_children: Dict[str, List[str]] = {n.id: [] for n in nodes}
    parent: Dict[str, str] = {}
    depth: Dict[str, int] = {r: 0 for r in roots}
    visited = set(roots)
    order: List[str] = []
    queue = deque(roots)

    while queue:
        node_id = queue.popleft()
        order.append(node_id)
        for child in children_of[node_id]:
            if child in visited:
                continue
            visited.add(child)
            parent[child] = node_id
            depth[child] = depth[node_id] + 1
            tree_children[node_id].append(child)
            queue.append(child)

    orphans = [n.id for n in nodes if n.id not in visited]
    if orphans:
        logger.debug(f"{len(orphans)} node(s) unreachable from roots {roots}: {orphans}")

    return Forest(
        roots=roots,
        children=tree_children,
        parent=parent,
        depth=depth,
        order=order,
        orphans=orphans,
    )


def compute_levels(nodes: Sequence[GraphNode], edges: Iterable[GraphEdge]) -> Dict[str, int]:
    """Depth of every node from the nearest root; unreached nodes get 0."""
    forest = build_forest(nodes, edges)
    return {n.id: forest.depth.get(n.id, 0) for n in nodes}
