"""Which side of the root each top-level branch grows toward.

Policy, in priority order:
    1. Explicit marker: the root->child edge's ``source_handle`` or the
       child's ``data["side"]``.
    2. Geometry: the child's current centre relative to the root's centre.
    3. Child index parity: even -> far side (right/bottom), odd -> near side
       (left/top).

The geometric rule is a heuristic that keeps re-layouts stable for maps the
user has already arranged; parity only decides for nodes without any hint,
e.g. a freshly imported document where every node sits at the origin.
"""

import logging
from typing import Dict, Iterable, Mapping, Optional, Sequence

from mindmap_layout.models.graph import AnchorSide, GraphEdge, GraphNode, NodeSize

logger = logging.getLogger(__name__)

# Minimum centre offset (px) that counts as a geometric hint
GEOMETRY_TOLERANCE = 0.5


def parse_side(value: object) -> Optional[AnchorSide]:
    """Parse a stored side marker such as 'left' or 'right-source'."""
    if not isinstance(value, str):
        return None
    token = value.strip().lower().split("-", 1)[0]
    try:
        return AnchorSide(token)
    except ValueError:
        return None


def _axis_sides(axis: str):
    if axis == "x":
        return AnchorSide.LEFT, AnchorSide.RIGHT
    return AnchorSide.TOP, AnchorSide.BOTTOM


def normalize_to_axis(side: AnchorSide, axis: str) -> AnchorSide:
    """Map any side onto the layout axis: left/top are near, right/bottom far."""
    near, far = _axis_sides(axis)
    return near if side in (AnchorSide.LEFT, AnchorSide.TOP) else far


def infer_branch_sides(
    root: GraphNode,
    children: Sequence[str],
    nodes: Mapping[str, GraphNode],
    edges: Iterable[GraphEdge],
    sizes: Mapping[str, NodeSize],
    axis: str = "x",
) -> Dict[str, AnchorSide]:
    """Assign each of the root's children to the near or far side.

    Args:
        root: Root node
        children: Root's children in tree order
        nodes: All nodes keyed by id
        edges: All edges (searched for root->child handle markers)
        sizes: Effective node sizes keyed by id
        axis: 'x' for left/right layouts, 'y' for top/bottom layouts

    Returns:
        Mapping child id -> side (LEFT/RIGHT for 'x', TOP/BOTTOM for 'y')
    """
    near, far = _axis_sides(axis)
    handle_markers: Dict[str, AnchorSide] = {}
    for edge in edges:
        if edge.source != root.id or edge.target in handle_markers:
            continue
        marker = parse_side(edge.source_handle)
        if marker is not None:
            handle_markers[edge.target] = marker

    root_size = sizes[root.id]
    root_centre = _centre(root, root_size, axis)

    sides: Dict[str, AnchorSide] = {}
    for index, child_id in enumerate(children):
        child = nodes[child_id]
        marker = handle_markers.get(child_id) or parse_side(child.data.get("side"))
        if marker is not None:
            sides[child_id] = normalize_to_axis(marker, axis)
            continue

        offset = _centre(child, sizes[child_id], axis) - root_centre
        if abs(offset) > GEOMETRY_TOLERANCE:
            sides[child_id] = near if offset < 0 else far
            continue

        sides[child_id] = far if index % 2 == 0 else near

    logger.debug(f"Branch sides for root {root.id}: {sides}")
    return sides


def _centre(node: GraphNode, size: NodeSize, axis: str) -> float:
    if axis == "x":
        return node.position.x + size.width / 2
    return node.position.y + size.height / 2
