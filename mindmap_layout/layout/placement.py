"""Incremental placement of a single new node next to a selected one.

Used when the user adds a child or a sibling without re-laying out the whole
map. The solver scans a bounded neighbourhood of the desired point:

1. Vertical offsets -200..+200 (step 50) at the desired x, nearest offsets
   first. Every clear candidate is scored by the sum of centre distances to
   the existing nodes and the lowest score wins (ties keep the earlier
   candidate).
2. If no vertical offset is clear, horizontal offsets 0..450 (step 50) in
   the insertion direction at the least-overlapping vertical candidate; the
   first clear one wins.
3. Otherwise the least-overlapping position tried is returned with
   ``clear=False``.

A candidate overlaps an existing node when their boxes come within
``padding`` of each other on both axes (touching at exactly ``padding``
counts as overlap).
"""

import logging
import math
import uuid
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple, Union

from mindmap_layout.config.settings import get_setting, merge_options
from mindmap_layout.core.errors import InvalidInputError
from mindmap_layout.core.geometry import Box, boxes_overlap, overlap_area
from mindmap_layout.core.sides import parse_side
from mindmap_layout.core.sizing import size_of
from mindmap_layout.models.graph import AnchorSide, Graph, GraphEdge, GraphNode, NodePosition
from mindmap_layout.models.layout_result import LayoutWarning

logger = logging.getLogger(__name__)

PLACEMENT_OPTIONS = {
    # Overlap padding around every existing box
    "padding": 20,
    # Vertical scan: offsets in [-y_range, +y_range]
    "y_range": 200,
    "y_step": 50,
    # Horizontal fallback scan: offsets in [0, x_range)
    "x_range": 500,
    "x_step": 50,
}

# Distance from the parent's x to a new child's x
CHILD_X_OFFSET = 350
# Distance below the selected node for a new sibling
SIBLING_Y_OFFSET = 120

DEFAULT_CHILD_LABEL = "New idea"
DEFAULT_SIBLING_LABEL = "New node"


@dataclass
class PlacementResult:
    """Outcome of a placement search.

    Attributes:
        position: Chosen top-left corner
        clear: False if every tried position overlapped some node
        overlap: Total padded overlap area at ``position`` (0 when clear)
    """

    position: NodePosition
    clear: bool
    overlap: float = 0.0


@dataclass
class InsertResult:
    """A copy of the graph with one node (and possibly one edge) added."""

    graph: Graph
    node_id: str
    clear: bool
    warnings: List[LayoutWarning] = field(default_factory=list)

    @property
    def node(self) -> GraphNode:
        return self.graph.node_map()[self.node_id]


def _offsets(limit: int, step: int) -> List[int]:
    """0, -step, +step, -2*step, ... within [-limit, limit]."""
    offsets = [0]
    k = step
    while k <= limit:
        offsets.extend((-k, k))
        k += step
    return offsets


def _score(candidate: Box, existing: Sequence[Box], padding: float) -> Tuple[bool, float, float]:
    """(clear, total overlap area, total centre distance) for one candidate."""
    clear = True
    overlap = 0.0
    distance = 0.0
    for box in existing:
        if boxes_overlap(candidate, box, padding):
            clear = False
            overlap += overlap_area(candidate, box, padding)
        distance += math.hypot(candidate.cx - box.cx, candidate.cy - box.cy)
    return clear, overlap, distance


def find_non_overlapping_position(
    x: float,
    y: float,
    width: float,
    height: float,
    existing: Sequence[GraphNode],
    direction: Union[AnchorSide, str] = AnchorSide.RIGHT,
    options: Optional[dict] = None,
) -> PlacementResult:
    """Search near ``(x, y)`` for a spot whose padded box is clear.

    Args:
        x: Desired top-left x
        y: Desired top-left y
        width: Width of the new node
        height: Height of the new node
        existing: Nodes already on the canvas
        direction: 'right' or 'left'; direction of the horizontal fallback
        options: Overrides for PLACEMENT_OPTIONS

    Returns:
        PlacementResult; always returns some position

    Raises:
        InvalidInputError: If an option is not a finite number or a scan
            step is not positive
    """
    opts = merge_options(PLACEMENT_OPTIONS, options)
    if int(opts["y_step"]) <= 0 or int(opts["x_step"]) <= 0:
        raise InvalidInputError("Placement scan steps must be positive", field="options")
    padding = opts["padding"]
    side = parse_side(direction) if not isinstance(direction, AnchorSide) else direction
    sign = -1.0 if side == AnchorSide.LEFT else 1.0

    boxes = []
    for node in existing:
        size = size_of(node)
        boxes.append(Box.from_top_left(node.position.x, node.position.y, size.width, size.height))

    best_clear: Optional[Tuple[float, float]] = None
    best_distance = math.inf
    least: Tuple[float, float] = (x, y)
    least_overlap = math.inf

    for offset in _offsets(int(opts["y_range"]), int(opts["y_step"])):
        candidate = Box.from_top_left(x, y + offset, width, height)
        clear, overlap, distance = _score(candidate, boxes, padding)
        if clear:
            if distance < best_distance:
                best_distance = distance
                best_clear = (x, y + offset)
        elif overlap < least_overlap:
            least_overlap = overlap
            least = (x, y + offset)

    if best_clear is not None:
        return PlacementResult(position=NodePosition(x=best_clear[0], y=best_clear[1]), clear=True)

    fallback_y = least[1]
    for offset in range(0, int(opts["x_range"]), int(opts["x_step"])):
        test_x = x + sign * offset
        candidate = Box.from_top_left(test_x, fallback_y, width, height)
        clear, overlap, _ = _score(candidate, boxes, padding)
        if clear:
            logger.debug(f"Placement cleared after shifting x by {sign * offset}")
            return PlacementResult(position=NodePosition(x=test_x, y=fallback_y), clear=True)
        if overlap < least_overlap:
            least_overlap = overlap
            least = (test_x, fallback_y)

    logger.warning(
        f"No clear position near ({x}, {y}); using least-overlapping {least} "
        f"(overlap area {least_overlap:.1f})"
    )
    return PlacementResult(
        position=NodePosition(x=least[0], y=least[1]), clear=False, overlap=least_overlap
    )


def _new_node_id(graph: Graph, new_id: Optional[str]) -> str:
    if new_id is None:
        return uuid.uuid4().hex
    if new_id in graph.node_map():
        raise InvalidInputError(f"Node id already exists: {new_id}", field="new_id")
    return new_id


def _require_node(graph: Graph, node_id: str, field_name: str) -> GraphNode:
    node = graph.node_map().get(node_id)
    if node is None:
        raise InvalidInputError(f"Node not found: {node_id}", field=field_name)
    return node


def _insert(
    graph: Graph,
    node: GraphNode,
    edge: Optional[GraphEdge],
    placement: PlacementResult,
) -> InsertResult:
    nodes = [n.model_copy(deep=True) for n in graph.nodes] + [node]
    edges = [e.model_copy(deep=True) for e in graph.edges]
    if edge is not None:
        edges.append(edge)

    warnings = []
    if not placement.clear:
        warnings.append(
            LayoutWarning(
                code="placement_not_clear",
                message=f"Node {node.id} placed with overlap area {placement.overlap:.1f}",
                node_ids=[node.id],
            )
        )
    return InsertResult(
        graph=Graph(nodes=nodes, edges=edges),
        node_id=node.id,
        clear=placement.clear,
        warnings=warnings,
    )


def insert_child(
    graph: Graph,
    parent_id: str,
    direction: Union[AnchorSide, str] = AnchorSide.RIGHT,
    new_id: Optional[str] = None,
    label: str = DEFAULT_CHILD_LABEL,
    options: Optional[dict] = None,
) -> InsertResult:
    """Add a child to the left or right of ``parent_id``.

    Args:
        graph: Current graph (not mutated)
        parent_id: Selected node
        direction: 'right' or 'left'
        new_id: Id for the new node (random when omitted)
        label: Label of the new node
        options: Overrides for PLACEMENT_OPTIONS

    Returns:
        InsertResult holding the new graph and the new node's id

    Raises:
        InvalidInputError: Unknown parent, duplicate new_id or a direction
            other than left/right
    """
    parent = _require_node(graph, parent_id, "parent_id")
    side = direction if isinstance(direction, AnchorSide) else parse_side(direction)
    if side not in (AnchorSide.LEFT, AnchorSide.RIGHT):
        raise InvalidInputError(
            f"Child direction must be 'left' or 'right', got {direction!r}", field="direction"
        )
    node_id = _new_node_id(graph, new_id)

    width = get_setting("new_node_width")
    height = get_setting("new_node_height")
    offset = CHILD_X_OFFSET if side == AnchorSide.RIGHT else -CHILD_X_OFFSET
    placement = find_non_overlapping_position(
        parent.position.x + offset,
        parent.position.y,
        width,
        height,
        graph.nodes,
        side,
        options,
    )

    node = GraphNode(
        id=node_id,
        position=placement.position,
        data={"label": label, "level": parent.level + 1, "width": width, "height": height},
        level=parent.level + 1,
        anchor_in=side.opposite,
        anchor_out=side,
        anchors_out=[side],
    )
    edge = GraphEdge(
        source=parent.id,
        target=node_id,
        source_handle=side.value,
        target_handle=side.opposite.value,
    )
    logger.debug(f"Inserted child {node_id} {side.value} of {parent.id} at {placement.position}")
    return _insert(graph, node, edge, placement)


def insert_sibling(
    graph: Graph,
    selected_id: str,
    new_id: Optional[str] = None,
    label: str = DEFAULT_SIBLING_LABEL,
    options: Optional[dict] = None,
) -> InsertResult:
    """Add a node below ``selected_id`` at the same level.

    The new node is connected to the selected node's parent (the source of
    the first edge targeting it), reusing that edge's handles. A selected
    root gets an unconnected sibling.

    Raises:
        InvalidInputError: Unknown selected node or duplicate new_id
    """
    selected = _require_node(graph, selected_id, "selected_id")
    node_id = _new_node_id(graph, new_id)

    width = get_setting("new_node_width")
    height = get_setting("new_node_height")
    placement = find_non_overlapping_position(
        selected.position.x,
        selected.position.y + SIBLING_Y_OFFSET,
        width,
        height,
        graph.nodes,
        AnchorSide.RIGHT,
        options,
    )

    node = GraphNode(
        id=node_id,
        position=placement.position,
        data={"label": label, "level": selected.level, "width": width, "height": height},
        level=selected.level,
        anchor_in=selected.anchor_in,
        anchor_out=selected.anchor_out,
        anchors_out=[selected.anchor_out] if selected.anchor_out else [],
    )

    parent_edge = next((e for e in graph.edges if e.target == selected.id), None)
    edge = None
    if parent_edge is not None:
        edge = GraphEdge(
            source=parent_edge.source,
            target=node_id,
            source_handle=parent_edge.source_handle,
            target_handle=parent_edge.target_handle,
        )
    logger.debug(f"Inserted sibling {node_id} of {selected.id} at {placement.position}")
    return _insert(graph, node, edge, placement)
