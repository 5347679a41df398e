"""Automatic tree layout for mind-map editors.

This package provides:
- Four layout strategies (horizontal tree, rank-based vertical/horizontal, radial)
- Directional anchor and edge-handle assignment
- An incremental placement solver for inserting single nodes
- A dict-in / envelope-out service for the editor

Usage:
    from mindmap_layout import compute_layout

    result = compute_layout(nodes, edges, direction="radial")
    for node in result.nodes:
        print(node.id, node.position)
"""

from mindmap_layout.core.errors import InvalidInputError, LayoutError
from mindmap_layout.layout.api import compute_layout, layout_graph
from mindmap_layout.layout.placement import (
    InsertResult,
    PlacementResult,
    find_non_overlapping_position,
    insert_child,
    insert_sibling,
)
from mindmap_layout.models.graph import (
    AnchorSide,
    Graph,
    GraphEdge,
    GraphNode,
    LayoutDirection,
    NodePosition,
    NodeSize,
)
from mindmap_layout.models.layout_result import BoundingBox, LayoutResult, LayoutWarning
from mindmap_layout.service import LayoutService

__version__ = "0.1.0"

__all__ = [
    "compute_layout",
    "layout_graph",
    "find_non_overlapping_position",
    "insert_child",
    "insert_sibling",
    "InsertResult",
    "PlacementResult",
    "AnchorSide",
    "Graph",
    "GraphEdge",
    "GraphNode",
    "LayoutDirection",
    "NodePosition",
    "NodeSize",
    "BoundingBox",
    "LayoutResult",
    "LayoutWarning",
    "LayoutService",
    "LayoutError",
    "InvalidInputError",
]
