"""Pydantic models for graphs and layout results."""

from .graph import (
    AnchorSide,
    Graph,
    GraphEdge,
    GraphNode,
    LayoutDirection,
    NodePosition,
    NodeSize,
)
from .layout_result import BoundingBox, LayoutResult, LayoutWarning

__all__ = [
    # Graph
    "AnchorSide",
    "Graph",
    "GraphEdge",
    "GraphNode",
    "LayoutDirection",
    "NodePosition",
    "NodeSize",
    # Results
    "BoundingBox",
    "LayoutResult",
    "LayoutWarning",
]
