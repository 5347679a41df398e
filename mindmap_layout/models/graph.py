"""Graph models exchanged between the editor and the layout engine.

The editor hands the engine a list of nodes and an ordered list of edges and
receives positioned copies back. Field names are snake_case; the camelCase
names used by the editor's JSON documents (``measuredSize``, ``sourceHandle``,
...) are accepted as aliases and used when serializing.

Positions are the top-left corner of a node's box. The engine treats every
input model as read-only and builds new instances for its results.
"""

import logging
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from mindmap_layout.core.errors import InvalidInputError

logger = logging.getLogger(__name__)


class AnchorSide(str, Enum):
    """Side of a node's box where a connector attaches."""

    LEFT = "left"
    RIGHT = "right"
    TOP = "top"
    BOTTOM = "bottom"

    @property
    def opposite(self) -> "AnchorSide":
        return _OPPOSITE_SIDES[self]


_OPPOSITE_SIDES = {
    AnchorSide.LEFT: AnchorSide.RIGHT,
    AnchorSide.RIGHT: AnchorSide.LEFT,
    AnchorSide.TOP: AnchorSide.BOTTOM,
    AnchorSide.BOTTOM: AnchorSide.TOP,
}


class LayoutDirection(str, Enum):
    """Layout strategies offered by the engine."""

    HORIZONTAL_TREE = "horizontal-tree"
    RANK_VERTICAL = "rank-vertical"
    RANK_HORIZONTAL = "rank-horizontal"
    RADIAL = "radial"

    @classmethod
    def parse(cls, value: Any) -> "LayoutDirection":
        """Resolve a direction name, including the editor's legacy aliases.

        Args:
            value: LayoutDirection, canonical name, or alias ('LR', 'TB')

        Returns:
            LayoutDirection member

        Raises:
            InvalidInputError: If the value names no known direction
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip()
            alias = _DIRECTION_ALIASES.get(key.upper())
            if alias is not None:
                return alias
            try:
                return cls(key.lower())
            except ValueError:
                pass
        available = ", ".join(d.value for d in cls)
        raise InvalidInputError(
            f"Unknown layout direction: {value!r}. Available: {available}",
            field="direction",
        )


_DIRECTION_ALIASES = {
    "LR": LayoutDirection.RANK_HORIZONTAL,
    "TB": LayoutDirection.RANK_VERTICAL,
}


class NodePosition(BaseModel):
    """Top-left corner of a node in canvas coordinates (y grows downward).

    Attributes:
        x: Horizontal coordinate
        y: Vertical coordinate
    """

    x: float = Field(..., description="Horizontal coordinate")
    y: float = Field(..., description="Vertical coordinate")

    def to_list(self) -> List[float]:
        return [self.x, self.y]


class NodeSize(BaseModel):
    """Width and height of a node's box."""

    width: float = Field(..., description="Box width")
    height: float = Field(..., description="Box height")


class GraphNode(BaseModel):
    """A mind-map node as seen by the layout engine.

    Attributes:
        id: Unique node identifier
        position: Top-left corner; owned by the layout result once computed
        measured_size: Size reported by the renderer (read-only to the engine)
        data: Free-form node data; the engine reads ``width``/``height``
            (stored size), ``side`` (explicit left/right marker) and ``level``
        level: Depth from a root along edges
        anchor_in: Side used by incoming connections
        anchor_out: Primary side used by outgoing connections
        anchors_out: Every side used by outgoing connections (a two-sided
            root owns both left and right)
    """

    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    id: str = Field(..., description="Unique node identifier")
    position: NodePosition = Field(
        default_factory=lambda: NodePosition(x=0.0, y=0.0),
        description="Top-left corner of the node",
    )
    measured_size: Optional[NodeSize] = Field(
        default=None,
        validation_alias=AliasChoices("measured_size", "measuredSize", "measured"),
        serialization_alias="measuredSize",
        description="Size reported by the rendering layer",
    )
    data: Dict[str, Any] = Field(default_factory=dict, description="Free-form node data")
    level: int = Field(default=0, ge=0, description="Depth from a root")
    anchor_in: Optional[AnchorSide] = Field(
        default=None,
        validation_alias=AliasChoices("anchor_in", "anchorIn", "targetPosition"),
        serialization_alias="anchorIn",
    )
    anchor_out: Optional[AnchorSide] = Field(
        default=None,
        validation_alias=AliasChoices("anchor_out", "anchorOut", "sourcePosition"),
        serialization_alias="anchorOut",
    )
    anchors_out: List[AnchorSide] = Field(
        default_factory=list,
        validation_alias=AliasChoices("anchors_out", "anchorsOut"),
        serialization_alias="anchorsOut",
    )

    @model_validator(mode="before")
    @classmethod
    def level_from_data(cls, values: Any) -> Any:
        """Editor documents keep the level inside ``data``."""
        if isinstance(values, dict) and "level" not in values:
            data = values.get("data")
            if isinstance(data, dict) and isinstance(data.get("level"), int) and data["level"] >= 0:
                values = {**values, "level": data["level"]}
        return values


class GraphEdge(BaseModel):
    """A directed parent -> child connection.

    Attributes:
        id: Edge identifier (derived from the endpoints when omitted)
        source: Parent node id
        target: Child node id
        source_handle: Side of the source box the edge leaves from
        target_handle: Side of the target box the edge enters
        data: Free-form edge data
    """

    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    id: str = Field(default="", description="Edge identifier")
    source: str = Field(..., description="Source node id")
    target: str = Field(..., description="Target node id")
    source_handle: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("source_handle", "sourceHandle"),
        serialization_alias="sourceHandle",
    )
    target_handle: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("target_handle", "targetHandle"),
        serialization_alias="targetHandle",
    )
    data: Dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def default_id(self) -> "GraphEdge":
        if not self.id:
            self.id = f"e{self.source}-{self.target}"
        return self


class Graph(BaseModel):
    """Nodes plus ordered edges, as supplied fresh on every layout call."""

    nodes: List[GraphNode] = Field(default_factory=list)
    edges: List[GraphEdge] = Field(default_factory=list)

    @field_validator("nodes")
    @classmethod
    def validate_unique_ids(cls, v: List[GraphNode]) -> List[GraphNode]:
        seen = set()
        duplicates = []
        for node in v:
            if node.id in seen:
                duplicates.append(node.id)
            seen.add(node.id)
        if duplicates:
            raise ValueError(f"Duplicate node ids: {sorted(set(duplicates))}")
        return v

    def node_map(self) -> Dict[str, GraphNode]:
        return {node.id: node for node in self.nodes}

    @classmethod
    def build(cls, nodes: Any, edges: Any) -> "Graph":
        """Validate raw nodes/edges (models or dicts) into a Graph.

        Args:
            nodes: List of GraphNode or node dicts
            edges: List of GraphEdge or edge dicts

        Returns:
            Graph instance

        Raises:
            InvalidInputError: If either argument has an invalid shape
        """
        if nodes is None:
            raise InvalidInputError("nodes must be a list, got None", field="nodes")
        if edges is None:
            raise InvalidInputError("edges must be a list, got None", field="edges")
        if isinstance(nodes, (str, bytes, dict)) or not hasattr(nodes, "__iter__"):
            raise InvalidInputError(
                f"nodes must be a list, got {type(nodes).__name__}", field="nodes"
            )
        if isinstance(edges, (str, bytes, dict)) or not hasattr(edges, "__iter__"):
            raise InvalidInputError(
                f"edges must be a list, got {type(edges).__name__}", field="edges"
            )

        try:
            return cls(
                nodes=[_as_dict(n) for n in nodes],
                edges=[_as_dict(e) for e in edges],
            )
        except ValidationError as e:
            raise InvalidInputError(f"Invalid graph: {e}") from e

    @classmethod
    def from_dict(cls, document: Dict[str, Any]) -> "Graph":
        """Load the editor's project document ``{"nodes": [...], "edges": [...]}``.

        Raises:
            InvalidInputError: If the document is not a mapping or is malformed
        """
        if not isinstance(document, dict):
            raise InvalidInputError(
                f"Graph document must be an object, got {type(document).__name__}"
            )
        return cls.build(document.get("nodes", []), document.get("edges", []))

    def to_dict(self) -> Dict[str, Any]:
        """Export to the editor's document shape with camelCase keys."""
        return {
            "nodes": [
                n.model_dump(mode="json", by_alias=True, exclude_none=True)
                for n in self.nodes
            ],
            "edges": [
                e.model_dump(mode="json", by_alias=True, exclude_none=True)
                for e in self.edges
            ],
        }


def _as_dict(item: Any) -> Any:
    """Pass dicts through; dump models so validation re-runs on copies."""
    if isinstance(item, BaseModel):
        return item.model_dump(by_alias=False)
    return item


__all__ = [
    "AnchorSide",
    "LayoutDirection",
    "NodePosition",
    "NodeSize",
    "GraphNode",
    "GraphEdge",
    "Graph",
]
