"""Result envelope returned by every layout call.

A result holds:
- Positioned node copies (input order preserved)
- Edge copies with recomputed handles (input order preserved)
- Soft warnings the caller may log (unresolved overlaps, dangling edges)
- The overall bounding box of all node boxes
- A content etag, so callers can cheaply detect whether a re-layout changed anything

The etag is a SHA-256 over a canonical JSON rendering of positions, anchors
and handles; identical inputs always produce identical etags.
"""

import hashlib
import json
import logging
from typing import Any, Dict, List, Literal, Optional, Sequence

from pydantic import BaseModel, Field

from mindmap_layout.models.graph import Graph, GraphEdge, GraphNode, NodeSize

logger = logging.getLogger(__name__)

WarningCode = Literal["overlap_unresolved", "placement_not_clear", "dangling_edge"]


class BoundingBox(BaseModel):
    """Bounding box of a set of node boxes.

    Attributes:
        min_x: Minimum x coordinate
        max_x: Maximum x coordinate
        min_y: Minimum y coordinate
        max_y: Maximum y coordinate
    """

    min_x: float = Field(..., description="Minimum x coordinate")
    max_x: float = Field(..., description="Maximum x coordinate")
    min_y: float = Field(..., description="Minimum y coordinate")
    max_y: float = Field(..., description="Maximum y coordinate")

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    @classmethod
    def from_nodes(
        cls, nodes: Sequence[GraphNode], sizes: Dict[str, NodeSize]
    ) -> "BoundingBox":
        """Compute the box enclosing every node's box.

        Args:
            nodes: Positioned nodes
            sizes: Effective sizes keyed by node id

        Raises:
            ValueError: If nodes is empty
        """
        if not nodes:
            raise ValueError("Cannot compute bounding box from empty nodes")

        return cls(
            min_x=min(n.position.x for n in nodes),
            max_x=max(n.position.x + sizes[n.id].width for n in nodes),
            min_y=min(n.position.y for n in nodes),
            max_y=max(n.position.y + sizes[n.id].height for n in nodes),
        )


class LayoutWarning(BaseModel):
    """Non-fatal condition reported by a layout or placement call."""

    code: WarningCode = Field(..., description="Machine-readable warning kind")
    message: str = Field(..., description="Human-readable description")
    node_ids: List[str] = Field(default_factory=list, description="Nodes involved")


class LayoutResult(BaseModel):
    """Positioned graph produced by one layout call.

    Attributes:
        algorithm: Direction/strategy that produced the layout
        nodes: Positioned node copies, in input order
        edges: Edge copies with handles, in input order
        warnings: Soft warnings (never fatal)
        bounding_box: Box enclosing all nodes (None for an empty graph)
        etag: SHA-256 over canonical content
    """

    algorithm: str = Field(..., description="Layout direction used")
    nodes: List[GraphNode] = Field(default_factory=list)
    edges: List[GraphEdge] = Field(default_factory=list)
    warnings: List[LayoutWarning] = Field(default_factory=list)
    bounding_box: Optional[BoundingBox] = Field(default=None)
    etag: Optional[str] = Field(default=None)

    def model_post_init(self, __context) -> None:
        """Compute etag if not provided."""
        if self.etag is None:
            object.__setattr__(self, "etag", self.compute_etag())

    def compute_etag(self) -> str:
        """Compute SHA-256 etag from canonical content.

        Returns:
            64-character hex string (SHA-256 hash)
        """
        canonical = {
            "algorithm": self.algorithm,
            "nodes": [
                {
                    "id": n.id,
                    "position": n.position.to_list(),
                    "level": n.level,
                    "anchor_in": n.anchor_in.value if n.anchor_in else None,
                    "anchor_out": n.anchor_out.value if n.anchor_out else None,
                    "anchors_out": [s.value for s in n.anchors_out],
                }
                for n in self.nodes
            ],
            "edges": [
                {
                    "id": e.id,
                    "source": e.source,
                    "target": e.target,
                    "source_handle": e.source_handle,
                    "target_handle": e.target_handle,
                }
                for e in self.edges
            ],
        }
        canonical_json = json.dumps(canonical, sort_keys=True, separators=(",", ":"))
        return hashlib.sha256(canonical_json.encode()).hexdigest()

    @property
    def graph(self) -> Graph:
        return Graph(nodes=self.nodes, edges=self.edges)

    def node(self, node_id: str) -> GraphNode:
        for n in self.nodes:
            if n.id == node_id:
                return n
        raise KeyError(f"Node {node_id} not in layout result")

    def has_warning(self, code: str) -> bool:
        return any(w.code == code for w in self.warnings)

    def to_dict(self) -> Dict[str, Any]:
        """Export to the editor's document shape plus layout metadata."""
        data = self.graph.to_dict()
        data["algorithm"] = self.algorithm
        data["warnings"] = [w.model_dump() for w in self.warnings]
        data["etag"] = self.etag
        if self.bounding_box is not None:
            data["boundingBox"] = self.bounding_box.model_dump()
        return dict(sorted(data.items()))


__all__ = [
    "BoundingBox",
    "LayoutWarning",
    "LayoutResult",
]
