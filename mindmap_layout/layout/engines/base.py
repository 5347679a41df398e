"""Base layout engine and the per-call working state shared by all engines.

Engines never write onto the input models. A call builds a ``LayoutState``
(sizes, spanning forest, one centre-based ``Box`` per node, anchor maps),
the engine mutates only that state, and ``LayoutState.project`` turns it into
fresh output nodes and edges.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from itertools import combinations
from typing import Any, Dict, List, Optional, Sequence, Tuple

from mindmap_layout.config.settings import get_setting, merge_options
from mindmap_layout.core.geometry import Box, strictly_overlap
from mindmap_layout.core.graph_utils import Forest, build_forest, compute_levels, dangling_edges
from mindmap_layout.core.sizing import sizes_of
from mindmap_layout.models.graph import (
    AnchorSide,
    Graph,
    GraphEdge,
    GraphNode,
    NodePosition,
    NodeSize,
)
from mindmap_layout.models.layout_result import BoundingBox, LayoutResult, LayoutWarning

logger = logging.getLogger(__name__)

_SIDE_ORDER = {side: i for i, side in enumerate(AnchorSide)}

# Global settings every engine also accepts as per-call options
SHARED_OPTIONS = ("padding", "max_iterations", "default_node_width", "default_node_height")


@dataclass
class LayoutState:
    """Mutable working state of a single layout call."""

    graph: Graph
    options: Dict[str, Any]
    nodes: Dict[str, GraphNode]
    sizes: Dict[str, NodeSize]
    forest: Forest
    boxes: Dict[str, Box] = field(default_factory=dict)
    anchor_in: Dict[str, AnchorSide] = field(default_factory=dict)
    anchor_out: Dict[str, AnchorSide] = field(default_factory=dict)
    # Keyed by the edge's index in graph.edges
    edge_handles: Dict[int, Tuple[AnchorSide, AnchorSide]] = field(default_factory=dict)
    warnings: List[LayoutWarning] = field(default_factory=list)

    @classmethod
    def create(cls, graph: Graph, options: Dict[str, Any]) -> "LayoutState":
        state = cls(
            graph=graph,
            options=options,
            nodes=graph.node_map(),
            sizes=sizes_of(graph.nodes, options),
            forest=build_forest(graph.nodes, graph.edges),
        )
        dangling = dangling_edges(graph.nodes, graph.edges)
        if dangling:
            state.warn(
                "dangling_edge",
                f"{len(dangling)} edge(s) reference unknown nodes and were left unchanged: "
                f"{[e.id for e in dangling]}",
            )
        return state

    @property
    def padding(self) -> float:
        return float(self.options.get("padding", get_setting("padding")))

    @property
    def max_iterations(self) -> int:
        return int(self.options.get("max_iterations", get_setting("max_iterations")))

    def warn(self, code: str, message: str, node_ids: Sequence[str] = ()) -> None:
        logger.warning(message)
        self.warnings.append(LayoutWarning(code=code, message=message, node_ids=list(node_ids)))

    def place(self, node_id: str, cx: float, cy: float) -> Box:
        size = self.sizes[node_id]
        box = Box(cx=cx, cy=cy, width=size.width, height=size.height)
        self.boxes[node_id] = box
        return box

    def set_anchors(self, node_id: str, anchor_in: AnchorSide, anchor_out: AnchorSide) -> None:
        self.anchor_in[node_id] = anchor_in
        self.anchor_out[node_id] = anchor_out

    def placed_extent(self, node_ids: Optional[Sequence[str]] = None) -> Optional[BoundingBox]:
        """Bounding box of the placed boxes (all of them by default)."""
        ids = list(self.boxes) if node_ids is None else [n for n in node_ids if n in self.boxes]
        if not ids:
            return None
        boxes = [self.boxes[n] for n in ids]
        return BoundingBox(
            min_x=min(b.left for b in boxes),
            max_x=max(b.right for b in boxes),
            min_y=min(b.top for b in boxes),
            max_y=max(b.bottom for b in boxes),
        )

    def translate(self, node_ids: Sequence[str], dx: float, dy: float) -> None:
        for node_id in node_ids:
            self.boxes[node_id].translate(dx, dy)

    def place_row(self, node_ids: Sequence[str], left: float, top: float, gap: float) -> None:
        """Place nodes left to right with their tops aligned."""
        x = left
        for node_id in node_ids:
            size = self.sizes[node_id]
            self.place(node_id, x + size.width / 2, top + size.height / 2)
            self.set_anchors(node_id, AnchorSide.LEFT, AnchorSide.RIGHT)
            x += size.width + gap

    def sibling_overlaps(self, padding: float) -> List[Tuple[str, str]]:
        """Pairs of siblings whose padded boxes still intersect."""
        pairs = []
        for parent_id, children in self.forest.children.items():
            for a, b in combinations(children, 2):
                if strictly_overlap(self.boxes[a], self.boxes[b], padding):
                    pairs.append((a, b))
        return pairs

    def valid_edge_items(self) -> List[Tuple[int, GraphEdge]]:
        return [
            (i, e) for i, e in enumerate(self.graph.edges)
            if e.source in self.nodes and e.target in self.nodes
        ]

    def project(self, algorithm: str) -> LayoutResult:
        """Build the output graph from the working state."""
        handles: Dict[int, Tuple[AnchorSide, AnchorSide]] = {}
        used_out: Dict[str, set] = {}
        for i, edge in self.valid_edge_items():
            pair = self.edge_handles.get(i)
            if pair is None:
                pair = (
                    self.anchor_out.get(edge.source, AnchorSide.RIGHT),
                    self.anchor_in.get(edge.target, AnchorSide.LEFT),
                )
            handles[i] = pair
            used_out.setdefault(edge.source, set()).add(pair[0])

        levels = compute_levels(self.graph.nodes, self.graph.edges)
        out_nodes = []
        for node in self.graph.nodes:
            box = self.boxes[node.id]
            anchor_out = self.anchor_out.get(node.id, AnchorSide.RIGHT)
            sides = used_out.get(node.id) or {anchor_out}
            out_nodes.append(
                node.model_copy(
                    update={
                        "position": NodePosition(x=box.left, y=box.top),
                        "level": levels[node.id],
                        "anchor_in": self.anchor_in.get(node.id, AnchorSide.LEFT),
                        "anchor_out": anchor_out,
                        "anchors_out": sorted(sides, key=_SIDE_ORDER.__getitem__),
                    },
                    deep=True,
                )
            )

        out_edges = []
        for i, edge in enumerate(self.graph.edges):
            if i not in handles:
                out_edges.append(edge.model_copy(deep=True))
                continue
            source_side, target_side = handles[i]
            out_edges.append(
                edge.model_copy(
                    update={
                        "source_handle": source_side.value,
                        "target_handle": target_side.value,
                    },
                    deep=True,
                )
            )

        return LayoutResult(
            algorithm=algorithm,
            nodes=out_nodes,
            edges=out_edges,
            warnings=list(self.warnings),
            bounding_box=BoundingBox.from_nodes(out_nodes, self.sizes) if out_nodes else None,
        )


class LayoutEngine(ABC):
    """Abstract base class for layout engines.

    Subclasses provide ``name``, ``default_options`` and ``_place``; the base
    class merges options, builds the working state and projects the result.
    """

    default_options: Dict[str, Any] = {}

    @property
    @abstractmethod
    def name(self) -> str:
        """Layout direction served by this engine (e.g., 'radial')."""
        ...

    def layout(self, graph: Graph, options: Optional[Dict[str, Any]] = None) -> LayoutResult:
        """Compute a layout snapshot for a graph.

        Args:
            graph: Validated input graph (never mutated)
            options: Engine options merged over ``default_options``

        Returns:
            LayoutResult with one positioned node per input node

        Raises:
            InvalidInputError: If an option value is not a finite number
        """
        layout_options = merge_options(self.default_options, options, shared=SHARED_OPTIONS)
        state = LayoutState.create(graph, layout_options)
        if graph.nodes:
            self._place(state)
        result = state.project(self.name)
        logger.debug(
            f"{self.name} layout: {len(result.nodes)} nodes, {len(result.edges)} edges, "
            f"{len(result.warnings)} warning(s)"
        )
        return result

    @abstractmethod
    def _place(self, state: LayoutState) -> None:
        """Fill ``state.boxes`` (every node) and anchors."""
        ...
