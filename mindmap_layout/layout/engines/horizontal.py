"""Two-sided horizontal tree layout.

The root sits at the canvas anchor and its branches grow to the left and to
the right. Each side receives a vertical band as tall as the total extent of
its subtrees; bands are split between children in proportion to their
subtree extents and every node is centred inside its own slice.

A bounded resolution pass then separates siblings, and nodes of unrelated
branches that ended up in the same column, by pushing the lower node down
together with its direct children. Hitting the iteration cap is reported as
a soft ``overlap_unresolved`` warning; the layout is returned either way.
"""

import logging
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from mindmap_layout.core.geometry import strictly_overlap
from mindmap_layout.core.metrics import SubtreeMetrics
from mindmap_layout.core.sides import infer_branch_sides
from mindmap_layout.layout.engines.base import LayoutEngine, LayoutState
from mindmap_layout.models.graph import AnchorSide, LayoutDirection

logger = logging.getLogger(__name__)

HORIZONTAL_LAYOUT_OPTIONS = {
    # Horizontal gap between a parent's box and its children's boxes
    "level_gap": 100,
    # Vertical gap between neighbouring sibling subtrees
    "sibling_spacing": 50,
    # Vertical gap between stacked trees when there are several roots
    "tree_gap": 120,
    # Gap between the main layout and the row of orphan nodes
    "orphan_gap": 120,
    # Cap for the parent/child horizontal nudge pass
    "anchor_iterations": 20,
}

_OUT_IN = {
    AnchorSide.LEFT: (AnchorSide.LEFT, AnchorSide.RIGHT),
    AnchorSide.RIGHT: (AnchorSide.RIGHT, AnchorSide.LEFT),
}


class HorizontalTreeEngine(LayoutEngine):
    """Mind-map style tree growing left and right of the root."""

    default_options = HORIZONTAL_LAYOUT_OPTIONS

    @property
    def name(self) -> str:
        return LayoutDirection.HORIZONTAL_TREE.value

    def _place(self, state: LayoutState) -> None:
        forest = state.forest
        spacing = float(state.options["sibling_spacing"])
        metrics = SubtreeMetrics(
            forest.children, lambda node_id: state.sizes[node_id].height, spacing
        )
        branch_side: Dict[str, AnchorSide] = {}

        next_top: Optional[float] = None
        for root_id in forest.roots:
            metrics.begin_root()
            self._layout_tree(state, root_id, metrics, branch_side)
            tree_ids = forest.preorder(root_id)
            extent = state.placed_extent(tree_ids)
            if next_top is not None:
                state.translate(tree_ids, 0.0, next_top - extent.min_y)
                extent = state.placed_extent(tree_ids)
            next_top = extent.max_y + float(state.options["tree_gap"])

        self._resolve_overlaps(state, branch_side)
        self._separate_from_parents(state, branch_side)

        if forest.orphans:
            extent = state.placed_extent()
            state.place_row(
                forest.orphans,
                left=extent.min_x,
                top=extent.max_y + float(state.options["orphan_gap"]),
                gap=spacing,
            )

        self._assign_edge_handles(state, branch_side)

    # ------------------------------------------------------------------
    # Initial placement
    # ------------------------------------------------------------------

    def _layout_tree(
        self,
        state: LayoutState,
        root_id: str,
        metrics: SubtreeMetrics,
        branch_side: Dict[str, AnchorSide],
    ) -> None:
        forest = state.forest
        root_box = state.place(root_id, 0.0, 0.0)
        children = forest.children[root_id]

        sides = infer_branch_sides(
            state.nodes[root_id], children, state.nodes, state.graph.edges, state.sizes, axis="x"
        )
        groups = {
            AnchorSide.LEFT: [c for c in children if sides[c] == AnchorSide.LEFT],
            AnchorSide.RIGHT: [c for c in children if sides[c] == AnchorSide.RIGHT],
        }

        for side, group in groups.items():
            if not group:
                continue
            band = metrics.stack_extent(group)
            self._fill_band(
                state, root_id, group, root_box.cy - band / 2, band, side, metrics, branch_side
            )

        if groups[AnchorSide.RIGHT] or not groups[AnchorSide.LEFT]:
            state.set_anchors(root_id, AnchorSide.LEFT, AnchorSide.RIGHT)
        else:
            state.set_anchors(root_id, AnchorSide.RIGHT, AnchorSide.LEFT)

    def _fill_band(
        self,
        state: LayoutState,
        parent_id: str,
        children: List[str],
        top: float,
        height: float,
        side: AnchorSide,
        metrics: SubtreeMetrics,
        branch_side: Dict[str, AnchorSide],
    ) -> None:
        level_gap = float(state.options["level_gap"])
        spacing = float(state.options["sibling_spacing"])
        sign = -1.0 if side == AnchorSide.LEFT else 1.0
        anchor_out, anchor_in = _OUT_IN[side]

        stack: List[Tuple[str, List[str], float, float]] = [(parent_id, children, top, height)]
        while stack:
            parent, kids, band_top, band_height = stack.pop()
            parent_box = state.boxes[parent]
            weights = [metrics.extent(c) for c in kids]
            total = sum(weights)
            available = band_height - spacing * (len(kids) - 1)
            scale = available / total if total > 0 else 1.0

            y = band_top
            for child_id, weight in zip(kids, weights):
                slice_height = weight * scale
                size = state.sizes[child_id]
                cx = parent_box.cx + sign * (parent_box.width / 2 + level_gap + size.width / 2)
                state.place(child_id, cx, y + slice_height / 2)
                state.set_anchors(child_id, anchor_in, anchor_out)
                branch_side[child_id] = side
                grandchildren = state.forest.children[child_id]
                if grandchildren:
                    stack.append((child_id, grandchildren, y, slice_height))
                y += slice_height + spacing

    # ------------------------------------------------------------------
    # Overlap resolution
    # ------------------------------------------------------------------

    def _resolve_overlaps(self, state: LayoutState, branch_side: Dict[str, AnchorSide]) -> None:
        forest = state.forest
        padding = state.padding
        order = {node_id: i for i, node_id in enumerate(forest.order)}

        sibling_groups: List[List[str]] = []
        for parent_id, children in forest.children.items():
            if not children:
                continue
            for side in (AnchorSide.LEFT, AnchorSide.RIGHT):
                group = [c for c in children if branch_side.get(c) == side]
                if len(group) > 1:
                    sibling_groups.append(group)

        columns: Dict[Tuple[AnchorSide, int], List[str]] = {}
        for node_id, side in branch_side.items():
            columns.setdefault((side, forest.depth[node_id]), []).append(node_id)

        def unrelated(a: str, b: str) -> bool:
            return forest.parent.get(a) != forest.parent.get(b)

        for iteration in range(state.max_iterations):
            moved = False
            for group in sibling_groups:
                moved |= self._push_down(state, group, padding, order)
            for column in columns.values():
                moved |= self._push_down(state, column, padding, order, unrelated)
            if not moved:
                logger.debug(f"Horizontal overlap resolution converged after {iteration} pass(es)")
                return

        remaining = set()
        for a, b in state.sibling_overlaps(padding):
            remaining.update((a, b))
        for column in columns.values():
            for a, b in self._overlapping_pairs(state, column, padding):
                if unrelated(a, b):
                    remaining.update((a, b))
        if remaining:
            state.warn(
                "overlap_unresolved",
                f"Overlap resolution stopped after {state.max_iterations} passes "
                f"with {len(remaining)} node(s) still overlapping",
                sorted(remaining, key=order.__getitem__),
            )

    def _push_down(
        self,
        state: LayoutState,
        group: Sequence[str],
        padding: float,
        order: Dict[str, int],
        related_filter: Optional[Callable[[str, str], bool]] = None,
    ) -> bool:
        """Push each node below its predecessor; returns True if anything moved."""
        moved = False
        ordered = sorted(group, key=lambda n: (state.boxes[n].top, order[n]))
        for prev, cur in zip(ordered, ordered[1:]):
            if related_filter is not None and not related_filter(prev, cur):
                continue
            prev_box, cur_box = state.boxes[prev], state.boxes[cur]
            if not strictly_overlap(prev_box, cur_box, padding):
                continue
            delta = prev_box.bottom + padding - cur_box.top
            if delta <= 0:
                continue
            cur_box.translate(dy=delta)
            state.translate(state.forest.children[cur], 0.0, delta)
            moved = True
        return moved

    def _overlapping_pairs(
        self, state: LayoutState, group: Sequence[str], padding: float
    ) -> List[Tuple[str, str]]:
        pairs = []
        for i, a in enumerate(group):
            for b in group[i + 1:]:
                if strictly_overlap(state.boxes[a], state.boxes[b], padding):
                    pairs.append((a, b))
        return pairs

    def _separate_from_parents(self, state: LayoutState, branch_side: Dict[str, AnchorSide]) -> None:
        """Nudge children outward while their padded box overlaps the parent's."""
        padding = state.padding
        iterations = int(state.options["anchor_iterations"])
        children = [n for n in state.forest.order if n in branch_side]

        for _ in range(iterations):
            moved = False
            for node_id in children:
                parent_box = state.boxes[state.forest.parent[node_id]]
                box = state.boxes[node_id]
                if not strictly_overlap(parent_box, box, padding):
                    continue
                if branch_side[node_id] == AnchorSide.RIGHT:
                    box.translate(dx=parent_box.right + padding - box.left)
                else:
                    box.translate(dx=parent_box.left - padding - box.right)
                moved = True
            if not moved:
                return

        stuck = [
            n for n in children
            if strictly_overlap(state.boxes[state.forest.parent[n]], state.boxes[n], padding)
        ]
        if stuck:
            state.warn(
                "overlap_unresolved",
                f"{len(stuck)} child node(s) still overlap their parent after {iterations} nudges",
                stuck,
            )

    # ------------------------------------------------------------------
    # Anchors
    # ------------------------------------------------------------------

    def _assign_edge_handles(self, state: LayoutState, branch_side: Dict[str, AnchorSide]) -> None:
        roots = set(state.forest.roots)
        for index, edge in state.valid_edge_items():
            source_side = state.anchor_out[edge.source]
            if edge.source in roots and edge.target in branch_side:
                source_side = branch_side[edge.target]
            state.edge_handles[index] = (source_side, state.anchor_in[edge.target])
