"""Radial tree layout.

Every root owns the full circle. Children are spread evenly over their
parent's angular span on a ring whose radius grows with depth and is
inflated so that a parent and its largest child can never touch:

    radius = max(base_radius + depth * radius_increment,
                 parent_half_diagonal + max_child_half_diagonal + padding)

On a full-circle ring the radius is also inflated until neighbouring
children's diagonals fit along the chord, since wrap-around leaves no
spare angle to borrow. A child's own span is ``child_span_ratio`` of its
share, leaving a gutter between sibling subtrees.

Residual problems are removed by a bounded nudge pass that moves single
nodes: a child too close to its parent is pushed out along the parent's
ray, and overlapping boxes are shifted horizontally in the direction they
already lean away from their parent. Anchor sides are derived from the
final geometry.
"""

import logging
import math
from itertools import combinations
from typing import List, Optional, Tuple

from mindmap_layout.core.geometry import (
    Box,
    half_diagonal,
    side_from_angle,
    side_towards,
    strictly_overlap,
)
from mindmap_layout.layout.engines.base import LayoutEngine, LayoutState
from mindmap_layout.models.graph import AnchorSide, LayoutDirection

logger = logging.getLogger(__name__)

RADIAL_LAYOUT_OPTIONS = {
    # Ring radius for the root's children
    "base_radius": 250,
    # Extra radius per depth level
    "radius_increment": 200,
    # Fraction of a child's angular share handed down to its own children
    "child_span_ratio": 0.9,
    # Minimum angle (radians) between neighbouring children on a partial span
    "min_angle": 0.2,
    # Horizontal gap between trees when there are several roots
    "tree_gap": 200,
    # Gap between the last tree and the orphan row
    "orphan_gap": 150,
}

_TOLERANCE = 1e-6


def _separation_shortfall(parent_box: Box, box: Box, padding: float) -> float:
    """How far the centres are short of both half diagonals plus padding."""
    required = parent_box.half_diagonal + box.half_diagonal + padding
    return required - math.hypot(box.cx - parent_box.cx, box.cy - parent_box.cy)


class RadialTreeEngine(LayoutEngine):
    """Concentric-ring layout around each root."""

    default_options = RADIAL_LAYOUT_OPTIONS

    @property
    def name(self) -> str:
        return LayoutDirection.RADIAL.value

    def _place(self, state: LayoutState) -> None:
        forest = state.forest
        next_left: Optional[float] = None

        for root_id in forest.roots:
            self._layout_tree(state, root_id)
            tree_ids = forest.preorder(root_id)
            self._nudge(state, tree_ids)
            self._assign_anchors(state, root_id, tree_ids)

            extent = state.placed_extent(tree_ids)
            if next_left is not None:
                state.translate(tree_ids, next_left - extent.min_x, 0.0)
                extent = state.placed_extent(tree_ids)
            next_left = extent.max_x + float(state.options["tree_gap"])

        if forest.orphans:
            extent = state.placed_extent()
            tallest = max(state.sizes[n].height for n in forest.orphans)
            state.place_row(
                forest.orphans,
                left=extent.max_x + float(state.options["orphan_gap"]),
                top=-tallest / 2,
                gap=float(state.options["orphan_gap"]),
            )

        for index, edge in state.valid_edge_items():
            source_side = side_towards(state.boxes[edge.source], state.boxes[edge.target])
            state.edge_handles[index] = (source_side, state.anchor_in[edge.target])

    def _layout_tree(self, state: LayoutState, root_id: str) -> None:
        forest = state.forest
        opts = state.options
        base_radius = float(opts["base_radius"])
        radius_increment = float(opts["radius_increment"])
        span_ratio = float(opts["child_span_ratio"])
        min_angle = float(opts["min_angle"])
        padding = state.padding

        state.place(root_id, 0.0, 0.0)
        stack: List[Tuple[str, float, float, bool]] = [(root_id, 0.0, 2 * math.pi, True)]

        while stack:
            parent_id, start, span, full_circle = stack.pop()
            children = forest.children[parent_id]
            if not children:
                continue

            parent_box = state.boxes[parent_id]
            count = len(children)
            max_child_half = max(
                half_diagonal(state.sizes[c].width, state.sizes[c].height) for c in children
            )
            radius = max(
                base_radius + forest.depth[parent_id] * radius_increment,
                parent_box.half_diagonal + max_child_half + padding,
            )

            if full_circle:
                step = span / count
                angles = [start + step * i for i in range(count)]
                if count > 1:
                    chord_radius = (2 * max_child_half + padding) / (2 * math.sin(step / 2))
                    radius = max(radius, chord_radius)
            else:
                step = max(span / count, min_angle)
                first = start + span / 2 - step * (count - 1) / 2
                angles = [first + step * i for i in range(count)]

            for child_id, angle in zip(children, angles):
                state.place(
                    child_id,
                    parent_box.cx + math.cos(angle) * radius,
                    parent_box.cy + math.sin(angle) * radius,
                )
                child_span = step * span_ratio
                stack.append((child_id, angle - child_span / 2, child_span, False))

    def _nudge(self, state: LayoutState, tree_ids: List[str]) -> None:
        """Shift single nodes outward until parent/child and sibling boxes clear.

        Every pass first pushes each child out along its parent's ray until
        the centre distance reaches both half diagonals plus padding, then
        shifts overlapping boxes horizontally. Only the moved node changes;
        its own children are checked against it on the next pass.
        """
        forest = state.forest
        padding = state.padding
        non_roots = [n for n in tree_ids if n in forest.parent]
        parents = [n for n in tree_ids if len(forest.children[n]) > 1]

        for iteration in range(state.max_iterations):
            moved = False
            for node_id in non_roots:
                parent_box = state.boxes[forest.parent[node_id]]
                box = state.boxes[node_id]
                if _separation_shortfall(parent_box, box, padding) > _TOLERANCE:
                    self._push_along_ray(box, parent_box, padding)
                    moved = True
                if strictly_overlap(parent_box, box, padding):
                    self._shift_clear(box, parent_box, parent_box, padding)
                    moved = True

            for parent_id in parents:
                parent_box = state.boxes[parent_id]
                for a, b in combinations(forest.children[parent_id], 2):
                    box_a, box_b = state.boxes[a], state.boxes[b]
                    if not strictly_overlap(box_a, box_b, padding):
                        continue
                    if abs(box_b.cx - parent_box.cx) >= abs(box_a.cx - parent_box.cx):
                        self._shift_clear(box_b, box_a, parent_box, padding)
                    else:
                        self._shift_clear(box_a, box_b, parent_box, padding)
                    moved = True

            if not moved:
                logger.debug(f"Radial nudge pass converged after {iteration} pass(es)")
                return

        stuck = set()
        for node_id in non_roots:
            parent_box = state.boxes[forest.parent[node_id]]
            box = state.boxes[node_id]
            if (
                strictly_overlap(parent_box, box, padding)
                or _separation_shortfall(parent_box, box, padding) > _TOLERANCE
            ):
                stuck.update((forest.parent[node_id], node_id))
        for parent_id in parents:
            for a, b in combinations(forest.children[parent_id], 2):
                if strictly_overlap(state.boxes[a], state.boxes[b], padding):
                    stuck.update((a, b))
        if stuck:
            state.warn(
                "overlap_unresolved",
                f"Radial nudge pass stopped after {state.max_iterations} passes "
                f"with {len(stuck)} node(s) still overlapping or too close to a parent",
                [n for n in tree_ids if n in stuck],
            )

    @staticmethod
    def _push_along_ray(box: Box, parent_box: Box, padding: float) -> None:
        """Move ``box`` away from its parent until the centre distance suffices."""
        dx = box.cx - parent_box.cx
        dy = box.cy - parent_box.cy
        distance = math.hypot(dx, dy)
        if distance <= _TOLERANCE:
            dx, dy, distance = 1.0, 0.0, 1.0
        required = parent_box.half_diagonal + box.half_diagonal + padding
        scale = required / distance
        box.translate(
            dx=parent_box.cx + dx * scale - box.cx,
            dy=parent_box.cy + dy * scale - box.cy,
        )

    @staticmethod
    def _shift_clear(box: Box, obstacle: Box, parent_box: Box, padding: float) -> None:
        """Move ``box`` horizontally past ``obstacle`` on the side it leans toward."""
        lean = 1.0 if box.cx >= parent_box.cx else -1.0
        if lean > 0:
            dx = obstacle.right + padding - box.left
        else:
            dx = obstacle.left - padding - box.right
        box.translate(dx=dx)

    def _assign_anchors(self, state: LayoutState, root_id: str, tree_ids: List[str]) -> None:
        forest = state.forest
        for node_id in tree_ids:
            if node_id == root_id:
                continue
            side = side_towards(state.boxes[forest.parent[node_id]], state.boxes[node_id])
            state.set_anchors(node_id, side.opposite, side)

        children = forest.children[root_id]
        if not children:
            state.set_anchors(root_id, AnchorSide.LEFT, AnchorSide.RIGHT)
            return
        root_box = state.boxes[root_id]
        sum_x = sum_y = 0.0
        for child_id in children:
            box = state.boxes[child_id]
            angle = math.atan2(box.cy - root_box.cy, box.cx - root_box.cx)
            sum_x += math.cos(angle)
            sum_y += math.sin(angle)
        side = side_from_angle(math.atan2(sum_y, sum_x))
        state.set_anchors(root_id, side.opposite, side)
