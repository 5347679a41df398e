"""Rank-based layout (left-to-right or top-to-bottom).

Ranks and the order inside a rank come from networkx: ``bfs_layers`` assigns
every tree node its rank and ``dfs_preorder_nodes`` fixes the order along
the cross axis. The result is then shaped into a mind map:

1. Each root's children are split into a near (left/top) and a far
   (right/bottom) group, as in the horizontal tree; descendants inherit the
   side of their top-level branch.
2. Ranks grow away from the root on their branch's side, so near-side ranks
   are mirrored across the root's axis.
3. Nodes of one (side, rank) group are redistributed at an even pitch,
   centred on the root's cross axis, in depth-first order; rank offsets
   follow the largest node of each rank plus ``rank_sep``.
4. Anchors and edge handles are recomputed from the resolved side.
"""

import logging
from typing import Dict, List, Optional, Tuple

import networkx as nx

from mindmap_layout.core.graph_utils import Forest
from mindmap_layout.core.sides import infer_branch_sides
from mindmap_layout.layout.engines.base import LayoutEngine, LayoutState
from mindmap_layout.models.graph import AnchorSide, LayoutDirection

logger = logging.getLogger(__name__)

RANK_HORIZONTAL_OPTIONS = {
    # Gap between neighbouring nodes of one rank
    "node_sep": 50,
    # Gap between consecutive ranks
    "rank_sep": 100,
    # Gap between trees when there are several roots
    "tree_gap": 120,
    # Gap between the layout and the orphan row
    "orphan_gap": 120,
}

RANK_VERTICAL_OPTIONS = {
    "node_sep": 80,
    "rank_sep": 120,
    "tree_gap": 120,
    "orphan_gap": 120,
}

RANK_LAYOUT_OPTIONS = {
    LayoutDirection.RANK_HORIZONTAL.value: RANK_HORIZONTAL_OPTIONS,
    LayoutDirection.RANK_VERTICAL.value: RANK_VERTICAL_OPTIONS,
}

# (anchor_in, anchor_out) per resolved side
_HORIZONTAL_ANCHORS = {
    AnchorSide.RIGHT: (AnchorSide.LEFT, AnchorSide.RIGHT),
    AnchorSide.LEFT: (AnchorSide.RIGHT, AnchorSide.LEFT),
}
_VERTICAL_ANCHORS = {
    AnchorSide.BOTTOM: (AnchorSide.TOP, AnchorSide.BOTTOM),
    AnchorSide.TOP: (AnchorSide.BOTTOM, AnchorSide.TOP),
}


class RankedLayoutEngine(LayoutEngine):
    """networkx-ranked layout with mind-map side preservation.

    Args:
        direction: RANK_HORIZONTAL (ranks grow along x) or RANK_VERTICAL
            (ranks grow along y)
    """

    def __init__(self, direction: LayoutDirection = LayoutDirection.RANK_HORIZONTAL):
        if direction not in (LayoutDirection.RANK_HORIZONTAL, LayoutDirection.RANK_VERTICAL):
            raise ValueError(f"RankedLayoutEngine does not serve {direction.value!r}")
        self.direction = direction
        self.default_options = RANK_LAYOUT_OPTIONS[direction.value]

    @property
    def name(self) -> str:
        return self.direction.value

    @property
    def horizontal(self) -> bool:
        return self.direction == LayoutDirection.RANK_HORIZONTAL

    def _place(self, state: LayoutState) -> None:
        forest = state.forest
        branch_side: Dict[str, AnchorSide] = {}
        tree_gap = float(state.options["tree_gap"])
        next_start: Optional[float] = None

        for root_id in forest.roots:
            tree_ids = forest.preorder(root_id)
            self._layout_tree(state, root_id, tree_ids, branch_side)

            extent = state.placed_extent(tree_ids)
            if self.horizontal:
                if next_start is not None:
                    state.translate(tree_ids, 0.0, next_start - extent.min_y)
                    extent = state.placed_extent(tree_ids)
                next_start = extent.max_y + tree_gap
            else:
                if next_start is not None:
                    state.translate(tree_ids, next_start - extent.min_x, 0.0)
                    extent = state.placed_extent(tree_ids)
                next_start = extent.max_x + tree_gap

        if forest.orphans:
            self._place_orphans(state)

        roots = set(forest.roots)
        for index, edge in state.valid_edge_items():
            source_side = state.anchor_out[edge.source]
            if (
                edge.source in roots
                and edge.target in branch_side
                and forest.parent.get(edge.target) == edge.source
            ):
                source_side = self._anchors(branch_side[edge.target])[1]
            state.edge_handles[index] = (source_side, state.anchor_in[edge.target])

    def _anchors(self, side: AnchorSide) -> Tuple[AnchorSide, AnchorSide]:
        table = _HORIZONTAL_ANCHORS if self.horizontal else _VERTICAL_ANCHORS
        return table[side]

    def _layout_tree(
        self,
        state: LayoutState,
        root_id: str,
        tree_ids: List[str],
        branch_side: Dict[str, AnchorSide],
    ) -> None:
        forest = state.forest
        axis = "x" if self.horizontal else "y"
        near, far = (
            (AnchorSide.LEFT, AnchorSide.RIGHT) if self.horizontal
            else (AnchorSide.TOP, AnchorSide.BOTTOM)
        )

        root_box = state.place(root_id, 0.0, 0.0)
        children = forest.children[root_id]
        if not children:
            state.set_anchors(root_id, *self._anchors(far))
            return

        sides = infer_branch_sides(
            state.nodes[root_id], children, state.nodes, state.graph.edges, state.sizes, axis=axis
        )
        for node_id in tree_ids:
            if node_id == root_id:
                continue
            parent_id = forest.parent[node_id]
            branch_side[node_id] = sides[node_id] if parent_id == root_id else branch_side[parent_id]

        ranks, order = self._ranks(forest, root_id, tree_ids)

        # Near-side ranks grow toward negative main-axis offsets
        sign = {n: 1.0 if branch_side[n] == far else -1.0 for n in order[1:]}
        mirrored = sum(1 for value in sign.values() if value < 0)
        if mirrored:
            logger.debug(f"Mirrored {mirrored} node(s) across root {root_id}")

        groups: Dict[Tuple[AnchorSide, int], List[str]] = {}
        for node_id in order[1:]:
            groups.setdefault((branch_side[node_id], ranks[node_id]), []).append(node_id)

        node_sep = float(state.options["node_sep"])
        rank_sep = float(state.options["rank_sep"])
        root_main = root_box.width if self.horizontal else root_box.height
        root_cross_centre = root_box.cy if self.horizontal else root_box.cx

        for side in (near, far):
            depth = 1
            previous_main = root_main
            offset = 0.0
            while (side, depth) in groups:
                group = groups[(side, depth)]
                mains = [self._main_size(state, n) for n in group]
                crosses = [self._cross_size(state, n) for n in group]
                largest = max(mains)
                offset += previous_main / 2 + rank_sep + largest / 2
                previous_main = largest

                pitch = max(crosses) + node_sep
                first = root_cross_centre - pitch * (len(group) - 1) / 2
                for i, node_id in enumerate(group):
                    main = sign[node_id] * offset
                    cross = first + pitch * i
                    if self.horizontal:
                        state.place(node_id, root_box.cx + main, cross)
                    else:
                        state.place(node_id, cross, root_box.cy + main)
                    state.set_anchors(node_id, *self._anchors(side))
                depth += 1

        if any(branch_side[c] == far for c in children):
            state.set_anchors(root_id, *self._anchors(far))
        else:
            state.set_anchors(root_id, *self._anchors(near))

    @staticmethod
    def _ranks(
        forest: Forest, root_id: str, tree_ids: List[str]
    ) -> Tuple[Dict[str, int], List[str]]:
        """Ranks and depth-first order of one tree, from networkx."""
        graph = nx.DiGraph()
        graph.add_nodes_from(tree_ids)
        for node_id in tree_ids:
            graph.add_edges_from((node_id, child) for child in forest.children[node_id])

        ranks: Dict[str, int] = {}
        for rank, layer in enumerate(nx.bfs_layers(graph, [root_id])):
            for node_id in layer:
                ranks[node_id] = rank
        order = list(nx.dfs_preorder_nodes(graph, source=root_id))
        return ranks, order

    def _main_size(self, state: LayoutState, node_id: str) -> float:
        size = state.sizes[node_id]
        return size.width if self.horizontal else size.height

    def _cross_size(self, state: LayoutState, node_id: str) -> float:
        size = state.sizes[node_id]
        return size.height if self.horizontal else size.width

    def _place_orphans(self, state: LayoutState) -> None:
        orphans = state.forest.orphans
        gap = float(state.options["orphan_gap"])
        extent = state.placed_extent()
        if extent is None:
            state.place_row(orphans, left=0.0, top=0.0, gap=gap)
        elif self.horizontal:
            state.place_row(orphans, left=extent.max_x + gap, top=extent.min_y, gap=gap)
        else:
            state.place_row(orphans, left=extent.min_x, top=extent.max_y + gap, gap=gap)
        far = AnchorSide.RIGHT if self.horizontal else AnchorSide.BOTTOM
        for node_id in orphans:
            state.set_anchors(node_id, *self._anchors(far))


class RankHorizontalEngine(RankedLayoutEngine):
    """Ranks grow left to right."""

    def __init__(self):
        super().__init__(LayoutDirection.RANK_HORIZONTAL)


class RankVerticalEngine(RankedLayoutEngine):
    """Ranks grow top to bottom."""

    def __init__(self):
        super().__init__(LayoutDirection.RANK_VERTICAL)
