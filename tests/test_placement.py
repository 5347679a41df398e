"""Tests for incremental placement and the insert operations.

Tests cover:
- Vertical scan and distance scoring
- Horizontal fallback in the insertion direction
- Least-overlap fallback when nothing is clear
- insert_child / insert_sibling graph edits
"""

import pytest

from mindmap_layout.core.errors import InvalidInputError
from mindmap_layout.core.geometry import Box, boxes_overlap
from mindmap_layout.core.sizing import size_of
from mindmap_layout.layout.placement import (
    find_non_overlapping_position,
    insert_child,
    insert_sibling,
)
from mindmap_layout.models.graph import AnchorSide, Graph, GraphNode

NEW_W, NEW_H = 200.0, 100.0


def _node(node_id, x, y, **kwargs):
    return GraphNode(id=node_id, position={"x": x, "y": y}, **kwargs)


def _overlaps_any(position, nodes, padding=20.0):
    candidate = Box.from_top_left(position.x, position.y, NEW_W, NEW_H)
    for n in nodes:
        size = size_of(n)
        box = Box.from_top_left(n.position.x, n.position.y, size.width, size.height)
        if boxes_overlap(candidate, box, padding):
            return True
    return False


@pytest.fixture
def packed_column():
    """Five nodes stacked over the whole vertical search band."""
    return [_node(f"p{i}", 0, y) for i, y in enumerate((-200, -100, 0, 100, 200))]


# =============================================================================
# Position Search
# =============================================================================


class TestFindNonOverlappingPosition:
    """Test the bounded placement search."""

    def test_empty_canvas_keeps_desired_point(self):
        """Test the desired point is used when nothing is in the way."""
        result = find_non_overlapping_position(40, 60, NEW_W, NEW_H, [])
        assert (result.position.x, result.position.y) == (40, 60)
        assert result.clear

    def test_clear_desired_point(self):
        """Test a clear desired point is kept."""
        existing = [_node("a", 0, 0)]
        result = find_non_overlapping_position(350, 0, NEW_W, NEW_H, existing)
        assert (result.position.x, result.position.y) == (350, 0)
        assert result.clear

    def test_nearest_clear_vertical_offset(self):
        """Test the clear candidate closest to the existing nodes wins."""
        existing = [_node("a", 0, 0)]
        result = find_non_overlapping_position(0, 0, NEW_W, NEW_H, existing)
        assert (result.position.x, result.position.y) == (0, -150)
        assert result.clear
        assert not _overlaps_any(result.position, existing)

    def test_touching_within_padding_counts_as_overlap(self):
        """Test a candidate exactly padding away is rejected."""
        existing = [_node("a", 0, 0)]
        result = find_non_overlapping_position(
            0, -120, NEW_W, NEW_H, existing, options={"y_range": 0}
        )
        assert result.position.x != 0 or not result.clear

    def test_packed_neighbourhood_falls_back_to_x(self, packed_column):
        """Test a fully packed column pushes the node sideways."""
        result = find_non_overlapping_position(0, 0, NEW_W, NEW_H, packed_column, "right")
        assert result.clear
        assert result.position.x == 300
        assert not _overlaps_any(result.position, packed_column)

    def test_packed_neighbourhood_left(self, packed_column):
        """Test the horizontal fallback follows the insertion direction."""
        result = find_non_overlapping_position(0, 0, NEW_W, NEW_H, packed_column, AnchorSide.LEFT)
        assert result.clear
        assert result.position.x == -250
        assert not _overlaps_any(result.position, packed_column)

    def test_deterministic(self, packed_column):
        """Test repeated searches give the same answer."""
        first = find_non_overlapping_position(0, 0, NEW_W, NEW_H, packed_column)
        second = find_non_overlapping_position(0, 0, NEW_W, NEW_H, packed_column)
        assert first == second

    def test_nothing_clear_returns_least_overlap(self):
        """Test a fully covered search space returns the least-overlapping position."""
        wall = [_node("wall", -500, -500, measured_size={"width": 2000, "height": 1000})]
        result = find_non_overlapping_position(0, 0, NEW_W, NEW_H, wall)
        assert not result.clear
        assert (result.position.x, result.position.y) == (0, 0)
        assert result.overlap == pytest.approx(240 * 140)

    @pytest.mark.parametrize("options", [{"y_step": 0}, {"x_step": -50}, {"padding": "wide"}])
    def test_invalid_options(self, options):
        """Test unusable scan options are invalid input."""
        with pytest.raises(InvalidInputError) as excinfo:
            find_non_overlapping_position(0, 0, NEW_W, NEW_H, [], options=options)
        assert excinfo.value.field == "options"


# =============================================================================
# Insert Operations
# =============================================================================


class TestInsertChild:
    """Test adding a child next to a node."""

    @pytest.fixture
    def graph(self):
        return Graph(nodes=[_node("root", 0, 0, level=0)], edges=[])

    def test_right_child(self, graph):
        """Test a right child is placed 350px right with right->left handles."""
        result = insert_child(graph, "root", "right", new_id="n1")
        child = result.node
        assert result.clear
        assert (child.position.x, child.position.y) == (350, 0)
        assert child.level == 1
        assert child.data["level"] == 1
        assert (child.anchor_in, child.anchor_out) == (AnchorSide.LEFT, AnchorSide.RIGHT)
        new_edge = result.graph.edges[-1]
        assert (new_edge.source, new_edge.target) == ("root", "n1")
        assert (new_edge.source_handle, new_edge.target_handle) == ("right", "left")
        assert new_edge.id == "eroot-n1"

    def test_left_child(self, graph):
        """Test a left child mirrors the right one."""
        result = insert_child(graph, "root", AnchorSide.LEFT, new_id="n1")
        assert result.node.position.x == -350
        new_edge = result.graph.edges[-1]
        assert (new_edge.source_handle, new_edge.target_handle) == ("left", "right")

    def test_input_graph_unchanged(self, graph):
        """Test the original graph is not modified."""
        result = insert_child(graph, "root", "right")
        assert len(graph.nodes) == 1
        assert len(graph.edges) == 0
        assert len(result.graph.nodes) == 2
        assert result.node_id in result.graph.node_map()

    def test_generated_id_is_unique(self, graph):
        """Test generated ids differ between calls."""
        assert insert_child(graph, "root").node_id != insert_child(graph, "root").node_id

    def test_unknown_parent(self, graph):
        """Test an unknown parent is invalid input."""
        with pytest.raises(InvalidInputError) as exc_info:
            insert_child(graph, "missing")
        assert exc_info.value.field == "parent_id"

    def test_vertical_direction_rejected(self, graph):
        """Test children can only be added left or right."""
        with pytest.raises(InvalidInputError):
            insert_child(graph, "root", "top")

    def test_duplicate_new_id(self, graph):
        """Test an existing id cannot be reused."""
        with pytest.raises(InvalidInputError):
            insert_child(graph, "root", new_id="root")

    def test_blocked_insert_warns(self):
        """Test a blocked placement is reported as a soft warning."""
        graph = Graph(
            nodes=[
                _node("root", 0, 0),
                _node("wall", -500, -500, measured_size={"width": 2000, "height": 1000}),
            ],
            edges=[],
        )
        result = insert_child(graph, "root", new_id="n1")
        assert not result.clear
        assert result.warnings[0].code == "placement_not_clear"
        assert result.warnings[0].node_ids == ["n1"]


class TestInsertSibling:
    """Test adding a sibling below a node."""

    def test_sibling_connected_to_parent(self):
        """Test the sibling shares the selected node's parent and handles."""
        graph = Graph.build(
            [
                {"id": "root", "position": {"x": -400, "y": 0}},
                {"id": "a", "position": {"x": 0, "y": 0}, "level": 1, "anchorIn": "left", "anchorOut": "right"},
            ],
            [{"source": "root", "target": "a", "sourceHandle": "right", "targetHandle": "left"}],
        )
        result = insert_sibling(graph, "a", new_id="s")
        sibling = result.node
        assert sibling.level == 1
        assert sibling.anchor_in == AnchorSide.LEFT
        assert (sibling.position.x, sibling.position.y) == (0, 120)
        new_edge = result.graph.edges[-1]
        assert (new_edge.source, new_edge.target) == ("root", "s")
        assert (new_edge.source_handle, new_edge.target_handle) == ("right", "left")

    def test_root_sibling_unconnected(self):
        """Test a sibling of a root gets no edge."""
        graph = Graph(nodes=[_node("root", 0, 0)], edges=[])
        result = insert_sibling(graph, "root", new_id="s")
        assert result.graph.edges == []
        assert result.node.level == 0

    def test_packed_neighbourhood(self, packed_column):
        """Test a sibling in a packed column lands clear of all five nodes."""
        selected = _node("sel", 0, -120)
        root = _node("root", -1000, 0)
        graph = Graph.build(
            [root, selected] + packed_column,
            [{"source": "root", "target": "sel"}],
        )
        result = insert_sibling(graph, "sel", new_id="s")
        assert result.clear
        assert result.node.position.x == 300
        assert not _overlaps_any(result.node.position, packed_column + [selected, root])

    def test_unknown_selected(self):
        """Test an unknown selected node is invalid input."""
        with pytest.raises(InvalidInputError):
            insert_sibling(Graph(), "missing")
