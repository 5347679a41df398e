"""Tests for box geometry and branch side assignment."""

import math

import pytest

from mindmap_layout.core.geometry import (
    Box,
    boxes_overlap,
    half_diagonal,
    overlap_area,
    side_from_angle,
    side_towards,
    strictly_overlap,
)
from mindmap_layout.core.sides import infer_branch_sides, normalize_to_axis, parse_side
from mindmap_layout.core.sizing import sizes_of
from mindmap_layout.models.graph import AnchorSide, GraphEdge, GraphNode


# =============================================================================
# Boxes
# =============================================================================


class TestBox:
    """Test centre-based boxes."""

    def test_edges(self):
        """Test edge coordinates from the centre."""
        box = Box(cx=10, cy=20, width=40, height=10)
        assert (box.left, box.right, box.top, box.bottom) == (-10, 30, 15, 25)

    def test_from_top_left(self):
        """Test construction from a top-left corner."""
        box = Box.from_top_left(0, 0, 250, 80)
        assert (box.cx, box.cy) == (125, 40)

    def test_translate(self):
        """Test in-place translation."""
        box = Box(cx=0, cy=0, width=10, height=10)
        box.translate(dx=5)
        box.translate(dy=-2)
        assert (box.cx, box.cy) == (5, -2)

    def test_half_diagonal(self):
        """Test the half diagonal of a 3-4-5 box."""
        assert half_diagonal(6, 8) == 5
        assert Box(cx=0, cy=0, width=6, height=8).half_diagonal == 5


class TestOverlap:
    """Test overlap predicates."""

    def test_gap_exactly_padding(self):
        """Test a gap of exactly the padding overlaps for insertion but not for resolution."""
        a = Box.from_top_left(0, 0, 100, 50)
        b = Box.from_top_left(120, 0, 100, 50)
        assert boxes_overlap(a, b, 20)
        assert not strictly_overlap(a, b, 20)

    def test_gap_wider_than_padding(self):
        """Test boxes further apart than the padding are clear."""
        a = Box.from_top_left(0, 0, 100, 50)
        b = Box.from_top_left(121, 0, 100, 50)
        assert not boxes_overlap(a, b, 20)
        assert not strictly_overlap(a, b, 20)

    def test_diagonal_separation(self):
        """Test boxes apart on one axis do not overlap."""
        a = Box.from_top_left(0, 0, 100, 50)
        b = Box.from_top_left(50, 200, 100, 50)
        assert not strictly_overlap(a, b, 20)

    def test_overlap_area(self):
        """Test the padded intersection area."""
        a = Box.from_top_left(0, 0, 100, 100)
        b = Box.from_top_left(50, 50, 100, 100)
        assert overlap_area(a, b) == 2500
        assert overlap_area(a, b, 10) == 60 * 60
        assert overlap_area(a, Box.from_top_left(500, 0, 10, 10)) == 0.0


class TestSides:
    """Test angle quantisation."""

    @pytest.mark.parametrize("degrees,side", [
        (0, AnchorSide.RIGHT),
        (44, AnchorSide.RIGHT),
        (-44, AnchorSide.RIGHT),
        (46, AnchorSide.BOTTOM),
        (90, AnchorSide.BOTTOM),
        (180, AnchorSide.LEFT),
        (270, AnchorSide.TOP),
        (-90, AnchorSide.TOP),
        (316, AnchorSide.RIGHT),
    ])
    def test_side_from_angle(self, degrees, side):
        """Test the four 90 degree sectors."""
        assert side_from_angle(math.radians(degrees)) == side

    def test_side_towards(self):
        """Test the side of a box facing another one."""
        origin = Box(cx=0, cy=0, width=10, height=10)
        assert side_towards(origin, Box(cx=0, cy=100, width=10, height=10)) == AnchorSide.BOTTOM
        assert side_towards(origin, Box(cx=-100, cy=0, width=10, height=10)) == AnchorSide.LEFT


# =============================================================================
# Branch Sides
# =============================================================================


class TestBranchSides:
    """Test left/right (top/bottom) assignment of top-level branches."""

    def test_parse_side(self):
        """Test side markers with handle suffixes."""
        assert parse_side("left") == AnchorSide.LEFT
        assert parse_side("Right-source") == AnchorSide.RIGHT
        assert parse_side("middle") is None
        assert parse_side(None) is None

    def test_normalize_to_axis(self):
        """Test sides map onto the layout axis."""
        assert normalize_to_axis(AnchorSide.TOP, "x") == AnchorSide.LEFT
        assert normalize_to_axis(AnchorSide.RIGHT, "y") == AnchorSide.BOTTOM

    def _infer(self, children, edges=(), axis="x"):
        root = GraphNode(id="root")
        nodes = {"root": root, **{c.id: c for c in children}}
        return infer_branch_sides(
            root, [c.id for c in children], nodes, list(edges), sizes_of(nodes.values()), axis
        )

    def test_marker_beats_geometry(self):
        """Test an explicit data marker wins over the current position."""
        child = GraphNode(id="a", position={"x": 900, "y": 0}, data={"side": "left"})
        assert self._infer([child]) == {"a": AnchorSide.LEFT}

    def test_edge_handle_marker(self):
        """Test the root edge's source handle is a marker."""
        child = GraphNode(id="a")
        edges = [GraphEdge(source="root", target="a", source_handle="left")]
        assert self._infer([child], edges) == {"a": AnchorSide.LEFT}

    def test_geometry(self):
        """Test children keep the side they already sit on."""
        left = GraphNode(id="l", position={"x": -400, "y": 0})
        right = GraphNode(id="r", position={"x": 400, "y": 0})
        assert self._infer([right, left]) == {"r": AnchorSide.RIGHT, "l": AnchorSide.LEFT}

    def test_parity_fallback(self):
        """Test children at the root's position alternate far, near."""
        children = [GraphNode(id=f"c{i}") for i in range(4)]
        sides = self._infer(children, axis="y")
        assert [sides[f"c{i}"] for i in range(4)] == [
            AnchorSide.BOTTOM, AnchorSide.TOP, AnchorSide.BOTTOM, AnchorSide.TOP
        ]
