"""Axis-aligned box helpers shared by the engines and the placement solver.

Engines work with box *centres* while placing nodes and only convert to the
editor's top-left positions when projecting results.
"""

import math
from dataclasses import dataclass

from mindmap_layout.models.graph import AnchorSide


@dataclass
class Box:
    """Mutable centre-based box used during a layout pass."""

    cx: float
    cy: float
    width: float
    height: float

    @property
    def left(self) -> float:
        return self.cx - self.width / 2

    @property
    def right(self) -> float:
        return self.cx + self.width / 2

    @property
    def top(self) -> float:
        return self.cy - self.height / 2

    @property
    def bottom(self) -> float:
        return self.cy + self.height / 2

    @property
    def half_diagonal(self) -> float:
        return half_diagonal(self.width, self.height)

    def translate(self, dx: float = 0.0, dy: float = 0.0) -> None:
        self.cx += dx
        self.cy += dy

    @classmethod
    def from_top_left(cls, x: float, y: float, width: float, height: float) -> "Box":
        return cls(cx=x + width / 2, cy=y + height / 2, width=width, height=height)


def half_diagonal(width: float, height: float) -> float:
    return math.hypot(width, height) / 2


def boxes_overlap(a: Box, b: Box, padding: float = 0.0) -> bool:
    """Whether two boxes come closer than ``padding`` on both axes.

    Boxes that sit exactly ``padding`` apart count as overlapping, matching
    the editor's insertion check.
    """
    return not (
        a.right + padding < b.left
        or a.left - padding > b.right
        or a.bottom + padding < b.top
        or a.top - padding > b.bottom
    )


def strictly_overlap(a: Box, b: Box, padding: float = 0.0, tolerance: float = 1e-6) -> bool:
    """Like boxes_overlap, but a gap of exactly ``padding`` is clear.

    ``tolerance`` absorbs floating-point drift left behind by resolution passes.
    """
    limit = padding - tolerance
    return (
        a.left < b.right + limit
        and b.left < a.right + limit
        and a.top < b.bottom + limit
        and b.top < a.bottom + limit
    )


def overlap_area(a: Box, b: Box, padding: float = 0.0) -> float:
    """Area of intersection between ``a`` grown by padding and ``b``."""
    w = min(a.right + padding, b.right) - max(a.left - padding, b.left)
    h = min(a.bottom + padding, b.bottom) - max(a.top - padding, b.top)
    if w <= 0 or h <= 0:
        return 0.0
    return w * h


def side_from_angle(angle: float) -> AnchorSide:
    """Quantise a direction (radians, screen coordinates) into a box side.

    Sectors are 90 degrees wide: right [-45, 45), bottom [45, 135),
    left [135, 225), top [225, 315). Screen y grows downward, so positive
    angles point below.
    """
    normalized = angle % (2 * math.pi)
    if normalized >= 7 * math.pi / 4 or normalized < math.pi / 4:
        return AnchorSide.RIGHT
    if normalized < 3 * math.pi / 4:
        return AnchorSide.BOTTOM
    if normalized < 5 * math.pi / 4:
        return AnchorSide.LEFT
    return AnchorSide.TOP


def side_towards(origin: Box, other: Box) -> AnchorSide:
    """Side of ``origin`` facing ``other``."""
    return side_from_angle(math.atan2(other.cy - origin.cy, other.cx - origin.cx))
