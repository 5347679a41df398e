"""Layout engines registry.

Available engines:
- horizontal-tree: two-sided tree growing left and right of the root
- rank-horizontal / rank-vertical: networkx-ranked layout with side preservation
- radial: concentric rings around the root
"""

from mindmap_layout.layout.engines.base import LayoutEngine, LayoutState
from mindmap_layout.layout.engines.horizontal import HORIZONTAL_LAYOUT_OPTIONS, HorizontalTreeEngine
from mindmap_layout.layout.engines.radial import RADIAL_LAYOUT_OPTIONS, RadialTreeEngine
from mindmap_layout.layout.engines.ranked import (
    RANK_LAYOUT_OPTIONS,
    RankedLayoutEngine,
    RankHorizontalEngine,
    RankVerticalEngine,
)
from mindmap_layout.models.graph import LayoutDirection

# Engine registry
ENGINES = {
    LayoutDirection.HORIZONTAL_TREE.value: HorizontalTreeEngine,
    LayoutDirection.RANK_HORIZONTAL.value: RankHorizontalEngine,
    LayoutDirection.RANK_VERTICAL.value: RankVerticalEngine,
    LayoutDirection.RADIAL.value: RadialTreeEngine,
}


def get_engine(direction) -> type:
    """Get layout engine class by direction.

    Args:
        direction: LayoutDirection or its name (aliases 'LR'/'TB' accepted)

    Returns:
        Layout engine class

    Raises:
        InvalidInputError: If the direction is unknown
    """
    return ENGINES[LayoutDirection.parse(direction).value]


__all__ = [
    "LayoutEngine",
    "LayoutState",
    "HorizontalTreeEngine",
    "RadialTreeEngine",
    "RankedLayoutEngine",
    "RankHorizontalEngine",
    "RankVerticalEngine",
    "HORIZONTAL_LAYOUT_OPTIONS",
    "RADIAL_LAYOUT_OPTIONS",
    "RANK_LAYOUT_OPTIONS",
    "ENGINES",
    "get_engine",
]
