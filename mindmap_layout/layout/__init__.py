"""Layout module for automatic mind-map positioning.

This module provides:
- Layout engine abstraction (LayoutEngine) and the per-direction engines
- compute_layout, the whole-map entry point
- Incremental placement for single-node inserts
"""

from mindmap_layout.layout.api import compute_layout, layout_graph
from mindmap_layout.layout.engines import ENGINES, LayoutEngine, get_engine

__all__ = [
    "compute_layout",
    "layout_graph",
    "LayoutEngine",
    "ENGINES",
    "get_engine",
]
