"""Pure helpers shared by the layout engines.

Modules:
- graph_utils: adjacency, roots, levels and spanning forests
- sizing: effective node sizes
- metrics: memoized subtree extents
- geometry: centre-based boxes and overlap tests
- sides: left/right (top/bottom) branch assignment
- errors: exception types
"""

from .errors import InvalidInputError, LayoutError

__all__ = [
    "LayoutError",
    "InvalidInputError",
]
