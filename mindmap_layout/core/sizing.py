"""Effective node sizes.

Precedence per dimension: the renderer's measured size, then the size stored
in the node's data, then the configured default. Non-positive or non-numeric
values are skipped, so the result is always a positive box.
"""

import logging
import math
from typing import Any, Dict, Optional

from mindmap_layout.config.settings import get_setting
from mindmap_layout.models.graph import GraphNode, NodeSize

logger = logging.getLogger(__name__)


def _positive(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value) or value <= 0:
        return None
    return float(value)


def size_of(node: GraphNode, options: Optional[Dict[str, Any]] = None) -> NodeSize:
    """Resolve the width/height used to lay out a node.

    Args:
        node: Node to measure
        options: Optional overrides for 'default_node_width' / 'default_node_height'

    Returns:
        NodeSize with positive width and height
    """
    options = options or {}
    measured = node.measured_size

    width = _positive(measured.width) if measured is not None else None
    if width is None:
        width = _positive(node.data.get("width"))
    if width is None:
        width = float(options.get("default_node_width", get_setting("default_node_width")))

    height = _positive(measured.height) if measured is not None else None
    if height is None:
        height = _positive(node.data.get("height"))
    if height is None:
        height = float(options.get("default_node_height", get_setting("default_node_height")))

    return NodeSize(width=width, height=height)


def sizes_of(nodes, options: Optional[Dict[str, Any]] = None) -> Dict[str, NodeSize]:
    """Resolve sizes for every node, keyed by id."""
    return {node.id: size_of(node, options) for node in nodes}
