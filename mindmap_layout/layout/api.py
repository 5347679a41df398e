"""Entry point used by the editor to lay out a whole map."""

import logging
from typing import Any, Dict, Optional, Union

from mindmap_layout.layout.engines import get_engine
from mindmap_layout.models.graph import Graph, LayoutDirection
from mindmap_layout.models.layout_result import LayoutResult

logger = logging.getLogger(__name__)


def layout_graph(
    graph: Graph,
    direction: Union[LayoutDirection, str] = LayoutDirection.HORIZONTAL_TREE,
    options: Optional[Dict[str, Any]] = None,
) -> LayoutResult:
    """Lay out an already validated graph.

    Args:
        graph: Input graph (never mutated)
        direction: Layout strategy or one of its aliases
        options: Per-call overrides for the engine's option preset

    Returns:
        LayoutResult with one positioned node per input node

    Raises:
        InvalidInputError: If the direction is unknown
    """
    engine_class = get_engine(direction)
    engine = engine_class()
    logger.info(
        f"Computing {engine.name} layout for {len(graph.nodes)} nodes, {len(graph.edges)} edges"
    )
    return engine.layout(graph, options)


def compute_layout(
    nodes: Any,
    edges: Any,
    direction: Union[LayoutDirection, str] = LayoutDirection.HORIZONTAL_TREE,
    options: Optional[Dict[str, Any]] = None,
) -> LayoutResult:
    """Compute positions, anchors and edge handles for a mind map.

    Args:
        nodes: List of GraphNode or node dicts (editor camelCase keys accepted)
        edges: List of GraphEdge or edge dicts, in order
        direction: 'horizontal-tree', 'rank-vertical', 'rank-horizontal',
            'radial' (or 'LR'/'TB')
        options: Per-call overrides for the engine's option preset

    Returns:
        LayoutResult. Structurally unusual graphs (cycles, no root,
        multi-parent nodes, dangling edges) never raise; soft problems are
        reported in ``result.warnings``.

    Raises:
        InvalidInputError: For invalid call shapes (None or non-list
            containers, malformed records, duplicate ids, unknown direction)
    """
    parsed = LayoutDirection.parse(direction)
    graph = Graph.build(nodes, edges)
    return layout_graph(graph, parsed, options)
