"""Subtree extent computation.

The extent of a subtree is the linear space (height for the horizontal tree)
it needs along the stacking axis:

    leaf:      own(node)
    internal:  max(own(node), sum(extent(child)) + spacing * (k - 1))

One ``SubtreeMetrics`` instance serves a single layout pass: results are
memoized because ancestors query the same subtree repeatedly, and the memo
is discarded with the instance because node sizes may change between calls.
"""

import logging
from typing import Callable, Dict, List, Mapping, Set, Tuple

logger = logging.getLogger(__name__)

_MEMO = "memo"
_LEAF = "leaf"
_COMPUTE = "compute"


class SubtreeMetrics:
    """Memoized subtree extents for one layout pass.

    Traversal is iterative so deep chains do not hit the recursion limit.
    A node met a second time during one root's traversal (cycle or second
    parent) contributes only its own extent, as if it were a leaf.

    Example:
        metrics = SubtreeMetrics(children, lambda nid: sizes[nid].height, spacing=50)
        band = metrics.extent(root_id)
    """

    def __init__(
        self,
        children_of: Mapping[str, List[str]],
        own_extent: Callable[[str], float],
        spacing: float = 0.0,
    ):
        self._children = children_of
        self._own = own_extent
        self._spacing = spacing
        self._memo: Dict[str, float] = {}
        self._visited: Set[str] = set()

    def begin_root(self) -> None:
        """Start a new root traversal; memoized extents are kept."""
        self._visited = set()

    def extent(self, node_id: str) -> float:
        if node_id not in self._memo:
            self._compute(node_id)
        return self._memo[node_id]

    def stack_extent(self, node_ids: List[str]) -> float:
        """Space needed by subtrees stacked with spacing (0 for none)."""
        if not node_ids:
            return 0.0
        return sum(self.extent(n) for n in node_ids) + self._spacing * (len(node_ids) - 1)

    def _compute(self, start: str) -> None:
        plans: Dict[str, List[Tuple[str, str]]] = {}
        self._visited.add(start)
        stack: List[Tuple[str, bool]] = [(start, False)]

        while stack:
            node_id, expanded = stack.pop()
            if not expanded:
                stack.append((node_id, True))
                plan = []
                pending = []
                for child in self._children.get(node_id, []):
                    if child in self._memo:
                        plan.append((child, _MEMO))
                    elif child in self._visited:
                        plan.append((child, _LEAF))
                    else:
                        self._visited.add(child)
                        plan.append((child, _COMPUTE))
                        pending.append(child)
                plans[node_id] = plan
                for child in reversed(pending):
                    stack.append((child, False))
                continue

            plan = plans.pop(node_id)
            own = self._own(node_id)
            if not plan:
                self._memo[node_id] = own
                continue
            total = 0.0
            for child, mode in plan:
                total += self._own(child) if mode == _LEAF else self._memo[child]
            total += self._spacing * (len(plan) - 1)
            self._memo[node_id] = max(own, total)
