"""Dict-in / envelope-out facade for the editor.

The editor talks to the engine with its own JSON documents
(``{"nodes": [...], "edges": [...]}`` with camelCase keys) and expects
``{"ok": ..., "data": ...}`` envelopes back. Invalid call shapes come back
as ``error.code == "INVALID_INPUT"``; layout problems never fail a call and
are listed under ``warnings`` instead.
"""

import logging
from typing import Any, Dict, Optional

from mindmap_layout.core.errors import InvalidInputError
from mindmap_layout.layout.api import layout_graph
from mindmap_layout.layout.placement import InsertResult, insert_child, insert_sibling
from mindmap_layout.models.graph import Graph, LayoutDirection
from mindmap_layout.utils.response import error_response, success_response

logger = logging.getLogger(__name__)


def _arg(args: Dict[str, Any], *names: str, default: Any = None) -> Any:
    """First present key among snake_case / camelCase spellings."""
    for name in names:
        if name in args:
            return args[name]
    return default


class LayoutService:
    """Routes editor requests to the layout engine and the insert operations."""

    def handle_request(self, name: str, arguments: Any) -> Dict[str, Any]:
        """Route a request to the appropriate handler.

        Args:
            name: Request name ('layout', 'insert_child', 'insert_sibling')
            arguments: Request payload

        Returns:
            Standardized response
        """
        handlers = {
            "layout": self.layout,
            "insert_child": self.insert_child,
            "insert_sibling": self.insert_sibling,
        }

        handler = handlers.get(name)
        if not handler:
            return error_response(f"Unknown layout request: {name}", code="UNKNOWN_REQUEST")
        return handler(arguments)

    def layout(self, payload: Any) -> Dict[str, Any]:
        """Lay out a whole document.

        Payload keys: ``nodes``, ``edges``, optional ``direction``
        (default 'horizontal-tree') and ``options``.
        """
        try:
            args = self._require_mapping(payload)
            direction = LayoutDirection.parse(
                args.get("direction", LayoutDirection.HORIZONTAL_TREE.value)
            )
            graph = Graph.build(args.get("nodes"), args.get("edges", []))
            options = args.get("options")
            if options is not None and not isinstance(options, dict):
                raise InvalidInputError("options must be an object", field="options")
            result = layout_graph(graph, direction, options)
        except InvalidInputError as e:
            return self._invalid(e)

        return success_response(result.to_dict(), warnings=result.warnings)

    def insert_child(self, payload: Any) -> Dict[str, Any]:
        """Add a child next to ``parentId`` on the ``direction`` side."""
        try:
            args = self._require_mapping(payload)
            graph = Graph.build(args.get("nodes"), args.get("edges", []))
            parent_id = _arg(args, "parent_id", "parentId")
            if parent_id is None:
                raise InvalidInputError("parentId is required", field="parent_id")
            result = insert_child(
                graph,
                str(parent_id),
                direction=args.get("direction", "right"),
                new_id=_arg(args, "new_id", "newId"),
                **self._label(args),
            )
        except InvalidInputError as e:
            return self._invalid(e)

        return self._inserted(result)

    def insert_sibling(self, payload: Any) -> Dict[str, Any]:
        """Add a sibling below ``selectedId``."""
        try:
            args = self._require_mapping(payload)
            graph = Graph.build(args.get("nodes"), args.get("edges", []))
            selected_id = _arg(args, "selected_id", "selectedId")
            if selected_id is None:
                raise InvalidInputError("selectedId is required", field="selected_id")
            result = insert_sibling(
                graph,
                str(selected_id),
                new_id=_arg(args, "new_id", "newId"),
                **self._label(args),
            )
        except InvalidInputError as e:
            return self._invalid(e)

        return self._inserted(result)

    @staticmethod
    def _require_mapping(payload: Any) -> Dict[str, Any]:
        if not isinstance(payload, dict):
            raise InvalidInputError(
                f"Request payload must be an object, got {type(payload).__name__}"
            )
        return payload

    @staticmethod
    def _label(args: Dict[str, Any]) -> Dict[str, Any]:
        label: Optional[str] = args.get("label")
        return {"label": label} if label is not None else {}

    @staticmethod
    def _inserted(result: InsertResult) -> Dict[str, Any]:
        data = result.graph.to_dict()
        data["nodeId"] = result.node_id
        data["clear"] = result.clear
        return success_response(data, warnings=result.warnings)

    @staticmethod
    def _invalid(error: InvalidInputError) -> Dict[str, Any]:
        logger.info(f"Rejected layout request: {error}")
        details = {"field": error.field} if error.field else None
        return error_response(str(error), code=error.code, details=details)
