"""Response envelopes returned by the layout service."""

from typing import Any, Dict, List, Optional, Sequence

from mindmap_layout.models.layout_result import LayoutWarning


def warning_entries(warnings: Sequence[LayoutWarning]) -> List[Dict[str, Any]]:
    """Serialize soft warnings as ``{"code", "message", "node_ids"}`` dicts."""
    return [w.model_dump() for w in warnings]


def success_response(
    data: Any,
    warnings: Optional[Sequence[LayoutWarning]] = None
) -> Dict[str, Any]:
    """Create a successful response envelope.

    Args:
        data: The response data
        warnings: Optional soft warnings raised while computing ``data``

    Returns:
        ``{"ok": True, "data": ...}`` plus ``"warnings"`` when there are any
    """
    response = {
        "ok": True,
        "data": data
    }

    if warnings:
        response["warnings"] = warning_entries(warnings)

    return response


def error_response(
    message: str,
    code: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """Create an error response envelope.

    Args:
        message: Error message
        code: Optional machine-readable error code (e.g. 'INVALID_INPUT')
        details: Optional error details

    Returns:
        ``{"ok": False, "error": {...}}``
    """
    error = {"message": message}

    if code:
        error["code"] = code

    if details:
        error["details"] = details

    return {
        "ok": False,
        "error": error
    }
