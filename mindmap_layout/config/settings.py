"""
Layout Settings

Global layout constants shared by every engine. Values are read from
environment variables at import time so that deployments can retune sizing
and solver bounds without code changes.

Usage:
    from mindmap_layout.config.settings import get_setting

    width = get_setting('default_node_width')

Environment Variables:
    MINDMAP_DEFAULT_NODE_WIDTH   - Fallback node width when nothing is measured (250)
    MINDMAP_DEFAULT_NODE_HEIGHT  - Fallback node height when nothing is measured (80)
    MINDMAP_PADDING              - Gap kept between padded bounding boxes (20)
    MINDMAP_MAX_ITERATIONS       - Cap for every overlap-resolution loop (50)
    MINDMAP_NEW_NODE_WIDTH       - Candidate width for inserted nodes (200)
    MINDMAP_NEW_NODE_HEIGHT      - Candidate height for inserted nodes (100)

Engine-specific spacing lives in the option presets next to each engine
(e.g. HORIZONTAL_LAYOUT_OPTIONS); these settings only cover what all of them
share.
"""

import logging
import math
import os
from typing import Any, Dict, Iterable, Optional, Union

from mindmap_layout.core.errors import InvalidInputError

logger = logging.getLogger(__name__)

Number = Union[int, float]


def _env_number(name: str, default: Number) -> Number:
    """Read a positive number from the environment, falling back to default."""
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = type(default)(raw)
    except ValueError:
        logger.warning(f"Ignoring {name}={raw!r}: not a valid {type(default).__name__}")
        return default
    if value <= 0:
        logger.warning(f"Ignoring {name}={raw!r}: must be positive")
        return default
    return value


LAYOUT_SETTINGS: Dict[str, Number] = {
    # Node sizing fallbacks
    'default_node_width': _env_number('MINDMAP_DEFAULT_NODE_WIDTH', 250.0),
    'default_node_height': _env_number('MINDMAP_DEFAULT_NODE_HEIGHT', 80.0),

    # Overlap resolution
    'padding': _env_number('MINDMAP_PADDING', 20.0),
    'max_iterations': _env_number('MINDMAP_MAX_ITERATIONS', 50),

    # Incremental insertion
    'new_node_width': _env_number('MINDMAP_NEW_NODE_WIDTH', 200.0),
    'new_node_height': _env_number('MINDMAP_NEW_NODE_HEIGHT', 100.0),
}


def get_setting(name: str) -> Number:
    """
    Look up a layout setting.

    Args:
        name: Setting name (e.g., 'default_node_width')

    Returns:
        Current value of the setting

    Raises:
        KeyError: If setting name is not recognized

    Example:
        >>> get_setting('padding')
        20.0
    """
    if name not in LAYOUT_SETTINGS:
        available = ', '.join(LAYOUT_SETTINGS.keys())
        raise KeyError(
            f"Unknown layout setting: '{name}'. "
            f"Available settings: {available}"
        )

    return LAYOUT_SETTINGS[name]


def get_all_settings() -> Dict[str, Number]:
    """
    Get all layout settings and their current values.

    Returns:
        Copy of the settings dictionary
    """
    return LAYOUT_SETTINGS.copy()


def set_setting(name: str, value: Number) -> None:
    """
    Programmatically override a layout setting (for testing only).

    Args:
        name: Setting name
        value: New value

    Warning:
        This is for testing only. In production, use environment variables.
    """
    if name not in LAYOUT_SETTINGS:
        available = ', '.join(LAYOUT_SETTINGS.keys())
        raise KeyError(
            f"Unknown layout setting: '{name}'. "
            f"Available settings: {available}"
        )

    LAYOUT_SETTINGS[name] = value


def merge_options(
    defaults: Dict[str, Any],
    options: Optional[Dict[str, Any]] = None,
    shared: Iterable[str] = (),
) -> Dict[str, Any]:
    """
    Merge per-call overrides over an option preset.

    Values of the preset's keys and of the ``shared`` setting names must be
    finite numbers (numeric strings are accepted); other keys pass through.

    Args:
        defaults: Option preset (e.g., HORIZONTAL_LAYOUT_OPTIONS)
        options: Per-call overrides
        shared: Setting names the caller may also override (e.g., 'padding')

    Returns:
        Merged options with numeric values coerced to float

    Raises:
        InvalidInputError: If options is not a dict or a numeric value is invalid
    """
    if options is not None and not isinstance(options, dict):
        raise InvalidInputError("options must be an object", field="options")

    merged = {**defaults, **(options or {})}
    numeric = set(defaults) | set(shared)
    for key in numeric & set(merged):
        value = merged[key]
        message = f"Option '{key}' must be a finite number, got {value!r}"
        if isinstance(value, bool):
            raise InvalidInputError(message, field="options")
        try:
            number = float(value)
        except (TypeError, ValueError):
            raise InvalidInputError(message, field="options") from None
        if not math.isfinite(number):
            raise InvalidInputError(message, field="options")
        merged[key] = number
    return merged
