"""Exceptions raised by the layout engine.

Layout calls never fail because of graph *data* (cycles, missing roots,
multi-parent nodes, unknown sizes); those degrade into valid placements plus
soft warnings on the result. Only malformed call shapes raise.
"""


class LayoutError(Exception):
    """Base class for layout engine errors."""


class InvalidInputError(LayoutError, ValueError):
    """Raised when a layout call is made with an invalid shape.

    Examples: ``None`` instead of a node list, a node record that cannot be
    parsed, duplicate node ids, or an unknown layout direction.
    """

    code = "INVALID_INPUT"

    def __init__(self, message: str, field: str = ""):
        self.field = field
        super().__init__(message)
