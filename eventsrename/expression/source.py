"""Expression values stored in instruction parameters."""

from typing import Optional

from eventsrename.expression.nodes import ExpressionNode
from eventsrename.expression.parser import parse_expression


class Expression:
    """The text of one instruction parameter.

    Only the text is stored: ``root_node`` parses it on each access, so a
    tree lives as long as the caller processing the parameter keeps it.
    Expressions are immutable: changing a parameter means storing a new
    ``Expression`` in the instruction.
    """

    __slots__ = ("_plain_string",)

    def __init__(self, plain_string: str = ""):
        self._plain_string = plain_string

    @property
    def plain_string(self) -> str:
        return self._plain_string

    @property
    def root_node(self) -> Optional[ExpressionNode]:
        """Syntax tree of the expression, or None if the text is malformed."""
        return parse_expression(self._plain_string)

    def __eq__(self, other) -> bool:
        if isinstance(other, Expression):
            return self._plain_string == other._plain_string
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._plain_string)

    def __repr__(self) -> str:
        return f"Expression({self._plain_string!r})"

    def __str__(self) -> str:
        return self._plain_string
