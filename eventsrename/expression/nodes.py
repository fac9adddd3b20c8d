"""Syntax tree of instruction parameter expressions.

Every node carries the ``Span`` it covers in the expression text it was parsed
from. Spans are plain ``[start, end)`` offsets so nodes never hold a reference
to the text itself.

The set of node types is closed: code walking a tree dispatches with
``match`` over the classes listed in ``ExpressionNode``.
"""

from dataclasses import dataclass, field
from typing import Optional, Union


@dataclass(frozen=True, order=True)
class Span:
    """Half-open range ``[start, end)`` of offsets in an expression text."""

    start: int
    end: int

    def __post_init__(self):
        if self.start < 0 or self.end < self.start:
            raise ValueError(f"Invalid span [{self.start}, {self.end})")

    def __len__(self) -> int:
        return self.end - self.start

    def slice(self, text: str) -> str:
        """Return the part of ``text`` covered by this span."""
        return text[self.start:self.end]

    def overlaps(self, other: "Span") -> bool:
        return self.start < other.end and other.start < self.end


@dataclass
class OperatorNode:
    """Binary operation, e.g. ``a + b``."""

    span: Span
    operator: str
    left: "ExpressionNode"
    right: "ExpressionNode"


@dataclass
class UnaryOperatorNode:
    """Prefix ``+`` or ``-`` applied to a factor."""

    span: Span
    operator: str
    factor: "ExpressionNode"


@dataclass
class SubExpressionNode:
    """Parenthesized expression. The span includes the parentheses."""

    span: Span
    expression: "ExpressionNode"


@dataclass
class NumberNode:
    span: Span
    number: str


@dataclass
class TextNode:
    """String literal. ``text`` is the unescaped value without quotes."""

    span: Span
    text: str


@dataclass
class IdentifierNode:
    """Bare name, such as an object name given to an object parameter."""

    span: Span
    name: str


@dataclass
class VariableAccessorNode:
    """``.child`` part of a variable path."""

    span: Span
    name: str
    child: Optional["VariableChild"] = None


@dataclass
class VariableBracketAccessorNode:
    """``[expression]`` part of a variable path."""

    span: Span
    expression: "ExpressionNode"
    child: Optional["VariableChild"] = None


@dataclass
class VariableNode:
    """Variable with at least one accessor, e.g. ``Scores["Player1"].Best``."""

    span: Span
    name: str
    child: Optional["VariableChild"] = None


@dataclass
class ObjectFunctionNameNode:
    """Reference to an object or behavior function without a call."""

    span: Span
    object_name: str
    behavior_name: str
    function_name: str


@dataclass
class FunctionCallNode:
    """Call of a free, object or behavior function.

    ``object_name`` is empty for free functions. ``behavior_name`` is only set
    for behavior functions (``Object.Behavior::Function(...)``).
    """

    span: Span
    function_name: str
    parameters: list["ExpressionNode"] = field(default_factory=list)
    object_name: str = ""
    behavior_name: str = ""

    @property
    def is_object_function(self) -> bool:
        return bool(self.object_name)

    @property
    def is_behavior_function(self) -> bool:
        return bool(self.object_name) and bool(self.behavior_name)


@dataclass
class EmptyNode:
    """Blank expression."""

    span: Span


VariableChild = Union[VariableAccessorNode, VariableBracketAccessorNode]

ExpressionNode = Union[
    OperatorNode,
    UnaryOperatorNode,
    SubExpressionNode,
    NumberNode,
    TextNode,
    IdentifierNode,
    VariableNode,
    VariableAccessorNode,
    VariableBracketAccessorNode,
    ObjectFunctionNameNode,
    FunctionCallNode,
    EmptyNode,
]
