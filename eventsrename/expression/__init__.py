"""Expression text, syntax tree and parser."""

from eventsrename.expression.nodes import (
    EmptyNode,
    ExpressionNode,
    FunctionCallNode,
    IdentifierNode,
    NumberNode,
    ObjectFunctionNameNode,
    OperatorNode,
    Span,
    SubExpressionNode,
    TextNode,
    UnaryOperatorNode,
    VariableAccessorNode,
    VariableBracketAccessorNode,
    VariableNode,
)
from eventsrename.expression.parser import (
    parse_expression,
    parse_expression_or_raise,
)
from eventsrename.expression.source import Expression

__all__ = [
    "EmptyNode",
    "Expression",
    "ExpressionNode",
    "FunctionCallNode",
    "IdentifierNode",
    "NumberNode",
    "ObjectFunctionNameNode",
    "OperatorNode",
    "Span",
    "SubExpressionNode",
    "TextNode",
    "UnaryOperatorNode",
    "VariableAccessorNode",
    "VariableBracketAccessorNode",
    "VariableNode",
    "parse_expression",
    "parse_expression_or_raise",
]
