"""Parser for instruction parameter expressions.

Turns expression text such as::

    "Score: " + ToString(Player.Variable(Score)) + Enemy.Health::Value()

into the node tree of ``eventsrename.expression.nodes``. Free functions may be
namespaced by their extension (``Ext::Function()``). Positions come from the
tokens (every delimiter used for a span is a named terminal, so it is kept in
the parse tree), which gives each node the exact ``[start, end)`` range it was
read from.
"""

import re
from typing import Optional, Union

import structlog
from lark import Lark, Token, Transformer
from lark.exceptions import LarkError, UnexpectedInput

from eventsrename.errors import ExpressionSyntaxError
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

log = structlog.get_logger()


expression_grammar = r"""
    ?start: expression

    ?expression: sum

    ?sum: product
        | sum SUM_OP product                                -> operator

    ?product: unary
        | product MUL_OP unary                              -> operator

    ?unary: atom
        | SUM_OP unary                                      -> unary_operator

    ?atom: NUMBER                                           -> number
        | STRING                                            -> text
        | LPAR expression RPAR                              -> sub_expression
        | NAME LPAR arguments RPAR                          -> free_call
        | NAME NAMESPACE NAME LPAR arguments RPAR           -> namespaced_call
        | NAME DOT NAME LPAR arguments RPAR                 -> object_call
        | NAME DOT NAME NAMESPACE NAME LPAR arguments RPAR  -> behavior_call
        | NAME DOT NAME NAMESPACE NAME                      -> object_function_name
        | NAME accessor                                     -> variable
        | NAME                                              -> identifier

    arguments: (expression ("," expression)*)?

    accessor: DOT NAME accessor?                            -> child_accessor
        | LBRACKET expression RBRACKET accessor?            -> bracket_accessor

    NAME: /[^\W\d]\w*/
    NUMBER: /(\d+(\.\d*)?|\.\d+)/
    STRING: /"(\\.|[^"\\])*"/
    SUM_OP: "+" | "-"
    MUL_OP: "*" | "/"
    LPAR: "("
    RPAR: ")"
    LBRACKET: "["
    RBRACKET: "]"
    NAMESPACE: "::"
    DOT: "."

    %import common.WS
    %ignore WS
"""

_ESCAPE_RE = re.compile(r'\\(.)', flags=re.S)


def _start(item: Union[Token, ExpressionNode]) -> int:
    if isinstance(item, Token):
        return item.start_pos
    return item.span.start


def _end(item: Union[Token, ExpressionNode]) -> int:
    if isinstance(item, Token):
        return item.end_pos
    return item.span.end


def _cover(first, last) -> Span:
    return Span(_start(first), _end(last))


def unescape_string(literal: str) -> str:
    """Value of a quoted string literal, quotes removed and escapes resolved."""
    return _ESCAPE_RE.sub(r'\1', literal[1:-1])


class ExpressionTreeBuilder(Transformer):
    """Build expression nodes from the lark parse tree."""

    def number(self, children):
        (token,) = children
        return NumberNode(_cover(token, token), str(token))

    def text(self, children):
        (token,) = children
        return TextNode(_cover(token, token), unescape_string(str(token)))

    def identifier(self, children):
        (token,) = children
        return IdentifierNode(_cover(token, token), str(token))

    def operator(self, children):
        left, op, right = children
        return OperatorNode(_cover(left, right), str(op), left, right)

    def unary_operator(self, children):
        op, factor = children
        return UnaryOperatorNode(_cover(op, factor), str(op), factor)

    def sub_expression(self, children):
        lpar, expression, rpar = children
        return SubExpressionNode(_cover(lpar, rpar), expression)

    def arguments(self, children):
        return list(children)

    def free_call(self, children):
        name, _lpar, arguments, rpar = children
        return FunctionCallNode(_cover(name, rpar), str(name), arguments)

    def namespaced_call(self, children):
        extension, ns, name, _lpar, arguments, rpar = children
        return FunctionCallNode(
            _cover(extension, rpar), f"{extension}{ns}{name}", arguments
        )

    def object_call(self, children):
        obj, _dot, name, _lpar, arguments, rpar = children
        return FunctionCallNode(
            _cover(obj, rpar), str(name), arguments, object_name=str(obj)
        )

    def behavior_call(self, children):
        obj, _dot, behavior, _ns, name, _lpar, arguments, rpar = children
        return FunctionCallNode(
            _cover(obj, rpar),
            str(name),
            arguments,
            object_name=str(obj),
            behavior_name=str(behavior),
        )

    def object_function_name(self, children):
        obj, _dot, behavior, _ns, name = children
        return ObjectFunctionNameNode(
            _cover(obj, name), str(obj), str(behavior), str(name)
        )

    def variable(self, children):
        name, accessor = children
        return VariableNode(_cover(name, accessor), str(name), accessor)

    def child_accessor(self, children):
        dot, name, *rest = children
        child = rest[0] if rest else None
        return VariableAccessorNode(_cover(dot, child or name), str(name), child)

    def bracket_accessor(self, children):
        lbracket, expression, rbracket, *rest = children
        child = rest[0] if rest else None
        return VariableBracketAccessorNode(
            _cover(lbracket, child or rbracket), expression, child
        )


expression_parser = Lark(
    expression_grammar,
    start='start',
    parser='lalr',
    transformer=ExpressionTreeBuilder(),
)


def parse_expression_or_raise(text: str) -> ExpressionNode:
    """Parse an expression, raising on malformed input.

    Blank text (including whitespace only) parses to an ``EmptyNode``.

    Raises:
        ExpressionSyntaxError: If the text is not a valid expression
    """
    if not text.strip():
        return EmptyNode(Span(0, len(text)))

    try:
        return expression_parser.parse(text)
    except UnexpectedInput as e:
        position = getattr(e, 'pos_in_stream', None)
        if position is not None and position < 0:
            position = len(text)
        raise ExpressionSyntaxError(
            f'Malformed expression: {text!r}', position=position
        ) from e
    except LarkError as e:
        raise ExpressionSyntaxError(f'Malformed expression: {text!r}') from e


def parse_expression(text: str) -> Optional[ExpressionNode]:
    """Parse an expression, or return None if it is malformed."""
    try:
        return parse_expression_or_raise(text)
    except ExpressionSyntaxError as e:
        log.debug("expression_parse_failed", expression=text, position=e.position)
        return None
