"""Locate string-literal references to a renamed element inside expressions.

A reference is a string literal, exactly ``"<old name>"``, passed as an
argument whose declared parameter type is the type of the renamed element.
For instance, with behaviors renamed (type ``behavior``)::

    Player.IsBehaviorActivated("Platformer") + Count("Platformer")
                               ^^^^^^^^^^^^

only the first literal is a reference if ``IsBehaviorActivated`` declares a behavior
parameter and ``Count`` does not.
"""

from typing import Optional, Union

import structlog

from eventsrename.expression.nodes import (
    ExpressionNode,
    FunctionCallNode,
    OperatorNode,
    Span,
    SubExpressionNode,
    UnaryOperatorNode,
    VariableAccessorNode,
    VariableBracketAccessorNode,
    VariableNode,
)
from eventsrename.metadata import ExpressionMetadata, MetadataProvider
from eventsrename.project import ObjectsContainer
from eventsrename.request import NameChangeRequest

log = structlog.get_logger()


class ExpressionIdentifierStringFinder:
    """Collect the spans of references found while walking an expression tree.

    Occurrences are collected in pre-order, left to right, so they come out
    sorted by start offset and never overlap.
    """

    def __init__(
        self,
        metadata: MetadataProvider,
        objects: ObjectsContainer,
        expression_text: str,
        request: NameChangeRequest,
    ):
        self.metadata = metadata
        self.objects = objects
        self.expression_text = expression_text
        self.request = request
        self.occurrences: list[Span] = []

    def find(self, root: ExpressionNode) -> list[Span]:
        # Explicit stack: long operator chains are as deep as they are wide
        pending: list[Union[ExpressionNode, Span]] = [root]
        while pending:
            item = pending.pop()
            if isinstance(item, Span):
                self.occurrences.append(item)
            else:
                pending.extend(reversed(self.visit(item)))
        return list(self.occurrences)

    def visit(self, node: ExpressionNode) -> list[Union[ExpressionNode, Span]]:
        """Children of ``node`` to walk next, left to right.

        Spans in the result are references, collected when reached.
        """
        match node:
            case OperatorNode(left=left, right=right):
                return [left, right]
            case UnaryOperatorNode(factor=factor):
                return [factor]
            case SubExpressionNode(expression=expression):
                return [expression]
            case VariableNode(child=child) | VariableAccessorNode(child=child):
                return [child] if child is not None else []
            case VariableBracketAccessorNode(expression=expression, child=child):
                return [expression, child] if child is not None else [expression]
            case FunctionCallNode():
                return self.visit_function_call(node)
            case _:
                # Number, Text, Identifier, ObjectFunctionName and Empty:
                # a literal only counts through a call's argument slot.
                return []

    def visit_function_call(self, node: FunctionCallNode) -> list[Union[ExpressionNode, Span]]:
        resolved = self._get_function_metadata(node)
        if resolved is None:
            log.debug(
                "unknown_expression_function",
                object_name=node.object_name,
                behavior_name=node.behavior_name,
                function_name=node.function_name,
            )
            return []
        metadata, first_parameter_index = resolved

        scope = self.request.scope_object_name
        consider_function = not scope or node.object_name == scope

        children: list[Union[ExpressionNode, Span]] = []
        argument_index = 0
        for parameter in metadata.parameters[first_parameter_index:]:
            if argument_index >= len(node.parameters):
                break
            if parameter.code_only:
                continue
            argument = node.parameters[argument_index]
            argument_index += 1

            if parameter.type != self.request.parameter_type:
                continue

            argument_text = argument.span.slice(self.expression_text)
            if consider_function and argument_text == self.request.quoted_old_name:
                children.append(argument.span)
            else:
                children.append(argument)
        return children

    def _get_function_metadata(
        self, node: FunctionCallNode
    ) -> Optional[tuple[ExpressionMetadata, int]]:
        """Declaration of the called function and the index of its first
        declared parameter that has an argument in the call."""
        if node.is_behavior_function:
            behavior_type = self.objects.get_type_of_behavior(
                node.object_name, node.behavior_name
            )
            metadata = self.metadata.get_behavior_expression_metadata(
                behavior_type, node.function_name
            )
            return (metadata, 2) if metadata is not None else None

        if node.is_object_function:
            object_type = self.objects.get_type_of_object(node.object_name)
            metadata = self.metadata.get_object_expression_metadata(
                object_type, node.function_name
            )
            return (metadata, 1) if metadata is not None else None

        metadata = self.metadata.get_expression_metadata(node.function_name)
        return (metadata, 0) if metadata is not None else None


def find_occurrences(
    root: ExpressionNode,
    expression_text: str,
    request: NameChangeRequest,
    metadata: MetadataProvider,
    objects: Optional[ObjectsContainer] = None,
) -> list[Span]:
    """Spans of ``expression_text`` referencing ``request.old_name``.

    Args:
        root: Tree parsed from ``expression_text``
        expression_text: Text the spans of ``root`` refer to
        request: The rename being applied
        metadata: Declarations of the functions used in the expression
        objects: Objects the expression can refer to (for object and
            behavior function lookups)

    Returns:
        Sorted, non-overlapping spans, each covering a whole string literal
    """
    finder = ExpressionIdentifierStringFinder(
        metadata,
        objects if objects is not None else ObjectsContainer(),
        expression_text,
        request,
    )
    return finder.find(root)
