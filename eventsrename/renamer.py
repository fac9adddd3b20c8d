"""Workers renaming references to project elements inside events.

``ProjectElementRenamer`` rewrites instruction parameters: a parameter that
is exactly the quoted old name is replaced whole, otherwise its expression is
searched for references (see ``eventsrename.finder``) which are spliced in
place. ``LinkEventTargetRenamer`` updates link events pointing to a renamed
events sheet.

Both mutate the visited instructions and events and report nothing back.
"""

import structlog

from eventsrename.expression import Expression, parse_expression
from eventsrename.finder import find_occurrences
from eventsrename.metadata import MetadataProvider, ParameterMetadata, is_object_type
from eventsrename.project import Instruction, LinkEvent, Project
from eventsrename.request import NameChangeRequest
from eventsrename.splicer import splice
from eventsrename.walker import (
    ArbitraryEventsWorker,
    ArbitraryEventsWorkerWithContext,
    expose_project_events,
)

log = structlog.get_logger()


class ProjectElementRenamer(ArbitraryEventsWorkerWithContext):
    """Replace string-literal references to a renamed element in instructions.

    Args:
        metadata: Declarations of instructions and expression functions
        request: The rename to apply
        search_all_parameters: Also search the expressions of parameters
            whose declared type or object scope does not match the request.
            Only the whole-parameter replacement stays restricted to matching
            parameters.
    """

    def __init__(
        self,
        metadata: MetadataProvider,
        request: NameChangeRequest,
        search_all_parameters: bool = False,
    ):
        super().__init__()
        self.metadata = metadata
        self.request = request
        self.search_all_parameters = search_all_parameters

    def do_visit_instruction(self, instruction: Instruction, is_condition: bool) -> bool:
        declared_parameters = self.metadata.get_parameters(instruction.type, is_condition)

        # By convention, parameters about an object (variables, behaviors...)
        # come after the object parameter they refer to.
        last_object_name = ""
        for index, (parameter, value) in enumerate(
            zip(declared_parameters, instruction.parameters)
        ):
            self._rename_in_parameter(
                instruction, index, parameter, value, last_object_name
            )
            if is_object_type(parameter.type):
                last_object_name = value.plain_string

        return False

    def _rename_in_parameter(
        self,
        instruction: Instruction,
        index: int,
        parameter: ParameterMetadata,
        value: Expression,
        last_object_name: str,
    ):
        request = self.request
        in_scope = (
            parameter.type == request.parameter_type
            and (not request.scope_object_name
                 or last_object_name == request.scope_object_name)
        )

        if in_scope and value.plain_string == request.quoted_old_name:
            instruction.set_parameter(index, Expression(request.quoted_new_name))
            log.debug(
                "parameter_renamed",
                instruction=instruction.type,
                index=index,
                old_value=value.plain_string,
                new_value=request.quoted_new_name,
            )
            return

        if not in_scope and not self.search_all_parameters:
            return

        root = parse_expression(value.plain_string)
        if root is None:
            return

        occurrences = find_occurrences(
            root, value.plain_string, request, self.metadata, self.objects
        )
        if not occurrences:
            return

        new_value = splice(value.plain_string, occurrences, request.quoted_new_name)
        instruction.set_parameter(index, Expression(new_value))
        log.debug(
            "parameter_renamed",
            instruction=instruction.type,
            index=index,
            occurrences=len(occurrences),
            old_value=value.plain_string,
            new_value=new_value,
        )


class LinkEventTargetRenamer(ArbitraryEventsWorker):
    """Point link events targeting ``old_name`` to ``new_name`` instead."""

    def __init__(self, old_name: str, new_name: str):
        self.old_name = old_name
        self.new_name = new_name

    def do_visit_link_event(self, event: LinkEvent) -> bool:
        if event.target == self.old_name:
            event.target = self.new_name
            log.debug("link_target_renamed", old_name=self.old_name, new_name=self.new_name)
        return False


def rename_in_project(
    project: Project,
    metadata: MetadataProvider,
    request: NameChangeRequest,
    search_all_parameters: bool = False,
):
    """Apply a rename to the instructions of every events list of a project."""
    log.info(
        "project_element_rename_started",
        parameter_type=request.parameter_type,
        old_name=request.old_name,
        new_name=request.new_name,
        scope_object_name=request.scope_object_name or None,
    )
    renamer = ProjectElementRenamer(metadata, request, search_all_parameters)
    expose_project_events(project, renamer)


def rename_link_targets(project: Project, old_name: str, new_name: str):
    """Update every link event of a project targeting ``old_name``."""
    log.info("link_target_rename_started", old_name=old_name, new_name=new_name)
    expose_project_events(project, LinkEventTargetRenamer(old_name, new_name))
