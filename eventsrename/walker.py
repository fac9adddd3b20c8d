"""Depth-first traversal of event trees.

Workers subclass ``ArbitraryEventsWorker`` and override the ``do_visit_*``
hooks. Every hook returns a bool: True tells the walker not to descend into
the children of the element just visited (sub-events of an event,
sub-instructions of an instruction). Returning False keeps the default,
full traversal.
"""

from typing import Optional, Union

import structlog

from eventsrename.project import (
    BaseEvent,
    Instruction,
    LinkEvent,
    ObjectsContainer,
    Project,
)

log = structlog.get_logger()


class ArbitraryEventsWorker:
    """Visit every event and every instruction of a list of events."""

    def launch(self, events: list[BaseEvent]):
        self._visit_event_list(events)

    def _visit_event_list(self, events: list[BaseEvent]):
        for event in events:
            self._visit_event(event)

    def _visit_event(self, event: BaseEvent):
        if isinstance(event, LinkEvent):
            skip_children = self.do_visit_link_event(event)
        else:
            skip_children = self.do_visit_event(event)
        if skip_children:
            return

        for conditions in event.get_conditions_lists():
            self._visit_instruction_list(conditions, is_condition=True)
        for actions in event.get_actions_lists():
            self._visit_instruction_list(actions, is_condition=False)

        sub_events = event.get_sub_events()
        if sub_events is not None:
            self._visit_event_list(sub_events)

    def _visit_instruction_list(self, instructions: list[Instruction], is_condition: bool):
        for instruction in instructions:
            if not self.do_visit_instruction(instruction, is_condition):
                self._visit_instruction_list(instruction.sub_instructions, is_condition)

    def do_visit_event(self, event: BaseEvent) -> bool:
        return False

    def do_visit_link_event(self, event: LinkEvent) -> bool:
        return False

    def do_visit_instruction(self, instruction: Instruction, is_condition: bool) -> bool:
        return False


class ArbitraryEventsWorkerWithContext(ArbitraryEventsWorker):
    """Worker that knows which objects the visited events can refer to."""

    def __init__(self):
        self._objects: Optional[ObjectsContainer] = None

    def launch(self, events: list[BaseEvent], objects: Optional[ObjectsContainer] = None):
        previous = self._objects
        self._objects = objects
        try:
            super().launch(events)
        finally:
            self._objects = previous

    @property
    def objects(self) -> ObjectsContainer:
        """Objects of the events being visited (empty outside of a launch)."""
        if self._objects is None:
            return ObjectsContainer()
        return self._objects


EventsWorker = Union[ArbitraryEventsWorker, ArbitraryEventsWorkerWithContext]


def _launch(worker: EventsWorker, events: list[BaseEvent], objects: ObjectsContainer):
    if isinstance(worker, ArbitraryEventsWorkerWithContext):
        worker.launch(events, objects)
    else:
        worker.launch(events)


def expose_project_events(project: Project, worker: EventsWorker):
    """Run a worker over every events list of a project.

    Layout events see the layout objects and the global objects. External
    events see the objects of their associated layout (the global objects
    when it has none). Extension functions only see the objects declared by
    their own parameters.
    """
    for layout in project.layouts:
        log.debug("visiting_layout", layout=layout.name)
        _launch(worker, layout.events, layout.objects)

    for external_events in project.external_events:
        layout = project.get_layout(external_events.associated_layout)
        objects = layout.objects if layout is not None else project.objects
        log.debug(
            "visiting_external_events",
            name=external_events.name,
            associated_layout=external_events.associated_layout,
        )
        _launch(worker, external_events.events, objects)

    for extension in project.extensions:
        for function in extension.events_functions:
            log.debug(
                "visiting_events_function",
                extension=extension.name,
                function=function.name,
            )
            _launch(worker, function.events, function.make_objects_container())
