"""In-memory model of a visual-scripting project.

Covers what the rename workers need: instructions and their parameter
expressions, the event tree, objects (with behaviors and groups) and the
containers holding events (layouts, external events, extension functions).

Everything is loaded from and dumped back to the JSON project format. Keys
this module does not model are kept in ``extra`` and written back untouched.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import ClassVar, Iterable, Optional, Union

import structlog
from pydantic import ValidationError

from eventsrename.errors import ProjectFormatError
from eventsrename.expression import Expression
from eventsrename.metadata import (
    ExpressionMetadata,
    ExtensionMetadata,
    InstructionMetadata,
    ParameterMetadata,
    is_behavior_type,
    is_object_type,
)

log = structlog.get_logger()


def _require(data: dict, key: str, where: str):
    if not isinstance(data, dict):
        raise ProjectFormatError(f"{where}: expected an object, got {type(data).__name__}")
    if key not in data:
        raise ProjectFormatError(f"{where}: missing '{key}'")
    return data[key]


# --------------------------------------------------------------------------- #
#   Instructions                                                              #
# --------------------------------------------------------------------------- #

@dataclass
class Instruction:
    """A condition or an action.

    ``parameters`` holds one ``Expression`` per value, in declaration order.
    """

    type: str
    parameters: list[Expression] = field(default_factory=list)
    sub_instructions: list["Instruction"] = field(default_factory=list)
    inverted: bool = False
    extra: dict = field(default_factory=dict, repr=False, compare=False)

    def get_parameter(self, index: int) -> Expression:
        """Parameter value, or an empty expression if there is none."""
        if 0 <= index < len(self.parameters):
            return self.parameters[index]
        return Expression("")

    def set_parameter(self, index: int, value: Expression):
        if index < 0:
            raise IndexError(index)
        while len(self.parameters) <= index:
            self.parameters.append(Expression(""))
        self.parameters[index] = value

    @classmethod
    def from_dict(cls, data: dict) -> "Instruction":
        type_info = _require(data, "type", "instruction")
        if isinstance(type_info, dict):
            instruction_type = type_info.get("value", "")
            inverted = bool(type_info.get("inverted", False))
        else:
            instruction_type, inverted = str(type_info), False

        return cls(
            type=instruction_type,
            parameters=[Expression(str(p)) for p in data.get("parameters", [])],
            sub_instructions=instructions_from_list(data.get("subInstructions", [])),
            inverted=inverted,
            extra=dict(data),
        )

    def to_dict(self) -> dict:
        data = dict(self.extra)
        type_info = dict(data.get("type")) if isinstance(data.get("type"), dict) else {}
        type_info["value"] = self.type
        if self.inverted or "inverted" in type_info:
            type_info["inverted"] = self.inverted
        data["type"] = type_info
        data["parameters"] = [p.plain_string for p in self.parameters]
        if self.sub_instructions or "subInstructions" in data:
            data["subInstructions"] = instructions_to_list(self.sub_instructions)
        return data


def instructions_from_list(items: Iterable[dict]) -> list[Instruction]:
    return [Instruction.from_dict(item) for item in items]


def instructions_to_list(instructions: Iterable[Instruction]) -> list[dict]:
    return [instruction.to_dict() for instruction in instructions]


# --------------------------------------------------------------------------- #
#   Events                                                                    #
# --------------------------------------------------------------------------- #

@dataclass(kw_only=True)
class BaseEvent:
    """Common part of every event type."""

    TYPE: ClassVar[str] = ""

    disabled: bool = False
    extra: dict = field(default_factory=dict, repr=False, compare=False)

    def get_sub_events(self) -> Optional[list["BaseEvent"]]:
        """Sub-events, or None for events that cannot have any."""
        return None

    def get_conditions_lists(self) -> list[list[Instruction]]:
        return []

    def get_actions_lists(self) -> list[list[Instruction]]:
        return []

    @classmethod
    def from_dict(cls, data: dict) -> "BaseEvent":
        return cls(disabled=bool(data.get("disabled", False)), extra=dict(data))

    def to_dict(self) -> dict:
        data = dict(self.extra)
        data["type"] = self.TYPE or data.get("type", "")
        if self.disabled or "disabled" in data:
            data["disabled"] = self.disabled
        return data


@dataclass(kw_only=True)
class UnknownEvent(BaseEvent):
    """Event of a type this module does not model. Written back as loaded."""

    def to_dict(self) -> dict:
        return dict(self.extra)


@dataclass(kw_only=True)
class CommentEvent(BaseEvent):
    TYPE: ClassVar[str] = "BuiltinCommonInstructions::Comment"

    comment: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "CommentEvent":
        return cls(
            comment=data.get("comment", ""),
            disabled=bool(data.get("disabled", False)),
            extra=dict(data),
        )

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["comment"] = self.comment
        return data


@dataclass(kw_only=True)
class LinkEvent(BaseEvent):
    """Includes the events of another layout or external events sheet."""

    TYPE: ClassVar[str] = "BuiltinCommonInstructions::Link"

    target: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "LinkEvent":
        return cls(
            target=data.get("target", ""),
            disabled=bool(data.get("disabled", False)),
            extra=dict(data),
        )

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["target"] = self.target
        return data


@dataclass(kw_only=True)
class GroupEvent(BaseEvent):
    TYPE: ClassVar[str] = "BuiltinCommonInstructions::Group"

    name: str = ""
    events: list[BaseEvent] = field(default_factory=list)

    def get_sub_events(self) -> list[BaseEvent]:
        return self.events

    @classmethod
    def from_dict(cls, data: dict) -> "GroupEvent":
        return cls(
            name=data.get("name", ""),
            events=events_from_list(data.get("events", [])),
            disabled=bool(data.get("disabled", False)),
            extra=dict(data),
        )

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["name"] = self.name
        data["events"] = events_to_list(self.events)
        return data


@dataclass(kw_only=True)
class StandardEvent(BaseEvent):
    """Conditions, actions and sub-events."""

    TYPE: ClassVar[str] = "BuiltinCommonInstructions::Standard"

    conditions: list[Instruction] = field(default_factory=list)
    actions: list[Instruction] = field(default_factory=list)
    events: list[BaseEvent] = field(default_factory=list)

    def get_sub_events(self) -> list[BaseEvent]:
        return self.events

    def get_conditions_lists(self) -> list[list[Instruction]]:
        return [self.conditions]

    def get_actions_lists(self) -> list[list[Instruction]]:
        return [self.actions]

    @classmethod
    def _common_fields(cls, data: dict) -> dict:
        return dict(
            conditions=instructions_from_list(data.get("conditions", [])),
            actions=instructions_from_list(data.get("actions", [])),
            events=events_from_list(data.get("events", [])),
            disabled=bool(data.get("disabled", False)),
            extra=dict(data),
        )

    @classmethod
    def from_dict(cls, data: dict) -> "StandardEvent":
        return cls(**cls._common_fields(data))

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["conditions"] = instructions_to_list(self.conditions)
        data["actions"] = instructions_to_list(self.actions)
        data["events"] = events_to_list(self.events)
        return data


@dataclass(kw_only=True)
class ElseEvent(StandardEvent):
    """Runs when the previous event's conditions were false."""

    TYPE: ClassVar[str] = "BuiltinCommonInstructions::Else"


@dataclass(kw_only=True)
class ForEachEvent(StandardEvent):
    """Repeats its conditions and actions for each instance of an object."""

    TYPE: ClassVar[str] = "BuiltinCommonInstructions::ForEach"

    object: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "ForEachEvent":
        return cls(object=data.get("object", ""), **cls._common_fields(data))

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["object"] = self.object
        return data


@dataclass(kw_only=True)
class WhileEvent(StandardEvent):
    TYPE: ClassVar[str] = "BuiltinCommonInstructions::While"

    while_conditions: list[Instruction] = field(default_factory=list)

    def get_conditions_lists(self) -> list[list[Instruction]]:
        return [self.while_conditions, self.conditions]

    @classmethod
    def from_dict(cls, data: dict) -> "WhileEvent":
        return cls(
            while_conditions=instructions_from_list(data.get("whileConditions", [])),
            **cls._common_fields(data),
        )

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["whileConditions"] = instructions_to_list(self.while_conditions)
        return data


@dataclass(kw_only=True)
class RepeatEvent(StandardEvent):
    TYPE: ClassVar[str] = "BuiltinCommonInstructions::Repeat"

    repeat_expression: Expression = field(default_factory=Expression)

    @classmethod
    def from_dict(cls, data: dict) -> "RepeatEvent":
        return cls(
            repeat_expression=Expression(str(data.get("repeatExpression", ""))),
            **cls._common_fields(data),
        )

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["repeatExpression"] = self.repeat_expression.plain_string
        return data


EVENT_TYPES: dict[str, type[BaseEvent]] = {
    event_class.TYPE: event_class
    for event_class in (
        StandardEvent,
        ElseEvent,
        ForEachEvent,
        WhileEvent,
        RepeatEvent,
        GroupEvent,
        CommentEvent,
        LinkEvent,
    )
}


def event_from_dict(data: dict) -> BaseEvent:
    event_type = _require(data, "type", "event")
    event_class = EVENT_TYPES.get(event_type)
    if event_class is None:
        log.debug("unknown_event_type", event_type=event_type)
        return UnknownEvent.from_dict(data)
    return event_class.from_dict(data)


def events_from_list(items: Iterable[dict]) -> list[BaseEvent]:
    return [event_from_dict(item) for item in items]


def events_to_list(events: Iterable[BaseEvent]) -> list[dict]:
    return [event.to_dict() for event in events]


# --------------------------------------------------------------------------- #
#   Objects                                                                   #
# --------------------------------------------------------------------------- #

@dataclass
class ProjectObject:
    """An object declared in a layout or globally.

    ``behaviors`` maps each behavior name to its behavior type.
    """

    name: str
    type: str = ""
    behaviors: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> "ProjectObject":
        return cls(
            name=_require(data, "name", "object"),
            type=data.get("type", ""),
            behaviors={
                behavior["name"]: behavior.get("type", "")
                for behavior in data.get("behaviors", [])
            },
        )


@dataclass
class ObjectGroup:
    name: str
    objects: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "ObjectGroup":
        return cls(
            name=_require(data, "name", "object group"),
            objects=[
                item["name"] if isinstance(item, dict) else str(item)
                for item in data.get("objects", [])
            ],
        )


class ObjectsContainer:
    """Objects and groups visible from some events.

    A container can have a parent (the project's global objects): names not
    found locally are resolved there.
    """

    def __init__(
        self,
        objects: Iterable[ProjectObject] = (),
        groups: Iterable[ObjectGroup] = (),
        parent: Optional["ObjectsContainer"] = None,
    ):
        self.objects: dict[str, ProjectObject] = {obj.name: obj for obj in objects}
        self.groups: dict[str, ObjectGroup] = {group.name: group for group in groups}
        self.parent = parent

    def get_object(self, name: str) -> Optional[ProjectObject]:
        if name in self.objects:
            return self.objects[name]
        if self.parent is not None:
            return self.parent.get_object(name)
        return None

    def get_group(self, name: str) -> Optional[ObjectGroup]:
        if name in self.groups:
            return self.groups[name]
        if self.parent is not None:
            return self.parent.get_group(name)
        return None

    def get_type_of_object(self, name: str) -> str:
        """Type of an object, or of a group whose objects all share one type.

        Returns "" when the name is unknown or the group is mixed or empty.
        """
        obj = self.get_object(name)
        if obj is not None:
            return obj.type

        group = self.get_group(name)
        if group is None:
            return ""
        types = {
            member.type
            for member in (self.get_object(n) for n in group.objects)
            if member is not None
        }
        return types.pop() if len(types) == 1 else ""

    def get_type_of_behavior(self, object_name: str, behavior_name: str) -> str:
        """Type of a behavior attached to an object (or to all of a group)."""
        obj = self.get_object(object_name)
        if obj is not None:
            return obj.behaviors.get(behavior_name, "")

        group = self.get_group(object_name)
        if group is None or not group.objects:
            return ""
        types = set()
        for member_name in group.objects:
            member = self.get_object(member_name)
            if member is None or behavior_name not in member.behaviors:
                return ""
            types.add(member.behaviors[behavior_name])
        return types.pop() if len(types) == 1 else ""

    @classmethod
    def from_dict(
        cls, data: dict, parent: Optional["ObjectsContainer"] = None
    ) -> "ObjectsContainer":
        return cls(
            objects=[ProjectObject.from_dict(o) for o in data.get("objects", [])],
            groups=[ObjectGroup.from_dict(g) for g in data.get("objectsGroups", [])],
            parent=parent,
        )


# --------------------------------------------------------------------------- #
#   Event containers                                                          #
# --------------------------------------------------------------------------- #

@dataclass
class Layout:
    name: str
    objects: ObjectsContainer
    events: list[BaseEvent] = field(default_factory=list)
    extra: dict = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, data: dict, global_objects: ObjectsContainer) -> "Layout":
        return cls(
            name=_require(data, "name", "layout"),
            objects=ObjectsContainer.from_dict(data, parent=global_objects),
            events=events_from_list(data.get("events", [])),
            extra=dict(data),
        )

    def to_dict(self) -> dict:
        data = dict(self.extra)
        data["name"] = self.name
        data["events"] = events_to_list(self.events)
        return data


@dataclass
class ExternalEvents:
    """Events sheet that layouts include through link events."""

    name: str
    associated_layout: str = ""
    events: list[BaseEvent] = field(default_factory=list)
    extra: dict = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, data: dict) -> "ExternalEvents":
        return cls(
            name=_require(data, "name", "external events"),
            associated_layout=data.get("associatedLayout", ""),
            events=events_from_list(data.get("events", [])),
            extra=dict(data),
        )

    def to_dict(self) -> dict:
        data = dict(self.extra)
        data["name"] = self.name
        data["associatedLayout"] = self.associated_layout
        data["events"] = events_to_list(self.events)
        return data


# Functions of an extension are used as "<Extension>::<Function>"
FUNCTION_TYPE_ACTION = "Action"
FUNCTION_TYPE_CONDITION = "Condition"
FUNCTION_TYPE_EXPRESSIONS = {"Expression", "StringExpression", "ExpressionAndCondition"}


@dataclass
class EventsFunction:
    """A function written with events inside an extension."""

    name: str
    function_type: str = FUNCTION_TYPE_ACTION
    parameters: list[ParameterMetadata] = field(default_factory=list)
    events: list[BaseEvent] = field(default_factory=list)
    extra: dict = field(default_factory=dict, repr=False)

    def make_objects_container(
        self, parent: Optional[ObjectsContainer] = None
    ) -> ObjectsContainer:
        """Objects declared by the function's object parameters.

        A behavior parameter adds a behavior to the object parameter before it.
        """
        objects = []
        for parameter in self.parameters:
            if not parameter.name:
                continue
            if is_object_type(parameter.type):
                objects.append(
                    ProjectObject(name=parameter.name, type=parameter.extra_info)
                )
            elif is_behavior_type(parameter.type) and objects:
                objects[-1].behaviors[parameter.name] = parameter.extra_info
        return ObjectsContainer(objects=objects, parent=parent)

    @classmethod
    def from_dict(cls, data: dict) -> "EventsFunction":
        try:
            parameters = [
                ParameterMetadata.model_validate(p) for p in data.get("parameters", [])
            ]
        except ValidationError as e:
            raise ProjectFormatError(
                f"Invalid parameters for function {data.get('name', '?')}: {e}"
            ) from e
        return cls(
            name=_require(data, "name", "events function"),
            function_type=data.get("functionType", FUNCTION_TYPE_ACTION),
            parameters=parameters,
            events=events_from_list(data.get("events", [])),
            extra=dict(data),
        )

    def to_dict(self) -> dict:
        data = dict(self.extra)
        data["name"] = self.name
        data["events"] = events_to_list(self.events)
        return data


@dataclass
class EventsFunctionsExtension:
    name: str
    events_functions: list[EventsFunction] = field(default_factory=list)
    extra: dict = field(default_factory=dict, repr=False)

    def to_metadata(self) -> ExtensionMetadata:
        """Declarations of the extension's functions, as seen by callers.

        Instructions get a leading code-only scene parameter before the
        declared ones, the way the engine calls them.
        """
        scene = ParameterMetadata(type="currentScene", code_only=True)
        actions, conditions, expressions = [], [], []
        for function in self.events_functions:
            qualified_name = f"{self.name}::{function.name}"
            if function.function_type in FUNCTION_TYPE_EXPRESSIONS:
                expressions.append(ExpressionMetadata(
                    name=qualified_name,
                    return_type=(
                        "string" if function.function_type == "StringExpression"
                        else "number"
                    ),
                    parameters=[scene] + function.parameters,
                ))
            if function.function_type == FUNCTION_TYPE_ACTION:
                actions.append(InstructionMetadata(
                    type=qualified_name, parameters=[scene] + function.parameters
                ))
            elif function.function_type in (FUNCTION_TYPE_CONDITION, "ExpressionAndCondition"):
                conditions.append(InstructionMetadata(
                    type=qualified_name, parameters=[scene] + function.parameters
                ))
        return ExtensionMetadata(
            name=self.name, actions=actions, conditions=conditions, expressions=expressions
        )

    @classmethod
    def from_dict(cls, data: dict) -> "EventsFunctionsExtension":
        return cls(
            name=_require(data, "name", "extension"),
            events_functions=[
                EventsFunction.from_dict(f) for f in data.get("eventsFunctions", [])
            ],
            extra=dict(data),
        )

    def to_dict(self) -> dict:
        data = dict(self.extra)
        data["name"] = self.name
        data["eventsFunctions"] = [f.to_dict() for f in self.events_functions]
        return data


# --------------------------------------------------------------------------- #
#   Project                                                                   #
# --------------------------------------------------------------------------- #

@dataclass
class Project:
    name: str = ""
    objects: ObjectsContainer = field(default_factory=ObjectsContainer)
    layouts: list[Layout] = field(default_factory=list)
    external_events: list[ExternalEvents] = field(default_factory=list)
    extensions: list[EventsFunctionsExtension] = field(default_factory=list)
    extra: dict = field(default_factory=dict, repr=False)

    def get_layout(self, name: str) -> Optional[Layout]:
        return next((layout for layout in self.layouts if layout.name == name), None)

    def extensions_metadata(self) -> list[ExtensionMetadata]:
        """Declarations of the functions defined by the project's extensions."""
        return [extension.to_metadata() for extension in self.extensions]

    @classmethod
    def from_dict(cls, data: dict) -> "Project":
        """Build a project from its JSON representation.

        Raises:
            ProjectFormatError: If required fields are missing or malformed
        """
        if not isinstance(data, dict):
            raise ProjectFormatError(
                "Project: expected a JSON object at top level",
                suggestion="Pass the project's .json file, not a folder or a fragment",
            )
        try:
            global_objects = ObjectsContainer.from_dict(data)
            return cls(
                name=data.get("properties", {}).get("name", ""),
                objects=global_objects,
                layouts=[
                    Layout.from_dict(layout, global_objects)
                    for layout in data.get("layouts", [])
                ],
                external_events=[
                    ExternalEvents.from_dict(e) for e in data.get("externalEvents", [])
                ],
                extensions=[
                    EventsFunctionsExtension.from_dict(e)
                    for e in data.get("eventsFunctionsExtensions", [])
                ],
                extra=dict(data),
            )
        except (KeyError, TypeError, AttributeError) as e:
            raise ProjectFormatError(f"Malformed project data: {e}") from e

    def to_dict(self) -> dict:
        data = dict(self.extra)
        if self.layouts or "layouts" in data:
            data["layouts"] = [layout.to_dict() for layout in self.layouts]
        if self.external_events or "externalEvents" in data:
            data["externalEvents"] = [e.to_dict() for e in self.external_events]
        if self.extensions or "eventsFunctionsExtensions" in data:
            data["eventsFunctionsExtensions"] = [e.to_dict() for e in self.extensions]
        return data

    @classmethod
    def load(cls, path: Union[str, Path]) -> "Project":
        """Read a project from a JSON file.

        Raises:
            ProjectFormatError: If the file is unreadable or malformed
        """
        path = Path(path)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except OSError as e:
            raise ProjectFormatError(f"Cannot read project file {path}: {e}") from e
        except json.JSONDecodeError as e:
            raise ProjectFormatError(f"Project file {path} is not valid JSON: {e}") from e

        project = cls.from_dict(data)
        log.info(
            "project_loaded",
            path=str(path),
            layouts=len(project.layouts),
            external_events=len(project.external_events),
            extensions=len(project.extensions),
        )
        return project

    def save(self, path: Union[str, Path], indent: Optional[int] = 2):
        path = Path(path)
        try:
            path.write_text(
                json.dumps(self.to_dict(), indent=indent, ensure_ascii=False) + "\n",
                encoding="utf-8",
            )
        except OSError as e:
            raise ProjectFormatError(f"Cannot write project file {path}: {e}") from e
        log.info("project_saved", path=str(path))
