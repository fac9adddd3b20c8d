"""Declarations of instructions and expressions.

The metadata provider answers two kinds of questions for the rename engine:

- which parameters (and of which type) an action or condition takes,
- which parameters a function used inside an expression takes, looked up
  globally, for an object type or for a behavior type.

Declarations are grouped by extension and can be loaded from JSON files::

    {
      "name": "MyExtension",
      "actions": [{"type": "Create", "parameters": [{"type": "objectList"}]}],
      "conditions": [...],
      "expressions": [{"name": "ToString", "parameters": [{"type": "expression"}]}],
      "objects": {"Sprite": {"expressions": [...]}},
      "behaviors": {"Platformer": {"expressions": [...]}}
    }

Lookups return None for unknown names. Callers treat that as "nothing to
do here" rather than as an error.
"""

import json
from pathlib import Path
from typing import Iterable, Optional, Union

import structlog
from pydantic import AliasChoices, BaseModel, Field, ValidationError, field_validator

from eventsrename.errors import MetadataError

log = structlog.get_logger()

OBJECT_PARAMETER_TYPES = {
    "object",
    "objectPtr",
    "objectList",
    "objectListOrEmptyIfJustDeclared",
    "objectListOrEmptyWithoutPicking",
}

BEHAVIOR_PARAMETER_TYPES = {"behavior"}

# Type "" is the base object: expressions every object type has
BASE_OBJECT_TYPE = ""


def is_object_type(parameter_type: str) -> bool:
    """Whether a parameter of this type holds an object name."""
    return parameter_type in OBJECT_PARAMETER_TYPES


def is_behavior_type(parameter_type: str) -> bool:
    return parameter_type in BEHAVIOR_PARAMETER_TYPES


class ParameterMetadata(BaseModel):
    """Declaration of one instruction or expression parameter."""

    type: str
    name: str = ""
    description: str = ""
    optional: bool = False
    default_value: str = Field(
        default="", validation_alias=AliasChoices("default_value", "defaultValue")
    )
    # Filled by the engine itself (e.g. the current scene), never written
    # by users and absent from expression arguments.
    code_only: bool = Field(
        default=False, validation_alias=AliasChoices("code_only", "codeOnly")
    )
    # Type-specific detail, e.g. the object type an object parameter accepts
    extra_info: str = Field(
        default="",
        validation_alias=AliasChoices("extra_info", "supplementaryInformation"),
    )

    @field_validator('type')
    @classmethod
    def type_not_empty(cls, v):
        if not v or not v.strip():
            raise ValueError('Parameter type cannot be empty')
        return v.strip()


class InstructionMetadata(BaseModel):
    """Declaration of an action or a condition."""

    type: str
    full_name: str = ""
    parameters: list[ParameterMetadata] = Field(default_factory=list)


class ExpressionMetadata(BaseModel):
    """Declaration of a function usable inside expressions.

    For object expressions the first declared parameter is the object the
    function is called on; for behavior expressions the first two are the
    object and the behavior. Those leading parameters have no argument in the
    call written in the expression.
    """

    name: str
    return_type: str = "number"
    parameters: list[ParameterMetadata] = Field(default_factory=list)


class ObjectTypeMetadata(BaseModel):
    expressions: list[ExpressionMetadata] = Field(default_factory=list)


class BehaviorTypeMetadata(BaseModel):
    expressions: list[ExpressionMetadata] = Field(default_factory=list)


class ExtensionMetadata(BaseModel):
    """All declarations contributed by one extension."""

    name: str
    actions: list[InstructionMetadata] = Field(default_factory=list)
    conditions: list[InstructionMetadata] = Field(default_factory=list)
    expressions: list[ExpressionMetadata] = Field(default_factory=list)
    objects: dict[str, ObjectTypeMetadata] = Field(default_factory=dict)
    behaviors: dict[str, BehaviorTypeMetadata] = Field(default_factory=dict)


class MetadataProvider:
    """Read-only lookup service over registered extensions."""

    def __init__(self, extensions: Iterable[ExtensionMetadata] = ()):
        self._actions: dict[str, InstructionMetadata] = {}
        self._conditions: dict[str, InstructionMetadata] = {}
        self._expressions: dict[str, ExpressionMetadata] = {}
        self._object_expressions: dict[str, dict[str, ExpressionMetadata]] = {}
        self._behavior_expressions: dict[str, dict[str, ExpressionMetadata]] = {}
        self.extension_names: list[str] = []

        for extension in extensions:
            self.add_extension(extension)

    def add_extension(self, extension: ExtensionMetadata):
        """Register the declarations of an extension.

        Later registrations override earlier ones with the same name.
        """
        for action in extension.actions:
            self._actions[action.type] = action
        for condition in extension.conditions:
            self._conditions[condition.type] = condition
        for expression in extension.expressions:
            self._expressions[expression.name] = expression
        for object_type, declarations in extension.objects.items():
            table = self._object_expressions.setdefault(object_type, {})
            for expression in declarations.expressions:
                table[expression.name] = expression
        for behavior_type, declarations in extension.behaviors.items():
            table = self._behavior_expressions.setdefault(behavior_type, {})
            for expression in declarations.expressions:
                table[expression.name] = expression

        self.extension_names.append(extension.name)
        log.debug(
            "extension_registered",
            extension=extension.name,
            actions=len(extension.actions),
            conditions=len(extension.conditions),
            expressions=len(extension.expressions),
        )

    def add_extension_dict(self, data: dict):
        """Validate and register an extension given as a plain dict.

        Raises:
            MetadataError: If the declarations are invalid
        """
        try:
            extension = ExtensionMetadata.model_validate(data)
        except ValidationError as e:
            name = data.get("name", "?") if isinstance(data, dict) else "?"
            raise MetadataError(f"Invalid metadata for extension {name}: {e}") from e
        self.add_extension(extension)

    def load_file(self, path: Union[str, Path]):
        """Register the extension(s) declared in a JSON file.

        The file holds either one extension object or a list of them.

        Raises:
            MetadataError: If the file cannot be read or is invalid
        """
        path = Path(path)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except OSError as e:
            raise MetadataError(
                f"Cannot read metadata file {path}: {e}",
                suggestion="Check the path given with --metadata",
            ) from e
        except json.JSONDecodeError as e:
            raise MetadataError(f"Metadata file {path} is not valid JSON: {e}") from e

        for item in data if isinstance(data, list) else [data]:
            self.add_extension_dict(item)
        log.info("metadata_loaded", path=str(path))

    @classmethod
    def from_files(cls, paths: Iterable[Union[str, Path]]) -> "MetadataProvider":
        provider = cls()
        for path in paths:
            provider.load_file(path)
        return provider

    def get_action_metadata(self, instruction_type: str) -> Optional[InstructionMetadata]:
        return self._actions.get(instruction_type)

    def get_condition_metadata(self, instruction_type: str) -> Optional[InstructionMetadata]:
        return self._conditions.get(instruction_type)

    def get_parameters(
        self, instruction_type: str, is_condition: bool
    ) -> list[ParameterMetadata]:
        """Declared parameters of an instruction, empty if it is unknown."""
        metadata = (
            self.get_condition_metadata(instruction_type)
            if is_condition
            else self.get_action_metadata(instruction_type)
        )
        return metadata.parameters if metadata else []

    def get_expression_metadata(self, name: str) -> Optional[ExpressionMetadata]:
        """Free (not object bound) function used in expressions."""
        return self._expressions.get(name)

    def get_object_expression_metadata(
        self, object_type: str, name: str
    ) -> Optional[ExpressionMetadata]:
        """Function of an object type, falling back to the base object."""
        for candidate in (object_type, BASE_OBJECT_TYPE):
            metadata = self._object_expressions.get(candidate, {}).get(name)
            if metadata is not None:
                return metadata
        return None

    def get_behavior_expression_metadata(
        self, behavior_type: str, name: str
    ) -> Optional[ExpressionMetadata]:
        return self._behavior_expressions.get(behavior_type, {}).get(name)
