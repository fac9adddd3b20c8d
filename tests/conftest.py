"""Shared test fixtures."""

import json

import pytest

from eventsrename.expression import Expression
from eventsrename.metadata import MetadataProvider
from eventsrename.project import (
    Instruction,
    ObjectGroup,
    ObjectsContainer,
    ProjectObject,
)


def p(type_, **kwargs):
    """Parameter declaration shorthand."""
    return {"type": type_, **kwargs}


EXTENSION = {
    "name": "BuiltinTest",
    "actions": [
        {
            "type": "Create",
            "parameters": [
                p("objectsContext", code_only=True),
                p("objectListOrEmptyIfJustDeclared"),
                p("expression"),
                p("expression"),
                p("layer"),
            ],
        },
        {"type": "ChangeLayer", "parameters": [p("objectList"), p("layer")]},
        {
            "type": "SetAnimationName",
            "parameters": [p("objectList"), p("objectAnimationName")],
        },
        {
            "type": "ActivateBehavior",
            "parameters": [p("objectList"), p("behavior"), p("yesorno")],
        },
        {
            "type": "SetVariableString",
            "parameters": [p("scenevar"), p("string")],
        },
        {
            "type": "ModVarObjet",
            "parameters": [
                p("objectList"),
                p("objectvar"),
                p("operator"),
                p("expression"),
            ],
        },
        {"type": "SetText", "parameters": [p("objectList"), p("string")]},
        {"type": "Wait", "parameters": [p("expression")]},
    ],
    "conditions": [
        {
            "type": "LayerVisible",
            "parameters": [p("currentScene", code_only=True), p("layer")],
        },
        {
            "type": "VarObjet",
            "parameters": [
                p("objectList"),
                p("objectvar"),
                p("relationalOperator"),
                p("expression"),
            ],
        },
        {"type": "Or", "parameters": []},
    ],
    "expressions": [
        {"name": "ToString", "return_type": "string", "parameters": [p("expression")]},
        {"name": "StrLength", "parameters": [p("string")]},
        {"name": "Concatenate", "return_type": "string",
         "parameters": [p("string"), p("string")]},
        {"name": "VariableString", "return_type": "string",
         "parameters": [p("scenevar")]},
        {"name": "VariableValue", "parameters": [p("scenevar")]},
        {"name": "LayerTimeScale", "parameters": [p("layer")]},
        {"name": "CameraX", "parameters": [p("layer"), p("expression")]},
        {"name": "CameraY", "parameters": [p("currentScene", code_only=True),
                                           p("layer"), p("expression")]},
        {"name": "IsObjectActive", "parameters": [p("string"), p("objectName")]},
        {"name": "Pick", "parameters": [p("layer"), p("layer")]},
    ],
    "objects": {
        "": {
            "expressions": [
                {"name": "Variable", "parameters": [p("object"), p("objectvar")]},
                {"name": "IsActive", "parameters": [p("object"), p("objectName")]},
                {"name": "BehaviorEnabled", "parameters": [p("object"), p("behavior")]},
                {"name": "DistanceOnLayer",
                 "parameters": [p("object"), p("currentScene", code_only=True),
                                p("layer")]},
            ]
        },
        "Sprite": {
            "expressions": [
                {"name": "AnimationFrameCount",
                 "parameters": [p("object"), p("objectAnimationName")]},
            ]
        },
    },
    "behaviors": {
        "Timer": {
            "expressions": [
                {"name": "Elapsed",
                 "parameters": [p("object"), p("behavior"), p("identifier")]},
            ]
        },
    },
}


@pytest.fixture
def extension_data():
    """Metadata declarations as loaded from JSON."""
    return json.loads(json.dumps(EXTENSION))


@pytest.fixture
def metadata(extension_data):
    """Metadata provider with a small set of built-in declarations."""
    provider = MetadataProvider()
    provider.add_extension_dict(extension_data)
    return provider


@pytest.fixture
def global_objects():
    return ObjectsContainer(
        objects=[ProjectObject(name="Hud", type="Text")],
    )


@pytest.fixture
def objects(global_objects):
    """Layout objects: sprites, a text object and two groups."""
    return ObjectsContainer(
        objects=[
            ProjectObject(name="Player", type="Sprite", behaviors={"Clock": "Timer"}),
            ProjectObject(name="Enemy", type="Sprite", behaviors={"Clock": "Timer"}),
            ProjectObject(name="Score", type="Text"),
        ],
        groups=[
            ObjectGroup(name="Characters", objects=["Player", "Enemy"]),
            ObjectGroup(name="Everything", objects=["Player", "Score"]),
        ],
        parent=global_objects,
    )


def make_instruction(type_, *values):
    return Instruction(type=type_, parameters=[Expression(v) for v in values])


@pytest.fixture
def instruction_factory():
    """Build an instruction from its type and raw parameter strings."""
    return make_instruction


@pytest.fixture
def project_data():
    """A small project in the JSON project format."""
    return {
        "firstLayout": "Level1",
        "properties": {"name": "Test game", "version": "1.0.0"},
        "objects": [{"name": "Hud", "type": "Text", "behaviors": []}],
        "objectsGroups": [],
        "layouts": [
            {
                "name": "Level1",
                "mangledName": "Level1",
                "objects": [
                    {
                        "name": "Player",
                        "type": "Sprite",
                        "behaviors": [{"name": "Clock", "type": "Timer"}],
                    },
                    {"name": "Enemy", "type": "Sprite", "behaviors": []},
                ],
                "objectsGroups": [
                    {"name": "Characters", "objects": [{"name": "Player"}, {"name": "Enemy"}]}
                ],
                "events": [
                    {
                        "type": "BuiltinCommonInstructions::Standard",
                        "conditions": [
                            {
                                "type": {"value": "LayerVisible", "inverted": False},
                                "parameters": ["", "\"Background\""],
                            }
                        ],
                        "actions": [
                            {
                                "type": {"value": "Wait"},
                                "parameters": [
                                    "LayerTimeScale(\"Background\") * 2"
                                ],
                            }
                        ],
                        "events": [
                            {
                                "type": "BuiltinCommonInstructions::Comment",
                                "comment": "Background layer handling",
                                "color": {"r": 255},
                            },
                            {
                                "type": "BuiltinCommonInstructions::Link",
                                "target": "Common",
                                "include": {"includeConfig": 0},
                            },
                        ],
                    },
                    {
                        "type": "SomeExtension::CustomEvent",
                        "payload": {"anything": ["kept", "as", "is"]},
                    },
                ],
            }
        ],
        "externalEvents": [
            {
                "name": "Common",
                "associatedLayout": "Level1",
                "events": [
                    {
                        "type": "BuiltinCommonInstructions::Standard",
                        "conditions": [],
                        "actions": [
                            {
                                "type": {"value": "ChangeLayer"},
                                "parameters": ["Player", "\"Background\""],
                            }
                        ],
                        "events": [],
                    }
                ],
            }
        ],
        "eventsFunctionsExtensions": [
            {
                "name": "Fx",
                "eventsFunctions": [
                    {
                        "name": "MoveToLayer",
                        "functionType": "Action",
                        "parameters": [
                            {"type": "objectList", "name": "Target",
                             "supplementaryInformation": "Sprite"},
                            {"type": "layer", "name": "Layer"},
                        ],
                        "events": [
                            {
                                "type": "BuiltinCommonInstructions::Standard",
                                "conditions": [],
                                "actions": [
                                    {
                                        "type": {"value": "ChangeLayer"},
                                        "parameters": ["Target", "\"Background\""],
                                    }
                                ],
                                "events": [],
                            }
                        ],
                    }
                ],
            }
        ],
    }


@pytest.fixture
def project_file(tmp_path, project_data):
    path = tmp_path / "game.json"
    path.write_text(json.dumps(project_data, indent=2))
    return path


@pytest.fixture
def metadata_file(tmp_path, extension_data):
    path = tmp_path / "metadata.json"
    path.write_text(json.dumps(extension_data))
    return path
