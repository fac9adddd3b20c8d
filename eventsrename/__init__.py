"""eventsrename - propagate renames through visual-scripting events.

When a project element (object, behavior, layer, scene...) is renamed, the
string literals naming it inside instruction parameters and expressions are
found with scope-aware rules and rewritten in place.
"""

__version__ = "0.3.0"

from eventsrename.request import NameChange, NameChangeRequest
from eventsrename.renamer import (
    LinkEventTargetRenamer,
    ProjectElementRenamer,
    rename_in_project,
    rename_link_targets,
)
from eventsrename.config import RenameSettings

__all__ = [
    "__version__",
    "LinkEventTargetRenamer",
    "NameChange",
    "NameChangeRequest",
    "ProjectElementRenamer",
    "RenameSettings",
    "rename_in_project",
    "rename_link_targets",
]
