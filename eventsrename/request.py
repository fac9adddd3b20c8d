"""Description of one rename operation."""

from pydantic import BaseModel, ConfigDict, field_validator, model_validator


class NameChange(BaseModel):
    """A name changed from ``old_name`` to ``new_name``.

    On its own it describes an events sheet rename, as applied to link
    event targets.
    """

    model_config = ConfigDict(frozen=True)

    old_name: str
    new_name: str

    @field_validator('old_name', 'new_name')
    @classmethod
    def not_empty(cls, v, info):
        if not v:
            raise ValueError(f'{info.field_name} cannot be empty')
        return v

    @model_validator(mode='after')
    def names_differ(self):
        if self.old_name == self.new_name:
            raise ValueError('old_name and new_name are the same')
        return self


class NameChangeRequest(NameChange):
    """A project element renamed from ``old_name`` to ``new_name``.

    Only string literals passed to parameters declared with
    ``parameter_type`` are considered references to the element. When
    ``scope_object_name`` is set, only references made through that object
    (calls on it, or parameters following it in an instruction) are renamed.
    """

    parameter_type: str
    scope_object_name: str = ""

    @field_validator('parameter_type')
    @classmethod
    def type_not_empty(cls, v):
        if not v:
            raise ValueError('parameter_type cannot be empty')
        return v

    @property
    def quoted_old_name(self) -> str:
        return f'"{self.old_name}"'

    @property
    def quoted_new_name(self) -> str:
        return f'"{self.new_name}"'
