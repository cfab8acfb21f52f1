"""Field descriptors for the host's user-collection schema.

Host configuration describes fields as loosely-typed dicts
(``name``, ``type``, optional ``fields``, ``saveToJWT``). They are parsed
once into a tagged variant: ``LeafField`` for plain fields and
``GroupField`` for anything carrying subfields (groups, rows, tabs, arrays).
"""

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field

# Field kinds that only structure or decorate the admin form.
PRESENTATIONAL_TYPES = frozenset({"ui", "row", "tabs"})


class LeafField(BaseModel):
    kind: Literal["leaf"] = "leaf"
    name: str | None = None
    type: str = "text"
    persisted: bool = Field(default=False, description="Include in session claims")

    model_config = {"frozen": True}

    @property
    def affects_data(self) -> bool:
        """True if the field stores user data rather than structuring the form."""
        return isinstance(self.name, str) and self.type not in PRESENTATIONAL_TYPES


class GroupField(BaseModel):
    kind: Literal["group"] = "group"
    name: str | None = None
    type: str = "group"
    persisted: bool = Field(default=False, description="Include in session claims")
    children: tuple["FieldDescriptor", ...] = ()

    model_config = {"frozen": True}

    @property
    def affects_data(self) -> bool:
        return isinstance(self.name, str) and self.type not in PRESENTATIONAL_TYPES


FieldDescriptor = Annotated[Union[LeafField, GroupField], Field(discriminator="kind")]

GroupField.model_rebuild()


def parse_field(raw: dict[str, Any]) -> LeafField | GroupField:
    """Convert one host field dict into a field descriptor."""
    name = raw.get("name")
    field_type = raw.get("type", "text")
    persisted = bool(raw.get("saveToJWT", False))

    subfields = raw.get("fields")
    if isinstance(subfields, list):
        return GroupField(
            name=name,
            type=field_type,
            persisted=persisted,
            children=tuple(parse_field(sub) for sub in subfields if sub),
        )
    return LeafField(name=name, type=field_type, persisted=persisted)


def parse_field_schema(raw_fields: list[dict[str, Any]]) -> list[LeafField | GroupField]:
    """Parse an ordered host field list. Empty entries are skipped."""
    return [parse_field(raw) for raw in raw_fields if raw]
