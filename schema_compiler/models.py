"""
Schema metadata models.
Built once per entity while compiling and never mutated afterwards.
"""

import re
from typing import Any, List, Optional, Tuple, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator


class TableAttrs(BaseModel):
    """Entity-level attributes: table rename and join aliases."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    rename: Optional[str] = Field(None, description="Table name to use instead of the entity name")
    alias: Optional[Union[str, List[str]]] = Field(
        None,
        description="Join aliases, comma or semicolon separated"
    )

    @field_validator("rename")
    @classmethod
    def validate_rename(cls, v):
        if v is not None and not v.strip():
            raise ValueError("rename must not be blank")
        return v

    def alias_names(self) -> List[str]:
        """Normalized alias list: no spaces, lower-cased, empty names dropped."""
        if self.alias is None:
            return []

        raw = self.alias if isinstance(self.alias, str) else ";".join(self.alias)
        text = raw.replace(" ", "").replace(",", ";").lower()

        names = []
        for name in text.split(";"):
            if name and name not in names:
                names.append(name)
        return names


class ColumnAttrs(BaseModel):
    """Field-level column marker. Carries no options yet."""
    model_config = ConfigDict(extra="forbid", frozen=True)


class FieldDescriptor(BaseModel):
    """One declared field of an entity."""
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str = Field(..., description="Field identifier")
    declared_type: str = Field(..., description="Declared type rendered to text")
    inner_type: str = Field(..., description="Type inside the wrapper, or the declared type")
    is_nullable: bool = Field(False, description="Declared type is the Null wrapper")
    is_attributed: bool = Field(False, description="Field is stored in and selected from the table")
    attrs: ColumnAttrs = Field(default_factory=ColumnAttrs)

    # Resolved runtime types, None when the annotation could not be evaluated
    declared_runtime: Any = Field(None, exclude=True, repr=False)
    inner_runtime: Any = Field(None, exclude=True, repr=False)

    @property
    def value_type(self) -> Any:
        """Runtime type a column value must have for this field."""
        if self.is_nullable:
            return self.inner_runtime
        return self.declared_runtime

    @property
    def plain(self) -> str:
        return snake_case(self.name)


class UpdateField(BaseModel):
    """A non-identifier column assignment in an UPDATE statement."""
    model_config = ConfigDict(frozen=True)

    name: str
    fragment: str = Field(..., description="Assignment with a '{}' placeholder position")

    def render(self, position: int) -> str:
        return self.fragment.format(position)


class EntitySchema(BaseModel):
    """Compiled description of one entity."""
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Entity class name")
    table_name: str = Field(..., description="Resolved table name")
    fields: Tuple[FieldDescriptor, ...] = Field(default_factory=tuple)
    aliases: Tuple[str, ...] = Field(default_factory=tuple)
    identifier: str = Field("id", description="Name of the identifier field")

    @property
    def attributed_fields(self) -> Tuple[FieldDescriptor, ...]:
        return tuple(f for f in self.fields if f.is_attributed)

    @property
    def has_identifier(self) -> bool:
        return any(f.name == self.identifier for f in self.attributed_fields)

    @property
    def update_fields(self) -> Tuple[UpdateField, ...]:
        return tuple(
            UpdateField(name=f.name, fragment=f"{f.plain} = ${{}}")
            for f in self.attributed_fields
            if f.name != self.identifier
        )

    def get_field(self, name: str) -> FieldDescriptor:
        for f in self.fields:
            if f.name == name:
                return f
        raise ValueError(f"Field '{name}' not found in entity {self.name}")


_FIRST_CAP = re.compile(r"(.)([A-Z][a-z]+)")
_ALL_CAP = re.compile(r"([a-z0-9])([A-Z])")
_SEPARATORS = re.compile(r"[\s\-]+")


def snake_case(name: str) -> str:
    """
    Convert a name to lower snake_case.

    ``"CamelCaseExample"`` -> ``"camel_case_example"``,
    ``"Some Function Name"`` -> ``"some_function_name"``.
    """
    text = _SEPARATORS.sub("_", str(name).strip())
    text = _FIRST_CAP.sub(r"\1_\2", text)
    text = _ALL_CAP.sub(r"\1_\2", text)
    return re.sub(r"_+", "_", text).lower()
