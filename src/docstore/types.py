"""Schema, field, and relation definitions for docstore collections."""

from __future__ import annotations

import copy
import re
from enum import Enum
from typing import Any, Callable, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from docstore.errors import SchemaDefinitionError

FIELD_TYPES: frozenset[str] = frozenset(
    {"string", "number", "boolean", "object", "array", "null", "any"}
)


class RelationType(str, Enum):
    ONE_TO_ONE = "oneToOne"
    ONE_TO_MANY = "oneToMany"
    MANY_TO_ONE = "manyToOne"
    MANY_TO_MANY = "manyToMany"


class ReferenceAction(str, Enum):
    CASCADE = "cascade"
    RESTRICT = "restrict"
    SET_NULL = "setNull"
    SET_DEFAULT = "setDefault"


class LiteralDefault:
    """A fixed default value, deep-copied each time it is applied."""

    __slots__ = ("value",)

    def __init__(self, value: Any) -> None:
        self.value = value

    def produce(self) -> Any:
        return copy.deepcopy(self.value)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, LiteralDefault) and other.value == self.value

    def __repr__(self) -> str:
        return f"LiteralDefault({self.value!r})"


class GeneratorDefault:
    """A zero-argument factory invoked once per record that needs a default."""

    __slots__ = ("factory",)

    def __init__(self, factory: Callable[[], Any]) -> None:
        if not callable(factory):
            raise TypeError("GeneratorDefault factory must be callable")
        self.factory = factory

    def produce(self) -> Any:
        return self.factory()

    def __eq__(self, other: object) -> bool:
        return isinstance(other, GeneratorDefault) and other.factory is self.factory

    def __repr__(self) -> str:
        name = getattr(self.factory, "__name__", repr(self.factory))
        return f"GeneratorDefault({name})"


DefaultValue = Union[LiteralDefault, GeneratorDefault]


class Relation(BaseModel):
    """A link from a field to records of another collection."""

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="forbid")

    type: RelationType
    collection: str
    field: str
    foreign_field: Optional[str] = Field(default=None, alias="foreignField")
    on_delete: Optional[ReferenceAction] = Field(default=None, alias="onDelete")
    on_update: Optional[ReferenceAction] = Field(default=None, alias="onUpdate")

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class FieldDefinition(BaseModel):
    """Constraints, defaults, and transforms for one field of a record.

    Accepts snake_case names and the camelCase aliases (``defaultValue``,
    ``minLength``, ``maxLength``, ``validate``) interchangeably.
    """

    model_config = ConfigDict(
        populate_by_name=True, arbitrary_types_allowed=True, extra="forbid"
    )

    type: tuple[str, ...]
    required: bool = False
    default_value: Optional[DefaultValue] = Field(default=None, alias="defaultValue")
    min: Optional[float] = None
    max: Optional[float] = None
    min_length: Optional[int] = Field(default=None, alias="minLength")
    max_length: Optional[int] = Field(default=None, alias="maxLength")
    pattern: Optional[str] = None
    enum: Optional[list[Any]] = None
    properties: Optional[dict[str, FieldDefinition]] = None
    items: Optional[FieldDefinition] = None
    validator: Optional[Callable[[Any], Any]] = Field(default=None, alias="validate")
    transform: Optional[Callable[[Any], Any]] = None
    relation: Optional[Relation] = None
    format: Optional[str] = None

    @field_validator("type", mode="before")
    @classmethod
    def _coerce_type(cls, value: Any) -> tuple[str, ...]:
        tags = (value,) if isinstance(value, str) else tuple(value)
        if not tags:
            raise ValueError("field type must name at least one type")
        unknown = [t for t in tags if t not in FIELD_TYPES]
        if unknown:
            raise ValueError(
                f"unknown field type(s) {unknown}; valid types: {', '.join(sorted(FIELD_TYPES))}"
            )
        return tags

    @field_validator("default_value", mode="before")
    @classmethod
    def _wrap_default(cls, value: Any) -> DefaultValue:
        # Only reached when a default was passed explicitly, so None is a real default.
        if isinstance(value, (LiteralDefault, GeneratorDefault)):
            return value
        if callable(value):
            return GeneratorDefault(value)
        return LiteralDefault(value)

    @field_validator("pattern")
    @classmethod
    def _check_pattern(cls, value: Optional[str]) -> Optional[str]:
        if value is not None:
            try:
                re.compile(value)
            except re.error as e:
                raise ValueError(f"invalid pattern {value!r}: {e}") from e
        return value

    def has_default(self) -> bool:
        return self.default_value is not None

    def produce_default(self) -> Any:
        """Return a fresh default value, or None when none is declared."""
        if self.default_value is None:
            return None
        return self.default_value.produce()

    def describe(self) -> dict[str, Any]:
        """JSON-safe summary of the definition, callables reduced to markers."""
        data: dict[str, Any] = {"type": list(self.type)}
        if self.required:
            data["required"] = True
        if isinstance(self.default_value, LiteralDefault):
            data["defaultValue"] = self.default_value.value
        elif isinstance(self.default_value, GeneratorDefault):
            data["defaultValue"] = "<generated>"
        for name, alias in (
            ("min", "min"),
            ("max", "max"),
            ("min_length", "minLength"),
            ("max_length", "maxLength"),
            ("pattern", "pattern"),
            ("enum", "enum"),
            ("format", "format"),
        ):
            value = getattr(self, name)
            if value is not None:
                data[alias] = value
        if self.properties is not None:
            data["properties"] = {k: v.describe() for k, v in self.properties.items()}
        if self.items is not None:
            data["items"] = self.items.describe()
        if self.relation is not None:
            data["relation"] = self.relation.to_dict()
        if self.validator is not None:
            data["validate"] = "<custom>"
        if self.transform is not None:
            data["transform"] = "<custom>"
        return data


FieldDefinition.model_rebuild()


class SchemaDefinition(BaseModel):
    """Schema governing the records of one collection."""

    model_config = ConfigDict(arbitrary_types_allowed=True, extra="forbid")

    name: str
    fields: dict[str, FieldDefinition]
    timestamps: bool = False

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        if not value:
            raise ValueError("schema name must not be empty")
        return value

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SchemaDefinition:
        """Build a schema from plain data, raising SchemaDefinitionError on bad input."""
        try:
            return cls.model_validate(dict(data))
        except PydanticValidationError as e:
            raise SchemaDefinitionError(
                f"Invalid schema {data.get('name', '<unnamed>')!r}: {e}"
            ) from e

    def field_names(self) -> list[str]:
        return list(self.fields)

    def describe(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "timestamps": self.timestamps,
            "fields": {k: v.describe() for k, v in self.fields.items()},
        }
