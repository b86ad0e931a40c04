"""Schema validation and transformation of records."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from docstore.errors import FieldError
from docstore.types import FieldDefinition, SchemaDefinition
from docstore.values import Record, contains_strict, is_number, to_text

REQUIRED_MESSAGE = "Field is required"
CUSTOM_VALIDATION_MESSAGE = "Custom validation failed"


@dataclass
class ValidationResult:
    valid: bool
    errors: list[FieldError] = field(default_factory=list)


def _format_bound(value: float) -> str:
    return to_text(value)


def _matches_type(value: Any, tag: str) -> bool:
    if tag == "string":
        return isinstance(value, str)
    if tag == "number":
        return is_number(value)
    if tag == "boolean":
        return isinstance(value, bool)
    if tag == "object":
        return isinstance(value, dict)
    if tag == "array":
        return isinstance(value, list)
    if tag == "null":
        return value is None
    return tag == "any"


def _validate_value(value: Any, definition: FieldDefinition, path: str) -> list[FieldError]:
    errors: list[FieldError] = []

    if value is None:
        if definition.required:
            errors.append(FieldError(path, REQUIRED_MESSAGE))
        return errors

    if not any(_matches_type(value, tag) for tag in definition.type):
        errors.append(
            FieldError(path, f"Invalid type, expected {' or '.join(definition.type)}")
        )

    if is_number(value):
        if definition.min is not None and value < definition.min:
            errors.append(
                FieldError(
                    path, f"Value must be greater than or equal to {_format_bound(definition.min)}"
                )
            )
        if definition.max is not None and value > definition.max:
            errors.append(
                FieldError(
                    path, f"Value must be less than or equal to {_format_bound(definition.max)}"
                )
            )

    if isinstance(value, str):
        if definition.min_length is not None and len(value) < definition.min_length:
            errors.append(
                FieldError(path, f"Length must be greater than or equal to {definition.min_length}")
            )
        if definition.max_length is not None and len(value) > definition.max_length:
            errors.append(
                FieldError(path, f"Length must be less than or equal to {definition.max_length}")
            )
        if definition.pattern is not None and re.search(definition.pattern, value) is None:
            errors.append(FieldError(path, "Value does not match the required pattern"))

    if definition.enum is not None and not contains_strict(definition.enum, value):
        allowed = ", ".join(to_text(v) for v in definition.enum)
        errors.append(FieldError(path, f"Value must be one of: {allowed}"))

    if isinstance(value, dict) and definition.properties:
        for name, prop in definition.properties.items():
            prop_path = f"{path}.{name}"
            if name in value:
                errors.extend(_validate_value(value[name], prop, prop_path))
            elif prop.required:
                errors.append(FieldError(prop_path, REQUIRED_MESSAGE))

    if isinstance(value, list) and definition.items is not None:
        for index, item in enumerate(value):
            errors.extend(_validate_value(item, definition.items, f"{path}[{index}]"))

    if definition.validator is not None:
        outcome = definition.validator(value)
        if outcome is not True:
            message = outcome if isinstance(outcome, str) else CUSTOM_VALIDATION_MESSAGE
            errors.append(FieldError(path, message))

    return errors


def validate(record: Record, schema: SchemaDefinition, partial: bool = False) -> ValidationResult:
    """Check a record against a schema.

    Bad data is reported, never raised. With ``partial=True`` absent required
    fields are not reported, but every field that is present is still checked.
    """
    errors: list[FieldError] = []
    for name, definition in schema.fields.items():
        if name in record:
            errors.extend(_validate_value(record[name], definition, name))
        elif definition.required and not partial:
            errors.append(FieldError(name, REQUIRED_MESSAGE))
    return ValidationResult(valid=not errors, errors=errors)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _transform_fields(
    record: Record, fields: dict[str, FieldDefinition], is_new: bool
) -> Record:
    result = dict(record)
    for name, definition in fields.items():
        if name not in result and is_new and definition.has_default():
            result[name] = definition.produce_default()

        if name in result and definition.transform is not None:
            result[name] = definition.transform(result[name])

        value = result.get(name)
        if isinstance(value, dict) and definition.properties:
            result[name] = _transform_fields(value, definition.properties, is_new)

        if isinstance(value, list) and definition.items is not None:
            items = definition.items
            converted = []
            for item in value:
                if isinstance(item, dict) and items.properties:
                    converted.append(_transform_fields(item, items.properties, is_new))
                elif items.transform is not None:
                    converted.append(items.transform(item))
                else:
                    converted.append(item)
            result[name] = converted
    return result


def transform(record: Record, schema: SchemaDefinition, is_new: bool = True) -> Record:
    """Apply defaults, field transforms, and timestamps; returns a new record.

    Defaults fill absent fields only for new records. Generated defaults are
    produced once per call.
    """
    result = _transform_fields(record, schema.fields, is_new)
    if schema.timestamps:
        now = _now_iso()
        if is_new:
            result["createdAt"] = now
        result["updatedAt"] = now
    return result
