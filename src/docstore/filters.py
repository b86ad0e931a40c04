"""Filter expression types for the docstore query language."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

COMPARISON_OPERATORS: frozenset[str] = frozenset(
    {"=", "!=", ">", ">=", "<", "<=", "like", "in", "nin"}
)
LOGICAL_OPERATORS: frozenset[str] = frozenset({"and", "or", "not"})


class FilterExpression:
    """Base class for filter expressions."""

    def __and__(self, other: FilterExpression) -> FilterGroup:
        return FilterGroup(operator="and", conditions=[self, other])

    def __or__(self, other: FilterExpression) -> FilterGroup:
        return FilterGroup(operator="or", conditions=[self, other])

    def __invert__(self) -> FilterGroup:
        return FilterGroup(operator="not", conditions=[self])

    def to_dict(self) -> dict[str, Any]:
        raise NotImplementedError


@dataclass
class FilterCondition(FilterExpression):
    """A comparison between one record field and a value."""

    field: str
    operator: str  # "=", "!=", ">", ">=", "<", "<=", "like", "in", "nin"
    value: Any = None

    def __post_init__(self) -> None:
        if self.operator not in COMPARISON_OPERATORS:
            raise ValueError(
                f"Unknown comparison operator '{self.operator}'. "
                f"Valid operators: {', '.join(sorted(COMPARISON_OPERATORS))}"
            )

    def to_dict(self) -> dict[str, Any]:
        return {"field": self.field, "operator": self.operator, "value": self.value}


@dataclass
class FilterGroup(FilterExpression):
    """A logical combination of conditions and nested groups.

    ``not`` is true when none of the children match, so with several children
    it behaves as NOR.
    """

    operator: str  # "and", "or", "not"
    conditions: list[FilterExpression] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.operator not in LOGICAL_OPERATORS:
            raise ValueError(
                f"Unknown logical operator '{self.operator}'. "
                f"Valid operators: {', '.join(sorted(LOGICAL_OPERATORS))}"
            )

    def to_dict(self) -> dict[str, Any]:
        return {
            "operator": self.operator,
            "conditions": [c.to_dict() for c in self.conditions],
        }


class FieldRef:
    """Proxy that builds FilterCondition objects from Python operators.

    Usage: field_ref("precio") > 500
    """

    def __init__(self, name: str) -> None:
        if not name:
            raise ValueError("Field name must not be empty")
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    def __eq__(self, other: object) -> FilterCondition:  # type: ignore[override]
        return FilterCondition(self._name, "=", other)

    def __ne__(self, other: object) -> FilterCondition:  # type: ignore[override]
        return FilterCondition(self._name, "!=", other)

    def __gt__(self, other: Any) -> FilterCondition:
        return FilterCondition(self._name, ">", other)

    def __ge__(self, other: Any) -> FilterCondition:
        return FilterCondition(self._name, ">=", other)

    def __lt__(self, other: Any) -> FilterCondition:
        return FilterCondition(self._name, "<", other)

    def __le__(self, other: Any) -> FilterCondition:
        return FilterCondition(self._name, "<=", other)

    __hash__ = None  # type: ignore[assignment]

    def like(self, substring: str) -> FilterCondition:
        return FilterCondition(self._name, "like", substring)

    def in_(self, values: list[Any]) -> FilterCondition:
        return FilterCondition(self._name, "in", list(values))

    def not_in(self, values: list[Any]) -> FilterCondition:
        return FilterCondition(self._name, "nin", list(values))


def field_ref(name: str) -> FieldRef:
    """Create a proxy for building conditions on a record field."""
    return FieldRef(name)


def all_of(*expressions: FilterExpression) -> FilterGroup:
    return FilterGroup("and", list(expressions))


def any_of(*expressions: FilterExpression) -> FilterGroup:
    return FilterGroup("or", list(expressions))


def none_of(*expressions: FilterExpression) -> FilterGroup:
    return FilterGroup("not", list(expressions))


def filter_from_dict(data: Mapping[str, Any]) -> FilterExpression:
    """Build a filter tree from its dict form.

    A mapping with ``conditions`` is a group; one with ``field`` is a condition.
    """
    if "conditions" in data:
        children = data["conditions"]
        if not isinstance(children, list):
            raise ValueError("Filter group 'conditions' must be a list")
        return FilterGroup(
            operator=str(data.get("operator", "and")),
            conditions=[filter_from_dict(c) for c in children],
        )
    if "field" in data:
        return FilterCondition(
            field=str(data["field"]),
            operator=str(data.get("operator", "=")),
            value=data.get("value"),
        )
    raise ValueError(f"Not a filter condition or group: {dict(data)!r}")
