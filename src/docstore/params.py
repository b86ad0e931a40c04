"""Decode flat string parameters (as found in a URL query string) into QueryOptions."""

from __future__ import annotations

import math
from typing import Any, Mapping

from docstore.config import DocstoreConfig
from docstore.filters import FilterCondition, FilterGroup
from docstore.query import (
    CursorPagination,
    OffsetPagination,
    Pagination,
    QueryOptions,
    SearchOptions,
    SortSpec,
)

RESERVED_PARAMS: frozenset[str] = frozenset(
    {"_sort", "_order", "_page", "_limit", "_cursor", "_q", "_fields", "_expand", "_expandDepth"}
)

# suffix -> comparison operator
PARAM_OPERATORS: dict[str, str] = {
    "eq": "=",
    "ne": "!=",
    "gt": ">",
    "gte": ">=",
    "lt": "<",
    "lte": "<=",
    "like": "like",
    "in": "in",
    "nin": "nin",
}

_NUMERIC_OPERATORS = frozenset({">", ">=", "<", "<="})


def _split_list(value: str) -> list[str]:
    return value.split(",")


def _parse_number(value: str) -> float:
    # Unparseable text becomes NaN, which no ordering comparison satisfies.
    try:
        return float(value)
    except ValueError:
        return math.nan


def _parse_positive_int(value: str | None, default: int) -> int:
    if value is None or value == "":
        return default
    try:
        number = int(value.strip())
    except ValueError:
        return default
    return number if number >= 1 else default


def _parse_condition(key: str, value: str) -> FilterCondition:
    field_name, sep, suffix = key.rpartition("_")
    if not sep or not field_name or suffix not in PARAM_OPERATORS:
        return FilterCondition(key, "=", value)

    operator = PARAM_OPERATORS[suffix]
    parsed: Any = value
    if operator in _NUMERIC_OPERATORS:
        parsed = _parse_number(value)
    elif operator in ("in", "nin"):
        parsed = _split_list(value)
    return FilterCondition(field_name, operator, parsed)


def parse_filter(params: Mapping[str, str]) -> FilterGroup | None:
    conditions = []
    for key, value in params.items():
        if key in RESERVED_PARAMS:
            continue
        conditions.append(_parse_condition(key, value))
    if not conditions:
        return None
    return FilterGroup("and", conditions)


def parse_sort(params: Mapping[str, str]) -> list[SortSpec]:
    sort = params.get("_sort")
    if not sort:
        return []
    order = params.get("_order")
    directions = _split_list(order) if order else []
    specs = []
    for index, name in enumerate(_split_list(sort)):
        if not name:
            continue
        direction = directions[index] if index < len(directions) else "asc"
        specs.append(SortSpec(name, "desc" if direction == "desc" else "asc"))
    return specs


def parse_pagination(
    params: Mapping[str, str], config: DocstoreConfig | None = None
) -> Pagination | None:
    cfg = config or DocstoreConfig()
    if "_cursor" in params:
        return CursorPagination(
            cursor=params["_cursor"] or None,
            limit=_parse_positive_int(params.get("_limit"), cfg.default_page_limit),
        )
    if "_page" in params or "_limit" in params:
        return OffsetPagination(
            page=_parse_positive_int(params.get("_page"), cfg.default_page),
            limit=_parse_positive_int(params.get("_limit"), cfg.default_page_limit),
        )
    return None


def parse_search(params: Mapping[str, str]) -> SearchOptions | None:
    query = params.get("_q")
    if not query:
        return None
    fields = params.get("_fields")
    return SearchOptions(query, tuple(_split_list(fields)) if fields else None)


def parse_query_params(
    params: Mapping[str, str], *, config: DocstoreConfig | None = None
) -> QueryOptions:
    """Build QueryOptions from a flat string mapping.

    ``precio_gte=100`` becomes a ``>=`` condition (the operator is taken from
    the text after the last underscore); keys without a known operator suffix
    are equality conditions on the whole key. Reserved ``_``-prefixed keys
    control sorting, pagination, search and expansion.
    """
    return QueryOptions(
        filter=parse_filter(params),
        sort=parse_sort(params),
        pagination=parse_pagination(params, config),
        search=parse_search(params),
    )


def parse_expand(params: Mapping[str, str], config: DocstoreConfig | None = None) -> int:
    """Return the requested expansion depth; 0 means no expansion."""
    cfg = config or DocstoreConfig()
    flag = params.get("_expand", "").strip().lower()
    if flag not in ("1", "true", "yes"):
        return 0
    depth = _parse_positive_int(params.get("_expandDepth"), 1)
    return min(depth, cfg.max_expand_depth)
