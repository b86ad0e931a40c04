"""Query engine: filtering, search, sorting, and pagination over records."""

from __future__ import annotations

import base64
import binascii
import copy
import locale
import math
from dataclasses import dataclass, field
from functools import cmp_to_key
from typing import TYPE_CHECKING, Any, Iterable, Union

from docstore.errors import InvalidCursorError
from docstore.filters import FilterCondition, FilterExpression, FilterGroup
from docstore.values import Record, contains_strict, is_number, to_text

if TYPE_CHECKING:
    from docstore.store import CollectionStore


@dataclass(frozen=True)
class SortSpec:
    """One sort key."""

    field: str
    direction: str = "asc"

    def __post_init__(self) -> None:
        if self.direction not in ("asc", "desc"):
            raise ValueError(f"Sort direction must be 'asc' or 'desc', got {self.direction!r}")


@dataclass(frozen=True)
class OffsetPagination:
    """Page-number pagination; pages are 1-indexed."""

    page: int = 1
    limit: int = 10

    def __post_init__(self) -> None:
        if self.page < 1:
            raise ValueError(f"page must be >= 1, got {self.page}")
        if self.limit < 1:
            raise ValueError(f"limit must be >= 1, got {self.limit}")


@dataclass(frozen=True)
class CursorPagination:
    """Pagination resumed from an opaque cursor token."""

    cursor: str | None = None
    limit: int = 10

    def __post_init__(self) -> None:
        if self.limit < 1:
            raise ValueError(f"limit must be >= 1, got {self.limit}")


Pagination = Union[OffsetPagination, CursorPagination]


@dataclass(frozen=True)
class SearchOptions:
    query: str
    fields: tuple[str, ...] | None = None


@dataclass
class QueryOptions:
    """Everything a query may ask for; every part is optional."""

    filter: FilterExpression | None = None
    sort: list[SortSpec] = field(default_factory=list)
    pagination: Pagination | None = None
    search: SearchOptions | None = None


@dataclass
class PaginationMeta:
    total: int
    has_more: bool = False
    current_page: int | None = None
    page_count: int | None = None
    next_cursor: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"total": self.total, "hasMore": self.has_more}
        if self.current_page is not None:
            data["currentPage"] = self.current_page
        if self.page_count is not None:
            data["pageCount"] = self.page_count
        if self.next_cursor is not None:
            data["nextCursor"] = self.next_cursor
        return data


@dataclass
class QueryResult:
    data: list[Record]
    total: int
    pagination: PaginationMeta


# --- Cursor codec ---


def encode_cursor(offset: int) -> str:
    """Encode a start offset as a cursor token (base64 of its decimal digits)."""
    return base64.b64encode(str(offset).encode("ascii")).decode("ascii")


def decode_cursor(cursor: str | None) -> int:
    """Decode a cursor token into a start offset; empty means 0."""
    if not cursor:
        return 0
    try:
        text = base64.b64decode(cursor.encode("ascii"), validate=True).decode("ascii")
        offset = int(text)
    except (binascii.Error, UnicodeError, ValueError) as e:
        raise InvalidCursorError(cursor) from e
    if offset < 0:
        raise InvalidCursorError(cursor)
    return offset


# --- Filtering ---


def matches(record: Record, expr: FilterExpression) -> bool:
    """Evaluate a filter tree against a single record."""
    if isinstance(expr, FilterGroup):
        if not expr.conditions:
            return True
        results = [matches(record, child) for child in expr.conditions]
        if expr.operator == "and":
            return all(results)
        if expr.operator == "or":
            return any(results)
        return not any(results)
    if isinstance(expr, FilterCondition):
        return _matches_condition(record, expr)
    raise ValueError(f"Unknown filter expression type: {type(expr)}")


def _matches_condition(record: Record, cond: FilterCondition) -> bool:
    if cond.field not in record:
        return False
    value = record[cond.field]
    op = cond.operator

    if op == "=":
        return to_text(value) == to_text(cond.value)
    if op == "!=":
        return to_text(value) != to_text(cond.value)
    if op == "like":
        return to_text(cond.value).lower() in to_text(value).lower()
    if op == "in":
        return isinstance(cond.value, list) and contains_strict(cond.value, value)
    if op == "nin":
        return isinstance(cond.value, list) and not contains_strict(cond.value, value)
    try:
        if op == ">":
            return bool(value > cond.value)
        if op == ">=":
            return bool(value >= cond.value)
        if op == "<":
            return bool(value < cond.value)
        if op == "<=":
            return bool(value <= cond.value)
    except TypeError:
        return False
    return False


def apply_filter(records: list[Record], expr: FilterExpression) -> list[Record]:
    return [r for r in records if matches(r, expr)]


# --- Search ---


def apply_search(
    records: list[Record], query: str, fields: Iterable[str] | None = None
) -> list[Record]:
    """Keep records where any candidate field contains ``query`` (case-insensitive)."""
    if not query:
        return records
    needle = query.lower()
    allowlist = list(fields) if fields is not None else None

    def _hit(record: Record) -> bool:
        candidates = allowlist if allowlist is not None else list(record.keys())
        for name in candidates:
            if name not in record:
                continue
            value = record[name]
            if isinstance(value, str):
                if needle in value.lower():
                    return True
            elif is_number(value):
                if needle in to_text(value):
                    return True
        return False

    return [r for r in records if _hit(r)]


# --- Sorting ---


def _compare_values(a: Any, b: Any) -> int:
    if isinstance(a, str) and isinstance(b, str):
        primary = locale.strcoll(a.casefold(), b.casefold())
        if primary:
            return -1 if primary < 0 else 1
        secondary = locale.strcoll(a, b)
        return (secondary > 0) - (secondary < 0)
    try:
        if a < b:
            return -1
        if a > b:
            return 1
    except TypeError:
        return 0
    return 0


def apply_sort(records: list[Record], sort: list[SortSpec]) -> list[Record]:
    """Stable multi-key sort; a key is skipped when either record lacks the field."""
    if not sort:
        return list(records)

    def _cmp(a: Record, b: Record) -> int:
        for spec in sort:
            if spec.field not in a or spec.field not in b:
                continue
            result = _compare_values(a[spec.field], b[spec.field])
            if result:
                return -result if spec.direction == "desc" else result
        return 0

    return sorted(records, key=cmp_to_key(_cmp))


# --- Pagination ---


def paginate(records: list[Record], pagination: Pagination, total: int) -> QueryResult:
    if isinstance(pagination, OffsetPagination):
        start = (pagination.page - 1) * pagination.limit
        page_count = math.ceil(total / pagination.limit)
        return QueryResult(
            data=records[start : start + pagination.limit],
            total=total,
            pagination=PaginationMeta(
                total=total,
                current_page=pagination.page,
                page_count=page_count,
                has_more=pagination.page < page_count,
            ),
        )
    if isinstance(pagination, CursorPagination):
        offset = decode_cursor(pagination.cursor)
        end = offset + pagination.limit
        has_more = end < total
        return QueryResult(
            data=records[offset:end],
            total=total,
            pagination=PaginationMeta(
                total=total,
                has_more=has_more,
                next_cursor=encode_cursor(end) if has_more else None,
            ),
        )
    raise ValueError(f"Unknown pagination type: {type(pagination)}")


def evaluate(records: Iterable[Record], options: QueryOptions | None = None) -> QueryResult:
    """Run a query: filter, search, count, sort, then paginate.

    The order is part of the contract: ``total`` counts matches before
    pagination is applied.
    """
    opts = options or QueryOptions()
    result = list(records)

    if opts.filter is not None:
        result = apply_filter(result, opts.filter)
    if opts.search is not None:
        result = apply_search(result, opts.search.query, opts.search.fields)

    total = len(result)

    if opts.sort:
        result = apply_sort(result, opts.sort)

    if opts.pagination is not None:
        return paginate(result, opts.pagination, total)
    return QueryResult(data=result, total=total, pagination=PaginationMeta(total=total))


class CollectionQuery:
    """Fluent query builder over one collection of a store."""

    def __init__(self, store: CollectionStore, collection: str) -> None:
        self._store = store
        self._collection = collection
        self._filter: FilterExpression | None = None
        self._sort: list[SortSpec] = []
        self._pagination: Pagination | None = None
        self._search: SearchOptions | None = None

    def where(self, expr: FilterExpression) -> CollectionQuery:
        if self._filter is not None:
            self._filter = self._filter & expr
        else:
            self._filter = expr
        return self

    def search(self, query: str, fields: Iterable[str] | None = None) -> CollectionQuery:
        self._search = SearchOptions(query, tuple(fields) if fields is not None else None)
        return self

    def order_by(self, field_name: str, direction: str = "asc") -> CollectionQuery:
        self._sort.append(SortSpec(field_name, direction))
        return self

    def page(self, page: int, limit: int = 10) -> CollectionQuery:
        self._pagination = OffsetPagination(page=page, limit=limit)
        return self

    def after(self, cursor: str | None, limit: int = 10) -> CollectionQuery:
        self._pagination = CursorPagination(cursor=cursor, limit=limit)
        return self

    def options(self) -> QueryOptions:
        return QueryOptions(
            filter=self._filter,
            sort=list(self._sort),
            pagination=self._pagination,
            search=self._search,
        )

    def execute(self) -> QueryResult:
        return self._store.query(self._collection, self.options())

    def collect(self) -> list[Record]:
        return self.execute().data

    def first(self) -> Record | None:
        opts = self.options()
        opts.pagination = OffsetPagination(page=1, limit=1)
        results = self._store.query(self._collection, opts).data
        return results[0] if results else None

    def count(self) -> int:
        opts = self.options()
        opts.pagination = None
        return self._store.query(self._collection, opts).total


def snapshot(records: Iterable[Record]) -> list[Record]:
    """Deep copy records so query results never alias stored state."""
    return [copy.deepcopy(r) for r in records]
