"""Tests for decoding flat string parameters into query options."""

from __future__ import annotations

import math

from docstore.config import DocstoreConfig
from docstore.filters import FilterCondition, FilterGroup
from docstore.params import parse_expand, parse_query_params
from docstore.query import (
    CursorPagination,
    OffsetPagination,
    SearchOptions,
    SortSpec,
    evaluate,
)


class TestFilterParams:
    def test_empty(self):
        opts = parse_query_params({})
        assert opts.filter is None
        assert opts.sort == []
        assert opts.pagination is None
        assert opts.search is None

    def test_plain_key_is_equality(self):
        opts = parse_query_params({"categoria": "audio"})
        assert opts.filter == FilterGroup("and", [FilterCondition("categoria", "=", "audio")])

    def test_operator_suffixes(self):
        opts = parse_query_params(
            {
                "precio_gte": "100",
                "precio_lt": "900.5",
                "nombre_like": "lap",
                "rol_ne": "admin",
                "categoria_in": "audio,informatica",
                "estado_nin": "cancelado",
            }
        )
        assert opts.filter is not None
        assert opts.filter.conditions == [
            FilterCondition("precio", ">=", 100.0),
            FilterCondition("precio", "<", 900.5),
            FilterCondition("nombre", "like", "lap"),
            FilterCondition("rol", "!=", "admin"),
            FilterCondition("categoria", "in", ["audio", "informatica"]),
            FilterCondition("estado", "nin", ["cancelado"]),
        ]

    def test_split_on_last_underscore(self):
        opts = parse_query_params({"fecha_alta_gt": "5"})
        assert opts.filter.conditions == [FilterCondition("fecha_alta", ">", 5.0)]

    def test_unknown_suffix_is_equality_on_whole_key(self):
        opts = parse_query_params({"usuario_id": "3"})
        assert opts.filter.conditions == [FilterCondition("usuario_id", "=", "3")]

    def test_unparseable_number_matches_nothing(self):
        opts = parse_query_params({"precio_gt": "cheap"})
        [condition] = opts.filter.conditions
        assert condition.field == "precio"
        assert condition.operator == ">"
        assert math.isnan(condition.value)

        records = [{"id": 1, "precio": 10}, {"id": 2, "precio": 500}, {"id": 3}]
        result = evaluate(records, opts)
        assert result.data == []
        assert result.total == 0

    def test_reserved_keys_are_not_filters(self):
        opts = parse_query_params(
            {"_sort": "x", "_page": "1", "_q": "a", "_expand": "true", "_expandDepth": "2"}
        )
        assert opts.filter is None


class TestSortParams:
    def test_parallel_lists(self):
        opts = parse_query_params({"_sort": "categoria,precio", "_order": "asc,desc"})
        assert opts.sort == [SortSpec("categoria", "asc"), SortSpec("precio", "desc")]

    def test_default_direction(self):
        opts = parse_query_params({"_sort": "a,b", "_order": "desc"})
        assert opts.sort == [SortSpec("a", "desc"), SortSpec("b", "asc")]

    def test_unknown_direction_is_asc(self):
        assert parse_query_params({"_sort": "a", "_order": "down"}).sort == [SortSpec("a")]


class TestPaginationParams:
    def test_offset(self):
        opts = parse_query_params({"_page": "2", "_limit": "5"})
        assert opts.pagination == OffsetPagination(page=2, limit=5)

    def test_offset_defaults(self):
        assert parse_query_params({"_page": "3"}).pagination == OffsetPagination(3, 10)
        assert parse_query_params({"_limit": "4"}).pagination == OffsetPagination(1, 4)

    def test_offset_bad_values_fall_back(self):
        opts = parse_query_params({"_page": "x", "_limit": "-2"})
        assert opts.pagination == OffsetPagination(1, 10)

    def test_default_limit_from_config(self):
        opts = parse_query_params({"_page": "1"}, config=DocstoreConfig(default_page_limit=25))
        assert opts.pagination == OffsetPagination(1, 25)

    def test_cursor_wins(self):
        opts = parse_query_params({"_cursor": "MTA=", "_page": "2", "_limit": "3"})
        assert opts.pagination == CursorPagination(cursor="MTA=", limit=3)

    def test_empty_cursor_starts_at_beginning(self):
        assert parse_query_params({"_cursor": ""}).pagination == CursorPagination(None, 10)


class TestSearchParams:
    def test_search(self):
        opts = parse_query_params({"_q": "lap", "_fields": "nombre,categoria"})
        assert opts.search == SearchOptions("lap", ("nombre", "categoria"))

    def test_search_without_fields(self):
        assert parse_query_params({"_q": "x"}).search == SearchOptions("x", None)


class TestExpandParams:
    def test_not_requested(self):
        assert parse_expand({}) == 0
        assert parse_expand({"_expand": "false"}) == 0

    def test_requested(self):
        assert parse_expand({"_expand": "true"}) == 1
        assert parse_expand({"_expand": "1", "_expandDepth": "3"}) == 3

    def test_capped(self):
        cfg = DocstoreConfig(max_expand_depth=2)
        assert parse_expand({"_expand": "true", "_expandDepth": "9"}, cfg) == 2
