"""Unit tests for QueryBuilder.build (SELECT statements)."""

from __future__ import annotations

import pytest

from sphinxql.compile.builder import QueryBuilder
from sphinxql.compile.sphinx import SphinxCompiler
from sphinxql.errors import InvalidFacetSpecError, UnsupportedConstructError
from sphinxql.schema.query import Query
from sphinxql.schema.values import Expression
from sphinxql.settings import BuilderSettings


def test_match_only_query(builder: QueryBuilder):
    query = Query(FROM=["idx_article"], MATCH="hello world", LIMIT=10, OFFSET=0)
    r = builder.build(query)
    assert r.sql == "SELECT * FROM idx_article WHERE MATCH(:qp0) LIMIT 10"
    assert r.params == {":qp0": "hello world"}
    assert r.dialect == "sphinx"


def test_match_value_is_escaped(builder: QueryBuilder):
    r = builder.build(Query(FROM=["idx_article"], MATCH='"exact" -minus'))
    assert r.params[":qp0"] == '\\"exact\\" \\-minus'


def test_match_expression_is_inlined_unescaped(builder: QueryBuilder):
    match = Expression("'@title (search -term)'")
    r = builder.build(Query(FROM=["idx_article"], MATCH=match))
    assert r.sql == "SELECT * FROM idx_article WHERE MATCH('@title (search -term)')"
    assert r.params == {}


def test_match_is_anded_before_where(builder: QueryBuilder):
    query = Query(FROM=["idx_article"], MATCH="foo", WHERE={"status": 1})
    r = builder.build(query)
    assert r.sql == "SELECT * FROM idx_article WHERE (MATCH(:qp0)) AND (status=:qp1)"
    assert r.params == {":qp0": "foo", ":qp1": 1}


def test_hash_condition_with_list_value(builder: QueryBuilder):
    query = Query(FROM=["idx_article"], WHERE={"status": 1, "category_id": [2, 3]})
    r = builder.build(query)
    assert r.sql == (
        "SELECT * FROM idx_article WHERE (status=:qp0) AND (category_id IN (:qp1, :qp2))"
    )
    assert r.params == {":qp0": 1, ":qp1": 2, ":qp2": 3}


def test_where_values_are_coerced_with_schema(builder: QueryBuilder, bare_builder: QueryBuilder):
    query = Query(FROM=["idx_article"], WHERE={"author_id": "5"})
    assert builder.build(query).params == {":qp0": 5}
    assert bare_builder.build(query).params == {":qp0": "5"}


def test_aliased_index_still_uses_its_schema(builder: QueryBuilder):
    r = builder.build(Query(FROM=["idx_article a"], WHERE={"author_id": "7"}))
    assert r.sql == "SELECT * FROM idx_article a WHERE author_id=:qp0"
    assert r.params == {":qp0": 7}


def test_empty_where_is_omitted(builder: QueryBuilder):
    r = builder.build(Query(FROM=["idx_article"], WHERE=["AND", [], {}]))
    assert r.sql == "SELECT * FROM idx_article"


# ---------------------------------------------------------------------------
# SELECT / FROM
# ---------------------------------------------------------------------------


class TestSelect:
    def test_positional_fields_and_aliases(self, builder: QueryBuilder):
        query = Query(
            SELECT=["id", "title AS t", "author_id writer", "COUNT(*) cnt"],
            FROM=["idx_article"],
        )
        r = builder.build(query)
        assert r.sql == (
            "SELECT id, title AS t, author_id AS writer, COUNT(*) cnt FROM idx_article"
        )

    def test_keyed_fields_become_aliases(self, builder: QueryBuilder):
        query = Query(SELECT={0: "id", "total": "COUNT(*)"}, FROM=["idx_article"])
        assert builder.build(query).sql == "SELECT id, COUNT(*) AS total FROM idx_article"

    def test_expression_fields_merge_params(self, builder: QueryBuilder):
        query = Query(
            SELECT=[
                "id",
                Expression("IF(author_id = :a, 1, 0) AS mine", {":a": 3}),
            ],
            FROM=["idx_article"],
        )
        r = builder.build(query)
        assert r.sql == "SELECT id, IF(author_id = :a, 1, 0) AS mine FROM idx_article"
        assert r.params == {":a": 3}

    def test_keyed_expression_is_aliased(self, builder: QueryBuilder):
        query = Query(SELECT={"w": Expression("WEIGHT()")}, FROM=["idx_article"])
        assert builder.build(query).sql == "SELECT WEIGHT() AS w FROM idx_article"

    def test_distinct_and_select_option(self, builder: QueryBuilder):
        query = Query(
            SELECT=["id"],
            DISTINCT=True,
            SELECT_OPTION="SQL_NO_CACHE",
            FROM=["idx_article"],
        )
        assert builder.build(query).sql == "SELECT DISTINCT SQL_NO_CACHE id FROM idx_article"

    def test_manticore_quotes_identifiers(self, quoting_builder: QueryBuilder):
        query = Query(SELECT=["id", "title AS t", "COUNT(*) cnt"], FROM=["idx_article"])
        r = quoting_builder.build(query)
        assert r.sql == "SELECT `id`, `title` AS `t`, COUNT(*) cnt FROM `idx_article`"
        assert r.dialect == "manticore"


class TestFrom:
    def test_multiple_indexes(self, builder: QueryBuilder):
        r = builder.build(Query(FROM=["idx_article", "idx_item"]))
        assert r.sql == "SELECT * FROM idx_article, idx_item"

    def test_alias_forms(self, builder: QueryBuilder):
        assert builder.build(Query(FROM=["idx_article AS a"])).sql == (
            "SELECT * FROM idx_article a"
        )
        assert builder.build(Query(FROM={"a": "idx_article"})).sql == (
            "SELECT * FROM idx_article a"
        )

    def test_subquery_in_from(self, builder: QueryBuilder):
        inner = Query(FROM=["idx_item"], WHERE={"category_id": "2"}, LIMIT=100)
        query = Query(FROM={"sub": inner}, ORDER_BY={"price": "desc"})
        r = builder.build(query)
        assert r.sql == (
            "SELECT * FROM (SELECT * FROM idx_item WHERE category_id=:qp0 LIMIT 100) sub "
            "ORDER BY price DESC"
        )
        assert r.params == {":qp0": 2}

    def test_positional_subquery_gets_generated_alias(self, builder: QueryBuilder):
        r = builder.build(Query(FROM=[Query(FROM=["idx_item"])]))
        assert r.sql == "SELECT * FROM (SELECT * FROM idx_item) _sub0"

    def test_entities_record_touched_indexes(self, builder: QueryBuilder):
        builder.build(Query(FROM=["idx_article a", "idx_item"]))
        assert builder.entities == ["idx_article", "idx_item"]

    def test_entities_are_reset_per_build(self, builder: QueryBuilder):
        builder.build(Query(FROM=["idx_article"]))
        builder.build(Query(FROM={"s": Query(FROM=["idx_item"])}))
        assert builder.entities == ["idx_item"]

    def test_entities_untouched_by_condition_and_dml(self, builder: QueryBuilder):
        builder.build(Query(FROM=["idx_article"]))
        builder.build_condition({"id": Query(SELECT=["id"], FROM=["idx_item"])})
        builder.delete("idx_rt", {"id": 1})
        assert builder.entities == ["idx_article"]

    def test_from_subquery_params_are_bound(self, builder: QueryBuilder):
        inner = Query(FROM=["idx_item"], WHERE="price > :min", PARAMS={":min": 5})
        r = builder.build(Query(FROM={"s": inner}, WHERE={"category_id": 2}))
        assert r.sql == (
            "SELECT * FROM (SELECT * FROM idx_item WHERE price > :min) s "
            "WHERE category_id=:qp1"
        )
        assert r.params == {":min": 5, ":qp1": 2}


# ---------------------------------------------------------------------------
# Clause order and individual clauses
# ---------------------------------------------------------------------------


def test_full_clause_order(builder: QueryBuilder):
    query = Query(
        SELECT=["category_id", "COUNT(*) cnt"],
        FROM=["idx_article"],
        GROUP_BY=["category_id"],
        WITHIN={"price": "desc", "id": "asc"},
        HAVING=[">", "cnt", 2],
        ORDER_BY={"cnt": "desc", "category_id": "asc"},
        LIMIT=5,
        OFFSET=10,
        OPTION={"max_matches": 100},
    )
    r = builder.build(query)
    assert r.sql == (
        "SELECT category_id, COUNT(*) cnt FROM idx_article "
        "GROUP BY category_id "
        "WITHIN GROUP ORDER BY price DESC, id "
        "HAVING cnt > :qp0 "
        "ORDER BY cnt DESC, category_id ASC "
        "LIMIT 10,5 "
        "OPTION max_matches = :qp1"
    )
    assert r.params == {":qp0": 2, ":qp1": 100}


def test_group_by_string_is_split(builder: QueryBuilder):
    r = builder.build(Query(FROM=["idx_article"], GROUP_BY="category_id, author_id"))
    assert r.sql == "SELECT * FROM idx_article GROUP BY category_id, author_id"


def test_order_by_expression_direction(builder: QueryBuilder):
    r = builder.build(
        Query(FROM=["idx_article"], ORDER_BY={"weight": Expression("WEIGHT() DESC")})
    )
    assert r.sql == "SELECT * FROM idx_article ORDER BY WEIGHT() DESC"


class TestLimit:
    @pytest.mark.parametrize(
        ("limit", "offset", "expected"),
        [
            (10, 0, "LIMIT 10"),
            (None, 5, "LIMIT 5,1000"),
            (10, 5, "LIMIT 5,10"),
            ("10", "5", "LIMIT 5,10"),
            (0, None, "LIMIT 0"),
            (None, None, ""),
            (None, "0", ""),
            (-1, None, ""),
            ("ten", None, ""),
        ],
    )
    def test_build_limit(self, builder: QueryBuilder, limit, offset, expected):
        assert builder.build_limit(limit, offset) == expected

    def test_default_limit_comes_from_settings(self):
        b = QueryBuilder(SphinxCompiler(), settings=BuilderSettings(default_limit=20))
        assert b.build_limit(None, 5) == "LIMIT 5,20"

    def test_order_by_and_limit_helper(self, builder: QueryBuilder):
        sql = builder.build_order_by_and_limit(
            "SELECT * FROM idx_article", {"id": "desc"}, 3, None
        )
        assert sql == "SELECT * FROM idx_article ORDER BY id DESC LIMIT 3"


def test_nested_options(builder: QueryBuilder):
    query = Query(
        FROM=["idx_article"],
        OPTION={
            "field_weights": {"title": 10, "content": 3},
            "ranker": Expression("bm25"),
        },
    )
    r = builder.build(query)
    assert r.sql == (
        "SELECT * FROM idx_article "
        "OPTION field_weights = (title = :qp0, content = :qp1), ranker = bm25"
    )
    assert r.params == {":qp0": 10, ":qp1": 3}


# ---------------------------------------------------------------------------
# FACET / SHOW META
# ---------------------------------------------------------------------------


class TestFacet:
    def test_positional_and_keyed_facets(self, builder: QueryBuilder):
        query = Query(
            FROM=["idx_article"],
            FACET={
                0: "author_id",
                "category_id": {"order": {"COUNT(*)": "desc"}, "limit": 5},
                "price_range": {"select": "INTERVAL(price,200,400) AS price_range"},
            },
        )
        r = builder.build(query)
        assert r.sql == (
            "SELECT * FROM idx_article "
            "FACET author_id "
            "FACET category_id ORDER BY COUNT(*) DESC LIMIT 5 "
            "FACET INTERVAL(price,200,400) AS price_range"
        )

    def test_facet_offset_without_limit(self, builder: QueryBuilder):
        r = builder.build(Query(FROM=["idx_article"], FACET={"author_id": {"offset": 5}}))
        assert r.sql == "SELECT * FROM idx_article FACET author_id LIMIT 5,1000"

    def test_keyed_facet_must_be_mapping(self, builder: QueryBuilder):
        with pytest.raises(InvalidFacetSpecError) as exc_info:
            builder.build(Query(FROM=["idx_article"], FACET={"author_id": "x"}))
        assert exc_info.value.clause == "FACET"


class TestShowMeta:
    def test_bare_show_meta(self, builder: QueryBuilder):
        r = builder.build(Query(FROM=["idx_article"], MATCH="x", SHOW_META=True))
        assert r.sql == "SELECT * FROM idx_article WHERE MATCH(:qp0); SHOW META"

    def test_show_meta_pattern_is_escaped(self, builder: QueryBuilder):
        r = builder.build(Query(FROM=["idx_article"], MATCH="x", SHOW_META="total_%"))
        assert r.sql == "SELECT * FROM idx_article WHERE MATCH(:qp0); SHOW META LIKE :qp1"
        assert r.params[":qp1"] == "%total\\_\\%%"

    def test_show_meta_expression(self, builder: QueryBuilder):
        r = builder.build(Query(FROM=["idx_article"], SHOW_META=Expression("'total%'")))
        assert r.sql == "SELECT * FROM idx_article; SHOW META LIKE 'total%'"

    def test_false_show_meta_is_omitted(self, builder: QueryBuilder):
        r = builder.build(Query(FROM=["idx_article"], SHOW_META=False))
        assert r.sql == "SELECT * FROM idx_article"


# ---------------------------------------------------------------------------
# Parameters and failure modes
# ---------------------------------------------------------------------------


def test_caller_params_are_kept_and_counted(builder: QueryBuilder):
    query = Query(
        FROM=["idx_article"],
        WHERE=["AND", "id = :id", {"status": 1}],
        PARAMS={":id": 3},
    )
    r = builder.build(query)
    assert r.sql == "SELECT * FROM idx_article WHERE (id = :id) AND (status=:qp1)"
    assert r.params == {":id": 3, ":qp1": 1}


def test_build_params_argument_is_merged(builder: QueryBuilder):
    r = builder.build(Query(FROM=["idx_article"], WHERE="id > :min"), {":min": 10})
    assert r.params == {":min": 10}


def test_in_subquery_params_are_bound(builder: QueryBuilder):
    inner = Query(
        SELECT=["category_id"],
        FROM=["idx_item"],
        WHERE="price > :min",
        PARAMS={":min": 5},
    )
    r = builder.build(
        Query(FROM=["idx_article"], WHERE=["IN", "category_id", inner], LIMIT=3)
    )
    assert r.sql == (
        "SELECT * FROM idx_article WHERE "
        "(category_id) IN (SELECT category_id FROM idx_item WHERE price > :min) LIMIT 3"
    )
    assert r.params == {":min": 5}


def test_expression_params_in_ordering_clauses(builder: QueryBuilder):
    query = Query(
        FROM=["idx_article"],
        GROUP_BY=[Expression("IF(status=:s,1,0)", {":s": 1})],
        WITHIN={"w": Expression("IF(price>:p,1,0) DESC", {":p": 10})},
        ORDER_BY={"x": Expression("IF(author_id=:me,1,0) DESC", {":me": 3})},
        FACET={"author_id": {"order": {"f": Expression("IF(status=:fs,0,1)", {":fs": 2})}}},
    )
    r = builder.build(query)
    assert r.sql == (
        "SELECT * FROM idx_article "
        "GROUP BY IF(status=:s,1,0) "
        "WITHIN GROUP ORDER BY IF(price>:p,1,0) DESC "
        "ORDER BY IF(author_id=:me,1,0) DESC "
        "FACET author_id ORDER BY IF(status=:fs,0,1)"
    )
    assert r.params == {":s": 1, ":p": 10, ":me": 3, ":fs": 2}


def test_subquery_shares_placeholder_counter(builder: QueryBuilder):
    inner = Query(SELECT=["category_id"], FROM=["idx_item"], WHERE=["<", "price", 10])
    query = Query(
        FROM=["idx_article"],
        WHERE=["AND", {"status": 1}, ["IN", "category_id", inner]],
    )
    r = builder.build(query)
    assert r.sql == (
        "SELECT * FROM idx_article WHERE (status=:qp0) AND "
        "((category_id) IN (SELECT category_id FROM idx_item WHERE price < :qp1))"
    )
    assert r.params == {":qp0": 1, ":qp1": 10}


def test_build_is_deterministic_and_does_not_mutate(builder: QueryBuilder):
    query = Query(
        FROM=["idx_article"],
        MATCH="foo",
        WHERE=["OR", {"status": [1, 2]}, ["LIKE", "title", "bar"]],
        PARAMS={":x": 1},
    )
    before = query.model_dump()
    first = builder.build(query)
    second = builder.build(query)
    assert first.sql == second.sql
    assert first.params == second.params
    assert query.model_dump() == before


def test_join_is_rejected(builder: QueryBuilder):
    with pytest.raises(UnsupportedConstructError) as exc_info:
        builder.build(Query(FROM=["idx_article"], JOIN=["LEFT JOIN idx_item"]))
    assert exc_info.value.construct == "JOIN"


def test_join_in_subquery_is_rejected(builder: QueryBuilder):
    inner = Query(FROM=["idx_item"], JOIN=["x"])
    with pytest.raises(UnsupportedConstructError):
        builder.build(Query(FROM={"s": inner}))


def test_custom_separator_and_prefix():
    settings = BuilderSettings(separator="\n", param_prefix=":p")
    b = QueryBuilder(SphinxCompiler(), settings=settings)
    r = b.build(Query(FROM=["idx_article"], WHERE={"id": 1}))
    assert r.sql == "SELECT *\nFROM idx_article\nWHERE id=:p0"
    assert r.params == {":p0": 1}
