"""
Tests for criteria compilation.

Tests cover:
- Pattern literal parsing and LIKE translation
- SQL WHERE generation and parameter binding
- MongoDB filter rewriting
"""

import pytest
from bson import ObjectId
from bson.regex import Regex

from activerecords.backends.criteria import (
    Query,
    compile_filter,
    compile_where,
    like_pattern,
    parse_pattern,
)
from activerecords.connectors import MySQLConnector, PostgresConnector, SQLiteConnector

OID = "507f1f77bcf86cd799439011"


@pytest.fixture
def query():
    return Query(SQLiteConnector(db_path=":memory:"))


class TestPatterns:
    """Pattern literal detection and translation."""

    def test_case_sensitive_literal(self):
        assert parse_pattern("/^a.+z$/") == ("^a.+z$", False)

    def test_case_insensitive_literal(self):
        assert parse_pattern("/^a.+z$/i") == ("^a.+z$", True)

    def test_plain_values_are_not_patterns(self):
        assert parse_pattern("alice") is None
        assert parse_pattern("/usr/bin/env") is None
        assert parse_pattern("/") is None
        assert parse_pattern(42) is None
        assert parse_pattern(None) is None

    def test_anchored_wildcard(self):
        assert like_pattern("^a.+z$") == "a%z"

    def test_unanchored_sides_match_anything(self):
        assert like_pattern("bob") == "%bob%"
        assert like_pattern("^bob") == "bob%"
        assert like_pattern("bob$") == "%bob"

    def test_other_regex_syntax_passes_through(self):
        assert like_pattern("^a[0-9]$") == "a[0-9]"


class TestCompileWhere:
    """SQL WHERE fragments and bound values."""

    def test_empty_criteria_matches_all(self, query):
        assert compile_where({}, query) == ""
        assert compile_where(None, query) == ""
        assert query.values == {}

    def test_equality(self, query):
        sql = compile_where({"name": "alice", "age": 3}, query, "users")
        assert sql == ' WHERE ("users"."name" = :name) AND ("users"."age" = :age)'
        assert query.values == {"name": "alice", "age": 3}

    def test_case_insensitive_pattern(self, query):
        sql = compile_where({"name": "/^a.+z$/i"}, query, "users")
        assert sql == ' WHERE (LOWER("users"."name") LIKE LOWER(:name))'
        assert query.values == {"name": "a%z"}

    def test_case_sensitive_pattern(self, query):
        sql = compile_where({"name": "/^a.+z$/"}, query, "users")
        assert sql == ' WHERE ("users"."name" LIKE :name)'

    def test_none_is_null(self, query):
        assert compile_where({"email": None}, query) == ' WHERE ("email" IS NULL)'
        assert query.values == {}

    def test_list_is_in(self, query):
        sql = compile_where({"age": [1, 2]}, query)
        assert sql.startswith(' WHERE ("age" IN (:age, :age')
        assert sorted(query.values.values()) == [1, 2]

    def test_subtable_fields_qualified_by_subtable(self, query):
        sql = compile_where({"tags": "x"}, query, "users", subtables=("tags",))
        assert sql == ' WHERE ("tags"."tags" = :tags)'

    def test_duplicate_tag_gets_suffix(self, query):
        first = query.bind("name", "a")
        second = query.bind("name", "b")
        assert first == ":name"
        assert second != first
        assert second.startswith(":name")
        assert sorted(query.values.values()) == ["a", "b"]

    def test_tag_sanitized(self, query):
        assert query.bind("first name", "a") == ":first_name"

    def test_rejects_non_mapping(self, query):
        with pytest.raises(TypeError):
            compile_where(["name", "alice"], query)

    def test_postgres_dialect(self):
        query = Query(PostgresConnector(database="shop"))
        sql = compile_where({"name": "/^a.+/i"}, query, "users")
        assert sql == ' WHERE ("users"."name" ILIKE %(name)s)'

    def test_mysql_dialect(self):
        query = Query(MySQLConnector(database="shop", user="root"))
        sql = compile_where({"name": "/^a.+/"}, query, "users")
        assert sql == " WHERE (`users`.`name` LIKE BINARY %(name)s)"


class TestCompileFilter:
    """MongoDB filter rewriting."""

    def test_id_becomes_object_id(self):
        assert compile_filter({"id": OID}) == {"_id": ObjectId(OID)}

    def test_non_object_id_kept(self):
        assert compile_filter({"id": 7}) == {"_id": 7}

    def test_patterns_become_regex(self):
        result = compile_filter({"name": "/^a.+z$/i", "city": "/on/"})
        assert result["name"] == Regex("^a.+z$", "i")
        assert result["city"] == Regex("on", "")

    def test_nested_trees_preserve_order(self):
        criteria = {
            "age": {"$gt": 3},
            "$or": [{"id": OID}, {"name": "/^a/i"}],
            "name": "bob",
        }
        result = compile_filter(criteria)
        assert list(result) == ["age", "$or", "name"]
        assert result["$or"][0] == {"_id": ObjectId(OID)}
        assert result["$or"][1] == {"name": Regex("^a", "i")}
        assert result["age"] == {"$gt": 3}

    def test_id_operator_lists(self):
        result = compile_filter({"id": {"$in": [OID, 5]}})
        assert result == {"_id": {"$in": [ObjectId(OID), 5]}}

    def test_empty(self):
        assert compile_filter(None) == {}

    def test_rejects_non_mapping(self):
        with pytest.raises(TypeError):
            compile_filter("name=alice")
