"""
Criteria compilation — one criteria language, two native forms.

Criteria are plain mappings of field → value:

    {"name": "alice"}                equality
    {"name": "/^al.+/"}              pattern literal, case-sensitive
    {"name": "/^al.+e$/i"}           pattern literal, case-insensitive
    {"deleted_at": None}             IS NULL (SQL) / null match (Mongo)

SQL side: compile_where() turns criteria into a WHERE fragment and binds
values into a request-scoped Query. Patterns support one wildcard token,
".+" (→ %), plus the ^ and $ anchors; any other regex syntax is passed
through to LIKE literally and will not behave as a regular expression.

Mongo side: compile_filter() walks the whole criteria tree ($or / $and
branches, operator documents, lists) and rewrites "id" → "_id" as an
ObjectId and pattern literals → bson Regex values.
"""

import random
import re
from collections.abc import Mapping

from bson import ObjectId
from bson.regex import Regex


class Query:
    """
    Bound values for one statement.

    Created per call and discarded after execution. Tags default to the
    field name; a tag already bound in this query gets a random suffix.
    """

    def __init__(self, connector):
        self.connector = connector
        self.values = {}

    def bind(self, field, value) -> str:
        """Bind a value and return its placeholder token."""
        base = re.sub(r"\W", "_", str(field)) or "p"
        tag = base
        while tag in self.values:
            tag = f"{base}{random.randint(1, 2**31 - 1)}"
        self.values[tag] = value
        return self.connector.placeholder(tag)

    def bind_all(self, field, values) -> str:
        """Bind a sequence and return "(p1, p2, ...)"."""
        return "(" + ", ".join(self.bind(field, v) for v in values) + ")"


# ── Pattern literals ──────────────────────────────────────────


def parse_pattern(value):
    """
    Split a pattern literal into (body, case_insensitive).

    Returns None for anything that is not a string delimited by
    "/.../" or "/.../i".
    """
    if not isinstance(value, str) or len(value) < 2 or not value.startswith("/"):
        return None
    if len(value) >= 3 and value.endswith("/i"):
        return value[1:-2], True
    if value.endswith("/"):
        return value[1:-1], False
    return None


def like_pattern(body: str) -> str:
    """
    Translate a pattern body into a LIKE pattern.

    "^a.+z$" → "a%z"      anchored both sides
    "a.+z"   → "%a%z%"    unanchored sides match anything, as a regex search would
    """
    anchored_start = body.startswith("^")
    if anchored_start:
        body = body[1:]
    anchored_end = body.endswith("$") and not body.endswith("\\$")
    if anchored_end:
        body = body[:-1]
    body = body.replace(".+", "%")
    return ("" if anchored_start else "%") + body + ("" if anchored_end else "%")


def check_criteria(criteria):
    """Normalize optional criteria; reject anything that is not a mapping."""
    if criteria is None:
        return {}
    if not isinstance(criteria, Mapping):
        raise TypeError(f"Criteria must be a mapping of field → value, got {type(criteria).__name__}")
    return criteria


# ── SQL ───────────────────────────────────────────────────────


def column(connector, field, table=None, subtables=()):
    """Qualified column reference; subtable fields live in their own table."""
    if field in subtables:
        return f"{connector.quote(field)}.{connector.quote(field)}"
    if table:
        return f"{connector.quote(table)}.{connector.quote(field)}"
    return connector.quote(field)


def compile_where(criteria, query, table=None, subtables=()) -> str:
    """
    Compile criteria into " WHERE ..." (or "" for match-all).

    Values are bound into `query`. Columns are qualified with `table`
    when given; fields listed in `subtables` are qualified with the
    subtable name, so the caller must join those subtables.
    """
    criteria = check_criteria(criteria)
    connector = query.connector
    clauses = []

    for field, value in criteria.items():
        col = column(connector, field, table, subtables)
        pattern = parse_pattern(value)

        if pattern is not None:
            body, case_insensitive = pattern
            ph = query.bind(field, like_pattern(body))
            if case_insensitive:
                clauses.append(f"({connector.ilike(col, ph)})")
            else:
                clauses.append(f"({connector.like(col, ph)})")
        elif value is None:
            clauses.append(f"({col} IS NULL)")
        elif isinstance(value, (list, tuple, set)):
            if not value:
                clauses.append("(1 = 0)")
            else:
                clauses.append(f"({col} IN {query.bind_all(field, value)})")
        else:
            clauses.append(f"({col} = {query.bind(field, value)})")

    return " WHERE " + " AND ".join(clauses) if clauses else ""


# ── MongoDB ───────────────────────────────────────────────────


def compile_filter(criteria) -> dict:
    """Rewrite criteria into a MongoDB filter, preserving key order."""
    return _rewrite(check_criteria(criteria))


def _rewrite(node):
    if isinstance(node, Mapping):
        out = {}
        for key, value in node.items():
            if key == "id":
                out["_id"] = _object_id(value)
            else:
                out[key] = _rewrite(value)
        return out
    if isinstance(node, (list, tuple)):
        return [_rewrite(v) for v in node]
    pattern = parse_pattern(node)
    if pattern is not None:
        body, case_insensitive = pattern
        return Regex(body, "i" if case_insensitive else "")
    return node


def _object_id(value):
    # Ids that are not ObjectId strings (ints, custom keys) stay as given.
    if isinstance(value, Mapping):
        return {op: _object_id(v) for op, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_object_id(v) for v in value]
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return value
