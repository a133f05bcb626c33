"""
Subtables — multi-valued fields on a relational engine.

SQL rows hold scalars only. A field configured as a subtable (say
"tags") is stored in its own table named after the field:

    CREATE TABLE tags (
        relid INTEGER REFERENCES users(id) ON DELETE CASCADE,
        tags  TEXT
    );

One row per element, `relid` pointing at the owning main row. Reads
join the subtable for filtering and then fetch the element list of every
requested subtable field per main row. Writes are a plain sequence of
statements on one connection: there is no enclosing transaction, so a
failure half way leaves main row and subtables out of sync.
"""

from .criteria import Query


class SubtableEngine:
    """Per-element reads and writes for the configured subtable fields."""

    def __init__(self, connector, fields=()):
        self.connector = connector
        self.fields = tuple(fields)

    def __contains__(self, field):
        return field in self.fields

    def __bool__(self):
        return bool(self.fields)

    # ── Field split ───────────────────────────────────────────

    def split_record(self, data):
        """(main columns, {subtable field: element list}) for an insert."""
        main, sub = {}, {}
        for field, value in data.items():
            if field in self.fields:
                if value is not None:
                    sub[field] = list(value) if isinstance(value, (list, tuple, set)) else [value]
            else:
                main[field] = value
        return main, sub

    def split_projection(self, projection):
        """
        (main columns, subtable fields) for a projection.

        An empty projection means every main column and every subtable.
        When a subtable is requested, "id" is forced into the main
        columns: it keys the per-row subtable lookups.
        """
        if not projection:
            return [], list(self.fields)
        main = [f for f in projection if f not in self.fields]
        sub = [f for f in projection if f in self.fields]
        if sub and "id" not in main:
            main.insert(0, "id")
        return main, sub

    def referenced(self, criteria):
        """Subtable fields that criteria filters on."""
        return [f for f in (criteria or {}) if f in self.fields]

    def joins(self, table, fields):
        """
        JOIN clauses for filtering `table` on subtable fields.

        Each subtable is joined once. With several, a main row matches
        when each subtable has at least one element satisfying its own
        condition; the caller adds DISTINCT to fold the duplicates.
        """
        q = self.connector.quote
        return "".join(
            f" JOIN {q(f)} ON {q(f)}.{q('relid')} = {q(table)}.{q('id')}"
            for f in fields
        )

    # ── Reads ─────────────────────────────────────────────────

    def values(self, relid, field):
        """Element list of one field for one main row, in insertion order."""
        q = self.connector.quote
        query = Query(self.connector)
        sql = (
            f"SELECT {q(field)} FROM {q(field)}"
            f" WHERE {q('relid')} = {query.bind('relid', relid)}"
        )
        if self.connector.row_order:
            sql += f" ORDER BY {self.connector.row_order}"
        return [row[field] for row in self.connector.fetch(sql, query.values)]

    def attach(self, row, fields):
        """Fill `row` in place with the element list of each field."""
        for field in fields:
            row[field] = self.values(row["id"], field)
        return row

    # ── Writes ────────────────────────────────────────────────

    def _match(self, relid, field, value, query):
        q = self.connector.quote
        return (
            f" WHERE {q('relid')} = {query.bind('relid', relid)}"
            f" AND {q(field)} = {query.bind(field, value)}"
        )

    def contains(self, relid, field, value) -> bool:
        query = Query(self.connector)
        sql = f"SELECT 1 AS found FROM {self.connector.quote(field)}" + self._match(relid, field, value, query)
        return self.connector.fetch(sql, query.values, single=True) is not None

    def insert(self, relid, field, value):
        q = self.connector.quote
        query = Query(self.connector)
        sql = (
            f"INSERT INTO {q(field)} ({q('relid')}, {q(field)})"
            f" VALUES ({query.bind('relid', relid)}, {query.bind(field, value)})"
        )
        self.connector.execute(sql, query.values)

    def add_to_set(self, relid, field, values):
        """Insert each element unless (relid, value) is already stored."""
        for value in values:
            if not self.contains(relid, field, value):
                self.insert(relid, field, value)

    def push(self, relid, field, values):
        """Insert each element; duplicates allowed."""
        for value in values:
            self.insert(relid, field, value)

    def pull(self, relid, field, values):
        """Delete every row holding one of the values."""
        for value in values:
            query = Query(self.connector)
            sql = f"DELETE FROM {self.connector.quote(field)}" + self._match(relid, field, value, query)
            self.connector.execute(sql, query.values)

    def clear(self, relid, fields=None):
        """Delete all elements of `fields` (default: every subtable) for relid."""
        q = self.connector.quote
        for field in fields or self.fields:
            query = Query(self.connector)
            sql = f"DELETE FROM {q(field)} WHERE {q('relid')} = {query.bind('relid', relid)}"
            self.connector.execute(sql, query.values)

    def replace(self, relid, field, values):
        """Set semantics: the stored list becomes exactly `values`."""
        self.clear(relid, [field])
        self.push(relid, field, values)
