"""
ActiveRecords Relational Backend — CRUD over SQLite, PostgreSQL, MySQL
=====================================================================

One backend for every SQL connector. Dialect differences (identifier
quoting, placeholders, LIKE flavours, generated keys) stay in the
connector; this class only builds statements.

STATEMENTS:
  All SQL is built with quoted identifiers and named placeholders. The
  bound values of one statement live in a Query object created for that
  call, so nothing leaks between calls. A handler instance is not
  thread-safe: callers sharing one across threads must serialize access.

SUBTABLES:
  Fields listed in `subtables` are multi-valued and stored in auxiliary
  tables (see subtables.py). Writes touching them follow a fixed order:

    add      main row → generated id → add-to-set each element
    update   resolve ids → main SET → replace / add-to-set / push / pull
    delete   resolve ids → clear subtables (cascade=False only) → main rows

  Ids are resolved before the main row is written, so a SET that changes
  a field used in the criteria cannot lose the subtable writes. An
  explicit "id" goes through the same lookup, so a missing id or a row
  failing the other criteria gets no writes at all.

  None of this runs in a transaction. If the driver fails between two
  statements the earlier ones stay applied.

CASCADE:
  With cascade=True (default) the schema is expected to declare
  ON DELETE CASCADE on subtable relid columns; no subtable DELETE is
  issued. With cascade=False the backend clears every subtable first.
"""

import logging

from . import updates
from .criteria import Query, check_criteria, compile_where
from .sort import to_sql
from .subtables import SubtableEngine
from .validator import ValidationGate

logger = logging.getLogger(__name__)

FETCH_MODES = ("assoc", "num")


class RelationalBackend:
    """
    CRUD contract over a SQLConnector.

    Usage:
        backend = RelationalBackend(SQLiteConnector(db_path="shop.db"),
                                    table="users", subtables=["tags"])
        uid = backend.add({"name": "a", "tags": ["x", "y"]})
        backend.get_one({"id": uid})
        # → {"id": 1, "name": "a", "tags": ["x", "y"]}
    """

    def __init__(self, connector, table=None, *, subtables=(), cascade=True,
                 mandatory_fields=(), unique_fields=(), fetch_mode="assoc",
                 debug=False):
        self.connector = connector
        self.table = None
        if table is not None:
            self.set_table(table)
        self.subtables = SubtableEngine(connector, subtables)
        self.cascade = bool(cascade)
        self.fetch_mode = None
        self.set_handler_attr("fetch_mode", fetch_mode)
        self.gate = ValidationGate(
            lambda criteria, table: self.get_one(criteria, table=table),
            mandatory_fields,
            unique_fields,
        )
        self.debug = debug

    # ── Configuration ─────────────────────────────────────────

    @property
    def debug(self):
        return self.connector.debug

    @debug.setter
    def debug(self, value):
        self.connector.debug = bool(value)

    def set_table(self, name):
        """Set the default table used when a call names none."""
        if not name or not isinstance(name, str):
            raise ValueError(f'"{name}" is not valid table name, set it to non empty string.')
        self.table = name

    def set_handler_attr(self, name, value):
        if name == "fetch_mode":
            if value not in FETCH_MODES:
                raise ValueError(f'"{value}" is not a fetch mode, allowed values are: {", ".join(FETCH_MODES)}')
            self.fetch_mode = value
        elif name == "subtables":
            self.subtables = SubtableEngine(self.connector, value)
        elif name == "cascade":
            self.cascade = bool(value)
        elif name == "debug":
            self.debug = value
        elif name == "mandatory_fields":
            self.gate.set_mandatory_fields(value)
        elif name == "unique_fields":
            self.gate.set_unique_fields(value)
        else:
            raise ValueError(f"{name} attribute is not supported by {self.__class__.__name__}")

    def get_errors(self) -> dict:
        """Validation errors recorded by the last add/update."""
        return self.gate.get_errors()

    def close(self):
        self.connector.close()

    # ── Statement helpers ─────────────────────────────────────

    def _table(self, table):
        name = table or self.table
        if not name:
            raise ValueError(
                "Table name must be either set via set_table() or passed explicitly as argument"
            )
        return name

    def _col(self, table, field):
        q = self.connector.quote
        return f"{q(table)}.{q(field)}"

    def _from(self, table, criteria, query):
        """FROM ... JOIN ... WHERE ... plus whether DISTINCT is needed."""
        joins = self.subtables.joins(table, self.subtables.referenced(criteria))
        where = compile_where(criteria, query, table, self.subtables.fields)
        return f" FROM {self.connector.quote(table)}{joins}{where}", bool(joins)

    def _order_by(self, table, sort):
        clauses = []
        for field, direction in to_sql(sort):
            if field in self.subtables:
                raise ValueError(f'Cannot sort on multi-valued field "{field}"')
            clauses.append(f"{self._col(table, field)} {direction}")
        return " ORDER BY " + ", ".join(clauses) if clauses else ""

    def _select(self, table, criteria, fields, sort=None, limit=None):
        """
        SELECT statement, its bound values and the helper columns added.

        Under subtable joins the DISTINCT list also carries the main id and
        the sort columns, so only join duplicates of one row are folded.
        Callers strip the helper columns from the result rows.
        """
        query = Query(self.connector)
        source, joined = self._from(table, criteria, query)
        order_by = self._order_by(table, sort)
        helpers = []
        if joined and fields:
            wanted = ["id"] + [f for f, _ in to_sql(sort)]
            helpers = [f for f in dict.fromkeys(wanted) if f not in fields]
        cols = list(fields) + helpers
        what = ", ".join(self._col(table, f) for f in cols) or f"{self.connector.quote(table)}.*"
        sql = f"SELECT {'DISTINCT ' if joined else ''}{what}{source}{order_by}"
        if limit:
            sql += f" LIMIT {int(limit)}"
        return sql, query.values, helpers

    def _in_ids(self, table, ids, query):
        return f" WHERE {self._col(table, 'id')} IN {query.bind_all('id', ids)}"

    def _shape(self, row, helpers=()):
        for field in helpers:
            row.pop(field, None)
        if self.fetch_mode == "num":
            return tuple(row.values())
        return row

    # ── Record identifier ─────────────────────────────────────

    def _resolve_ids(self, table, criteria):
        """
        Ids of every main row matching the whole criteria.

        An explicit "id" is looked up like any other field: it must exist
        and the remaining criteria must hold before anything is written.
        """
        sql, values, _ = self._select(table, criteria, ["id"])
        return [row["id"] for row in self.connector.fetch(sql, values)]

    def get_record_id(self, criteria, table=None):
        """
        Id of the first row matching criteria, or None.

        An "id" already present in criteria is returned as is.
        """
        table = self._table(table)
        criteria = check_criteria(criteria)
        if "id" in criteria:
            return criteria["id"]
        sql, values, _ = self._select(table, criteria, ["id"], limit=1)
        row = self.connector.fetch(sql, values, single=True)
        return row["id"] if row else None

    # ── CRUD ──────────────────────────────────────────────────

    def add(self, record, table=None):
        """
        Insert a record. Returns the new id, or None when validation fails
        (see get_errors()).
        """
        if not self.gate.validated(record, table):
            return None
        table = self._table(table)
        main, sub = self.subtables.split_record(record)

        q = self.connector.quote
        query = Query(self.connector)
        if main:
            cols = ", ".join(q(f) for f in main)
            tags = ", ".join(query.bind(f, v) for f, v in main.items())
            sql = f"INSERT INTO {q(table)} ({cols}) VALUES ({tags})"
        else:
            sql = self.connector.empty_insert(q(table))
        relid = self.connector.insert(sql, query.values)

        for field, values in sub.items():
            self.subtables.add_to_set(relid, field, values)
        return relid

    def get(self, criteria=None, projection=None, sort=None, limit=None, table=None):
        """All matching records as a list (eager, not a cursor)."""
        table = self._table(table)
        main, sub = self.subtables.split_projection(projection)
        sql, values, helpers = self._select(table, criteria, main, sort, limit)
        rows = self.connector.fetch(sql, values)
        return [self._shape(self.subtables.attach(row, sub), helpers) for row in rows]

    def get_one(self, criteria=None, projection=None, table=None):
        """First matching record, or None."""
        table = self._table(table)
        main, sub = self.subtables.split_projection(projection)
        sql, values, helpers = self._select(table, criteria, main, limit=1)
        row = self.connector.fetch(sql, values, single=True)
        if row is None:
            return None
        return self._shape(self.subtables.attach(row, sub), helpers)

    def update(self, criteria, data, table=None):
        """
        Apply an update payload to every matching row.

        Bare fields and the "set" bucket update main columns (or replace
        subtable lists); "add-to-set", "push" and "pull" act on subtable
        fields only.
        """
        if not self.gate.check_payload(data):
            return
        table = self._table(table)
        criteria = check_criteria(criteria)
        ops = updates.resolve(data)
        main_set, sub_set = updates.split_subtables(ops, self.subtables.fields)
        element_ops = any(ops[k] for k in (updates.ADD_TO_SET, updates.PUSH, updates.PULL))

        q = self.connector.quote
        query = Query(self.connector)
        assignments = ", ".join(f"{q(f)} = {query.bind(f, v)}" for f, v in main_set.items())

        if not sub_set and not element_ops and not self.subtables.referenced(criteria):
            if assignments:
                where = compile_where(criteria, query, table)
                self.connector.execute(f"UPDATE {q(table)} SET {assignments}{where}", query.values)
            return

        ids = self._resolve_ids(table, criteria)
        if not ids:
            return
        if assignments:
            sql = f"UPDATE {q(table)} SET {assignments}{self._in_ids(table, ids, query)}"
            self.connector.execute(sql, query.values)

        for relid in ids:
            for field, values in sub_set.items():
                self.subtables.replace(relid, field, values)
            for field, value in ops[updates.ADD_TO_SET].items():
                self.subtables.add_to_set(relid, field, updates.elements(value))
            for field, value in ops[updates.PUSH].items():
                self.subtables.push(relid, field, updates.elements(value))
            for field, value in ops[updates.PULL].items():
                self.subtables.pull(relid, field, updates.elements(value))

    def delete(self, criteria=None, table=None):
        """Delete every matching row; subtables first when cascade is off."""
        table = self._table(table)
        criteria = check_criteria(criteria)
        q = self.connector.quote
        query = Query(self.connector)

        if not self.subtables:
            where = compile_where(criteria, query, table)
            self.connector.execute(f"DELETE FROM {q(table)}{where}", query.values)
            return

        ids = self._resolve_ids(table, criteria)
        if not ids:
            return
        if not self.cascade:
            for relid in ids:
                self.subtables.clear(relid)
        else:
            logger.debug("Leaving subtable rows of %s to ON DELETE CASCADE", ids)
        self.connector.execute(f"DELETE FROM {q(table)}{self._in_ids(table, ids, query)}", query.values)

    def __repr__(self):
        return f"<RelationalBackend {self.connector!r} table={self.table}>"
