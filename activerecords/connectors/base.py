"""
Abstract database connector interface.

Every SQL connector implements the same surface:

    execute(sql, values)        → int              affected row count
    fetch(sql, values, single)  → dict | list | None
    insert(sql, values)         → id               generated primary key
    ping()                      → bool             connectivity check

Statements use named placeholders; values are a dict keyed by tag.
Connectors handle connection, execution, and dialect.
They know nothing about criteria, subtables or validation —
that stays in backends/.
"""

import logging
from abc import ABC, abstractmethod

from ..exceptions import DriverError

logger = logging.getLogger(__name__)


class Connector(ABC):
    """
    Minimal connector: owns one driver connection for its lifetime.

    The connection is opened lazily on first use and kept until close().
    No pooling, no reconnection.
    """

    debug = False

    @abstractmethod
    def ping(self) -> bool:
        """
        Test connectivity. Returns True if the database is reachable.

        Must not raise — returns False on driver failure.
        """
        ...

    @abstractmethod
    def close(self):
        """Release the driver connection."""
        ...

    def _trace(self, statement, values=None):
        if self.debug:
            logger.info("%s: %s %r", self.__class__.__name__, statement, values or {})

    def __repr__(self):
        return f"<{self.__class__.__name__}>"


class SQLConnector(Connector):
    """
    DB-API 2.0 connector with named parameters.

    Subclasses must implement:
      _connect     — open and return a driver connection (autocommit on)
      driver_errors — tuple of driver exception classes to translate

    Everything else (criteria, joins, subtables) belongs in backends/.
    Connectors are plumbing. Backends are brains.
    """

    driver_errors = ()

    # Column giving insertion order in subtables; None means the engine's
    # natural scan order is used.
    row_order = None

    def __init__(self):
        self._conn = None

    # ── Required ──────────────────────────────────────────────

    @abstractmethod
    def _connect(self):
        """Open the driver connection. Rows must be dict-like."""
        ...

    # ── Connection ────────────────────────────────────────────

    @property
    def connection(self):
        if self._conn is None:
            try:
                self._conn = self._connect()
            except self.driver_errors as e:
                logger.error("Failed to connect with %r: %s", self, e)
                raise DriverError(f"Failed to connect with: {self!r}. Error: {e}") from e
        return self._conn

    def _cursor(self, conn):
        return conn.cursor()

    def _run(self, sql, values, handler):
        self._trace(sql, values)
        cursor = self._cursor(self.connection)
        try:
            cursor.execute(sql, values or {})
            return handler(cursor)
        except self.driver_errors as e:
            logger.error("Failed to execute sql query: %s. Error: %s", sql, e)
            raise DriverError(
                f"Failed to execute sql query: {sql}. Error: {e}", statement=sql
            ) from e
        finally:
            cursor.close()

    # ── Interface ─────────────────────────────────────────────

    def execute(self, sql, values=None) -> int:
        """Execute a write statement → affected row count."""
        return self._run(sql, values, lambda cursor: cursor.rowcount)

    def fetch(self, sql, values=None, single=False):
        """
        Execute a SELECT → one dict (or None) when single, else a list.

        The list is fully materialized: callers may run further
        statements on the same connection while iterating it.
        """
        if single:
            row = self._run(sql, values, lambda cursor: cursor.fetchone())
            return dict(row) if row is not None else None
        rows = self._run(sql, values, lambda cursor: cursor.fetchall())
        return [dict(r) for r in rows]

    def insert(self, sql, values=None):
        """Execute an INSERT → generated primary key."""
        return self._run(sql, values, lambda cursor: cursor.lastrowid)

    def ping(self):
        try:
            row = self.fetch("SELECT 1 AS ok", single=True)
        except DriverError as e:
            logger.warning("Ping failed for %r: %s", self, e)
            return False
        return bool(row) and row["ok"] == 1

    def close(self):
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    # ── Dialect helpers ───────────────────────────────────────
    # Override in subclasses where SQL syntax diverges.

    def quote(self, name: str) -> str:
        """Quote an identifier so reserved words are tolerated."""
        return '"' + name.replace('"', '""') + '"'

    def placeholder(self, tag: str) -> str:
        """Named parameter token (pyformat by default)."""
        return f"%({tag})s"

    def like(self, col: str, placeholder: str) -> str:
        """Case-sensitive LIKE."""
        return f"{col} LIKE {placeholder}"

    def ilike(self, col: str, placeholder: str) -> str:
        """Case-insensitive LIKE. PG has ILIKE; others use LOWER()."""
        return f"LOWER({col}) LIKE LOWER({placeholder})"

    def empty_insert(self, table: str) -> str:
        """INSERT of a row made only of column defaults."""
        return f"INSERT INTO {table} DEFAULT VALUES"
