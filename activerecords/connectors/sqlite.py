"""
SQLite connector — talks to SQLite via the stdlib sqlite3 module.

Zero dependencies. The database is a file path (or ":memory:").
Can be anywhere reachable by the OS: local disk, NFS mount, USB stick.
"""

import os
import sqlite3

from .base import SQLConnector


class SQLiteConnector(SQLConnector):
    """SQLite via sqlite3."""

    driver_errors = (sqlite3.Error,)

    # Subtables have no key of their own; rowid follows insertion order.
    row_order = "rowid"

    def __init__(self, *, db_path):
        super().__init__()
        if not db_path:
            raise ValueError("SQLiteConnector requires 'db_path'")
        self.db_path = db_path if db_path == ":memory:" else os.path.expanduser(db_path)

    def _connect(self):
        """
        Open the database file.

        Key settings:
          - isolation_level=None — autocommit, every statement stands alone
          - row_factory = sqlite3.Row — rows convert cleanly to dicts
          - foreign_keys — ON DELETE CASCADE in the schema is honoured
          - case_sensitive_like — plain LIKE matches case, like the
            other engines; LOWER() handles the /i patterns
        """
        conn = sqlite3.connect(self.db_path, isolation_level=None)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        conn.execute("PRAGMA case_sensitive_like = ON")
        return conn

    # ── Dialect overrides ─────────────────────────────────────

    def placeholder(self, tag):
        """sqlite3 uses :name for named parameters."""
        return f":{tag}"

    # ilike: SQLite has no ILIKE — base class LOWER() fallback is correct.
    # empty_insert: SQLite supports DEFAULT VALUES.

    def __repr__(self):
        return f"<SQLiteConnector {self.db_path}>"
