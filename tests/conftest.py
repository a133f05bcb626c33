"""
Pytest configuration and fixtures for ActiveRecords tests.

Relational tests run against an in-memory SQLite database; MongoDB tests
run against a MagicMock collection behind a real MongoConnector (which
never connects unless a collection is requested from pymongo).
"""

from unittest.mock import MagicMock

import pytest

from activerecords.backends import DocumentBackend, RelationalBackend
from activerecords.connectors import MongoConnector, SQLiteConnector

SCHEMA = """
CREATE TABLE users (
    id    INTEGER PRIMARY KEY AUTOINCREMENT,
    name  TEXT,
    email TEXT,
    age   INTEGER
);
CREATE TABLE tags (
    relid INTEGER REFERENCES users(id) ON DELETE CASCADE,
    tags  TEXT
);
CREATE TABLE colors (
    relid INTEGER REFERENCES users(id) ON DELETE CASCADE,
    colors TEXT
);
"""


class RecordingConnector(SQLiteConnector):
    """SQLite connector that keeps every statement it runs."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.statements = []

    def _run(self, sql, values, handler):
        self.statements.append((sql, dict(values or {})))
        return super()._run(sql, values, handler)

    def deletes_from(self, table):
        return [sql for sql, _ in self.statements if sql.startswith(f'DELETE FROM "{table}"')]


@pytest.fixture
def connector():
    """In-memory SQLite with users + tags/colors subtables."""
    conn = RecordingConnector(db_path=":memory:")
    conn.connection.executescript(SCHEMA)
    yield conn
    conn.close()


@pytest.fixture
def backend(connector):
    """Relational backend on users with tags and colors as subtables."""
    return RelationalBackend(connector, "users", subtables=["tags", "colors"])


@pytest.fixture
def plain_backend(connector):
    """Relational backend on users without subtables."""
    return RelationalBackend(connector, "users")


@pytest.fixture
def subtable_rows(connector):
    """Read a subtable straight from SQLite, bypassing the backend."""
    def rows(field, relid):
        cur = connector.connection.execute(
            f"SELECT {field} FROM {field} WHERE relid = ? ORDER BY rowid", (relid,)
        )
        return [r[0] for r in cur.fetchall()]
    return rows


@pytest.fixture
def mongo_collection():
    """MagicMock standing in for a pymongo Collection."""
    coll = MagicMock()
    coll.name = "users"
    cursor = MagicMock()
    cursor.sort.return_value = cursor
    cursor.limit.return_value = cursor
    cursor.__iter__.return_value = iter([])
    coll.find.return_value = cursor
    coll.find_one.return_value = None
    return coll


@pytest.fixture
def mongo_backend(mongo_collection):
    """Document backend whose collections all resolve to mongo_collection."""
    conn = MongoConnector(database="shop")
    conn.collection = MagicMock(return_value=mongo_collection)
    return DocumentBackend(conn, "users")
