"""
ActiveRecords — one CRUD contract over relational and document databases.

    connectors/   plumbing: connection, execution, dialect
    backends/     brains: criteria, sort, updates, subtables, validation
    records.py    the façade and open()
"""

from .backends import DocumentBackend, ErrorCode, Handler, RelationalBackend
from .connectors import connect
from .exceptions import ActiveRecordsError, DriverError
from .records import ActiveRecords, backend_for, open

__all__ = [
    "open",
    "connect",
    "backend_for",
    "ActiveRecords",
    "Handler",
    "RelationalBackend",
    "DocumentBackend",
    "ErrorCode",
    "ActiveRecordsError",
    "DriverError",
]
