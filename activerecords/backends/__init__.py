"""
ActiveRecords Backends — one CRUD contract, two data models
===========================================================

Each backend implements the same interface:

    class SomeBackend:
        def set_table(self, name): ...
        def add(self, record, table=None) -> id | None: ...
        def get(self, criteria=None, projection=None, sort=None,
                limit=None, table=None) -> list: ...
        def get_one(self, criteria=None, projection=None,
                    table=None) -> record | None: ...
        def update(self, criteria, data, table=None) -> None: ...
        def delete(self, criteria=None, table=None) -> None: ...
        def get_record_id(self, criteria, table=None) -> id | None: ...
        def set_handler_attr(self, name, value): ...
        def get_errors(self) -> dict: ...

Available backends:
    - relational.py — SQLite / PostgreSQL / MySQL, with subtables
                      emulating multi-valued fields
    - document.py   — MongoDB, arrays stored natively

Shared compilers:
    - criteria.py   — criteria → WHERE + values / Mongo filter
    - sort.py       — ASC/DESC ↔ 1/-1
    - updates.py    — payload → set / add-to-set / push / pull
    - validator.py  — the write gate and its error map

The interface is a Protocol rather than a base class: backends share no
implementation, only a shape. ActiveRecords (records.py) holds one
behind that shape.
"""

from typing import Any, Protocol, runtime_checkable

from .document import DocumentBackend
from .relational import RelationalBackend
from .validator import ErrorCode, ValidationGate

__all__ = [
    "Handler",
    "RelationalBackend",
    "DocumentBackend",
    "ValidationGate",
    "ErrorCode",
]


@runtime_checkable
class Handler(Protocol):
    """The capability set every backend offers."""

    def set_table(self, name: str) -> None: ...

    def add(self, record: dict, table: str | None = None) -> Any: ...

    def get(self, criteria: dict | None = None, projection: list | None = None,
            sort: dict | None = None, limit: int | None = None,
            table: str | None = None) -> list: ...

    def get_one(self, criteria: dict | None = None, projection: list | None = None,
                table: str | None = None) -> Any: ...

    def update(self, criteria: dict | None, data: dict, table: str | None = None) -> None: ...

    def delete(self, criteria: dict | None = None, table: str | None = None) -> None: ...

    def get_record_id(self, criteria: dict, table: str | None = None) -> Any: ...

    def set_handler_attr(self, name: str, value: Any) -> None: ...

    def get_errors(self) -> dict: ...
