"""
ActiveRecords façade.

Usage:

    import activerecords

    records = activerecords.open("sqlite:///shop.db", table="users",
                                 subtables=["tags"], mandatory_fields=["name"])
    uid = records.add({"name": "a", "tags": ["x", "y"]})
    records.update({"id": uid}, {"push": {"tags": "z"}})
    records.get({"name": "/^a.+/i"}, sort={"name": "ASC"}, limit=10)

    if records.add({"tags": ["x"]}) is None:
        print(records.get_errors())

The façade validates set_table() and forwards everything else to the
backend picked for the connector.
"""

from .backends import DocumentBackend, Handler, RelationalBackend
from .connectors import MongoConnector, connect, from_config, load_config


class ActiveRecords:
    """Polymorphic handle over one backend."""

    def __init__(self, handler):
        if not isinstance(handler, Handler):
            raise TypeError(f"{handler!r} does not implement the ActiveRecords handler interface")
        self._handler = handler

    @property
    def handler(self):
        return self._handler

    def set_table(self, name):
        if not name or not isinstance(name, str):
            raise ValueError(f'"{name}" is not valid table name, set it to non empty string.')
        self._handler.set_table(name)

    def __getattr__(self, name):
        if name == "_handler":
            raise AttributeError(name)
        return getattr(self._handler, name)

    def __repr__(self):
        return f"<ActiveRecords {self._handler!r}>"


def backend_for(connector, table=None, **options):
    """Wrap a connector in the backend matching its data model."""
    if isinstance(connector, MongoConnector):
        return DocumentBackend(connector, table, **options)
    return RelationalBackend(connector, table, **options)


def open(url=None, table=None, **options):
    """
    Connect and return an ActiveRecords façade.

    Without a URL the connector comes from ~/.activerecords.json, whose
    optional "options" section supplies defaults for the keyword options
    (subtables, cascade, mandatory_fields, unique_fields, fetch_mode,
    debug).
    """
    if url:
        connector = connect(url)
    else:
        cfg = load_config()
        connector = from_config(cfg)
        options = {**cfg.get("options", {}), **options}
    return ActiveRecords(backend_for(connector, table, **options))
