"""
ActiveRecords Document Backend — CRUD over MongoDB
===================================================

MongoDB stores arrays natively, so there are no subtables here: the
work is translating the shared criteria / sort / update language into
pymongo arguments.

  criteria   → filter      "id" → "_id" (ObjectId), "/re/i" → Regex
  sort       → [(field, 1 | -1)]
  updates    → {"$set", "$addToSet", "$push", "$pull"}; list values are
               applied element by element ($each / $in), the same way the
               relational backend treats subtable writes

Records come back with "_id" exposed as "id" (a string for ObjectIds) so
callers see the same shape from either backend.
"""

from bson import ObjectId

from . import updates
from .criteria import check_criteria, compile_filter
from .sort import to_mongo
from .validator import ValidationGate

FETCH_MODES = ("assoc", "num")


def _native_field(field):
    return "_id" if field == "id" else field


def update_document(ops) -> dict:
    """Resolved update buckets → MongoDB update document."""
    doc = {}
    if ops[updates.SET]:
        doc["$set"] = dict(ops[updates.SET])
    for kind in (updates.ADD_TO_SET, updates.PUSH):
        if ops[kind]:
            doc[updates.MONGO_OPERATORS[kind]] = {
                field: {"$each": updates.elements(value)} if isinstance(value, (list, tuple, set)) else value
                for field, value in ops[kind].items()
            }
    if ops[updates.PULL]:
        doc["$pull"] = {
            field: {"$in": updates.elements(value)} if isinstance(value, (list, tuple, set)) else value
            for field, value in ops[updates.PULL].items()
        }
    return doc


class DocumentBackend:
    """
    CRUD contract over a MongoConnector.

    Usage:
        backend = DocumentBackend(MongoConnector(database="shop"), table="users")
        uid = backend.add({"name": "a", "tags": ["x", "y"]})
        backend.update({"id": uid}, {"push": {"tags": "z"}})
    """

    def __init__(self, connector, table=None, *, mandatory_fields=(), unique_fields=(),
                 fetch_mode="assoc", debug=False):
        self.connector = connector
        self.table = None
        if table is not None:
            self.set_table(table)
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
        """Set the default collection; "table" keeps the name shared with SQL."""
        if not name or not isinstance(name, str):
            raise ValueError(f'"{name}" is not valid table name, set it to non empty string.')
        self.table = name

    def set_handler_attr(self, name, value):
        if name == "fetch_mode":
            if value not in FETCH_MODES:
                raise ValueError(f'"{value}" is not a fetch mode, allowed values are: {", ".join(FETCH_MODES)}')
            self.fetch_mode = value
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

    # ── Helpers ───────────────────────────────────────────────

    def _collection(self, table):
        name = table or self.table
        if not name:
            raise ValueError(
                "Collection name must be either set via set_table() or passed explicitly as argument"
            )
        return self.connector.collection(name)

    def _filter(self, criteria, action, coll):
        native = compile_filter(criteria)
        self.connector.trace(action, coll.name, native)
        return native

    @staticmethod
    def _projection(projection):
        if not projection:
            return None
        return {_native_field(f): 1 for f in projection}

    def _record(self, doc):
        if doc is None:
            return None
        doc = dict(doc)
        if "_id" in doc:
            doc_id = doc.pop("_id")
            doc = {"id": str(doc_id) if isinstance(doc_id, ObjectId) else doc_id, **doc}
        if self.fetch_mode == "num":
            return tuple(doc.values())
        return doc

    # ── Record identifier ─────────────────────────────────────

    def get_record_id(self, criteria, table=None):
        """Id of the first document matching criteria, or None."""
        criteria = check_criteria(criteria)
        if "id" in criteria:
            return criteria["id"]
        coll = self._collection(table)
        with self.connector.guard("find_one"):
            doc = coll.find_one(self._filter(criteria, "find_one", coll), {"_id": 1})
        if doc is None:
            return None
        return str(doc["_id"]) if isinstance(doc["_id"], ObjectId) else doc["_id"]

    # ── CRUD ──────────────────────────────────────────────────

    def add(self, record, table=None):
        """Insert a document. Returns its id, or None when validation fails."""
        if not self.gate.validated(record, table):
            return None
        coll = self._collection(table)
        doc = dict(record)
        if "id" in doc:
            doc["_id"] = compile_filter({"id": doc.pop("id")})["_id"]
        self.connector.trace("insert_one", coll.name, doc)
        with self.connector.guard("insert_one"):
            result = coll.insert_one(doc)
        inserted = result.inserted_id
        return str(inserted) if isinstance(inserted, ObjectId) else inserted

    def get(self, criteria=None, projection=None, sort=None, limit=None, table=None):
        """All matching documents as a list (eager, not a cursor)."""
        coll = self._collection(table)
        native_sort = [(_native_field(f), d) for f, d in to_mongo(sort)]
        native = self._filter(criteria, "find", coll)
        with self.connector.guard("find"):
            cursor = coll.find(native, self._projection(projection))
            if native_sort:
                cursor = cursor.sort(native_sort)
            if limit:
                cursor = cursor.limit(int(limit))
            return [self._record(doc) for doc in cursor]

    def get_one(self, criteria=None, projection=None, table=None):
        """First matching document, or None."""
        coll = self._collection(table)
        native = self._filter(criteria, "find_one", coll)
        with self.connector.guard("find_one"):
            doc = coll.find_one(native, self._projection(projection))
        return self._record(doc)

    def update(self, criteria, data, table=None):
        """Apply an update payload to every matching document."""
        if not self.gate.check_payload(data):
            return
        coll = self._collection(table)
        document = update_document(updates.resolve(data))
        if not document:
            return
        native = self._filter(criteria, "update_many", coll)
        self.connector.trace("update_many", coll.name, document)
        with self.connector.guard("update_many"):
            coll.update_many(native, document)

    def delete(self, criteria=None, table=None):
        """Delete every matching document."""
        coll = self._collection(table)
        native = self._filter(criteria, "delete_many", coll)
        with self.connector.guard("delete_many"):
            coll.delete_many(native)

    def __repr__(self):
        return f"<DocumentBackend {self.connector!r} collection={self.table}>"
