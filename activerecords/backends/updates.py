"""
Update payload resolution.

An update payload mixes operation buckets with bare fields:

    {"name": "bob",                      → set
     "push": {"tags": "x"},              → push
     "$addToSet": {"tags": ["y", "z"]}}  → add-to-set (Mongo spelling)

resolve() sorts it into the four buckets below. Bare field/value pairs
are folded into "set".
"""

from collections.abc import Mapping

SET = "set"
ADD_TO_SET = "add-to-set"
PUSH = "push"
PULL = "pull"

OPERATIONS = (SET, ADD_TO_SET, PUSH, PULL)

MONGO_OPERATORS = {
    SET: "$set",
    ADD_TO_SET: "$addToSet",
    PUSH: "$push",
    PULL: "$pull",
}

_KINDS = {**{op: op for op in OPERATIONS},
          **{mongo: op for op, mongo in MONGO_OPERATORS.items()}}


def resolve(payload) -> dict:
    """Return {kind: {field: value}} for every kind in OPERATIONS."""
    if not isinstance(payload, Mapping):
        raise TypeError(f"Update data must be a mapping, got {type(payload).__name__}")

    ops = {kind: {} for kind in OPERATIONS}
    for key, value in payload.items():
        kind = _KINDS.get(key)
        if kind is None:
            ops[SET][key] = value
            continue
        if not isinstance(value, Mapping):
            raise TypeError(f'"{key}" operation expects a mapping of field → value')
        ops[kind].update(value)
    return ops


def elements(value) -> list:
    """The element list of a multi-valued write; a scalar is one element."""
    if value is None:
        return []
    if isinstance(value, (list, tuple, set)):
        return list(value)
    return [value]


def split_subtables(ops, subtables):
    """
    Separate subtable fields from the main-table "set" bucket.

    Returns (main_set, subtable_set) where subtable_set maps each
    subtable field to its new element list. add-to-set, push and pull
    only make sense on subtable fields in SQL; anything else is rejected.
    """
    main, sub = {}, {}
    for field, value in ops[SET].items():
        if field in subtables:
            sub[field] = elements(value)
        else:
            main[field] = value

    for kind in (ADD_TO_SET, PUSH, PULL):
        for field in ops[kind]:
            if field not in subtables:
                raise ValueError(
                    f'"{kind}" needs a multi-valued field; "{field}" is not a configured subtable'
                )
    return main, sub
