"""
Sort normalization.

Callers may write directions either way, per field:

    ASC  (SQL) == 1  (MongoDB)
    DESC (SQL) == -1 (MongoDB)

to_sql() and to_mongo() accept both encodings (ASC/DESC in any case)
and emit whichever one the engine wants. Anything else is an error.
"""

_ASC = ("ASC", 1)
_DESC = ("DESC", -1)


def _direction(value):
    # bool is an int subclass; True must not pass for 1.
    if isinstance(value, str):
        token = value.strip().upper()
        if token == "ASC":
            return _ASC
        if token == "DESC":
            return _DESC
    elif isinstance(value, int) and not isinstance(value, bool):
        if value == 1:
            return _ASC
        if value == -1:
            return _DESC
    raise ValueError(f'"{value}" is invalid for sort, allowed values are: ASC, DESC, 1, -1')


def _items(sort):
    if not sort:
        return []
    if not hasattr(sort, "items"):
        raise TypeError(f"Sort must be a mapping of field → direction, got {type(sort).__name__}")
    return list(sort.items())


def to_sql(sort) -> list[tuple[str, str]]:
    """[(field, "ASC" | "DESC"), ...] in the caller's order."""
    return [(field, _direction(value)[0]) for field, value in _items(sort)]


def to_mongo(sort) -> list[tuple[str, int]]:
    """[(field, 1 | -1), ...] in the caller's order."""
    return [(field, _direction(value)[1]) for field, value in _items(sort)]
