"""
Validation gate for write paths.

Backends call the gate explicitly before writing. A failed check never
raises: it records an entry in the error map and the backend turns the
write into a no-op. Callers inspect get_errors() afterwards:

    {ErrorCode.MISSED_MANDATORY_FIELD: {"errmsg": "...", "extinfo": ["email"]}}
"""

import logging
from collections.abc import Mapping
from enum import IntEnum

logger = logging.getLogger(__name__)


class ErrorCode(IntEnum):
    EMPTY_SET = 1000
    NOT_ASSOC = 1001
    MISSED_MANDATORY_FIELD = 1002
    RECORD_EXIST = 1003


def _field_list(fields):
    if not isinstance(fields, (list, tuple, set, frozenset)):
        raise TypeError("Argument must be a list of field names")
    return list(fields)


class ValidationGate:
    """
    Mandatory-field and uniqueness checks.

    `lookup(criteria, table)` returns the first record matching criteria
    or None; the backend passes its own get_one.
    """

    def __init__(self, lookup, mandatory_fields=(), unique_fields=()):
        self.lookup = lookup
        self.mandatory_fields = _field_list(mandatory_fields)
        self.unique_fields = _field_list(unique_fields)
        self.errors = {}

    def set_mandatory_fields(self, fields):
        self.mandatory_fields = _field_list(fields)

    def set_unique_fields(self, fields):
        self.unique_fields = _field_list(fields)

    def get_errors(self) -> dict:
        return dict(self.errors)

    def _fail(self, code, errmsg, extinfo):
        logger.debug("Validation failed (%s): %s %r", code.name, errmsg, extinfo)
        self.errors[code] = {"errmsg": errmsg, "extinfo": extinfo}
        return False

    # ── Checks ────────────────────────────────────────────────

    def _is_assoc(self, data):
        if not data:
            return self._fail(ErrorCode.EMPTY_SET, "Empty set received.", "")
        if not isinstance(data, Mapping) or not any(isinstance(k, str) for k in data):
            return self._fail(
                ErrorCode.NOT_ASSOC, "Data supplied is not associative array.", repr(data)
            )
        return True

    def _has_mandatory_fields(self, data):
        missed = [f for f in self.mandatory_fields if data.get(f) is None]
        if missed:
            return self._fail(
                ErrorCode.MISSED_MANDATORY_FIELD, "Mandatory field(-s) not found.", missed
            )
        return True

    def _is_unique(self, data, table):
        criteria = {f: data[f] for f in self.unique_fields if data.get(f) is not None}
        if not criteria:
            return True
        existing = self.lookup(criteria, table)
        if existing:
            return self._fail(
                ErrorCode.RECORD_EXIST,
                f"Record already exists matching criteria: {criteria}",
                existing,
            )
        return True

    # ── Entry points ──────────────────────────────────────────

    def validated(self, data, table=None) -> bool:
        """Full gate for inserts. Resets the error map first."""
        self.errors = {}
        return (
            self._is_assoc(data)
            and (not self.mandatory_fields or self._has_mandatory_fields(data))
            and (not self.unique_fields or self._is_unique(data, table))
        )

    def check_payload(self, data) -> bool:
        """Shape-only gate for updates. Resets the error map first."""
        self.errors = {}
        return self._is_assoc(data)
