"""
ActiveRecords exceptions.

Only driver failures are raised as library exceptions. Argument errors
use the builtin TypeError / ValueError, and validation failures are never
raised at all: they land in the handler's error map (see
backends/validator.py).
"""


class ActiveRecordsError(Exception):
    """Base class for ActiveRecords errors."""


class DriverError(ActiveRecordsError):
    """
    A database driver failed: connection refused, malformed statement,
    constraint violation.

    Fatal for the operation in progress. Nothing is retried, and writes
    already issued earlier in the same operation are not rolled back.
    """

    def __init__(self, message, statement=None):
        super().__init__(message)
        self.statement = statement
