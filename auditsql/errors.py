from __future__ import annotations

# auditsql/errors.py
from enum import Enum


class ErrorKind(str, Enum):
    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    RECORD_NOT_FOUND = "RECORD_NOT_FOUND"
    MULTIPLE_RECORDS_FOUND = "MULTIPLE_RECORDS_FOUND"
    DRIVER_ERROR = "DRIVER_ERROR"


class DatabaseError(Exception):
    """Base error; switch on `.kind` instead of the subclass if preferred."""

    kind: ErrorKind = ErrorKind.DRIVER_ERROR


class InvalidArgument(DatabaseError, ValueError):
    kind = ErrorKind.INVALID_ARGUMENT


class RecordNotFound(DatabaseError):
    kind = ErrorKind.RECORD_NOT_FOUND


class MultipleRecordsFound(DatabaseError):
    kind = ErrorKind.MULTIPLE_RECORDS_FOUND


class DriverError(DatabaseError):
    """Failure surfaced by the sqlite3 driver. The driver exception is kept on `.original`."""

    kind = ErrorKind.DRIVER_ERROR

    def __init__(self, message: str, original: BaseException | None = None):
        super().__init__(message)
        self.original = original
