"""auditsql: parameterized INSERT/UPDATE/DELETE builder with audit columns, over sqlite3."""
from __future__ import annotations

from .db import DatabaseSettings, SqliteConnection, load_settings
from .domain.audit import DEFAULT_ACTOR, AuditContext
from .domain.specs import BoundParameter, ColumnSpec, ConditionSpec, ParamType
from .errors import (
    DatabaseError,
    DriverError,
    ErrorKind,
    InvalidArgument,
    MultipleRecordsFound,
    RecordNotFound,
)
from .executor import StatementExecutor

__all__ = [
    "AuditContext",
    "BoundParameter",
    "ColumnSpec",
    "ConditionSpec",
    "DEFAULT_ACTOR",
    "DatabaseError",
    "DatabaseSettings",
    "DriverError",
    "ErrorKind",
    "InvalidArgument",
    "MultipleRecordsFound",
    "ParamType",
    "RecordNotFound",
    "SqliteConnection",
    "StatementExecutor",
    "load_settings",
]

__version__ = "0.1.0"
