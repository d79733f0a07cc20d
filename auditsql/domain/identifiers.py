"""
Identifier whitelist checks.

Table and column names are interpolated into SQL text and cannot be bound as
parameters, so anything outside the patterns below is rejected, never escaped.
"""
from __future__ import annotations

import re

from ..errors import InvalidArgument

TABLE_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)*")
COLUMN_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")

ALLOWED_OPERATORS = ("=", "!=", "<>", ">", "<", ">=", "<=", "LIKE")


def validate_table(name: str) -> str:
    if not isinstance(name, str) or not TABLE_RE.fullmatch(name):
        raise InvalidArgument(f'validate_table: invalid table name "{name}".')
    return name


def validate_column(name: str) -> str:
    if not isinstance(name, str) or not COLUMN_RE.fullmatch(name):
        raise InvalidArgument(f'validate_column: invalid column name "{name}".')
    return name


def validate_operator(op: str) -> str:
    if op not in ALLOWED_OPERATORS:
        raise InvalidArgument(f'validate_operator: unsupported operator "{op}".')
    return op
