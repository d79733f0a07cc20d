"""
Statement executor: builds INSERT/UPDATE/DELETE from column/condition maps,
injects audit columns, and runs raw read queries through the same binding path.

Only validated identifiers are interpolated into SQL text; every value travels
as a bound parameter.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence

from .db import SqliteConnection, load_settings
from .domain import audit
from .domain.audit import AuditContext
from .domain.clauses import build_insert_columns, build_set_clause, build_where_clause
from .domain.identifiers import validate_table
from .domain.specs import BoundParameter, normalize_value
from .errors import InvalidArgument, MultipleRecordsFound, RecordNotFound
from .logs import configure_logging, safe_info


def _bind_list(bindings: Sequence[BoundParameter]) -> str:
    return ",".join(f"{b.placeholder}={b.value}" for b in bindings)


def normalize_bindings(bindings: Any) -> List[BoundParameter]:
    """
    Raw-query bindings: a mapping {name: spec} for :name placeholders (leading
    colon optional) or a sequence [spec, ...] for ? placeholders. Each spec is
    a bare value or {"value": ..., "datatype": ...}.
    """
    if bindings is None:
        return []
    out: List[BoundParameter] = []
    if isinstance(bindings, Mapping):
        for name, spec in bindings.items():
            key = name.lstrip(":") if isinstance(name, str) else ""
            if key == "":
                raise InvalidArgument(f"binding name must be a non-empty string, got {name!r}.")
            value, datatype = normalize_value(spec)
            out.append(BoundParameter(key, value, datatype))
        return out
    if isinstance(bindings, (str, bytes)) or not isinstance(bindings, Sequence):
        raise InvalidArgument("bindings must be a mapping or a sequence.")
    for spec in bindings:
        value, datatype = normalize_value(spec)
        out.append(BoundParameter(None, value, datatype))
    return out


class StatementExecutor:
    """
    Not safe to share across threads: the audit actor is per-instance mutable
    state. Use one executor per session/thread.
    """

    def __init__(
        self,
        connection: SqliteConnection,
        logger: Optional[Any] = None,
        audit_context: Optional[AuditContext] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._connection = connection
        self._logger = logger if logger is not None else logging.getLogger(__name__)
        self._audit = audit_context if audit_context is not None else AuditContext()
        self._clock = clock

    @classmethod
    def from_config(cls, path: str | None = None, logger: Optional[Any] = None) -> "StatementExecutor":
        settings = load_settings(path)
        if logger is None:
            configure_logging(settings.log_path, settings.log_level)
        return cls(SqliteConnection.from_settings(settings), logger=logger)

    # ---------------- connection / actor ----------------

    @property
    def connection(self) -> SqliteConnection:
        return self._connection

    def close(self) -> None:
        self._connection.close()

    @contextmanager
    def transaction(self) -> Iterator["StatementExecutor"]:
        with self._connection.transaction():
            yield self

    @property
    def current_actor(self) -> str:
        return self._audit.actor_id

    def set_current_actor(self, actor_id: str) -> None:
        self._audit.set_actor(actor_id)

    # ---------------- writes ----------------

    def insert(self, table: str, values: Mapping[str, Any]) -> int:
        validate_table(table)
        if not values:
            raise InvalidArgument("insert: values cannot be empty.")

        values = audit.for_insert(values, self._audit, self._now())
        column_list, placeholders, bindings = build_insert_columns(values)
        sql = f"INSERT INTO {table} ({column_list}) VALUES ({placeholders})"

        values_text = ",".join(str(b.value) for b in bindings)
        safe_info(self._logger, "insert will execute: table=%s columns=[%s] values=[%s]",
                  table, column_list, values_text)
        return self._write(sql, bindings)

    def update(self, table: str, values: Mapping[str, Any], conditions: Mapping[str, Any]) -> int:
        validate_table(table)
        if not values:
            raise InvalidArgument("update: values cannot be empty.")
        # an UPDATE without WHERE is never built
        if not conditions:
            raise InvalidArgument("update: conditions cannot be empty.")

        values = audit.for_update(values, self._audit, self._now())
        set_clause, set_bindings = build_set_clause(values)
        where_clause, where_bindings = build_where_clause(conditions)
        sql = f"UPDATE {table} SET {set_clause} WHERE {where_clause}"

        bindings = set_bindings + where_bindings
        safe_info(self._logger, "update executed: table=%s set=[%s]", table, _bind_list(bindings))
        return self._write(sql, bindings)

    def delete(self, table: str, conditions: Optional[Mapping[str, Any]] = None) -> int:
        """Delete matching rows. Empty or None conditions delete every row of the table."""
        validate_table(table)
        if not conditions:
            sql = f"DELETE FROM {table}"
            bindings: List[BoundParameter] = []
            safe_info(self._logger, "delete executed: table=%s", table)
        else:
            where_clause, bindings = build_where_clause(conditions)
            sql = f"DELETE FROM {table} WHERE {where_clause}"
            safe_info(self._logger, "delete executed: table=%s WHERE=[%s]", table, _bind_list(bindings))
        return self._write(sql, bindings)

    # ---------------- raw reads ----------------

    def fetch_one(self, sql: str, bindings: Any = None) -> Dict[str, Any]:
        """Exactly one row or RecordNotFound / MultipleRecordsFound."""
        stmt = self._run(sql, normalize_bindings(bindings))
        row = self._connection.fetch_row(stmt)
        if row is None:
            raise RecordNotFound("query returned no rows.")
        # fetch a second row instead of trusting the driver's row count
        if self._connection.fetch_row(stmt) is not None:
            raise MultipleRecordsFound("query returned more than one row.")
        return row

    def fetch_list(self, sql: str, bindings: Any = None) -> List[Dict[str, Any]]:
        stmt = self._run(sql, normalize_bindings(bindings))
        return self._connection.fetch_all(stmt)

    def fetch_count(self, sql: str, bindings: Any = None) -> int:
        stmt = self._run(sql, normalize_bindings(bindings))
        row = self._connection.fetch_row(stmt)
        if not row:
            return 0
        first = next(iter(row.values()))
        if first is None:
            return 0
        try:
            return int(first)
        except (TypeError, ValueError):
            raise InvalidArgument(f"fetch_count: first column is not numeric: {first!r} [sql={sql}]") from None

    # ---------------- internals ----------------

    def _now(self) -> str:
        return audit.current_timestamp(self._clock)

    def _run(self, sql: str, bindings: List[BoundParameter]):
        stmt = self._connection.prepare(sql)
        self._connection.execute(stmt, bindings)
        return stmt

    def _write(self, sql: str, bindings: List[BoundParameter]) -> int:
        stmt = self._run(sql, bindings)
        return self._connection.rows_affected(stmt)
