from __future__ import annotations

# auditsql/db.py
import os
import sqlite3
from contextlib import contextmanager
from typing import Any, Iterator, List, Optional, Sequence

import yaml
from pydantic import BaseModel, ValidationError

from .domain.specs import BoundParameter, ParamType
from .errors import DriverError, InvalidArgument

# DB path resolution order:
# 1) env AUDITSQL_DB_PATH (highest)
# 2) config.yaml test_db_path (when running under tests)
# 3) config.yaml db_path
# 4) fallback: auditsql.db in the working directory
DEFAULT_DB_FILE = "auditsql.db"
DEFAULT_CONFIG_FILE = "config.yaml"


class DatabaseSettings(BaseModel):
    db_path: Optional[str] = None
    test_db_path: Optional[str] = None
    timeout: float = 5.0
    foreign_keys: bool = True
    log_path: Optional[str] = None
    log_level: str = "INFO"


def _config_path(path: str | None = None) -> str:
    return path or os.environ.get("AUDITSQL_CONFIG") or os.path.join(os.getcwd(), DEFAULT_CONFIG_FILE)


def load_settings(path: str | None = None) -> DatabaseSettings:
    cfg_path = _config_path(path)
    if not os.path.exists(cfg_path):
        return DatabaseSettings()
    with open(cfg_path, "r", encoding="utf-8") as f:
        cfg = yaml.safe_load(f) or {}
    if not isinstance(cfg, dict):
        raise InvalidArgument(f"config file must contain a mapping: {cfg_path}")
    # blank strings mean "not set"
    cfg = {k: (v.strip() or None) if isinstance(v, str) else v for k, v in cfg.items()}
    try:
        return DatabaseSettings(**{k: v for k, v in cfg.items() if v is not None})
    except ValidationError as e:
        raise InvalidArgument(f"invalid config file {cfg_path}: {e}") from e


def get_db_path(settings: DatabaseSettings | None = None) -> str:
    settings = settings or load_settings()
    env_path = os.environ.get("AUDITSQL_DB_PATH")
    is_test = (os.environ.get("APP_ENV") == "test") or (os.environ.get("PYTEST_CURRENT_TEST") is not None)

    if env_path:
        path = env_path
    elif is_test and settings.test_db_path:
        path = settings.test_db_path
    elif settings.db_path:
        path = settings.db_path
    else:
        path = os.path.join(os.getcwd(), DEFAULT_DB_FILE)

    if path != ":memory:":
        dirn = os.path.dirname(path) or "."
        os.makedirs(dirn, exist_ok=True)
    return path


def _coerce(value: Any, datatype: int | None) -> Any:
    if datatype is None or value is None:
        return value
    try:
        kind = ParamType(datatype)
    except ValueError:
        raise InvalidArgument(f"unknown datatype tag: {datatype}") from None
    if kind is ParamType.NULL:
        return None
    if kind is ParamType.INT:
        try:
            return int(value)
        except (TypeError, ValueError):
            raise InvalidArgument(f"value {value!r} cannot be bound as INT") from None
    if kind is ParamType.STR:
        return str(value)
    if kind is ParamType.LOB:
        return value if isinstance(value, bytes) else str(value).encode("utf-8")
    if isinstance(value, str):
        value = value.strip().lower() not in ("", "0", "false")
    return 1 if value else 0


class Statement:
    """A prepared SQL text plus the cursor it runs on once executed."""

    def __init__(self, sql: str):
        self.sql = sql
        self.cursor: sqlite3.Cursor | None = None

    def __repr__(self) -> str:
        return f"Statement({self.sql!r})"


class SqliteConnection:
    """
    Owns the sqlite3 handle: connect/reconnect, statement execution and
    transactions. Outside begin()/commit() every statement autocommits.
    """

    def __init__(self, path: str, timeout: float = 5.0, foreign_keys: bool = True):
        self.path = path
        self.timeout = timeout
        self.foreign_keys = foreign_keys
        self._conn: sqlite3.Connection | None = None

    @classmethod
    def from_config(cls, path: str | None = None) -> "SqliteConnection":
        return cls.from_settings(load_settings(path))

    @classmethod
    def from_settings(cls, settings: DatabaseSettings) -> "SqliteConnection":
        conn = cls(get_db_path(settings), timeout=settings.timeout, foreign_keys=settings.foreign_keys)
        conn.connect()
        return conn

    def connect(self) -> None:
        if self._conn is not None:
            return
        try:
            conn = sqlite3.connect(
                self.path,
                timeout=self.timeout,
                detect_types=sqlite3.PARSE_DECLTYPES | sqlite3.PARSE_COLNAMES,
                check_same_thread=False,
                isolation_level=None,
            )
            if self.foreign_keys:
                conn.execute("PRAGMA foreign_keys = ON;")
        except sqlite3.Error as e:
            raise DriverError(f"cannot open database {self.path}: {e}", e) from e
        conn.row_factory = sqlite3.Row
        self._conn = conn

    @property
    def raw(self) -> sqlite3.Connection:
        self.connect()
        return self._conn

    @property
    def in_transaction(self) -> bool:
        return self._conn is not None and self._conn.in_transaction

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def prepare(self, sql: str) -> Statement:
        # sqlite3 has no separate prepare step; syntax errors surface on execute
        self.connect()
        return Statement(sql)

    def execute(self, statement: Statement, bindings: Sequence[BoundParameter] | None = None) -> None:
        params = self._params(bindings)
        try:
            statement.cursor = self.raw.execute(statement.sql, params)
        except sqlite3.Error as e:
            raise DriverError(f"{e} [sql={statement.sql}]", e) from e

    def rows_affected(self, statement: Statement) -> int:
        if statement.cursor is None:
            return 0
        return max(statement.cursor.rowcount, 0)

    def fetch_row(self, statement: Statement) -> dict | None:
        if statement.cursor is None:
            return None
        try:
            row = statement.cursor.fetchone()
        except sqlite3.Error as e:
            raise DriverError(str(e), e) from e
        return dict(row) if row is not None else None

    def fetch_all(self, statement: Statement) -> List[dict]:
        if statement.cursor is None:
            return []
        try:
            return [dict(r) for r in statement.cursor.fetchall()]
        except sqlite3.Error as e:
            raise DriverError(str(e), e) from e

    def begin(self) -> None:
        self._run("BEGIN")

    def commit(self) -> None:
        self._run("COMMIT")

    def rollback(self) -> None:
        self._run("ROLLBACK")

    @contextmanager
    def transaction(self) -> Iterator["SqliteConnection"]:
        self.begin()
        try:
            yield self
        except BaseException:
            if self.in_transaction:
                self.rollback()
            raise
        else:
            self.commit()

    def _run(self, sql: str) -> None:
        try:
            self.raw.execute(sql)
        except sqlite3.Error as e:
            raise DriverError(str(e), e) from e

    @staticmethod
    def _params(bindings: Sequence[BoundParameter] | None):
        """
        All parameters named -> dict for :name placeholders.
        None named -> list for ? placeholders.
        """
        if not bindings:
            return ()
        named = [b.placeholder is not None for b in bindings]
        if all(named):
            return {b.placeholder: _coerce(b.value, b.datatype) for b in bindings}
        if any(named):
            raise InvalidArgument("cannot mix named and positional bindings in one statement.")
        return [_coerce(b.value, b.datatype) for b in bindings]
