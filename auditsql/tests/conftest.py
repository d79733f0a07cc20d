import os
import sys
import sqlite3
from datetime import datetime, timedelta
from pathlib import Path

import pytest

# Ensure project root on sys.path
_THIS_DIR = Path(__file__).resolve().parent
_PROJECT_ROOT = _THIS_DIR.parent.parent
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))

from auditsql.db import SqliteConnection  # noqa: E402
from auditsql.executor import StatementExecutor  # noqa: E402


@pytest.fixture(scope="session")
def tmp_db_path(tmp_path_factory):
    path = tmp_path_factory.mktemp("db") / "auditsql_test.db"
    os.environ["AUDITSQL_DB_PATH"] = str(path)
    schema = (_THIS_DIR / "schema.sql").read_text(encoding="utf-8")
    conn = sqlite3.connect(str(path))
    try:
        conn.executescript(schema)
        conn.commit()
    finally:
        conn.close()
    return str(path)


@pytest.fixture(autouse=True)
def _clean_db(tmp_db_path):
    # Safety: only ever wipe the temp DB
    assert os.environ.get("AUDITSQL_DB_PATH") == tmp_db_path, "Refusing to clean non-temp DB"
    conn = sqlite3.connect(tmp_db_path)
    try:
        for t in ("stock_check", "stock"):
            conn.execute(f"DELETE FROM {t}")
        conn.execute("DELETE FROM sqlite_sequence")
        conn.commit()
    finally:
        conn.close()
    yield


class FakeClock:
    """Deterministic clock; advance() moves it forward."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2025, 1, 15, 9, 30, 0)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: int = 60) -> None:
        self.now = self.now + timedelta(seconds=seconds)


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def conn(tmp_db_path):
    c = SqliteConnection(tmp_db_path)
    yield c
    c.close()


@pytest.fixture()
def executor(conn, clock):
    return StatementExecutor(conn, clock=clock)
