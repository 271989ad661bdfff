"""
Pytest configuration for the AS400 data-access layer.

Unit tests run the engine against an in-memory sqlite3 database: it is a
DB-API driver with the same qmark (`?`) parameter style as pyodbc, and an
attached database named SALES gives us qualified `SALES.CUSTOMERS` names.

Provides fixtures for:
- In-memory database connections seeded with a customers table
- Engine-level connections wired to a spy audit recorder
- Scripted fake drivers for commit, rollback and fetch fault injection
- Settings with test-specific values
"""

from __future__ import annotations

import re
import sqlite3
from typing import Any, Callable, Dict, Generator, List, Optional, Sequence, Tuple

import pytest

from as400_dal.config import Settings
from as400_dal.infrastructure.connection import As400Connection
from as400_dal.query import Criteria
from as400_dal.recording import AbstractDataRecorder, DataRecorder, DataRecordType
from as400_dal.utils.profiler import QueryLogger

SCHEMA = """
CREATE TABLE SALES.CUSTOMERS (
    CUSNUM INTEGER PRIMARY KEY AUTOINCREMENT,
    CUSNAM TEXT,
    CUSSTS TEXT,
    CUSBAL REAL,
    CUSCRT TEXT
);
INSERT INTO SALES.CUSTOMERS (CUSNAM, CUSSTS, CUSBAL, CUSCRT)
    VALUES ('ACME CORP           ', 'A', 120.5, '2024-01-31');
INSERT INTO SALES.CUSTOMERS (CUSNAM, CUSSTS, CUSBAL, CUSCRT)
    VALUES ('GLOBEX              ', 'A', 0.0, '2023-12-01');
INSERT INTO SALES.CUSTOMERS (CUSNAM, CUSSTS, CUSBAL, CUSCRT)
    VALUES ('INITECH             ', 'I', 42.0, 'not-a-date');
"""

SEEDED_ROWS = 3

_PAGING = re.compile(r"(?: OFFSET (\d+) ROWS)?(?: FETCH FIRST (\d+) ROWS ONLY)?$")


def memory_database() -> sqlite3.Connection:
    """Open an in-memory database with a seeded SALES.CUSTOMERS table."""
    conn = sqlite3.connect(":memory:")
    conn.execute("ATTACH DATABASE ':memory:' AS SALES")
    conn.executescript(SCHEMA)
    conn.commit()
    return conn


def to_sqlite_paging(query: str) -> str:
    """Rewrite a trailing DB2 `OFFSET n ROWS FETCH FIRST n ROWS ONLY` as LIMIT/OFFSET."""
    match = _PAGING.search(query)
    offset, limit = match.groups()
    if offset is None and limit is None:
        return query
    clause = f" LIMIT {limit or -1}"
    if offset is not None:
        clause += f" OFFSET {offset}"
    return query[: match.start()] + clause


class SqliteDialect:
    """sqlite3 connection that accepts the DB2 paging clauses the engine emits.

    `autocommit` follows pyodbc: switching it off opens a transaction on the
    underlying database, switching it back on commits anything still pending.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn
        self._autocommit = True

    @property
    def autocommit(self) -> bool:
        return self._autocommit

    @autocommit.setter
    def autocommit(self, value: bool) -> None:
        if not value and not self._conn.in_transaction:
            self._conn.execute("BEGIN")
        elif value and self._conn.in_transaction:
            self._conn.commit()
        self._autocommit = value

    def cursor(self) -> "_DialectCursor":
        return _DialectCursor(self._conn.cursor())

    def __getattr__(self, name: str) -> Any:
        return getattr(self._conn, name)


class _DialectCursor:
    def __init__(self, cursor: sqlite3.Cursor) -> None:
        self._cursor = cursor

    def execute(self, query: str, params: Sequence[Any] = ()) -> sqlite3.Cursor:
        return self._cursor.execute(to_sqlite_paging(query), params)

    def __getattr__(self, name: str) -> Any:
        return getattr(self._cursor, name)


class SpyRecorder(AbstractDataRecorder):
    """Recorder capturing every notification it receives."""

    def __init__(self) -> None:
        self.records: List[Dict[str, Any]] = []

    def record(
        self,
        table: str,
        new_data: Optional[Dict[str, Any]] = None,
        old_data: Optional[Any] = None,
        where: Criteria = None,
        action: Optional[DataRecordType] = None,
    ) -> None:
        self.records.append(
            {
                "table": table,
                "new_data": new_data,
                "old_data": old_data,
                "where": where,
                "action": action,
            }
        )


@pytest.fixture
def raw_db() -> Generator[sqlite3.Connection, None, None]:
    conn = memory_database()
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture
def query_logger() -> QueryLogger:
    return QueryLogger()


@pytest.fixture
def spy_recorder() -> SpyRecorder:
    return SpyRecorder()


@pytest.fixture
def connection(
    raw_db: sqlite3.Connection, query_logger: QueryLogger
) -> Generator[As400Connection, None, None]:
    """Connection without recorders."""
    conn = As400Connection(
        lambda: SqliteDialect(raw_db),
        query_logger=query_logger,
        driver_errors=(sqlite3.Error,),
    )
    yield conn


@pytest.fixture
def recorded_connection(
    raw_db: sqlite3.Connection, query_logger: QueryLogger, spy_recorder: SpyRecorder
) -> Generator[As400Connection, None, None]:
    """Connection notifying `spy_recorder` of every committed mutation."""
    conn = As400Connection(
        lambda: SqliteDialect(raw_db),
        query_logger=query_logger,
        recorder=DataRecorder([spy_recorder]),
        driver_errors=(sqlite3.Error,),
    )
    yield conn


@pytest.fixture
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.
    """
    return Settings(
        driver="IBM i Access ODBC Driver",
        system="AS400.EXAMPLE.COM",
        user="QUSER",
        password="s3cret",
        database="",
        default_libraries="SALES,QGPL",
        schema_mapping={"DSALES": "SALES"},
        log_level="DEBUG",
    )


class FakeDriverError(Exception):
    """Error class raised by the scripted fake driver."""


class FakeCursor:
    def __init__(self, driver: "FakeDriver") -> None:
        self._driver = driver
        self.description = [(name, None) for name in driver.columns] or None
        self.rowcount = driver.rowcount
        self.lastrowid = driver.lastrowid
        self._rows = list(driver.rows)
        self._position = 0
        self.closed = False

    def execute(self, query: str, params: Optional[Sequence[Any]] = None) -> None:
        self._driver.executed.append((query, list(params or [])))
        self._driver.autocommit_log.append(self._driver.autocommit)
        if self._driver.fail_on_execute:
            raise FakeDriverError(self._driver.fail_on_execute)

    def fetchone(self) -> Optional[Tuple[Any, ...]]:
        fail_after = self._driver.fail_after
        if fail_after is not None and self._position >= fail_after:
            raise FakeDriverError("SQL0901 - connection lost during fetch")
        if self._position >= len(self._rows):
            return None
        row = self._rows[self._position]
        self._position += 1
        return row

    def fetchall(self) -> List[Tuple[Any, ...]]:
        return list(iter(self.fetchone, None))

    def close(self) -> None:
        self.closed = True


class FakeDriver:
    """
    Scripted DB-API connection.

    Every cursor replays `rows`; `fail_*` options make the matching call raise
    `FakeDriverError`, and `fail_after` breaks `fetchone()` after that many rows.
    `autocommit_log` holds the autocommit mode each statement ran under.
    """

    def __init__(
        self,
        *,
        rows: Sequence[Tuple[Any, ...]] = (),
        columns: Sequence[str] = (),
        rowcount: int = 1,
        lastrowid: Optional[int] = None,
        fail_on_execute: Optional[str] = None,
        fail_on_commit: Optional[str] = None,
        fail_on_rollback: Optional[str] = None,
        fail_after: Optional[int] = None,
    ) -> None:
        self.rows = list(rows)
        self.columns = list(columns)
        self.rowcount = rowcount
        self.lastrowid = lastrowid
        self.fail_on_execute = fail_on_execute
        self.fail_on_commit = fail_on_commit
        self.fail_on_rollback = fail_on_rollback
        self.fail_after = fail_after
        self.executed: List[Tuple[str, List[Any]]] = []
        self.autocommit_log: List[bool] = []
        self.autocommit = True
        self.cursors: List[FakeCursor] = []
        self.commits = 0
        self.rollbacks = 0
        self.closed = False

    def cursor(self) -> FakeCursor:
        cursor = FakeCursor(self)
        self.cursors.append(cursor)
        return cursor

    def commit(self) -> None:
        if self.fail_on_commit:
            raise FakeDriverError(self.fail_on_commit)
        self.commits += 1

    def rollback(self) -> None:
        self.rollbacks += 1
        if self.fail_on_rollback:
            raise FakeDriverError(self.fail_on_rollback)

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_connection() -> Callable[..., Tuple[As400Connection, FakeDriver]]:
    """
    Factory building an `As400Connection` over a `FakeDriver`.

    Keyword arguments go to `FakeDriver`, except `recorder`, which is passed
    to the connection.
    """

    def factory(
        recorder: Optional[DataRecorder] = None, **options: Any
    ) -> Tuple[As400Connection, FakeDriver]:
        driver = FakeDriver(**options)
        conn = As400Connection(
            lambda: driver,
            recorder=recorder,
            driver_errors=(FakeDriverError,),
        )
        return conn, driver

    return factory
