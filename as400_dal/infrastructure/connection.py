"""
Transactional statement execution against an AS400 ODBC connection.

`As400Connection` wraps one DB-API connection (pyodbc in production, any
qmark-style driver in tests). Every mutating statement runs inside an explicit
transaction that is committed or rolled back before the call returns, on every
path; `in_transaction` is therefore False whenever control is back with the
caller. Reads are instrumented, normalized, and either materialized
(`fetch_all`, `select`) or streamed (`fetch_iter`, `select_iter`).

A driver connection must not run statements from several threads at once:
use one `As400Connection` per concurrent worker.
"""

from __future__ import annotations

from types import TracebackType
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Type, Union

from as400_dal import query as sql
from as400_dal.errors import As400Error, DatabaseConnectionError, DatabaseOperationError, ValidationError
from as400_dal.infrastructure.streaming import StreamingReader
from as400_dal.query import Criteria, Fields, OrderSpec
from as400_dal.recording.recorder import DataRecorder
from as400_dal.utils.logging import get_logger
from as400_dal.utils.normalizer import ValueNormalizer
from as400_dal.utils.profiler import QueryLogger

log = get_logger(__name__)

PING_QUERY = "SELECT 1 FROM SYSIBM.SYSDUMMY1"

Row = Dict[str, Any]


class As400Connection:
    """
    Single-connection query and transaction engine.

    Parameters
    ----------
    connect : Callable[[], Any]
        Factory returning a new DB-API connection in autocommit mode. Reads
        run in autocommit; each write switches it off for its transaction.
        Called on construction and on `reconnect`.
    query_logger : QueryLogger, optional
        Statement instrumentation; a private one is created when omitted.
    recorder : DataRecorder, optional
        Audit fan-out notified after committed inserts, updates and deletes.
    normalizer : ValueNormalizer, optional
        Cleaner applied to every fetched value.
    driver_errors : tuple of exception types
        The driver's error classes (``(pyodbc.Error,)`` in production).
    """

    def __init__(
        self,
        connect: Callable[[], Any],
        *,
        query_logger: Optional[QueryLogger] = None,
        recorder: Optional[DataRecorder] = None,
        normalizer: Optional[ValueNormalizer] = None,
        driver_errors: Tuple[Type[BaseException], ...] = (Exception,),
    ) -> None:
        self._connect = connect
        self.query_logger = query_logger or QueryLogger()
        self.recorder = recorder or DataRecorder()
        self.normalizer = normalizer or ValueNormalizer()
        self._driver_errors = driver_errors
        self._in_transaction = False
        self._last_insert_id: Optional[int] = None
        self.connection: Any = None
        self.connect()

    # ------------------------------------------------------------------ lifecycle

    def connect(self) -> None:
        try:
            self.connection = self._connect()
        except DatabaseConnectionError:
            raise
        except self._driver_errors as exc:
            raise DatabaseConnectionError(f"Database connection error: {exc}") from exc

    def reconnect(self) -> None:
        """Drop the current driver connection (if any) and open a new one."""
        self.close()
        self.connect()

    def close(self) -> None:
        connection, self.connection = self.connection, None
        if connection is None:
            return
        try:
            connection.close()
        except self._driver_errors:
            log.warning("Failed to close AS400 connection cleanly", exc_info=True)

    def is_connected(self) -> bool:
        if self.connection is None:
            return False
        cursor = None
        try:
            cursor = self.connection.cursor()
            cursor.execute(PING_QUERY)
            cursor.fetchone()
            return True
        except self._driver_errors:
            return False
        finally:
            self._close_cursor(cursor)

    @property
    def in_transaction(self) -> bool:
        return self._in_transaction

    @property
    def last_insert_id(self) -> Optional[int]:
        """Driver-reported id of the last committed insert, when the driver exposes one."""
        return self._last_insert_id

    def __enter__(self) -> "As400Connection":
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        self.close()

    # ------------------------------------------------------------------ writes

    def execute_with_transaction(
        self,
        query: str,
        params: Optional[Sequence[Any]] = None,
        *,
        require_affected: bool = False,
        operation: str = "Database operation",
    ) -> bool:
        """
        Run one statement inside its own transaction.

        Returns True after a commit. With `require_affected`, a statement that
        touched no rows is rolled back and False is returned. Driver faults roll
        back and raise `DatabaseOperationError`.
        """
        params_list = list(params or [])
        index = self.query_logger.start(query, params_list)
        cursor = None
        try:
            self._begin()
            cursor = self._require_connection().cursor()
            self._execute(cursor, query, params_list)

            if require_affected and cursor.rowcount <= 0:
                self._rollback()
                return False

            self._commit()
            self._last_insert_id = getattr(cursor, "lastrowid", None)
            return True
        except self._driver_errors as exc:
            self._abort()
            if isinstance(exc, As400Error):
                raise
            raise DatabaseOperationError(f"{operation} failed: {exc}") from exc
        except BaseException:
            self._abort()
            raise
        finally:
            self._close_cursor(cursor)
            self.query_logger.stop(index)

    def execute(self, query: str, params: Optional[Sequence[Any]] = None) -> bool:
        return self.execute_with_transaction(query, params)

    def insert(self, table: str, data: Mapping[str, Any]) -> bool:
        if not data:
            raise ValidationError("No data provided for insert operation")

        query, params = sql.build_insert(table, data)
        result = self.execute_with_transaction(query, params, operation="Insert operation")
        if result and self.recorder.has_recorders:
            self.recorder.insert(table, dict(data))
        return result

    def insert_returning_id(
        self, table: str, data: Mapping[str, Any], identifier: str = "id"
    ) -> Union[int, bool]:
        """
        Insert and resolve the generated primary key.

        Prefers the driver's last-insert id and falls back to
        ``SELECT MAX(identifier)``. When no id can be resolved the boolean
        insert result is returned instead.
        """
        inserted = self.insert(table, data)
        if not inserted:
            return inserted

        try:
            last_id = int(self._last_insert_id or 0)
            if last_id <= 0:
                last_id = int(self.fetch_column(sql.build_max(table, identifier)) or 0)
        except (As400Error, TypeError, ValueError) as exc:
            log.warning("Failed to retrieve last insert ID for table %s: %s", table, exc)
            return inserted

        if last_id > 0:
            log.debug("Inserted new record into %s with ID: %s", table, last_id)
            return last_id

        log.warning("Insert operation did not return a valid ID for table %s", table)
        return inserted

    def update(self, table: str, data: Mapping[str, Any], conditions: Criteria) -> bool:
        if not data:
            raise ValidationError("No data provided for update operation")

        query, params = sql.build_update(table, data, conditions)

        old_data: Row = {}
        if self.recorder.has_recorders:
            previous = self.select(table, list(data.keys()), conditions)
            old_data = previous[0] if len(previous) == 1 else {}

        result = self.execute_with_transaction(query, params, operation="Update operation")
        if result and self.recorder.has_recorders:
            self.recorder.update(table, dict(data), old_data, conditions)
        return result

    def delete(self, table: str, conditions: Criteria) -> bool:
        """Delete matching rows; False (rolled back) when nothing matched."""
        query, params = sql.build_delete(table, conditions)

        old_data: List[Row] = []
        if self.recorder.has_recorders:
            old_data = self.select(table, None, conditions)

        result = self.execute_with_transaction(
            query, params, require_affected=True, operation="Delete operation"
        )
        if result and self.recorder.has_recorders:
            self.recorder.delete(table, old_data, conditions)
        return result

    # ------------------------------------------------------------------ reads

    def fetch_all(self, query: str, params: Optional[Sequence[Any]] = None) -> List[Row]:
        params_list = list(params or [])
        index = self.query_logger.start(query, params_list)
        cursor = None
        try:
            cursor = self._require_connection().cursor()
            self._execute(cursor, query, params_list)
            columns = [column[0] for column in cursor.description or ()]
            rows = [dict(zip(columns, row)) for row in cursor.fetchall()]
        except self._driver_errors as exc:
            if isinstance(exc, As400Error):
                raise
            raise DatabaseOperationError(f"Fetch operation failed: {exc}") from exc
        finally:
            self._close_cursor(cursor)
            self.query_logger.stop(index)
        return self.normalizer.normalize(rows)

    def fetch_iter(self, query: str, params: Optional[Sequence[Any]] = None) -> StreamingReader:
        """Stream the rows of `query` one at a time (see `StreamingReader`)."""
        return StreamingReader(
            self._require_connection(),
            query,
            params,
            normalizer=self.normalizer,
            query_logger=self.query_logger,
            driver_errors=self._driver_errors,
        )

    def fetch_column(self, query: str, params: Optional[Sequence[Any]] = None) -> Any:
        """First column of the first row, or None when there are no rows."""
        params_list = list(params or [])
        index = self.query_logger.start(query, params_list)
        cursor = None
        try:
            cursor = self._require_connection().cursor()
            self._execute(cursor, query, params_list)
            row = cursor.fetchone()
        except self._driver_errors as exc:
            if isinstance(exc, As400Error):
                raise
            raise DatabaseOperationError(f"Fetch column operation failed: {exc}") from exc
        finally:
            self._close_cursor(cursor)
            self.query_logger.stop(index)
        if row is None:
            return None
        return self.normalizer.normalize(row[0])

    def select(
        self,
        table: str,
        fields: Fields = None,
        conditions: Criteria = None,
        orders: OrderSpec = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> List[Row]:
        query, params = sql.build_select(table, fields, conditions, orders, limit, offset)
        return self.fetch_all(query, params)

    def select_iter(
        self,
        table: str,
        fields: Fields = None,
        conditions: Criteria = None,
        orders: OrderSpec = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> StreamingReader:
        query, params = sql.build_select(table, fields, conditions, orders, limit, offset)
        return self.fetch_iter(query, params)

    def count(self, table: str, conditions: Criteria = None) -> int:
        query, params = sql.build_count(table, conditions)
        return int(self.fetch_column(query, params) or 0)

    # ------------------------------------------------------------------ internals

    def _require_connection(self) -> Any:
        if self.connection is None:
            raise DatabaseConnectionError("Not connected; call reconnect() first")
        return self.connection

    @staticmethod
    def _execute(cursor: Any, query: str, params: List[Any]) -> None:
        if params:
            cursor.execute(query, params)
        else:
            cursor.execute(query)

    def _begin(self) -> None:
        connection = self._require_connection()
        connection.autocommit = False
        self._in_transaction = True

    def _commit(self) -> None:
        self.connection.commit()
        self._end()

    def _rollback(self) -> None:
        try:
            self.connection.rollback()
        finally:
            self._end()

    def _end(self) -> None:
        # Back to autocommit so reads never hold a unit of work open.
        self._in_transaction = False
        try:
            self.connection.autocommit = True
        except self._driver_errors:
            log.warning("Failed to restore autocommit after transaction", exc_info=True)

    def _abort(self) -> None:
        """Roll back after a fault without masking the original exception."""
        if not self._in_transaction:
            return
        try:
            self._rollback()
        except self._driver_errors:
            log.error("Rollback failed after statement error", exc_info=True)

    def _close_cursor(self, cursor: Any) -> None:
        if cursor is None:
            return
        try:
            cursor.close()
        except self._driver_errors:
            log.debug("Failed to close cursor", exc_info=True)


__all__ = ["As400Connection", "PING_QUERY"]
