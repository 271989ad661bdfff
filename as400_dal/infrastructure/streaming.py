"""
Row-at-a-time reading of large result sets.

`StreamingReader` executes its statement once and then pulls a single row per
iteration step with `fetchone()`, so at most one row is held in Python at a
time and the consumer's pace drives the fetches. Readers are not restartable:
re-reading means building a new reader, which re-executes the query.

    with connection.fetch_iter("SELECT * FROM SALES.ORDERS") as rows:
        for row in rows:
            process(row)
"""

from __future__ import annotations

from types import TracebackType
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple, Type

from as400_dal.errors import DatabaseOperationError, FetchError
from as400_dal.utils.logging import get_logger
from as400_dal.utils.normalizer import ValueNormalizer
from as400_dal.utils.profiler import QueryLogger

log = get_logger(__name__)


class StreamingReader(Iterator[Dict[str, Any]]):
    """
    Lazy, single-pass iterator over the rows of one SELECT.

    The statement runs on the first pull (or on ``__enter__``). `close()`
    releases the cursor and stops the statement timer; it runs automatically
    when the rows are exhausted, on a fetch fault, and on leaving a ``with``
    block, including early exits.
    """

    def __init__(
        self,
        connection: Any,
        query: str,
        params: Optional[Sequence[Any]] = None,
        *,
        normalizer: ValueNormalizer,
        query_logger: QueryLogger,
        driver_errors: Tuple[Type[BaseException], ...] = (Exception,),
    ) -> None:
        self._connection = connection
        self.query = query
        self.params: List[Any] = list(params or [])
        self._normalizer = normalizer
        self._query_logger = query_logger
        self._driver_errors = driver_errors
        self._cursor: Any = None
        self._columns: List[str] = []
        self._query_index: Optional[int] = None
        self._closed = False
        self.rows_read = 0

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def columns(self) -> List[str]:
        return list(self._columns)

    def open(self) -> "StreamingReader":
        """Execute the statement if it has not run yet."""
        if self._cursor is not None or self._closed:
            return self

        self._query_index = self._query_logger.start(self.query, self.params)
        try:
            self._cursor = self._connection.cursor()
            if self.params:
                self._cursor.execute(self.query, self.params)
            else:
                self._cursor.execute(self.query)
        except self._driver_errors as exc:
            self.close()
            raise DatabaseOperationError(f"Fetch iterator operation failed: {exc}") from exc

        self._columns = [column[0] for column in self._cursor.description or ()]
        return self

    def __iter__(self) -> "StreamingReader":
        return self

    def __next__(self) -> Dict[str, Any]:
        if self._closed:
            raise StopIteration
        if self._cursor is None:
            self.open()

        try:
            row = self._cursor.fetchone()
        except self._driver_errors as exc:
            log.warning(
                "Stream aborted after %d row(s)", self.rows_read, extra={"query": self.query}
            )
            self.close()
            raise FetchError(f"Fetch iterator operation failed: {exc}") from exc

        if row is None:
            self.close()
            raise StopIteration

        self.rows_read += 1
        return self._normalizer.normalize_row(dict(zip(self._columns, row)))

    def close(self) -> None:
        """Release the cursor; safe to call more than once."""
        if self._closed:
            return
        self._closed = True

        cursor, self._cursor = self._cursor, None
        try:
            if cursor is not None:
                cursor.close()
        except self._driver_errors:
            log.warning("Failed to close streaming cursor", exc_info=True)
        finally:
            if self._query_index is not None:
                self._query_logger.stop(self._query_index)

    def __enter__(self) -> "StreamingReader":
        return self.open()

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        self.close()


__all__ = ["StreamingReader"]
