"""DB-API adapter implementation for the core database port."""

from __future__ import annotations

import contextlib
import logging
from collections import deque
from typing import Any, Callable, Deque, Mapping, Optional

from ...core.types import MaybeRow, QueryParams, RowMapping, Rows
from .dialects import Dialect

logger = logging.getLogger(__name__)


def row_to_mapping(cursor: Any, row: Any) -> RowMapping:
    """Normalize row object to mapping.

    Supports mapping rows directly and tuple/list rows via
    `cursor.description`.
    """

    if isinstance(row, Mapping):
        return row

    if isinstance(row, (tuple, list)):
        desc = getattr(cursor, "description", None)
        if not desc:
            raise TypeError("Cursor has no description; cannot map tuple rows to dict.")
        cols = [d[0] for d in desc]
        return dict(zip(cols, row))

    try:
        m = dict(row)
    except (TypeError, ValueError):
        m = {}
    if m:
        return m

    raise TypeError(f"Unsupported row type: {type(row)}")


class RowCursor:
    """Forward-only iterator over an open DB-API cursor.

    Rows are fetched in batches of `batch_size`, normalized to mappings and
    passed through `mapper`. The DB-API cursor is closed on exhaustion or on
    `close()`, whichever comes first.
    """

    def __init__(
        self,
        cursor: Any,
        *,
        batch_size: int = 100,
        mapper: Optional[Callable[[RowMapping], Any]] = None,
    ):
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1.")
        self._cursor: Any | None = cursor
        self._batch_size = batch_size
        self._mapper = mapper
        self._buffer: Deque[Any] = deque()

    @property
    def closed(self) -> bool:
        return self._cursor is None

    def __iter__(self) -> RowCursor:
        return self

    def __next__(self) -> Any:
        if not self._buffer:
            self._fill()
        if not self._buffer:
            raise StopIteration
        row = self._buffer.popleft()
        return self._mapper(row) if self._mapper else row

    def _fill(self) -> None:
        cursor = self._cursor
        if cursor is None:
            return
        rows = cursor.fetchmany(self._batch_size)
        if not rows:
            self.close()
            return
        self._buffer.extend(row_to_mapping(cursor, row) for row in rows)

    def close(self) -> None:
        cursor, self._cursor = self._cursor, None
        self._buffer.clear()
        if cursor is None:
            return
        close = getattr(cursor, "close", None)
        if callable(close):
            close()


class Database:
    """Thin DB-API wrapper that normalizes execute and row mapping behavior."""

    def __init__(self, conn: Any, dialect: Dialect):
        """Create database adapter.

        Args:
            conn: DB-API connection object.
            dialect: Concrete SQL dialect instance.
        """

        self._closed = False
        self.conn: Any | None = conn
        self.dialect = dialect

    def _require_open_connection(self) -> Any:
        if self._closed or self.conn is None:
            raise RuntimeError("connection is closed")
        return self.conn

    def _should_begin_sqlite_transaction(self, conn: Any) -> bool:
        if getattr(self.dialect, "name", "").lower() != "sqlite":
            return False
        if getattr(conn, "isolation_level", None) is not None:
            return False
        return not bool(getattr(conn, "in_transaction", False))

    @contextlib.contextmanager
    def transaction(self):
        """Provide commit/rollback transaction scope."""

        conn = self._require_open_connection()
        try:
            if self._should_begin_sqlite_transaction(conn):
                conn.execute("BEGIN")
            yield
            conn.commit()
        except BaseException:
            conn.rollback()
            raise

    def execute(self, sql: str, params: QueryParams = None) -> Any:
        """Execute SQL with optional parameters and return cursor."""

        conn = self._require_open_connection()
        logger.debug("SQL: %s | params=%r", sql, params)
        cur = conn.cursor()
        if params is None:
            cur.execute(sql)
        else:
            cur.execute(sql, params)
        return cur

    def fetchone(self, sql: str, params: QueryParams = None) -> MaybeRow:
        """Execute query and return one normalized row mapping."""

        cur = self.execute(sql, params)
        row = cur.fetchone()
        if row is None:
            return None
        return row_to_mapping(cur, row)

    def fetchall(self, sql: str, params: QueryParams = None) -> Rows:
        """Execute query and return all rows as normalized mappings."""

        cur = self.execute(sql, params)
        rows = cur.fetchall()
        return [row_to_mapping(cur, r) for r in rows]

    def cursor(
        self,
        sql: str,
        params: QueryParams = None,
        *,
        batch_size: int = 100,
        mapper: Optional[Callable[[RowMapping], Any]] = None,
    ) -> RowCursor:
        """Execute query and return a lazily fetching `RowCursor`."""

        return RowCursor(self.execute(sql, params), batch_size=batch_size, mapper=mapper)

    def close(self) -> None:
        """Close underlying connection."""

        if self._closed:
            return
        conn = self.conn
        self._closed = True
        self.conn = None
        close = getattr(conn, "close", None)
        if callable(close):
            close()

    def __enter__(self) -> Database:
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        self.close()
