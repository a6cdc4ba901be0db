"""Single-pass result streams backed by an open engine cursor."""

from __future__ import annotations

from typing import Any, Generic, Iterator, Optional, TypeVar

from .contracts import CursorPort

T = TypeVar("T")


class ResultStream(Generic[T]):
    """Lazy, non-restartable sequence of query results.

    The underlying cursor is closed when the stream is exhausted, when
    `close()` is called, when a `with` block exits, or when fetching raises.
    Iterating a closed stream yields nothing.
    """

    def __init__(self, cursor: CursorPort):
        self._cursor: Optional[CursorPort] = cursor

    @property
    def closed(self) -> bool:
        return self._cursor is None

    def __iter__(self) -> Iterator[T]:
        return self

    def __next__(self) -> T:
        cursor = self._cursor
        if cursor is None:
            raise StopIteration
        try:
            return next(cursor)
        except BaseException:
            self.close()
            raise

    def close(self) -> None:
        """Release the cursor; safe to call more than once."""

        cursor, self._cursor = self._cursor, None
        if cursor is not None:
            cursor.close()

    def __enter__(self) -> ResultStream[T]:
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        self.close()
