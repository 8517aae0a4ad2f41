"""Forward-only result cursor.

Wraps a driver cursor and the pooled connection it runs on. Rows are
fetched one at a time so large result sets never sit in memory at once.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import Any

from slim_orm.core.exceptions import QueryError

Row = dict[str, Any]


def _row_to_dict(columns: list[str], row: Any) -> Row:
    """Convert a single driver row to a dict.

    Handles both tuple-like rows and dict-like rows from different adapters.
    """
    if isinstance(row, dict):
        return dict(row)
    return dict(zip(columns, row, strict=True))


class Cursor:
    """Closable iterator of row dicts.

    ``release`` is called exactly once, on the first ``close()``.
    """

    def __init__(
        self,
        raw: Any,
        release: Callable[[], None] | None = None,
        query: str | None = None,
    ) -> None:
        self._raw = raw
        self._release = release
        self._query = query
        self._closed = False
        if raw.description is None:
            self._columns: list[str] = []
        else:
            self._columns = [desc[0] for desc in raw.description]

    @property
    def columns(self) -> list[str]:
        return list(self._columns)

    @property
    def closed(self) -> bool:
        return self._closed

    def __iter__(self) -> Iterator[Row]:
        return self

    def __next__(self) -> Row:
        if self._closed or not self._columns:
            raise StopIteration
        try:
            row = self._raw.fetchone()
        except Exception as e:
            raise QueryError(str(e), self._query) from e
        if row is None:
            raise StopIteration
        return _row_to_dict(self._columns, row)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._raw.close()
        finally:
            if self._release is not None:
                self._release()

    def __enter__(self) -> Cursor:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
