"""Query execution collaborator.

The Executor runs parameterized queries through the adapter and persists
rows by table name. It owns no mapping logic: it only sees row dicts.
"""

from __future__ import annotations

import logging
import re
from typing import Any

from slim_orm.core.connection import ConnectionConfig, ConnectionManager
from slim_orm.core.cursor import Cursor, Row
from slim_orm.core.exceptions import QueryError, RecordNotFoundError
from slim_orm.core.params import coerce_params, normalize_params

logger = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

# Bind name for the identifier in UPDATE/DELETE statements
_ID_PARAM = "__pk"


def quote_identifier(name: str) -> str:
    """Validate and double-quote a table or column name.

    Dotted names (``schema.table``) are quoted part by part.

    Raises:
        QueryError: If any part is not a plain SQL identifier.
    """
    parts = name.split(".")
    for part in parts:
        if not _IDENTIFIER.match(part):
            raise QueryError(f"invalid SQL identifier: {name!r}")
    return ".".join(f'"{part}"' for part in parts)


class Executor:
    """Synchronous query executor over a ConnectionManager."""

    def __init__(self, connection_manager: ConnectionManager) -> None:
        self._connection_manager = connection_manager
        self._paramstyle = connection_manager.adapter.paramstyle

    @classmethod
    def from_config(cls, config: ConnectionConfig) -> Executor:
        """Create an Executor from a ConnectionConfig."""
        return cls(ConnectionManager(config))

    @property
    def connection_manager(self) -> ConnectionManager:
        return self._connection_manager

    def ping(self) -> None:
        self._connection_manager.ping()

    def close(self) -> None:
        self._connection_manager.close_pool()

    def execute(self, query: str, *params: Any) -> Cursor:
        """Run a query and return a forward-only cursor over its rows.

        The pooled connection stays checked out until the cursor is closed.
        """
        bound = coerce_params(params)
        sql = normalize_params(query, self._paramstyle) if isinstance(bound, dict) else query
        manager = self._connection_manager
        conn = manager.acquire()

        def release() -> None:
            try:
                # Ends the implicit read transaction some drivers open.
                conn.rollback()
            finally:
                manager.release(conn)

        logger.debug("Executing query: %s", sql)
        try:
            raw = manager.adapter.execute(conn, sql, bound)
        except Exception as e:
            release()
            raise QueryError(str(e), query) from e
        return Cursor(raw, release=release, query=query)

    def fetch_one(self, query: str, *params: Any) -> Row:
        """Return the first row of a query.

        Raises:
            RecordNotFoundError: If the query returns no rows.
        """
        with self.execute(query, *params) as cursor:
            for row in cursor:
                return row
        raise RecordNotFoundError(query)

    def persist(self, table: str, row: Row, returning: str | None = None) -> Any:
        """Insert one row into ``table``.

        Returns the value of the ``returning`` column of the new row, or None.
        """
        target = quote_identifier(table)
        if row:
            columns = ", ".join(quote_identifier(col) for col in row)
            values = ", ".join(f":{col}" for col in row)
            sql = f"INSERT INTO {target} ({columns}) VALUES ({values})"
        else:
            sql = f"INSERT INTO {target} DEFAULT VALUES"
        if returning is not None:
            sql += f" RETURNING {quote_identifier(returning)}"

        def fetch(cursor: Any) -> Any:
            if returning is None:
                return None
            # Drain the statement so the commit that follows is not blocked.
            results = cursor.fetchall()
            if not results:
                return None
            first = results[0]
            if isinstance(first, dict):
                return first[returning]
            return first[0]

        return self._write(sql, dict(row), fetch)

    def persist_partial(self, table: str, id_column: str, id_value: Any, row: Row) -> int:
        """Update only the columns present in ``row`` for one identifier.

        Returns the affected row count.
        """
        if not row:
            return 0
        assignments = ", ".join(f"{quote_identifier(col)} = :{col}" for col in row)
        sql = (
            f"UPDATE {quote_identifier(table)} SET {assignments} "
            f"WHERE {quote_identifier(id_column)} = :{_ID_PARAM}"
        )
        params = dict(row)
        params[_ID_PARAM] = id_value
        return int(self._write(sql, params, lambda cursor: cursor.rowcount))

    def remove_by_id(self, table: str, id_column: str, id_value: Any) -> int:
        """Delete the row with the given identifier. Returns the affected row count."""
        sql = (
            f"DELETE FROM {quote_identifier(table)} "
            f"WHERE {quote_identifier(id_column)} = :{_ID_PARAM}"
        )
        return int(self._write(sql, {_ID_PARAM: id_value}, lambda cursor: cursor.rowcount))

    def _write(self, sql: str, params: dict[str, Any], fetch: Any) -> Any:
        """Execute a write statement and commit, rolling back on failure."""
        sql = normalize_params(sql, self._paramstyle)
        logger.debug("Executing statement: %s", sql)
        with self._connection_manager.get_connection() as conn:
            try:
                cursor = self._connection_manager.adapter.execute(conn, sql, params)
                result = fetch(cursor)
                conn.commit()
            except Exception as e:
                conn.rollback()
                raise QueryError(str(e), sql) from e
        return result
