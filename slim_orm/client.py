"""Client facade.

Binds a table name to an executor and a codec, and exposes record-level
find/insert/update/delete plus chunked queries.
"""

from __future__ import annotations

import logging
from typing import Any

from slim_orm.core.connection import ConnectionConfig, ConnectionManager
from slim_orm.core.cursor import Row
from slim_orm.core.exceptions import MappingError, QueryError, RecordOperationError, ShapeError
from slim_orm.core.executor import Executor
from slim_orm.mapping.chunks import ChunkParser, materialize, validate_chunk_args
from slim_orm.mapping.codec import RecordCodec
from slim_orm.mapping.descriptor import DescriptorRegistry

logger = logging.getLogger(__name__)


class Client:
    """Record-level access to one table.

    Args:
        executor: Query execution collaborator (see ``Executor``).
        table_name: Table used by insert, update and delete.
        registry: Descriptor registry. Defaults to the process-wide one.
        id_column: Identifier column. Never rewritten by ``update``.
    """

    def __init__(
        self,
        executor: Any,
        table_name: str,
        registry: DescriptorRegistry | None = None,
        id_column: str = "id",
    ) -> None:
        self._executor = executor
        self._table_name = table_name
        self._codec = RecordCodec(registry)
        self._id_column = id_column

    @classmethod
    def connect(
        cls,
        config: ConnectionConfig,
        table_name: str,
        registry: DescriptorRegistry | None = None,
        id_column: str = "id",
    ) -> Client:
        """Open a pool for ``config``, check it answers, and return a Client.

        Raises:
            AdapterError: If the driver is not supported.
            ConnectivityError: If the database cannot be reached.
        """
        manager = ConnectionManager(config)
        try:
            manager.ping()
        except Exception:
            manager.close_pool()
            raise
        return cls(Executor(manager), table_name, registry=registry, id_column=id_column)

    @property
    def table_name(self) -> str:
        return self._table_name

    @property
    def id_column(self) -> str:
        return self._id_column

    @property
    def executor(self) -> Any:
        return self._executor

    @property
    def registry(self) -> DescriptorRegistry:
        return self._codec.registry

    def change_table(self, table_name: str) -> Client:
        """Return a Client for another table sharing this one's executor."""
        return Client(
            self._executor,
            table_name,
            registry=self._codec.registry,
            id_column=self._id_column,
        )

    def close(self) -> None:
        """Close the executor's connection pool (shared with changed-table clients)."""
        self._executor.close()

    def __enter__(self) -> Client:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def find(self, record: Any, query: str, *params: Any) -> Any:
        """Run ``query`` and decode its first row into ``record``.

        The query is expected to match one row; extra rows are ignored.

        Returns:
            ``record``, updated in place.

        Raises:
            RecordNotFoundError: If the query returns no rows.
        """
        self._codec.describe_record(record)
        row = self._executor.fetch_one(query, *params)
        return self._codec.decode(row, record)

    def query_chunks(self, parser: ChunkParser) -> None:
        """Run ``parser.query`` and feed its rows to ``parser.for_each_chunk``.

        ``parser.chunk`` holds at most ``parser.chunk_size`` records at a time
        and its elements are reused between chunks.
        """
        validate_chunk_args(parser.chunk, parser.record_type, parser.chunk_size, self._codec)
        cursor = self._executor.execute(parser.query, *parser.params)
        materialize(
            cursor,
            parser.chunk,
            parser.record_type,
            parser.chunk_size,
            parser.for_each_chunk,
            codec=self._codec,
        )

    def _encode_all(self, operation: str, records: tuple[Any, ...]) -> list[Row]:
        """Encode every record up front so shape errors surface before any write."""
        rows: list[Row] = []
        for index, record in enumerate(records):
            try:
                rows.append(self._codec.encode(record))
            except ShapeError as e:
                raise ShapeError(f"{operation} item {index}: {e}", index, record) from e
        return rows

    def insert(self, *records: Any) -> None:
        """Insert records one at a time, stopping at the first failure.

        Every record is checked before the first write. An unset identifier
        (None or 0) is left to the database, and the generated value is
        written back onto the record.
        """
        rows = self._encode_all("insert", records)
        for index, (record, row) in enumerate(zip(records, rows)):
            descriptor = self._codec.describe_record(record)
            returning = None
            if (
                descriptor.field_for_column(self._id_column) is not None
                and row.get(self._id_column) in (None, 0)
            ):
                row.pop(self._id_column, None)
                returning = self._id_column

            try:
                new_id = self._executor.persist(self._table_name, row, returning=returning)
                if returning is not None and new_id is not None:
                    self._codec.decode({self._id_column: new_id}, record)
            except (QueryError, MappingError) as e:
                raise RecordOperationError("insert", index, record, str(e)) from e
        if records:
            logger.debug("Inserted %d record(s) into '%s'", len(records), self._table_name)

    def update(self, *records: Any) -> None:
        """Update records by identifier, writing only the columns they carry.

        Optional fields set to None are not written, and the identifier
        column is never part of the update. Every record is checked before
        the first write.

        Raises:
            ShapeError: If a record is not a record or has no identifier
                value; nothing is written in that case.
        """
        rows = self._encode_all("update", records)
        id_values = []
        for index, (record, row) in enumerate(zip(records, rows)):
            id_value = row.pop(self._id_column, None)
            if id_value is None:
                raise ShapeError(
                    f"update item {index}: {type(record).__name__} has no "
                    f"'{self._id_column}' value",
                    index,
                    record,
                )
            id_values.append(id_value)

        for index, (record, row, id_value) in enumerate(zip(records, rows, id_values)):
            if not row:
                logger.debug("Nothing to update for %s id=%r", type(record).__name__, id_value)
                continue

            try:
                self._executor.persist_partial(self._table_name, self._id_column, id_value, row)
            except QueryError as e:
                raise RecordOperationError("update", index, record, str(e)) from e

    def delete(self, *ids: Any) -> None:
        """Delete rows by identifier, stopping at the first failure."""
        for index, id_value in enumerate(ids):
            try:
                self._executor.remove_by_id(self._table_name, self._id_column, id_value)
            except QueryError as e:
                raise RecordOperationError("delete", index, id_value, str(e)) from e
