"""slim_orm exception hierarchy.

All exceptions are slim_orm-specific. Raw driver exceptions are never
exposed to callers; they are chained as ``__cause__``.
"""

from __future__ import annotations

from typing import Any


class SlimOrmError(Exception):
    """Base exception for all slim_orm errors."""


# --- Mapping ---


class MappingError(SlimOrmError):
    """Base for record/row mapping errors."""


class TypeMismatchError(MappingError):
    """Raised when a row value cannot be converted to the field's declared type."""

    def __init__(self, column: str, source_type: Any, target_type: Any) -> None:
        self.column = column
        self.source_type = source_type
        self.target_type = target_type
        super().__init__(
            f"Cannot convert column '{column}' of type {_type_name(source_type)} "
            f"to {_type_name(target_type)}"
        )


class UnknownColumnError(MappingError):
    """Raised when a row carries a column the record type does not map."""

    def __init__(self, column: str, record_type: type) -> None:
        self.column = column
        self.record_type = record_type
        super().__init__(f"Column '{column}' is not mapped on {record_type.__name__}")


class ShapeError(MappingError):
    """Raised when an argument is not the kind of record or buffer required.

    In bulk operations ``index`` and ``item`` name the offending argument.
    """

    def __init__(self, message: str, index: int | None = None, item: Any = None) -> None:
        self.index = index
        self.item = item
        super().__init__(message)


# --- Execution ---


class ExecutionError(SlimOrmError):
    """Base for query execution errors."""


class QueryError(ExecutionError):
    """Raised when a query is malformed or fails to execute."""

    def __init__(self, detail: str, query: str | None = None) -> None:
        self.detail = detail
        self.query = query
        if query is None:
            super().__init__(f"Query failed: {detail}")
        else:
            super().__init__(f"Query failed: {detail} (query: {query!r})")


class RecordNotFoundError(QueryError):
    """Raised when a query expected to return a row returns none."""

    def __init__(self, query: str) -> None:
        super().__init__("no rows returned", query)


class RecordOperationError(QueryError):
    """Raised when one item of a bulk insert/update/delete fails.

    Items before ``index`` were already persisted; items after it were not
    attempted.
    """

    def __init__(self, operation: str, index: int, item: Any, detail: str) -> None:
        self.operation = operation
        self.index = index
        self.item = item
        super().__init__(f"{operation} failed on item {index} ({item!r}): {detail}")


# --- Adapter ---


class AdapterError(SlimOrmError):
    """Base for adapter errors."""


class ConnectivityError(AdapterError):
    """Raised when the database cannot be reached or no connection is available."""


def _type_name(tp: Any) -> str:
    return getattr(tp, "__name__", None) or repr(tp)
