"""slim_orm - record/row mapping with chunked reads and partial updates."""

from __future__ import annotations

from slim_orm.client import Client
from slim_orm.core.connection import ConnectionConfig, ConnectionManager
from slim_orm.core.cursor import Cursor
from slim_orm.core.enums import DatabaseBackend
from slim_orm.core.exceptions import (
    AdapterError,
    ConnectivityError,
    ExecutionError,
    MappingError,
    QueryError,
    RecordNotFoundError,
    RecordOperationError,
    ShapeError,
    SlimOrmError,
    TypeMismatchError,
    UnknownColumnError,
)
from slim_orm.core.executor import Executor
from slim_orm.mapping.chunks import ChunkParser, materialize
from slim_orm.mapping.codec import RecordCodec
from slim_orm.mapping.descriptor import (
    DescriptorRegistry,
    TypeDescriptor,
    column,
    default_registry,
)

__all__ = [
    # Facade
    "Client",
    # Connection
    "ConnectionConfig",
    "ConnectionManager",
    "DatabaseBackend",
    # Execution
    "Executor",
    "Cursor",
    # Mapping
    "ChunkParser",
    "materialize",
    "RecordCodec",
    "DescriptorRegistry",
    "TypeDescriptor",
    "column",
    "default_registry",
    # Exceptions
    "SlimOrmError",
    "MappingError",
    "TypeMismatchError",
    "UnknownColumnError",
    "ShapeError",
    "ExecutionError",
    "QueryError",
    "RecordNotFoundError",
    "RecordOperationError",
    "AdapterError",
    "ConnectivityError",
]
