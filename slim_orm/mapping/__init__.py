"""Mapping layer - records to rows and back."""

from __future__ import annotations

from slim_orm.mapping.chunks import ChunkParser, materialize
from slim_orm.mapping.codec import RecordCodec
from slim_orm.mapping.descriptor import (
    DescriptorRegistry,
    FieldInfo,
    TypeDescriptor,
    column,
    default_registry,
)

__all__ = [
    "ChunkParser",
    "materialize",
    "RecordCodec",
    "DescriptorRegistry",
    "FieldInfo",
    "TypeDescriptor",
    "column",
    "default_registry",
]
