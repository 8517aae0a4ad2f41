"""Helpers for unit tests that mock database responses.

    user = User()
    fill_record(user, {"id": 1, "name": "Ann"})

    users: list[User] = []
    fill_records(users, [{"id": 1}, {"id": 2}], User)
"""

from __future__ import annotations

from typing import Any

from slim_orm.core.cursor import Row
from slim_orm.mapping.chunks import validate_chunk_args
from slim_orm.mapping.codec import RecordCodec
from slim_orm.mapping.descriptor import DescriptorRegistry


def fill_record(record: Any, row: Row, registry: DescriptorRegistry | None = None) -> Any:
    """Decode ``row`` into ``record`` as if the database had returned it."""
    return RecordCodec(registry).decode(row, record)


def fill_records(
    records: list[Any],
    rows: list[Row],
    record_type: type,
    registry: DescriptorRegistry | None = None,
) -> list[Any]:
    """Decode ``rows`` into ``records``, reusing existing elements.

    The list grows as needed; elements beyond ``len(rows)`` are kept.
    """
    codec = RecordCodec(registry)
    validate_chunk_args(records, record_type, 1, codec)
    for idx, row in enumerate(rows):
        if len(records) <= idx:
            records.append(codec.new_record(record_type))
        codec.decode(row, records[idx])
    return records
