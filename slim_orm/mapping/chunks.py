"""Chunked result materialization.

Reads a cursor row by row into a caller-owned list, handing the list to a
callback every ``chunk_size`` rows and once more for a trailing partial
chunk. The list's elements are reused from one chunk to the next, so
memory stays bounded by the chunk size.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from slim_orm.core.exceptions import ShapeError
from slim_orm.mapping.codec import RecordCodec

logger = logging.getLogger(__name__)

ChunkCallback = Callable[[list[Any]], None]


@dataclass
class ChunkParser:
    """A chunked query: what to run and where to put the results.

    Attributes:
        query: SQL text.
        params: Query parameters (a dict for ``:name`` placeholders, or
            positional values).
        chunk: Caller-owned buffer; holds the current chunk during each
            ``for_each_chunk`` call.
        chunk_size: Rows per chunk, at least 1.
        for_each_chunk: Called with ``chunk`` after it is filled.
        record_type: Record type of the buffer's elements.
    """

    query: str
    chunk: list[Any]
    chunk_size: int
    for_each_chunk: ChunkCallback
    record_type: type
    params: tuple[Any, ...] = field(default_factory=tuple)


def validate_chunk_args(buffer: Any, record_type: Any, chunk_size: Any, codec: RecordCodec) -> None:
    """Reject bad chunk arguments before any I/O.

    Raises:
        ShapeError: On a non-list buffer, a chunk size below 1, or a
            record type the codec cannot describe.
    """
    if not isinstance(buffer, list):
        raise ShapeError(f"Chunk buffer must be a list, got {type(buffer).__name__}")
    if isinstance(chunk_size, bool) or not isinstance(chunk_size, int) or chunk_size < 1:
        raise ShapeError(f"Chunk size must be an integer >= 1, got {chunk_size!r}")
    codec.describe(record_type)


def materialize(
    cursor: Iterable[dict[str, Any]],
    buffer: list[Any],
    record_type: type,
    chunk_size: int,
    on_chunk: ChunkCallback,
    codec: RecordCodec | None = None,
) -> None:
    """Decode every row of ``cursor`` into ``buffer``, one chunk at a time.

    Row ``i`` of a chunk is decoded into ``buffer[i]``, appending a blank
    record when the buffer is shorter. After ``chunk_size`` rows the buffer
    is truncated to the chunk and ``on_chunk(buffer)`` runs; a final partial
    chunk gets one more call. No rows means no call.

    Exceptions from decoding or from ``on_chunk`` propagate. The cursor is
    closed on every path if it has a ``close`` method.
    """
    codec = codec if codec is not None else RecordCodec()
    try:
        validate_chunk_args(buffer, record_type, chunk_size, codec)

        idx = 0
        chunks = 0
        for row in cursor:
            if len(buffer) <= idx:
                buffer.append(codec.new_record(record_type))
            codec.decode(row, buffer[idx])
            idx += 1

            if idx == chunk_size:
                del buffer[idx:]
                chunks += 1
                logger.debug("Dispatching chunk %d (%d rows)", chunks, idx)
                on_chunk(buffer)
                idx = 0

        # Nothing pending: no rows at all, or the last row closed a full chunk
        if idx > 0:
            del buffer[idx:]
            chunks += 1
            logger.debug("Dispatching final chunk %d (%d rows)", chunks, idx)
            on_chunk(buffer)
    finally:
        close = getattr(cursor, "close", None)
        if close is not None:
            close()
