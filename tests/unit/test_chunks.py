"""Unit tests for the chunked result materializer."""

from __future__ import annotations

import pytest

from slim_orm.core.exceptions import ShapeError, TypeMismatchError, UnknownColumnError
from slim_orm.mapping.chunks import materialize
from slim_orm.mapping.codec import RecordCodec
from slim_orm.mapping.descriptor import DescriptorRegistry
from tests.models import User


def _rows(n: int) -> list[dict]:
    return [{"id": i + 1, "name": f"user{i + 1}"} for i in range(n)]


@pytest.fixture
def codec(registry: DescriptorRegistry) -> RecordCodec:
    return RecordCodec(registry)


class Recorder:
    """Chunk callback that snapshots what it was given."""

    def __init__(self) -> None:
        self.lengths: list[int] = []
        self.ids: list[list[int]] = []
        self.buffers: list[int] = []

    def __call__(self, chunk: list[User]) -> None:
        self.lengths.append(len(chunk))
        self.ids.append([u.id for u in chunk])
        self.buffers.append(id(chunk))


class TestChunking:
    def test_seven_rows_in_chunks_of_three(self, make_cursor, codec: RecordCodec) -> None:
        buffer: list[User] = []
        recorder = Recorder()
        materialize(make_cursor(_rows(7)), buffer, User, 3, recorder, codec)
        assert recorder.lengths == [3, 3, 1]
        assert recorder.ids == [[1, 2, 3], [4, 5, 6], [7]]
        assert len(buffer) == 1

    def test_exact_multiple_has_no_extra_call(self, make_cursor, codec: RecordCodec) -> None:
        recorder = Recorder()
        materialize(make_cursor(_rows(6)), [], User, 3, recorder, codec)
        assert recorder.lengths == [3, 3]

    @pytest.mark.parametrize(
        ("n", "k", "expected"),
        [
            (1, 1, [1]),
            (5, 1, [1, 1, 1, 1, 1]),
            (2, 5, [2]),
            (10, 4, [4, 4, 2]),
            (8, 4, [4, 4]),
        ],
    )
    def test_call_count_and_last_length(
        self, make_cursor, codec: RecordCodec, n: int, k: int, expected: list[int]
    ) -> None:
        recorder = Recorder()
        materialize(make_cursor(_rows(n)), [], User, k, recorder, codec)
        assert recorder.lengths == expected

    def test_zero_rows_never_calls_back(self, make_cursor, codec: RecordCodec) -> None:
        recorder = Recorder()
        cursor = make_cursor([])
        materialize(cursor, [], User, 3, recorder, codec)
        assert recorder.lengths == []
        assert cursor.closed

    def test_callback_gets_the_callers_buffer(self, make_cursor, codec: RecordCodec) -> None:
        buffer: list[User] = []
        recorder = Recorder()
        materialize(make_cursor(_rows(4)), buffer, User, 2, recorder, codec)
        assert recorder.buffers == [id(buffer), id(buffer)]

    def test_elements_are_reused_between_chunks(self, make_cursor, codec: RecordCodec) -> None:
        seen: list[int] = []

        def collect(chunk: list[User]) -> None:
            seen.extend(id(u) for u in chunk)

        materialize(make_cursor(_rows(4)), [], User, 2, collect, codec)
        assert seen[0] == seen[2]
        assert seen[1] == seen[3]

    def test_presized_buffer_is_reused(self, make_cursor, codec: RecordCodec) -> None:
        existing = [User(id=100, name="old", email="keep@ex.com"), User(), User(), User()]
        first = existing[0]
        recorder = Recorder()
        materialize(make_cursor(_rows(2)), existing, User, 3, recorder, codec)
        assert recorder.lengths == [2]
        assert len(existing) == 2
        assert existing[0] is first
        assert first.id == 1
        # columns absent from the row are left as they were
        assert first.email == "keep@ex.com"

    def test_new_elements_are_records_of_the_given_type(
        self, make_cursor, codec: RecordCodec
    ) -> None:
        buffer: list[User] = []
        materialize(make_cursor(_rows(2)), buffer, User, 5, lambda chunk: None, codec)
        assert all(isinstance(u, User) for u in buffer)
        assert [u.name for u in buffer] == ["user1", "user2"]


class TestChunkErrors:
    def test_callback_error_aborts_and_closes(self, make_cursor, codec: RecordCodec) -> None:
        cursor = make_cursor(_rows(7))
        calls = []

        def fail(chunk: list[User]) -> None:
            calls.append(len(chunk))
            raise RuntimeError("stop")

        with pytest.raises(RuntimeError, match="stop"):
            materialize(cursor, [], User, 3, fail, codec)
        assert calls == [3]
        assert cursor.yielded == 3
        assert cursor.closed

    def test_decode_error_aborts_and_closes(self, make_cursor, codec: RecordCodec) -> None:
        rows = [{"id": 1, "name": "ok"}, {"id": "bad", "name": "x"}, {"id": 3, "name": "y"}]
        cursor = make_cursor(rows)
        recorder = Recorder()
        with pytest.raises(TypeMismatchError):
            materialize(cursor, [], User, 5, recorder, codec)
        assert recorder.lengths == []
        assert cursor.yielded == 2
        assert cursor.closed

    def test_unknown_column_aborts(self, make_cursor, codec: RecordCodec) -> None:
        cursor = make_cursor([{"id": 1, "extra": True}])
        with pytest.raises(UnknownColumnError):
            materialize(cursor, [], User, 1, lambda chunk: None, codec)
        assert cursor.closed

    @pytest.mark.parametrize("chunk_size", [0, -1, 1.5, True])
    def test_bad_chunk_size(self, make_cursor, codec: RecordCodec, chunk_size) -> None:
        cursor = make_cursor(_rows(1))
        with pytest.raises(ShapeError, match="Chunk size"):
            materialize(cursor, [], User, chunk_size, lambda chunk: None, codec)
        assert cursor.yielded == 0
        assert cursor.closed

    def test_buffer_must_be_a_list(self, make_cursor, codec: RecordCodec) -> None:
        with pytest.raises(ShapeError, match="must be a list"):
            materialize(make_cursor([]), (), User, 1, lambda chunk: None, codec)  # type: ignore[arg-type]

    def test_record_type_must_be_describable(self, make_cursor, codec: RecordCodec) -> None:
        with pytest.raises(ShapeError):
            materialize(make_cursor([]), [], int, 1, lambda chunk: None, codec)
