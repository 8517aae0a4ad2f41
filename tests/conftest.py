"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from slim_orm.core.connection import ConnectionConfig
from slim_orm.mapping.descriptor import DescriptorRegistry


@pytest.fixture
def sqlite_config() -> ConnectionConfig:
    """SQLite in-memory connection config."""
    return ConnectionConfig(driver="sqlite", database=":memory:", pool_size=1)


@pytest.fixture
def sqlite_file_config(tmp_path: Path) -> ConnectionConfig:
    """SQLite file config; more than one pooled connection sees the same data."""
    return ConnectionConfig(driver="sqlite", database=str(tmp_path / "test.db"), pool_size=2)


@pytest.fixture
def registry() -> DescriptorRegistry:
    """A fresh descriptor registry, isolated from the process-wide one."""
    return DescriptorRegistry()


class FakeCursor:
    """Iterable of rows that records whether it was closed."""

    def __init__(self, rows: list[dict]) -> None:
        self._rows = iter(rows)
        self.closed = False
        self.yielded = 0

    def __iter__(self):
        return self

    def __next__(self) -> dict:
        row = next(self._rows)
        self.yielded += 1
        return row

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def make_cursor():
    """Build a FakeCursor over the given rows.

    Usage:
        cursor = make_cursor([{"id": 1}, {"id": 2}])
    """

    def _make(rows: list[dict]) -> FakeCursor:
        return FakeCursor(rows)

    return _make
