"""Database driver adapters."""

from __future__ import annotations

from slim_orm.adapters.protocol import SyncAdapter

__all__ = ["SyncAdapter"]
