from __future__ import annotations

import abc
import uuid as uuid_mod
from dataclasses import dataclass
from typing import Iterable, Optional

from whitelist_sync.models.records import OperatorEntry, PlayerRecord, PlayerTable, WhitelistEntry


@dataclass
class BulkWriteReport:
    written: int = 0
    skipped: int = 0


def is_writable(entry: PlayerRecord) -> bool:
    """Bulk pushes skip entries without a uuid or a name."""
    return bool(getattr(entry, "uuid", None)) and bool(getattr(entry, "name", None))


class PlayerStore(abc.ABC):
    """Operations a backing store must support for whitelist syncing.

    Implementations raise the errors from ``whitelist_sync.exceptions``
    (SchemaError, QueryError, WriteError) and wrap any driver-specific
    exception in one of them. Converting failures into return values is the
    sync engine's job, not the store's.
    """

    @abc.abstractmethod
    async def initialize_schema(self, include_operators: bool) -> None:
        """Create the whitelist table (and op table) if missing. Idempotent."""

    @abc.abstractmethod
    def supports_live_sync(self) -> bool:
        """True if the backend notifies of remote changes itself; False means poll."""

    @abc.abstractmethod
    async def fetch_active(self, table: PlayerTable) -> list[PlayerRecord]:
        ...

    @abc.abstractmethod
    async def fetch_table(self, table: PlayerTable) -> list[PlayerRecord]:
        """Every row, tombstones included, in store iteration order."""

    @abc.abstractmethod
    async def bulk_upsert(self, table: PlayerTable, entries: Iterable[PlayerRecord]) -> BulkWriteReport:
        """Write each entry with active=True, one commit per row."""

    @abc.abstractmethod
    async def upsert_one(self, table: PlayerTable, uuid: uuid_mod.UUID, name: Optional[str], active: bool) -> None:
        ...

    async def dispose(self) -> None:
        return None

    # ---- per-table conveniences -----------------------------------

    async def fetch_active_whitelist(self) -> list[WhitelistEntry]:
        return await self.fetch_active(PlayerTable.WHITELIST)

    async def fetch_active_operators(self) -> list[OperatorEntry]:
        return await self.fetch_active(PlayerTable.OPERATORS)

    async def bulk_upsert_whitelist(self, entries: Iterable[PlayerRecord]) -> BulkWriteReport:
        return await self.bulk_upsert(PlayerTable.WHITELIST, entries)

    async def bulk_upsert_operators(self, entries: Iterable[PlayerRecord]) -> BulkWriteReport:
        return await self.bulk_upsert(PlayerTable.OPERATORS, entries)
