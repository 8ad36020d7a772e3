from __future__ import annotations

import uuid as uuid_mod
from typing import Iterable, Optional

from whitelist_sync.exceptions import QueryError, WriteError
from whitelist_sync.models.records import PlayerRecord, PlayerTable, coerce_uuid
from whitelist_sync.services.base import BulkWriteReport, PlayerStore, is_writable


class MemoryPlayerStore(PlayerStore):
    """Process-local store; rows live in insertion-ordered dicts keyed by uuid.

    Useful for a single server without a database and for tests.
    """

    def __init__(self):
        self._tables: dict[PlayerTable, dict[str, PlayerRecord]] = {}

    def supports_live_sync(self) -> bool:
        return False

    async def initialize_schema(self, include_operators: bool) -> None:
        self._tables.setdefault(PlayerTable.WHITELIST, {})
        if include_operators:
            self._tables.setdefault(PlayerTable.OPERATORS, {})

    def _table(self, table: PlayerTable, error=QueryError) -> dict[str, PlayerRecord]:
        try:
            return self._tables[table]
        except KeyError:
            raise error(f"{table.label} table has not been created") from None

    async def fetch_active(self, table: PlayerTable) -> list[PlayerRecord]:
        return [r for r in self._table(table).values() if r.active]

    async def fetch_table(self, table: PlayerTable) -> list[PlayerRecord]:
        return list(self._table(table).values())

    def _put(self, table: PlayerTable, uuid: uuid_mod.UUID, name: Optional[str], active: bool) -> None:
        rows = self._table(table, WriteError)
        record = table.record_type(uuid=uuid, name=name, active=active)
        rows[record.key] = record

    async def bulk_upsert(self, table: PlayerTable, entries: Iterable[PlayerRecord]) -> BulkWriteReport:
        report = BulkWriteReport()
        for entry in entries:
            if not is_writable(entry):
                report.skipped += 1
                continue
            try:
                uuid = coerce_uuid(entry.uuid)
            except ValueError:
                report.skipped += 1
                continue
            self._put(table, uuid, entry.name, True)
            report.written += 1
        return report

    async def upsert_one(self, table: PlayerTable, uuid: uuid_mod.UUID, name: Optional[str], active: bool) -> None:
        self._put(table, coerce_uuid(uuid), name, active)
