from __future__ import annotations

import inspect
import logging
import time
import uuid as uuid_mod
from dataclasses import dataclass
from typing import Iterable, Optional

from whitelist_sync.exceptions import (
    CallbackResolutionError,
    FeatureDisabledError,
    QueryError,
    SyncError,
    WriteError,
)
from whitelist_sync.models.events import PlayerCallback
from whitelist_sync.models.records import OperatorEntry, PlayerRecord, PlayerTable, WhitelistEntry, coerce_uuid
from whitelist_sync.services.base import PlayerStore

log = logging.getLogger(__name__)

OPS_DISABLED_MSG = (
    "Op list syncing is currently disabled in your config. "
    "Please enable it and restart the server to use this feature."
)


@dataclass
class SyncResult:
    ok: bool
    added: int = 0
    removed: int = 0
    written: int = 0
    skipped: int = 0
    failed: int = 0
    error: Optional[SyncError] = None

    def __bool__(self) -> bool:
        return self.ok


class WhitelistSyncEngine:
    """Reconciles a server's local whitelist / op list with a PlayerStore.

    Pull (store -> local) reports net additions and removals through host
    callbacks; push (local -> store) only ever upserts. Nothing raised by the
    store escapes: every call returns a SyncResult (or a list / bool) and logs
    the failure.
    """

    def __init__(self, store: PlayerStore, *, sync_ops: bool = False):
        self.store = store
        self.sync_ops = sync_ops

    # ---- setup -----------------------------------------------------

    async def initialize_schema(self) -> bool:
        try:
            await self.store.initialize_schema(include_operators=self.sync_ops)
        except SyncError as e:
            log.error("Failed to initialize the store: %s", e, exc_info=True)
            return False
        except Exception as e:
            log.exception("Unexpected error initializing the store: %s", e)
            return False
        return True

    def supports_live_sync(self) -> bool:
        return self.store.supports_live_sync()

    def _ops_guard(self) -> Optional[FeatureDisabledError]:
        if self.sync_ops:
            return None
        log.error(OPS_DISABLED_MSG)
        return FeatureDisabledError(OPS_DISABLED_MSG)

    # ---- reads -----------------------------------------------------

    async def _fetch_active(self, table: PlayerTable) -> list[PlayerRecord]:
        try:
            return await self.store.fetch_active(table)
        except SyncError as e:
            log.error("Error querying %s from database: %s", table.label, e, exc_info=True)
        except Exception as e:
            log.exception("Unexpected error querying %s: %s", table.label, e)
        return []

    async def fetch_active_whitelist(self) -> list[WhitelistEntry]:
        return await self._fetch_active(PlayerTable.WHITELIST)

    async def fetch_active_operators(self) -> list[OperatorEntry]:
        if self._ops_guard():
            return []
        return await self._fetch_active(PlayerTable.OPERATORS)

    # ---- push: local -> store --------------------------------------

    async def _push(self, table: PlayerTable, entries: Iterable[PlayerRecord]) -> SyncResult:
        try:
            report = await self.store.bulk_upsert(table, list(entries))
        except WriteError as e:
            log.error("Failed to update %s database with local records: %s", table.label, e, exc_info=True)
            return SyncResult(False, written=e.written, skipped=e.skipped, failed=e.failed, error=e)
        except SyncError as e:
            log.error("Failed to update %s database with local records: %s", table.label, e, exc_info=True)
            return SyncResult(False, error=e)
        except Exception as e:
            log.exception("Unexpected error pushing %s: %s", table.label, e)
            return SyncResult(False, error=WriteError(str(e)))
        log.info("Pushed local %s to database (%d written, %d skipped)", table.label, report.written, report.skipped)
        return SyncResult(True, written=report.written, skipped=report.skipped)

    async def push_local_whitelist(self, entries: Iterable[PlayerRecord]) -> SyncResult:
        return await self._push(PlayerTable.WHITELIST, entries)

    async def push_local_operators(self, entries: Iterable[PlayerRecord]) -> SyncResult:
        err = self._ops_guard()
        if err:
            return SyncResult(False, error=err)
        return await self._push(PlayerTable.OPERATORS, entries)

    # ---- pull: store -> local --------------------------------------

    async def _pull(
        self,
        table: PlayerTable,
        local: Iterable[PlayerRecord],
        on_add: PlayerCallback,
        on_remove: PlayerCallback,
    ) -> SyncResult:
        t0 = time.perf_counter()
        try:
            rows = await self.store.fetch_table(table)
        except SyncError as e:
            log.error("Error querying %s from database: %s", table.label, e, exc_info=True)
            return SyncResult(False, error=e)
        except Exception as e:
            log.exception("Unexpected error querying %s: %s", table.label, e)
            return SyncResult(False, error=QueryError(str(e)))

        local_ids = set()
        for entry in local:
            try:
                local_ids.add(coerce_uuid(entry.uuid))
            except (AttributeError, ValueError):
                log.warning("Ignoring local %s entry without a valid uuid: %r", table.label, entry)

        result = SyncResult(True)
        for row in rows:
            if row.active and row.uuid not in local_ids:
                callback, verb = on_add, "Added"
            elif not row.active and row.uuid in local_ids:
                callback, verb = on_remove, "Removed"
            else:
                continue
            try:
                outcome = callback(row.uuid, row.name)
                if inspect.isawaitable(outcome):
                    await outcome
            except CallbackResolutionError as e:
                result.failed += 1
                log.warning("Could not resolve player %s (%s) for %s: %s", row.name, row.uuid, table.label, e)
                continue
            except Exception as e:
                log.exception("%s callback failed for %s (%s); stopping pull", table.label, row.name, row.uuid)
                result.ok = False
                result.error = SyncError(f"callback failed for {row.uuid}: {e}")
                break
            if verb == "Added":
                result.added += 1
            else:
                result.removed += 1
            log.debug("%s %s (%s) %s %s", verb, row.name, row.uuid, "to" if verb == "Added" else "from", table.label)

        log.debug(
            "Copied %s database to local | took %.1fms | %d added, %d removed, %d unresolved",
            table.label, (time.perf_counter() - t0) * 1000, result.added, result.removed, result.failed,
        )
        return result

    async def pull_remote_whitelist(
        self, local: Iterable[PlayerRecord], on_add: PlayerCallback, on_remove: PlayerCallback
    ) -> SyncResult:
        return await self._pull(PlayerTable.WHITELIST, local, on_add, on_remove)

    async def pull_remote_operators(
        self, local: Iterable[PlayerRecord], on_add: PlayerCallback, on_remove: PlayerCallback
    ) -> SyncResult:
        err = self._ops_guard()
        if err:
            return SyncResult(False, error=err)
        return await self._pull(PlayerTable.OPERATORS, local, on_add, on_remove)

    # ---- single-player operations ----------------------------------

    async def _upsert(self, table: PlayerTable, uuid: uuid_mod.UUID, name: Optional[str], active: bool) -> SyncResult:
        action = "adding" if active else "removing"
        try:
            await self.store.upsert_one(table, uuid, name, active)
        except SyncError as e:
            log.error("Error %s %s in %s database: %s", action, name, table.label, e, exc_info=True)
            return SyncResult(False, failed=1, error=e)
        except Exception as e:
            log.exception("Unexpected error %s %s in %s: %s", action, name, table.label, e)
            return SyncResult(False, failed=1, error=WriteError(str(e)))
        if active:
            return SyncResult(True, added=1, written=1)
        return SyncResult(True, removed=1, written=1)

    async def add_whitelist_player(self, uuid: uuid_mod.UUID, name: Optional[str]) -> SyncResult:
        return await self._upsert(PlayerTable.WHITELIST, uuid, name, True)

    async def remove_whitelist_player(self, uuid: uuid_mod.UUID, name: Optional[str]) -> SyncResult:
        return await self._upsert(PlayerTable.WHITELIST, uuid, name, False)

    async def add_operator(self, uuid: uuid_mod.UUID, name: Optional[str]) -> SyncResult:
        err = self._ops_guard()
        if err:
            return SyncResult(False, error=err)
        return await self._upsert(PlayerTable.OPERATORS, uuid, name, True)

    async def remove_operator(self, uuid: uuid_mod.UUID, name: Optional[str]) -> SyncResult:
        err = self._ops_guard()
        if err:
            return SyncResult(False, error=err)
        return await self._upsert(PlayerTable.OPERATORS, uuid, name, False)
