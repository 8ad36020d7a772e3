# whitelist_sync/services/sync_task.py
from __future__ import annotations

import asyncio
import contextlib
import logging

from whitelist_sync.services.server_host import MinecraftServerHost
from whitelist_sync.services.sync_engine import SyncResult, WhitelistSyncEngine

log = logging.getLogger(__name__)


class SyncTask:
    """Polls the store every `interval` seconds and applies changes to the server."""

    def __init__(
        self,
        engine: WhitelistSyncEngine,
        host: MinecraftServerHost,
        *,
        interval: float = 60,
        push_on_start: bool = True,
    ):
        self.engine = engine
        self.host = host
        self.interval = interval
        self.push_on_start = push_on_start
        self._stop = asyncio.Event()
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def push_once(self) -> list[SyncResult]:
        results = [await self.engine.push_local_whitelist(await self.host.local_whitelist())]
        if self.engine.sync_ops:
            results.append(await self.engine.push_local_operators(await self.host.local_operators()))
        return results

    async def run_once(self) -> list[SyncResult]:
        results = [
            await self.engine.pull_remote_whitelist(
                await self.host.local_whitelist(), self.host.whitelist_add, self.host.whitelist_remove
            )
        ]
        if self.engine.sync_ops:
            results.append(
                await self.engine.pull_remote_operators(
                    await self.host.local_operators(), self.host.op, self.host.deop
                )
            )
        return results

    async def _run(self):
        if self.push_on_start:
            try:
                await self.push_once()
            except Exception:
                log.exception("[sync] initial push failed")

        while not self._stop.is_set():
            try:
                for res in await self.run_once():
                    if res.added or res.removed or not res.ok:
                        log.info(
                            "[sync] pull ok=%s added=%d removed=%d unresolved=%d",
                            res.ok, res.added, res.removed, res.failed,
                        )
            except asyncio.CancelledError:
                raise
            except Exception:
                # host unreachable (SFTP/RCON); next tick retries
                log.exception("[sync] cycle failed")
            with contextlib.suppress(asyncio.TimeoutError):
                await asyncio.wait_for(self._stop.wait(), timeout=self.interval)
        log.info("[sync] task stopped")

    def start(self) -> bool:
        if self.engine.supports_live_sync():
            log.info("[sync] store pushes changes itself; polling disabled")
            return False
        if self.running:
            return True
        self._stop.clear()
        self._task = asyncio.create_task(self._run(), name="whitelist-sync")
        log.info("[sync] polling every %ss", self.interval)
        return True

    async def stop(self) -> None:
        self._stop.set()
        if self._task:
            with contextlib.suppress(Exception, asyncio.CancelledError):
                await self._task
        self._task = None
