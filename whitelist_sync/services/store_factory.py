from __future__ import annotations

from whitelist_sync.services.base import PlayerStore
from whitelist_sync.services.memory_store import MemoryPlayerStore
from whitelist_sync.services.sql_store import SqlPlayerStore
from whitelist_sync.services.sync_engine import WhitelistSyncEngine
from whitelist_sync.utils.config import Settings


def build_store(cfg: Settings) -> PlayerStore:
    if cfg.DATABASE_MODE == "memory" and not cfg.DATABASE_URL:
        return MemoryPlayerStore()
    return SqlPlayerStore(cfg.database_url)


def build_engine(cfg: Settings) -> WhitelistSyncEngine:
    return WhitelistSyncEngine(build_store(cfg), sync_ops=cfg.SYNC_OP_LIST)
