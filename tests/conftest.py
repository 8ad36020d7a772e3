import uuid

import pytest
import pytest_asyncio

from whitelist_sync.services.memory_store import MemoryPlayerStore
from whitelist_sync.services.sql_store import SqlPlayerStore
from whitelist_sync.services.sync_engine import WhitelistSyncEngine

ALICE = uuid.UUID("0f3a4d52-5a1c-4f6e-9d0e-1b2c3d4e5f60")
BOB = uuid.UUID("7c9e6679-7425-40de-944b-e07fc1f90ae7")
CAROL = uuid.UUID("16fd2706-8baf-433b-82eb-8c7fada847da")


@pytest_asyncio.fixture
async def sql_store(tmp_path):
    store = SqlPlayerStore(f"sqlite+aiosqlite:///{tmp_path / 'whitelistSync.db'}")
    yield store
    await store.dispose()


@pytest_asyncio.fixture(params=["sql", "memory"])
async def store(request, tmp_path):
    if request.param == "memory":
        yield MemoryPlayerStore()
        return
    s = SqlPlayerStore(f"sqlite+aiosqlite:///{tmp_path / 'whitelistSync.db'}")
    yield s
    await s.dispose()


@pytest_asyncio.fixture
async def engine(store):
    eng = WhitelistSyncEngine(store, sync_ops=True)
    assert await eng.initialize_schema()
    return eng


@pytest.fixture
def memory_engine():
    return WhitelistSyncEngine(MemoryPlayerStore(), sync_ops=True)
