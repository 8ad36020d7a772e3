import pytest

from whitelist_sync.services.memory_store import MemoryPlayerStore
from whitelist_sync.services.sql_store import SqlPlayerStore
from whitelist_sync.services.store_factory import build_engine, build_store
from whitelist_sync.utils.config import Settings
from whitelist_sync.utils.db import sanitize_db_url


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in ("DATABASE_URL", "DATABASE_MODE", "SQLITE_DATABASE_PATH", "MC_SERVER_DIR", "MC_WHITELIST_PATH", "MC_OPS_PATH", "SYNC_OP_LIST"):
        monkeypatch.delenv(key, raising=False)


def _settings(**kw) -> Settings:
    return Settings(_env_file=None, **kw)


def test_sqlite_is_the_default_backend():
    cfg = _settings()
    assert cfg.database_url == "sqlite+aiosqlite:///./whitelistSync.db"
    assert isinstance(build_store(cfg), SqlPlayerStore)


def test_postgres_url_from_parts():
    cfg = _settings(DATABASE_MODE="postgres", DB_USER="u", DB_PASSWORD="p", DB_HOST="h", DB_PORT=1, DB_NAME="d")
    assert cfg.database_url == "postgresql+asyncpg://u:p@h:1/d"
    assert sanitize_db_url(cfg.database_url) == "postgresql+asyncpg://u:***@h:1/d"


def test_explicit_url_wins():
    cfg = _settings(DATABASE_MODE="memory", DATABASE_URL="sqlite+aiosqlite:///other.db")
    assert cfg.database_url == "sqlite+aiosqlite:///other.db"
    assert isinstance(build_store(cfg), SqlPlayerStore)


def test_memory_mode_and_op_flag():
    engine = build_engine(_settings(DATABASE_MODE="memory", SYNC_OP_LIST=True))
    assert isinstance(engine.store, MemoryPlayerStore)
    assert engine.sync_ops is True


def test_server_file_paths():
    cfg = _settings(MC_SERVER_DIR="/srv/mc/")
    assert cfg.whitelist_path == "/srv/mc/whitelist.json"
    assert cfg.ops_path == "/srv/mc/ops.json"
    cfg = _settings(MC_SERVER_DIR="/srv/mc", MC_OPS_PATH="/data/ops.json")
    assert cfg.ops_path == "/data/ops.json"
    assert _settings().whitelist_path == "whitelist.json"


def test_roles_from_csv():
    assert _settings().roles_from_csv("1, 2,,3") == [1, 2, 3]
