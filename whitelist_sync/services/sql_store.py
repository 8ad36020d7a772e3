from __future__ import annotations

import logging
import time
import uuid as uuid_mod
from pathlib import Path
from typing import Iterable, Optional

from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from whitelist_sync.exceptions import QueryError, SchemaError, WriteError
from whitelist_sync.models.base import Base
from whitelist_sync.models.players import ROW_MODELS
from whitelist_sync.models.records import PlayerRecord, PlayerTable, coerce_uuid
from whitelist_sync.services.base import BulkWriteReport, PlayerStore, is_writable
from whitelist_sync.utils.db import make_async_engine, make_session_maker, sanitize_db_url

log = logging.getLogger(__name__)


def _ms(t0: float) -> float:
    return (time.perf_counter() - t0) * 1000


class SqlPlayerStore(PlayerStore):
    """Store backed by any async SQLAlchemy database (SQLite, PostgreSQL).

    Every operation opens its own session and closes it before returning.
    """

    def __init__(self, url: str):
        self.url = url
        self._engine: AsyncEngine | None = None
        self._session_maker = None

    def supports_live_sync(self) -> bool:
        return False

    def _sessions(self):
        if self._session_maker is None:
            try:
                self._engine = make_async_engine(self.url)
            except (ImportError, ArgumentError) as e:
                raise SchemaError(
                    f"Failed to init database connector for {sanitize_db_url(self.url)}. Is the library missing?"
                ) from e
            self._session_maker = make_session_maker(self._engine)
        return self._session_maker

    def _prepare_sqlite_file(self) -> None:
        url = make_url(self.url)
        if url.get_backend_name() != "sqlite" or not url.database or url.database == ":memory:":
            return
        path = Path(url.database)
        if path.exists():
            return
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise SchemaError(f"Failed to create directory for SQLite database {path}") from e
        log.info('A new database "%s" will be created.', path)

    async def initialize_schema(self, include_operators: bool) -> None:
        log.info("Setting up the database store at %s ...", sanitize_db_url(self.url))
        self._prepare_sqlite_file()
        self._sessions()
        tables = [ROW_MODELS[PlayerTable.WHITELIST].__table__]
        if include_operators:
            tables.append(ROW_MODELS[PlayerTable.OPERATORS].__table__)
        try:
            async with self._engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all, tables=tables)
        except (SQLAlchemyError, OSError) as e:
            raise SchemaError("Error creating op or whitelist table") from e
        log.info("Connected to database; ensured tables: %s", ", ".join(t.name for t in tables))

    def _to_records(self, table: PlayerTable, rows) -> list[PlayerRecord]:
        records = []
        for row in rows:
            try:
                uuid = coerce_uuid(row.uuid)
            except ValueError:
                log.warning("Skipping %s row with malformed uuid %r", table.label, row.uuid)
                continue
            records.append(table.record_type(uuid=uuid, name=row.name, active=bool(row.active)))
        return records

    async def _read(self, table: PlayerTable, active_only: bool) -> list[PlayerRecord]:
        model = ROW_MODELS[table]
        t0 = time.perf_counter()
        try:
            async with self._sessions()() as s:
                rows = await (model.fetch_active(s) if active_only else model.fetch_all(s))
        except (SQLAlchemyError, OSError) as e:
            raise QueryError(f"Error querying {table.label} from database") from e
        records = self._to_records(table, rows)
        log.debug("Database pulled %s | took %.1fms | read %d records", table.label, _ms(t0), len(records))
        return records

    async def fetch_active(self, table: PlayerTable) -> list[PlayerRecord]:
        return await self._read(table, active_only=True)

    async def fetch_table(self, table: PlayerTable) -> list[PlayerRecord]:
        return await self._read(table, active_only=False)

    async def bulk_upsert(self, table: PlayerTable, entries: Iterable[PlayerRecord]) -> BulkWriteReport:
        model = ROW_MODELS[table]
        report = BulkWriteReport()
        failed = 0
        t0 = time.perf_counter()
        async with self._sessions()() as s:
            for entry in entries:
                if not is_writable(entry):
                    report.skipped += 1
                    continue
                try:
                    key = table.record_type(uuid=coerce_uuid(entry.uuid), name=entry.name).key
                except ValueError:
                    log.warning("Skipping %s entry with malformed uuid %r", table.label, entry.uuid)
                    report.skipped += 1
                    continue
                try:
                    await model.upsert(s, uuid=key, name=entry.name, active=True)
                    report.written += 1
                except (SQLAlchemyError, OSError) as e:
                    failed += 1
                    log.warning("Failed to write %s (%s) to %s: %s", entry.name, key, table.label, e)
                    await s.rollback()
        log.debug(
            "%s table updated | took %.1fms | wrote %d records, skipped %d, failed %d",
            table.label, _ms(t0), report.written, report.skipped, failed,
        )
        if failed:
            raise WriteError(
                f"Failed to update {table.label} with {failed} local records",
                written=report.written, skipped=report.skipped, failed=failed,
            )
        return report

    async def upsert_one(self, table: PlayerTable, uuid: uuid_mod.UUID, name: Optional[str], active: bool) -> None:
        model = ROW_MODELS[table]
        t0 = time.perf_counter()
        try:
            key = table.record_type(uuid=coerce_uuid(uuid), name=name).key
            async with self._sessions()() as s:
                await model.upsert(s, uuid=key, name=name, active=active)
        except ValueError as e:
            raise WriteError(f"Invalid uuid {uuid!r} for {name}") from e
        except (SQLAlchemyError, OSError) as e:
            raise WriteError(f"Error writing {name} to {table.label} database") from e
        log.debug("%s %s in %s | took %.1fms", "Set" if active else "Unset", name, table.label, _ms(t0))

    async def dispose(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
