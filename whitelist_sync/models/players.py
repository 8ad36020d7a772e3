from __future__ import annotations

from typing import Optional

from sqlalchemy import Boolean, Column, String, select
from sqlalchemy.ext.asyncio import AsyncSession

from whitelist_sync.models.base import Base
from whitelist_sync.models.records import PlayerTable


class PlayerRowMixin:
    """Shared query helpers for the whitelist and op tables.

    Column names follow the files written by the original server mod so a
    store can be shared with servers still running it.
    """

    uuid = Column(String(36), primary_key=True)
    name = Column(String(64), nullable=True)

    @classmethod
    async def upsert(cls, s: AsyncSession, *, uuid: str, name: Optional[str], active: bool):
        row = await s.get(cls, uuid)
        if row:
            row.name = name
            row.active = active
        else:
            row = cls(uuid=uuid, name=name, active=active)
            s.add(row)
        await s.commit()
        return row

    @classmethod
    async def fetch_active(cls, s: AsyncSession):
        res = await s.execute(select(cls).where(cls.active.is_(True)))
        return list(res.scalars())

    @classmethod
    async def fetch_all(cls, s: AsyncSession):
        res = await s.execute(select(cls))
        return list(res.scalars())


class WhitelistRow(PlayerRowMixin, Base):
    __tablename__ = "whitelist"
    active = Column("whitelisted", Boolean(create_constraint=False), nullable=False, default=True)


class OpRow(PlayerRowMixin, Base):
    __tablename__ = "op"
    active = Column("isOp", Boolean(create_constraint=False), nullable=False, default=True)


ROW_MODELS = {
    PlayerTable.WHITELIST: WhitelistRow,
    PlayerTable.OPERATORS: OpRow,
}
