from __future__ import annotations

import os
import uuid as uuid_mod
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from pydantic import BaseModel

from whitelist_sync.exceptions import FeatureDisabledError
from whitelist_sync.models.records import PlayerRecord
from whitelist_sync.services.sync_engine import SyncResult, WhitelistSyncEngine
from whitelist_sync.utils.config import settings

router = APIRouter(prefix="/whitelist-sync", tags=["whitelist-sync"])


class PlayerIn(BaseModel):
    name: str


class PlayerOut(BaseModel):
    uuid: uuid_mod.UUID
    name: Optional[str] = None
    active: bool = True


async def _require_token(authorization: str | None = Header(default=None)):
    token = settings.WHITELIST_API_TOKEN or os.getenv("WHITELIST_API_TOKEN")
    if not token or not authorization or not authorization.startswith("Bearer ") or authorization.split(" ", 1)[1] != token:
        raise HTTPException(status_code=401, detail="Unauthorized")


def get_engine(request: Request) -> WhitelistSyncEngine:
    engine = getattr(request.app.state, "engine", None)
    if engine is None:
        raise HTTPException(status_code=503, detail="Sync engine not ready")
    return engine


def _out(rows: list[PlayerRecord]) -> list[PlayerOut]:
    return [PlayerOut(uuid=r.uuid, name=r.name, active=r.active) for r in rows]


def _result(res: SyncResult) -> dict:
    if isinstance(res.error, FeatureDisabledError):
        raise HTTPException(status_code=409, detail=str(res.error))
    if not res:
        raise HTTPException(status_code=503, detail=str(res.error))
    return {"ok": True, "added": res.added, "removed": res.removed}


@router.get("/whitelist", response_model=list[PlayerOut], dependencies=[Depends(_require_token)])
async def list_whitelist(engine: WhitelistSyncEngine = Depends(get_engine)):
    return _out(await engine.fetch_active_whitelist())


@router.put("/whitelist/{player_uuid}", dependencies=[Depends(_require_token)])
async def add_whitelist(player_uuid: uuid_mod.UUID, body: PlayerIn, engine: WhitelistSyncEngine = Depends(get_engine)):
    return _result(await engine.add_whitelist_player(player_uuid, body.name))


@router.delete("/whitelist/{player_uuid}", dependencies=[Depends(_require_token)])
async def remove_whitelist(player_uuid: uuid_mod.UUID, name: str, engine: WhitelistSyncEngine = Depends(get_engine)):
    return _result(await engine.remove_whitelist_player(player_uuid, name))


@router.get("/ops", response_model=list[PlayerOut], dependencies=[Depends(_require_token)])
async def list_ops(engine: WhitelistSyncEngine = Depends(get_engine)):
    if not engine.sync_ops:
        raise HTTPException(status_code=409, detail="Op list syncing is disabled")
    return _out(await engine.fetch_active_operators())


@router.put("/ops/{player_uuid}", dependencies=[Depends(_require_token)])
async def add_op(player_uuid: uuid_mod.UUID, body: PlayerIn, engine: WhitelistSyncEngine = Depends(get_engine)):
    return _result(await engine.add_operator(player_uuid, body.name))


@router.delete("/ops/{player_uuid}", dependencies=[Depends(_require_token)])
async def remove_op(player_uuid: uuid_mod.UUID, name: str, engine: WhitelistSyncEngine = Depends(get_engine)):
    return _result(await engine.remove_operator(player_uuid, name))
