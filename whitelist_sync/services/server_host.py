# whitelist_sync/services/server_host.py
from __future__ import annotations

import json
import logging
import re
import uuid as uuid_mod
from typing import Awaitable, Callable, Optional, Type

from whitelist_sync.exceptions import CallbackResolutionError
from whitelist_sync.models.records import OperatorEntry, PlayerRecord, WhitelistEntry
from whitelist_sync.utils.config import settings
from whitelist_sync.utils.rcon_client import mc_cmd
from whitelist_sync.utils.sftp_client import read_remote_text

log = logging.getLogger(__name__)

# Vanilla / Paper replies when a name can't be looked up
UNRESOLVED_REPLIES = (
    "That player does not exist",
    "No player was found",
    "Unknown player",
)
VALID_NAME = re.compile(r"^[A-Za-z0-9_]{1,16}$")


class MinecraftServerHost:
    """The local side of a sync: a Minecraft server reached over RCON and SFTP.

    Local lists are read from the server's whitelist.json / ops.json; changes
    pulled from the store are applied with whitelist/op console commands.
    """

    def __init__(
        self,
        send: Callable[[str], Awaitable[str]] = mc_cmd,
        read_text: Callable[[str], Awaitable[str]] = read_remote_text,
        *,
        whitelist_path: Optional[str] = None,
        ops_path: Optional[str] = None,
    ):
        self.send = send
        self.read_text = read_text
        self.whitelist_path = whitelist_path or settings.whitelist_path
        self.ops_path = ops_path or settings.ops_path

    # ---- local lists -------------------------------------------------

    async def _read_list(self, path: str, record_type: Type[PlayerRecord]) -> list[PlayerRecord]:
        text = await self.read_text(path)
        data = json.loads(text) if text.strip() else []
        if not isinstance(data, list):
            raise ValueError(f"{path} does not hold a JSON list")
        entries = []
        for obj in data:
            try:
                entries.append(record_type.from_json(obj))
            except (AttributeError, ValueError):
                log.warning("Skipping malformed entry in %s: %r", path, obj)
        return entries

    async def local_whitelist(self) -> list[WhitelistEntry]:
        return await self._read_list(self.whitelist_path, WhitelistEntry)

    async def local_operators(self) -> list[OperatorEntry]:
        return await self._read_list(self.ops_path, OperatorEntry)

    @staticmethod
    def _by_name(entries: list[PlayerRecord], name: str) -> Optional[PlayerRecord]:
        wanted = name.lower()
        return next((e for e in entries if e.name and e.name.lower() == wanted), None)

    async def find_local_whitelisted(self, name: str) -> Optional[WhitelistEntry]:
        return self._by_name(await self.local_whitelist(), name)

    async def find_local_operator(self, name: str) -> Optional[OperatorEntry]:
        return self._by_name(await self.local_operators(), name)

    # ---- console commands (pull callbacks) --------------------------

    async def run(self, verb: str, name: Optional[str], uuid: Optional[uuid_mod.UUID] = None) -> str:
        if not name or not VALID_NAME.match(name):
            raise CallbackResolutionError(f"no usable name for player {uuid or name!r}")
        out = (await self.send(f"{verb} {name}")).strip()
        if any(r.lower() in out.lower() for r in UNRESOLVED_REPLIES):
            raise CallbackResolutionError(out)
        log.info("[host] %s %s -> %s", verb, name, out)
        return out

    async def whitelist_add(self, uuid: uuid_mod.UUID, name: Optional[str]) -> None:
        await self.run("whitelist add", name, uuid)

    async def whitelist_remove(self, uuid: uuid_mod.UUID, name: Optional[str]) -> None:
        await self.run("whitelist remove", name, uuid)

    async def op(self, uuid: uuid_mod.UUID, name: Optional[str]) -> None:
        await self.run("op", name, uuid)

    async def deop(self, uuid: uuid_mod.UUID, name: Optional[str]) -> None:
        await self.run("deop", name, uuid)
