# whitelist_sync/services/whitelist_cog.py
from __future__ import annotations

import logging
from types import SimpleNamespace

import discord
from discord import app_commands
from discord.ext import commands

from whitelist_sync.exceptions import CallbackResolutionError
from whitelist_sync.services.server_host import MinecraftServerHost
from whitelist_sync.services.sync_engine import OPS_DISABLED_MSG, SyncResult, WhitelistSyncEngine
from whitelist_sync.utils.permissions import require_moderator

log = logging.getLogger(__name__)


async def _reply_ok(inter: discord.Interaction, title: str, body: str, ephemeral: bool = True):
    emb = discord.Embed(title=title, description=f"```text\n{body.strip()[:1800]}\n```", color=0x2ECC71)
    if not inter.response.is_done():
        await inter.response.defer(ephemeral=ephemeral, thinking=True)
    await inter.followup.send(embed=emb, ephemeral=ephemeral)


async def _reply_err(inter: discord.Interaction, title: str, err: Exception | str, ephemeral: bool = True):
    emb = discord.Embed(title=title, description=f"```text\n{str(err)[:1800]}\n```", color=0xE74C3C)
    if not inter.response.is_done():
        await inter.response.defer(ephemeral=ephemeral, thinking=True)
    await inter.followup.send(embed=emb, ephemeral=ephemeral)


async def _reply_result(inter: discord.Interaction, title: str, body: str, res: SyncResult):
    if res:
        await _reply_ok(inter, title, f"{body}\nDatabase updated.")
    else:
        await _reply_err(inter, f"{title} failed", f"{body}\nDatabase: {res.error}")


class WhitelistCog(commands.Cog):
    """Slash commands that change the server and the shared database together."""

    wl = app_commands.Group(name="wl", description="Synced whitelist (admin)")
    wlop = app_commands.Group(name="wlop", description="Synced op list (admin)")

    def __init__(self, bot: commands.Bot, engine: WhitelistSyncEngine, host: MinecraftServerHost):
        self.bot = bot
        self.engine = engine
        self.host = host

    def _binding(self, ops: bool) -> SimpleNamespace:
        e, h = self.engine, self.host
        if ops:
            return SimpleNamespace(
                add_cmd="op", remove_cmd="deop", find=h.find_local_operator, local=h.local_operators,
                active=e.fetch_active_operators, db_add=e.add_operator, db_remove=e.remove_operator,
                pull=e.pull_remote_operators, push=e.push_local_operators, on_add=h.op, on_remove=h.deop,
            )
        return SimpleNamespace(
            add_cmd="whitelist add", remove_cmd="whitelist remove", find=h.find_local_whitelisted,
            local=h.local_whitelist, active=e.fetch_active_whitelist, db_add=e.add_whitelist_player,
            db_remove=e.remove_whitelist_player, pull=e.pull_remote_whitelist, push=e.push_local_whitelist,
            on_add=h.whitelist_add, on_remove=h.whitelist_remove,
        )

    async def _guard(self, interaction: discord.Interaction, title: str, ops: bool) -> bool:
        if not await require_moderator(interaction):
            return False
        if ops and not self.engine.sync_ops:
            await _reply_err(interaction, title, OPS_DISABLED_MSG)
            return False
        return True

    async def _add(self, interaction: discord.Interaction, title: str, player: str, ops: bool):
        if not await self._guard(interaction, title, ops):
            return
        b = self._binding(ops)
        try:
            out = await self.host.run(b.add_cmd, player)
            entry = await b.find(player)
        except CallbackResolutionError as e:
            return await _reply_err(interaction, f"{title} failed", e)
        except Exception as e:
            log.exception("[cog] %s %s failed", title, player)
            return await _reply_err(interaction, f"{title} failed", e)
        if entry is None:
            return await _reply_err(interaction, f"{title} failed", f"{out}\n{player} not found in the server's list.")
        await _reply_result(interaction, title, out, await b.db_add(entry.uuid, entry.name))

    async def _remove(self, interaction: discord.Interaction, title: str, player: str, ops: bool):
        if not await self._guard(interaction, title, ops):
            return
        b = self._binding(ops)
        try:
            entry = await b.find(player)
            if entry is None:
                wanted = player.lower()
                entry = next((r for r in await b.active() if r.name and r.name.lower() == wanted), None)
            out = await self.host.run(b.remove_cmd, player)
        except Exception as e:
            log.exception("[cog] %s %s failed", title, player)
            return await _reply_err(interaction, f"{title} failed", e)
        if entry is None:
            return await _reply_err(interaction, f"{title} failed", f"{out}\n{player} is not known to the database.")
        await _reply_result(interaction, title, out, await b.db_remove(entry.uuid, entry.name))

    async def _list(self, interaction: discord.Interaction, title: str, ops: bool):
        if ops and not self.engine.sync_ops:
            return await _reply_err(interaction, title, OPS_DISABLED_MSG)
        rows = await self._binding(ops).active()
        names = sorted((r.name or str(r.uuid) for r in rows), key=str.lower)
        await _reply_ok(interaction, title, f"{len(names)} players\n{', '.join(names) or '—'}")

    async def _sync(self, interaction: discord.Interaction, title: str, ops: bool):
        if not await self._guard(interaction, title, ops):
            return
        b = self._binding(ops)
        try:
            res = await b.pull(await b.local(), b.on_add, b.on_remove)
        except Exception as e:
            log.exception("[cog] %s failed", title)
            return await _reply_err(interaction, f"{title} failed", e)
        body = f"Added {res.added}, removed {res.removed}, unresolved {res.failed}"
        if res:
            await _reply_ok(interaction, title, body)
        else:
            await _reply_err(interaction, f"{title} failed", f"{body}\n{res.error}")

    async def _push(self, interaction: discord.Interaction, title: str, ops: bool):
        if not await self._guard(interaction, title, ops):
            return
        b = self._binding(ops)
        try:
            res = await b.push(await b.local())
        except Exception as e:
            log.exception("[cog] %s failed", title)
            return await _reply_err(interaction, f"{title} failed", e)
        body = f"Wrote {res.written}, skipped {res.skipped}, failed {res.failed}"
        if res:
            await _reply_ok(interaction, title, body)
        else:
            await _reply_err(interaction, f"{title} failed", f"{body}\n{res.error}")

    # ===================== WHITELIST GROUP ===========================

    @wl.command(name="add", description="Whitelist a player here and in the shared database")
    @app_commands.describe(player="Minecraft nickname")
    async def wl_add(self, interaction: discord.Interaction, player: str):
        await self._add(interaction, "wl add", player, ops=False)

    @wl.command(name="remove", description="Remove a player from the whitelist everywhere")
    @app_commands.describe(player="Minecraft nickname")
    async def wl_remove(self, interaction: discord.Interaction, player: str):
        await self._remove(interaction, "wl remove", player, ops=False)

    @wl.command(name="list", description="Show the shared whitelist")
    async def wl_list(self, interaction: discord.Interaction):
        await self._list(interaction, "wl list", ops=False)

    @wl.command(name="sync", description="Pull the shared whitelist into this server now")
    async def wl_sync(self, interaction: discord.Interaction):
        await self._sync(interaction, "wl sync", ops=False)

    @wl.command(name="push", description="Copy this server's whitelist into the database")
    async def wl_push(self, interaction: discord.Interaction):
        await self._push(interaction, "wl push", ops=False)

    # ======================= OP GROUP ================================

    @wlop.command(name="op", description="Op a player here and in the shared database")
    @app_commands.describe(player="Minecraft nickname")
    async def wlop_op(self, interaction: discord.Interaction, player: str):
        await self._add(interaction, "wlop op", player, ops=True)

    @wlop.command(name="deop", description="Deop a player everywhere")
    @app_commands.describe(player="Minecraft nickname")
    async def wlop_deop(self, interaction: discord.Interaction, player: str):
        await self._remove(interaction, "wlop deop", player, ops=True)

    @wlop.command(name="list", description="Show the shared op list")
    async def wlop_list(self, interaction: discord.Interaction):
        await self._list(interaction, "wlop list", ops=True)

    @wlop.command(name="sync", description="Pull the shared op list into this server now")
    async def wlop_sync(self, interaction: discord.Interaction):
        await self._sync(interaction, "wlop sync", ops=True)

    @wlop.command(name="push", description="Copy this server's op list into the database")
    async def wlop_push(self, interaction: discord.Interaction):
        await self._push(interaction, "wlop push", ops=True)
