# whitelist_sync/main.py
from __future__ import annotations

import asyncio
import contextlib
import logging
import os
import sys
import time

import discord
from discord.ext import commands
from fastapi import FastAPI

# silence PyNaCl warning (no voice support needed)
discord.VoiceClient.warn_nacl = False

from whitelist_sync.api.whitelist_router import router as whitelist_router
from whitelist_sync.services.server_host import MinecraftServerHost
from whitelist_sync.services.store_factory import build_engine
from whitelist_sync.services.sync_task import SyncTask
from whitelist_sync.services.whitelist_cog import WhitelistCog
from whitelist_sync.utils.config import settings
from whitelist_sync.utils.db import sanitize_db_url
from whitelist_sync.utils.logging import configure_logging
from whitelist_sync.utils.rcon_client import close_console

# ---------- logging
configure_logging(settings.LOG_LEVEL)
log = logging.getLogger("main")


def _mask_token(tok: str | None) -> str:
    if not tok:
        return "<empty>"
    if len(tok) <= 8:
        return "***"
    return tok[:4] + "…" + tok[-4:]


# ---------- sync wiring
engine = build_engine(settings)
host = MinecraftServerHost()
sync_task = SyncTask(
    engine,
    host,
    interval=settings.SYNC_TIMER_SECONDS,
    push_on_start=settings.SYNC_PUSH_ON_START,
)

# ---------- discord bot
intents = discord.Intents.default()
intents.guilds = True
intents.members = True


class SyncBot(commands.Bot):
    async def setup_hook(self) -> None:
        log.info("[discord] setup_hook: loading whitelist cog")
        await self.add_cog(WhitelistCog(self, engine, host))
        try:
            if settings.DISCORD_GUILD_ID:
                guild = discord.Object(id=settings.DISCORD_GUILD_ID)
                self.tree.copy_global_to(guild=guild)
                await self.tree.sync(guild=guild)
            else:
                await self.tree.sync()
            log.info("[discord] slash commands synced")
        except Exception:
            log.exception("[discord] slash sync failed")


bot = SyncBot(command_prefix=settings.DISCORD_COMMAND_PREFIX, intents=intents)


@bot.event
async def on_ready():
    log.info("[discord] on_ready as %s (guilds=%s)", bot.user, [g.name for g in bot.guilds])


# ---------- app
app = FastAPI(title="Whitelist Sync")
app.include_router(whitelist_router)
app.state.engine = engine


@app.get("/health")
async def health():
    return {
        "status": "ok",
        "started": bool(getattr(app.state, "started", False)),
        "schema_ready": bool(getattr(app.state, "schema_ready", False)),
        "sync_running": sync_task.running,
        "sync_ops": engine.sync_ops,
        "discord_logged_in": bot.user is not None,
    }


# ---------- lifecycle

@app.on_event("startup")
async def on_startup():
    if getattr(app.state, "started", False):
        log.info("Startup already executed; skipping.")
        return

    t0 = time.perf_counter()
    log.info("Starting up… pid=%s, py=%s", os.getpid(), sys.version.split()[0])
    log.info("DB=%s (op sync %s)", sanitize_db_url(settings.database_url), "on" if engine.sync_ops else "off")

    # 1) schema
    log.info("[1/3] Ensuring database schema…")
    app.state.schema_ready = await engine.initialize_schema()
    if not app.state.schema_ready:
        log.error("[1/3] Database schema init failed; sync task not started.")

    # 2) periodic pull
    if app.state.schema_ready:
        log.info("[2/3] Starting sync task…")
        sync_task.start()

    # 3) discord (non-blocking)
    token = settings.DISCORD_TOKEN or os.environ.get("DISCORD_TOKEN")
    log.info("Discord token present=%s (%s)", bool(token), _mask_token(token))
    if not token:
        log.warning("[3/3] DISCORD_TOKEN not set; admin commands disabled.")
    elif getattr(app.state, "bot_task", None) is None:
        log.info("[3/3] Starting Discord client task…")
        app.state.bot_task = asyncio.create_task(_start_bot(token))

    app.state.started = True
    log.info("Startup complete in %.2fs", time.perf_counter() - t0)


async def _start_bot(token: str):
    try:
        await bot.start(token)
    except discord.LoginFailure as e:
        log.exception("[discord] Login failed: %s", e)
    except asyncio.CancelledError:
        pass
    except Exception:
        log.exception("[discord] Unexpected exception in bot task")


@app.on_event("shutdown")
async def on_shutdown():
    log.info("Shutting down…")
    await sync_task.stop()
    bot_task = getattr(app.state, "bot_task", None)
    if not bot.is_closed():
        with contextlib.suppress(Exception):
            await bot.close()
    if bot_task and not bot_task.done():
        bot_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await bot_task
    with contextlib.suppress(Exception):
        await close_console()
    with contextlib.suppress(Exception):
        await engine.store.dispose()
    log.info("Shutdown complete.")
