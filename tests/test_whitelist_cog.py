import json
import types

import discord
import pytest
from discord.ext import commands

from whitelist_sync.services.server_host import MinecraftServerHost
from whitelist_sync.services.whitelist_cog import WhitelistCog
from whitelist_sync.utils.config import settings

from conftest import ALICE, BOB

pytestmark = pytest.mark.asyncio

MOD_ROLE = 4242


class StubFollowup:
    def __init__(self):
        self.sent = []

    async def send(self, *a, **k):  # emulate discord.Interaction.followup.send
        self.sent.append(k.get("embed") or (a[0] if a else None))


class StubResponse:
    def __init__(self):
        self._done = False
        self.messages = []

    def is_done(self):
        return self._done

    async def defer(self, **k):
        self._done = True

    async def send_message(self, content=None, **k):
        self._done = True
        self.messages.append(content)


class StubUser:
    def __init__(self, role_ids):
        self.roles = [types.SimpleNamespace(id=i) for i in role_ids]
        self.id = 123


class StubInteraction:
    def __init__(self, role_ids):
        self.user = StubUser(role_ids)
        self.response = StubResponse()
        self.followup = StubFollowup()

    @property
    def embed(self) -> discord.Embed:
        return self.followup.sent[-1]


class StubServer:
    """RCON that edits an in-memory whitelist.json the way the server does."""

    UUIDS = {"alice": ALICE, "bob": BOB}

    def __init__(self):
        self.whitelist = []
        self.commands = []

    async def send(self, cmd):
        self.commands.append(cmd)
        verb, name = cmd.rsplit(" ", 1)
        uid = self.UUIDS.get(name.lower())
        if uid is None:
            return "That player does not exist"
        if verb == "whitelist add":
            self.whitelist.append({"uuid": str(uid), "name": name})
        elif verb == "whitelist remove":
            self.whitelist = [e for e in self.whitelist if e["name"].lower() != name.lower()]
        return f"ok: {cmd}"

    async def read_text(self, path):
        return json.dumps(self.whitelist if path == "wl" else [])


@pytest.fixture(autouse=True)
def mod_roles(monkeypatch):
    monkeypatch.setattr(settings, "DISCORD_MOD_ROLE_IDS", str(MOD_ROLE))


@pytest.fixture
def server():
    return StubServer()


@pytest.fixture
def cog(engine, server):
    bot = commands.Bot(command_prefix="!", intents=discord.Intents.none())
    host = MinecraftServerHost(server.send, server.read_text, whitelist_path="wl", ops_path="ops")
    return WhitelistCog(bot, engine, host)


async def test_add_requires_moderator(cog, server, engine):
    inter = StubInteraction(role_ids=[])
    await cog.wl_add.callback(cog, inter, "Alice")
    assert inter.response.messages == ["No permission."]
    assert server.commands == []
    assert await engine.fetch_active_whitelist() == []


async def test_add_changes_server_and_database(cog, server, engine):
    inter = StubInteraction(role_ids=[MOD_ROLE])
    await cog.wl_add.callback(cog, inter, "Alice")
    assert server.commands == ["whitelist add Alice"]
    assert [(r.uuid, r.name) for r in await engine.fetch_active_whitelist()] == [(ALICE, "Alice")]
    assert "Database updated" in inter.embed.description


async def test_add_unknown_player_reports_error(cog, server, engine):
    inter = StubInteraction(role_ids=[MOD_ROLE])
    await cog.wl_add.callback(cog, inter, "Ghost")
    assert "failed" in inter.embed.title
    assert await engine.fetch_active_whitelist() == []


async def test_remove_tombstones_player(cog, server, engine):
    mod = StubInteraction(role_ids=[MOD_ROLE])
    await cog.wl_add.callback(cog, mod, "Alice")
    await cog.wl_remove.callback(cog, StubInteraction(role_ids=[MOD_ROLE]), "alice")
    assert server.commands[-1] == "whitelist remove alice"
    assert await engine.fetch_active_whitelist() == []


async def test_list_is_open_to_everyone(cog, engine):
    await engine.add_whitelist_player(BOB, "Bob")
    await engine.add_whitelist_player(ALICE, "Alice")
    inter = StubInteraction(role_ids=[])
    await cog.wl_list.callback(cog, inter)
    assert "Alice, Bob" in inter.embed.description


async def test_sync_pulls_database_into_server(cog, server, engine):
    await engine.add_whitelist_player(BOB, "Bob")
    inter = StubInteraction(role_ids=[MOD_ROLE])
    await cog.wl_sync.callback(cog, inter)
    assert server.commands == ["whitelist add Bob"]
    assert "Added 1" in inter.embed.description


async def test_push_copies_server_list(cog, server, engine):
    server.whitelist = [{"uuid": str(ALICE), "name": "Alice"}]
    inter = StubInteraction(role_ids=[MOD_ROLE])
    await cog.wl_push.callback(cog, inter)
    assert [r.uuid for r in await engine.fetch_active_whitelist()] == [ALICE]
    assert "Wrote 1" in inter.embed.description


async def test_op_commands_refuse_when_op_sync_disabled(cog, server, engine):
    engine.sync_ops = False
    inter = StubInteraction(role_ids=[MOD_ROLE])
    await cog.wlop_op.callback(cog, inter, "Alice")
    assert server.commands == []
    assert "disabled" in inter.embed.description
