# whitelist_sync/utils/rcon_client.py
from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Iterator

from aiomcrcon import Client

from whitelist_sync.utils.config import settings

log = logging.getLogger(__name__)

MAX_BACKOFF = 30.0


def _text(reply) -> str:
    # aiomcrcon returns (body, packet_type)
    if isinstance(reply, tuple):
        reply = reply[0]
    return str(reply or "")


def _backoff_delays(start: float = 1.0, factor: float = 1.7) -> Iterator[float]:
    delay = start
    while True:
        yield delay
        delay = min(delay * factor, MAX_BACKOFF)


class RconConsole:
    """Server console over RCON.

    A background task holds one connection open and pings it with ``list``.
    Commands go over that connection when it is up and over a throwaway
    connection otherwise, so a whitelist change never waits for a reconnect.
    """

    def __init__(
        self,
        host: str,
        port: int,
        password: str,
        *,
        connect_timeout: float = 5,
        cmd_timeout: float = 8,
        keepalive_seconds: float = 30,
    ):
        self.host = host
        self.port = port
        self.password = password
        self.connect_timeout = connect_timeout
        self.cmd_timeout = cmd_timeout
        self.keepalive_seconds = keepalive_seconds
        self._client: Client | None = None
        self._lock = asyncio.Lock()
        self._connected = asyncio.Event()
        self._closing = asyncio.Event()
        self._task: asyncio.Task | None = None

    @property
    def connected(self) -> bool:
        return self._connected.is_set()

    async def _open(self) -> Client:
        client = Client(self.host, self.port, self.password)
        await asyncio.wait_for(client.connect(), timeout=self.connect_timeout)
        return client

    async def _exchange(self, client: Client, cmd: str) -> str:
        return _text(await asyncio.wait_for(client.send_cmd(cmd), timeout=self.cmd_timeout))

    async def _drop(self) -> None:
        client, self._client = self._client, None
        self._connected.clear()
        if client is not None:
            with contextlib.suppress(Exception):
                await client.close()

    def ensure_running(self) -> None:
        if self._task is None or self._task.done():
            self._closing.clear()
            self._task = asyncio.create_task(self._hold_open(), name="rcon-console")

    async def close(self) -> None:
        self._closing.set()
        if self._task is not None:
            with contextlib.suppress(Exception):
                await self._task
            self._task = None
        await self._drop()

    async def _idle(self) -> bool:
        """Sleep one keepalive period; True when close() was called meanwhile."""
        try:
            await asyncio.wait_for(self._closing.wait(), timeout=self.keepalive_seconds)
        except asyncio.TimeoutError:
            return False
        return True

    async def _hold_open(self) -> None:
        delays = _backoff_delays()
        while not self._closing.is_set():
            try:
                self._client = await self._open()
                self._connected.set()
                log.info("[rcon] connected to %s:%s", self.host, self.port)
                delays = _backoff_delays()
                while not await self._idle():
                    async with self._lock:
                        if self._client is None:
                            raise ConnectionError("connection dropped by a failed command")
                        await self._exchange(self._client, "list")
            except asyncio.CancelledError:
                raise
            except Exception as e:
                delay = next(delays)
                log.warning("[rcon] %s:%s unavailable (%s); retrying in %.1fs", self.host, self.port, e, delay)
                await self._drop()
                with contextlib.suppress(asyncio.TimeoutError):
                    await asyncio.wait_for(self._closing.wait(), timeout=delay)
        await self._drop()
        log.info("[rcon] console closed")

    async def _oneshot(self, cmd: str) -> str:
        log.info("[rcon/oneshot] %s:%s -> %s", self.host, self.port, cmd)
        client = await self._open()
        try:
            return await self._exchange(client, cmd)
        finally:
            with contextlib.suppress(Exception):
                await client.close()

    async def send(self, cmd: str) -> str:
        self.ensure_running()
        try:
            await asyncio.wait_for(self._connected.wait(), timeout=self.connect_timeout)
        except asyncio.TimeoutError:
            return await self._oneshot(cmd)
        async with self._lock:
            if self._client is not None:
                try:
                    return await self._exchange(self._client, cmd)
                except Exception as e:
                    log.warning("[rcon] %r failed on the held connection: %s", cmd, e)
                    await self._drop()
        return await self._oneshot(cmd)


console = RconConsole(
    settings.MC_RCON_HOST,
    settings.MC_RCON_PORT,
    settings.MC_RCON_PASSWORD,
    connect_timeout=settings.RCON_CONNECT_TIMEOUT,
    cmd_timeout=settings.RCON_CMD_TIMEOUT,
    keepalive_seconds=settings.RCON_KEEPALIVE_SECONDS,
)


async def close_console():
    await console.close()


async def mc_cmd(cmd: str) -> str:
    return await console.send(cmd)
