# whitelist_sync/utils/sftp_client.py
from contextlib import asynccontextmanager

import asyncssh

from whitelist_sync.utils.config import settings


@asynccontextmanager
async def sftp_conn():
    conn = await asyncssh.connect(
        settings.SFTP_HOST,
        port=settings.SFTP_PORT,
        username=settings.SFTP_USERNAME,
        password=settings.SFTP_PASSWORD,
        known_hosts=None,
        keepalive_interval=30,
        keepalive_count_max=3,
    )
    try:
        sftp = await conn.start_sftp_client()
        yield sftp
    finally:
        conn.close()
        await conn.wait_closed()


async def read_remote_text(path: str) -> str:
    async with sftp_conn() as sftp:
        async with (await sftp.open(path, "r")) as f:
            data = await f.read()
    # some servers hand back bytes
    return data if isinstance(data, str) else data.decode(errors="replace")
