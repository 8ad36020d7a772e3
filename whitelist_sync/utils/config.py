from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Discord
    DISCORD_TOKEN: str = ""
    DISCORD_GUILD_ID: int = 0
    DISCORD_ADMIN_ROLE_IDS: str = ""
    DISCORD_MOD_ROLE_IDS: str = ""
    DISCORD_COMMAND_PREFIX: str = "!"

    # RCON
    MC_RCON_HOST: str = "localhost"
    MC_RCON_PORT: int = 25575
    MC_RCON_PASSWORD: str = ""
    RCON_CONNECT_TIMEOUT: int = 5
    RCON_CMD_TIMEOUT: int = 8
    RCON_KEEPALIVE_SECONDS: int = 30

    # SFTP (read access to the server's whitelist.json / ops.json)
    SFTP_HOST: str = "localhost"
    SFTP_PORT: int = 22
    SFTP_USERNAME: str = ""
    SFTP_PASSWORD: str = ""
    MC_SERVER_DIR: str = ""
    MC_WHITELIST_PATH: str = ""
    MC_OPS_PATH: str = ""

    # DB
    DATABASE_MODE: Literal["sqlite", "postgres", "memory"] = "sqlite"
    DATABASE_URL: str = ""
    SQLITE_DATABASE_PATH: str = "./whitelistSync.db"
    DB_HOST: str = "db"
    DB_PORT: int = 5432
    DB_USER: str = "whitelist"
    DB_PASSWORD: str = "whitelist_password"
    DB_NAME: str = "whitelist_sync"

    # Sync
    SYNC_OP_LIST: bool = False
    SYNC_TIMER_SECONDS: int = 60
    SYNC_PUSH_ON_START: bool = True

    # App
    APP_ENV: str = "dev"
    LOG_LEVEL: str = "INFO"
    WHITELIST_API_TOKEN: str = ""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        if self.DATABASE_MODE == "postgres":
            return f"postgresql+asyncpg://{self.DB_USER}:{self.DB_PASSWORD}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        return f"sqlite+aiosqlite:///{self.SQLITE_DATABASE_PATH}"

    def _server_file(self, explicit: str, filename: str) -> str:
        if explicit.strip():
            return explicit.strip()
        base = self.MC_SERVER_DIR.rstrip("/")
        return f"{base}/{filename}" if base else filename

    @property
    def whitelist_path(self) -> str:
        return self._server_file(self.MC_WHITELIST_PATH, "whitelist.json")

    @property
    def ops_path(self) -> str:
        return self._server_file(self.MC_OPS_PATH, "ops.json")

    def roles_from_csv(self, csv: str) -> list[int]:
        return [int(x) for x in csv.split(",") if x.strip()]


settings = Settings()
