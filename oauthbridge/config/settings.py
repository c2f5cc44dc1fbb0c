"""
Main settings object.
"""

from datetime import timedelta
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy import URL

from .managers import AsyncSessionManager, SyncSessionManager


class Settings(BaseSettings):
    database_type: Literal["sqlite", "postgres"] = "sqlite"
    database_user: str | None = None
    database_password: str | None = None
    database_port: int | None = None
    database_host: str | None = None
    database_db: str = "oauthbridge.db"

    database_echo: bool = False
    create_tables: bool = False

    # Public address of this service; the identity backend sends users back
    # to {base_url}/callback.
    base_url: str = "http://localhost:8000"

    identity_backend: Literal["github", "mock"] | None = None
    identity_provider: str = "github"

    github_client_id: str | None = None
    github_client_secret: str | None = None
    github_scope: str = "read:user"

    # Development/testing backend
    mock_user_id: str = "mock-user"
    mock_expires_in: int | None = 3600

    default_expires_in: int = 3600
    backend_timeout: timedelta = timedelta(seconds=10)
    store_timeout: timedelta = timedelta(seconds=5)

    model_config = SettingsConfigDict(env_prefix="OAUTHBRIDGE_", env_file=".env")

    @property
    def callback_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/callback"

    @property
    def sync_driver(self) -> str:
        match self.database_type:
            case "sqlite":
                return "sqlite"
            case "postgres":
                return "postgresql+psycopg"
            case _:
                raise ValueError

    @property
    def async_driver(self) -> str:
        match self.database_type:
            case "sqlite":
                return "sqlite+aiosqlite"
            case "postgres":
                return "postgresql+asyncpg"
            case _:
                raise ValueError

    @property
    def sync_uri(self) -> URL:
        return URL.create(
            drivername=self.sync_driver,
            username=self.database_user,
            password=self.database_password,
            host=self.database_host,
            port=self.database_port,
            database=self.database_db,
        )

    def sync_manager(self) -> SyncSessionManager:
        return SyncSessionManager(connection_url=self.sync_uri, echo=self.database_echo)

    @property
    def async_uri(self) -> URL:
        return URL.create(
            drivername=self.async_driver,
            username=self.database_user,
            password=self.database_password,
            host=self.database_host,
            port=self.database_port,
            database=self.database_db,
        )

    def async_manager(self) -> AsyncSessionManager:
        return AsyncSessionManager(
            connection_url=self.async_uri, echo=self.database_echo
        )
