"""
Core configuration. Tests run against a throwaway SQLite database unless
OAUTHBRIDGE_TEST_POSTGRES is set, in which case a Postgres container is
started.
"""

import os
from datetime import timedelta

import pytest_asyncio
import structlog

from oauthbridge.config.settings import Settings
from oauthbridge.core.errors import BackendError
from oauthbridge.service.backend import IdentityBackend
from oauthbridge.service.mock import MockIdentityBackend
from oauthbridge.service.store import TokenStore


@pytest_asyncio.fixture(scope="session")
def database_container(tmp_path_factory):
    if os.environ.get("OAUTHBRIDGE_TEST_POSTGRES"):
        from testcontainers.postgres import PostgresContainer

        with PostgresContainer() as container:
            yield {
                "database_type": "postgres",
                "database_user": container.username,
                "database_password": container.password,
                "database_port": container.get_exposed_port(container.port),
                "database_host": "localhost",
                "database_db": container.dbname,
                "database_echo": True,
            }
    else:
        yield {
            "database_type": "sqlite",
            "database_db": str(tmp_path_factory.mktemp("db") / "oauthbridge.db"),
        }


@pytest_asyncio.fixture(scope="session")
def server_settings(database_container):
    yield Settings(
        **database_container,
        base_url="https://bridge.example",
        identity_backend="mock",
        identity_provider="github",
        default_expires_in=3600,
        store_timeout=timedelta(seconds=5),
    )


@pytest_asyncio.fixture(scope="session")
def database(server_settings: Settings):
    server_settings.sync_manager().create_all()


@pytest_asyncio.fixture(scope="session")
async def session_manager(server_settings: Settings, database):
    manager = server_settings.async_manager()

    yield manager

    await manager.dispose()


@pytest_asyncio.fixture(scope="session")
def logger():
    yield structlog.get_logger()


@pytest_asyncio.fixture(scope="session")
def store(session_manager, server_settings: Settings):
    yield TokenStore(manager=session_manager, timeout=server_settings.store_timeout)


@pytest_asyncio.fixture(scope="session")
def backend():
    # Mints a fresh random access token on every exchange so that tests
    # sharing the database never collide.
    yield MockIdentityBackend(user_id="admin", refresh_token="refresh")


class FailingBackend(IdentityBackend):
    name = "mock"

    async def begin_delegated_login(self, provider, return_address, log):
        raise BackendError("Provider is disabled")

    async def exchange_code(self, code, log):
        raise BackendError("Code rejected")


@pytest_asyncio.fixture(scope="session")
def failing_backend():
    yield FailingBackend()
