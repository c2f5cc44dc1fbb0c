"""
Fixtures for driving the FastAPI app in-process.
"""

import httpx
import pytest_asyncio

from oauthbridge.api.app import app as bridge_app
from oauthbridge.api.dependencies import (
    SETTINGS,
    get_identity_backend,
    get_token_store,
)


@pytest_asyncio.fixture
def app(server_settings, store, backend):
    bridge_app.dependency_overrides[SETTINGS] = lambda: server_settings
    bridge_app.dependency_overrides[get_token_store] = lambda: store
    bridge_app.dependency_overrides[get_identity_backend] = lambda: backend

    yield bridge_app

    bridge_app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(app, server_settings):
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url=server_settings.base_url
    ) as client:
        yield client
