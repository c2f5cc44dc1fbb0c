"""
Tests resolving bearer tokens to their owners.
"""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest


@pytest.mark.parametrize(
    "headers",
    [{}, {"Authorization": "Basic abc"}, {"Authorization": "Bearer"}],
)
@pytest.mark.asyncio(loop_scope="session")
async def test_bad_header(client, headers):
    response = await client.get("/userinfo", headers=headers)

    assert response.status_code == 401
    assert response.json() == {"error": "Invalid token"}


@pytest.mark.asyncio(loop_scope="session")
async def test_known_token(client, store):
    token = f"userinfo-{uuid4().hex}"
    await store.insert(
        user_id="u-userinfo",
        access_token=token,
        refresh_token=None,
        expires_at=datetime.now(timezone.utc) + timedelta(seconds=60),
    )

    response = await client.get(
        "/userinfo", headers={"Authorization": f"Bearer {token}"}
    )

    assert response.status_code == 200
    assert response.json()["user_id"] == "u-userinfo"
    assert 58 <= response.json()["expires_in"] <= 60


@pytest.mark.asyncio(loop_scope="session")
async def test_expired_token(client, store):
    token = f"userinfo-{uuid4().hex}"
    await store.insert(
        user_id="u-userinfo",
        access_token=token,
        refresh_token=None,
        expires_at=datetime.now(timezone.utc) - timedelta(seconds=60),
    )

    response = await client.get(
        "/userinfo", headers={"Authorization": f"Bearer {token}"}
    )

    assert response.status_code == 401
    assert response.json() == {"error": "Token expired"}
