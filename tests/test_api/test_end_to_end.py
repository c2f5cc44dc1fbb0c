"""
The full authorize -> callback -> token sequence through the HTTP surface.
"""

from datetime import datetime, timedelta, timezone
from urllib.parse import parse_qs, urlsplit

import pytest

from oauthbridge.api.dependencies import get_identity_backend
from oauthbridge.service.mock import MockIdentityBackend


@pytest.mark.asyncio(loop_scope="session")
async def test_full_flow(app, client, store):
    backend = MockIdentityBackend(
        user_id="u1", access_token="tok1", refresh_token="r1", expires_in=3600
    )
    app.dependency_overrides[get_identity_backend] = lambda: backend

    response = await client.get(
        "/authorize",
        params={"redirect_uri": "https://client.example/cb", "state": "xyz"},
    )

    assert response.status_code == 302

    login_url = urlsplit(response.headers["location"])
    carried = parse_qs(login_url.query)

    assert login_url.path == "/callback"
    assert carried["redirect_uri"] == ["https://client.example/cb"]
    assert carried["state"] == ["xyz"]

    # The user logs in upstream and the backend sends the browser back with
    # a code of its own.
    backend.grant("ghcode")

    before = datetime.now(timezone.utc)
    response = await client.get(
        "/callback",
        params={
            "code": "ghcode",
            "redirect_uri": "https://client.example/cb",
            "state": "xyz",
        },
    )

    assert response.status_code == 302
    assert response.headers["location"] == (
        "https://client.example/cb?code=tok1&state=xyz"
    )

    record = await store.find_by_access_token("tok1")

    assert record.user_id == "u1"
    assert record.refresh_token == "r1"
    assert abs(record.expires_at - (before + timedelta(seconds=3600))) < timedelta(
        seconds=2
    )

    response = await client.post("/token", json={"code": "tok1"})

    assert response.status_code == 200

    content = response.json()

    assert content["access_token"] == "tok1"
    assert content["token_type"] == "bearer"
    assert 3598 <= content["expires_in"] <= 3600

    response = await client.get(
        "/userinfo", headers={"Authorization": "Bearer tok1"}
    )

    assert response.status_code == 200
    assert response.json()["user_id"] == "u1"

    # The upstream code is single use.
    response = await client.get(
        "/callback",
        params={
            "code": "ghcode",
            "redirect_uri": "https://client.example/cb",
            "state": "xyz",
        },
    )

    assert response.status_code == 500


@pytest.mark.asyncio(loop_scope="session")
async def test_following_redirects(client):
    response = await client.get(
        "/authorize",
        params={"redirect_uri": "https://client.example/cb", "state": "abc"},
    )

    # The mock backend's login URL is our own callback.
    response = await client.get(response.headers["location"])

    assert response.status_code == 302

    delivered = urlsplit(response.headers["location"])
    query = parse_qs(delivered.query)

    assert delivered.netloc == "client.example"
    assert query["state"] == ["abc"]

    first = await client.post("/token", json={"code": query["code"][0]})
    second = await client.post("/token", json={"code": query["code"][0]})

    assert first.status_code == 200
    assert second.status_code == 200
    assert second.json()["access_token"] == first.json()["access_token"]
    assert second.json()["expires_in"] <= first.json()["expires_in"]
