"""
Test doubles for the service layer tests.
"""

from uuid import uuid4

import pytest_asyncio

from oauthbridge.core.errors import StoreReadFailed, StoreWriteFailed
from oauthbridge.core.models import BackendSession, SessionExchange
from oauthbridge.service.backend import IdentityBackend
from oauthbridge.service.store import TokenStore


class UserlessBackend(IdentityBackend):
    """
    Succeeds at the exchange but forgets to say who the user is.
    """

    name = "mock"

    def __init__(self, access_token: str):
        self.access_token = access_token

    async def begin_delegated_login(self, provider, return_address, log):
        raise NotImplementedError

    async def exchange_code(self, code, log):
        return SessionExchange(
            user=None, session=BackendSession(access_token=self.access_token)
        )


class BrokenStore(TokenStore):
    def __init__(self):
        pass

    async def insert(self, user_id, access_token, refresh_token, expires_at):
        raise StoreWriteFailed()

    async def find_by_access_token(self, code):
        raise StoreReadFailed("connection reset")


@pytest_asyncio.fixture
def userless_backend():
    yield UserlessBackend(access_token=f"userless-{uuid4().hex}")


@pytest_asyncio.fixture(scope="session")
def broken_store():
    yield BrokenStore()
