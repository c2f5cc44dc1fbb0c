"""
The mock identity backend, used for development and testing.
"""

from structlog.typing import FilteringBoundLogger

from oauthbridge.core import random
from oauthbridge.core.errors import BackendError
from oauthbridge.core.models import BackendSession, BackendUser, SessionExchange
from oauthbridge.core.urls import with_query
from oauthbridge.service.backend import IdentityBackend


class MockIdentityBackend(IdentityBackend):
    """
    Logs everyone in immediately as the same user. The 'login URL' is the
    return address itself with a freshly minted, single-use code attached,
    so following the redirect lands straight on `/callback`.

    Leave `access_token` unset to mint a new random token on every
    exchange. At most `max_pending` codes are held at once; granting past
    that forgets the oldest, which then fails to exchange.
    """

    name = "mock"

    user_id: str
    access_token: str | None
    refresh_token: str | None
    expires_in: int | None
    max_pending: int
    pending: dict[str, None]

    def __init__(
        self,
        user_id: str,
        access_token: str | None = None,
        refresh_token: str | None = None,
        expires_in: int | None = 3600,
        max_pending: int = 1024,
    ):
        self.user_id = user_id
        self.access_token = access_token
        self.refresh_token = refresh_token
        self.expires_in = expires_in
        self.max_pending = max_pending
        self.pending = {}

    def grant(self, code: str | None = None) -> str:
        """
        Register a code as if the user had just logged in.
        """
        code = code or random.backend_code()
        self.pending[code] = None

        while len(self.pending) > self.max_pending:
            del self.pending[next(iter(self.pending))]

        return code

    async def begin_delegated_login(
        self, provider: str, return_address: str, log: FilteringBoundLogger
    ) -> str:
        code = self.grant()
        await log.ainfo("mock.begin.granted", provider=provider)
        return with_query(return_address, code=code)

    async def exchange_code(
        self, code: str, log: FilteringBoundLogger
    ) -> SessionExchange:
        try:
            self.pending.pop(code)
        except KeyError:
            await log.ainfo("mock.exchange.unknown_code")
            raise BackendError("Invalid or already used code")

        return SessionExchange(
            user=BackendUser(id=self.user_id),
            session=BackendSession(
                access_token=self.access_token or random.access_token(),
                refresh_token=self.refresh_token or random.refresh_token(),
                expires_in=self.expires_in,
            ),
        )
