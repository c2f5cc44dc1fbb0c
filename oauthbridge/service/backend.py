"""
Base for identity backends.
"""

import abc
from typing import Literal

from structlog.typing import FilteringBoundLogger

from oauthbridge.core.models import SessionExchange


class IdentityBackend(abc.ABC):
    """
    The base class for identity backends, the upstream services that
    actually authenticate users. Downstream must implement:

    - begin_delegated_login: get the URL to send the user's browser to so
                             that they can log in; the backend must send
                             them back to `return_address` with a `code`.
    - exchange_code: trade that code for the user and their session.

    Both raise `oauthbridge.core.errors.BackendError` when the backend
    refuses or errors, and `BackendUnavailable` when it cannot be reached
    in time.
    """

    name: Literal["mock", "github"]

    @abc.abstractmethod
    async def begin_delegated_login(
        self, provider: str, return_address: str, log: FilteringBoundLogger
    ) -> str:
        raise NotImplementedError

    @abc.abstractmethod
    async def exchange_code(
        self, code: str, log: FilteringBoundLogger
    ) -> SessionExchange:
        raise NotImplementedError
