"""
Dependencies used by the API.
"""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends
from structlog import get_logger
from structlog.typing import FilteringBoundLogger

from oauthbridge.config.settings import Settings
from oauthbridge.service.backend import IdentityBackend
from oauthbridge.service.github import GithubIdentityBackend
from oauthbridge.service.mock import MockIdentityBackend
from oauthbridge.service.store import TokenStore


@lru_cache
def SETTINGS():
    return Settings()


def logger():
    return get_logger()


@lru_cache
def get_token_store() -> TokenStore:
    settings = SETTINGS()
    return TokenStore(
        manager=settings.async_manager(), timeout=settings.store_timeout
    )


def build_identity_backend(
    settings: Settings, log: FilteringBoundLogger
) -> IdentityBackend | None:
    """
    Construct the configured identity backend, or None if it is not
    configured (requests will then fail with `BackendUnavailable`).
    """
    match settings.identity_backend:
        case "github":
            if not settings.github_client_id or not settings.github_client_secret:
                log.warning("dependencies.github_not_configured")
                return None

            return GithubIdentityBackend(
                client_id=settings.github_client_id,
                client_secret=settings.github_client_secret,
                scope=settings.github_scope,
                timeout=settings.backend_timeout,
            )
        case "mock":
            log.warning("dependencies.using_mock_backend")
            return MockIdentityBackend(
                user_id=settings.mock_user_id, expires_in=settings.mock_expires_in
            )
        case _:
            log.warning("dependencies.no_identity_backend")
            return None


@lru_cache
def get_identity_backend() -> IdentityBackend | None:
    return build_identity_backend(settings=SETTINGS(), log=logger())


SettingsDependency = Annotated[Settings, Depends(SETTINGS)]
LoggerDependency = Annotated[FilteringBoundLogger, Depends(logger)]
TokenStoreDependency = Annotated[TokenStore | None, Depends(get_token_store)]
IdentityBackendDependency = Annotated[
    IdentityBackend | None, Depends(get_identity_backend)
]
