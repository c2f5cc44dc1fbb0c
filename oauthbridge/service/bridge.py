"""
The three legs of the delegated authorization flow.

authorize - send the user to the identity backend, carrying the client's
            `redirect_uri` and `state` inside our own return address so that
            nothing needs to be stored between legs.
callback  - trade the backend's code for a session, store it, and send the
            user back to the client with a code of ours.
token     - trade that code for the bearer token and its remaining lifetime.

The code handed to the client is the upstream access token itself, and it
can be exchanged any number of times until it expires.
"""

from datetime import datetime, timedelta, timezone
from math import floor

from structlog.typing import FilteringBoundLogger

from oauthbridge.config.settings import Settings
from oauthbridge.core.errors import (
    BackendError,
    BackendUnavailable,
    InvalidToken,
    MissingParameter,
    SessionExchangeFailed,
    SessionIncomplete,
    StoreReadFailed,
    StoreWriteFailed,
    TokenExpired,
)
from oauthbridge.core.models import TokenResponse
from oauthbridge.core.urls import with_query
from oauthbridge.database.token import TokenRecord
from oauthbridge.service.backend import IdentityBackend
from oauthbridge.service.store import TokenStore


def return_address(redirect_uri: str, state: str, settings: Settings) -> str:
    """
    The address the identity backend sends the user back to, with the
    client's request riding along in the query string.
    """
    return with_query(settings.callback_url, redirect_uri=redirect_uri, state=state)


async def authorize(
    redirect_uri: str | None,
    state: str | None,
    backend: IdentityBackend | None,
    settings: Settings,
    log: FilteringBoundLogger,
) -> str:
    """
    Begin a delegated login and return the URL to send the user to.

    Raises
    ------
    MissingParameter
        If either `redirect_uri` or `state` is missing or empty.
    BackendUnavailable
        If no identity backend is configured, or it cannot be reached.
    BackendError
        If the identity backend refuses to begin the login.
    """

    if not redirect_uri or not state:
        raise MissingParameter()

    if backend is None:
        await log.aerror("bridge.authorize.no_backend")
        raise BackendUnavailable()

    # Limit the length of external strings sent to the logs.
    log = log.bind(redirect_uri=redirect_uri[:256], state=state[:256])

    try:
        url = await backend.begin_delegated_login(
            provider=settings.identity_provider,
            return_address=return_address(
                redirect_uri=redirect_uri, state=state, settings=settings
            ),
            log=log,
        )
    except BackendError as e:
        await log.aerror("bridge.authorize.backend_error", error=e.message)
        raise BackendError(e.message) from e

    await log.ainfo("bridge.authorize.redirect", backend=backend.name)

    return url


async def callback(
    code: str | None,
    redirect_uri: str | None,
    state: str | None,
    backend: IdentityBackend | None,
    store: TokenStore | None,
    settings: Settings,
    log: FilteringBoundLogger,
) -> str:
    """
    Complete a delegated login and return the URL to send the user back to
    the client with. Nothing is returned unless the token was stored.

    Raises
    ------
    MissingParameter
        If any of `code`, `redirect_uri` or `state` is missing or empty.
    BackendUnavailable
        If the backend or store is not configured, or the backend times out.
    SessionExchangeFailed
        If the backend rejects the code (including a replayed code).
    SessionIncomplete
        If the backend answers without a user or a session.
    StoreWriteFailed
        If the token could not be stored.
    """

    if not code or not redirect_uri or not state:
        raise MissingParameter()

    if backend is None or store is None:
        await log.aerror(
            "bridge.callback.not_configured",
            backend=backend is not None,
            store=store is not None,
        )
        raise BackendUnavailable()

    log = log.bind(redirect_uri=redirect_uri[:256], state=state[:256])

    try:
        exchange = await backend.exchange_code(code=code, log=log)
    except BackendError as e:
        await log.aerror("bridge.callback.exchange_failed", error=e.message)
        raise SessionExchangeFailed(e.message) from e

    if exchange.user is None or exchange.session is None:
        await log.aerror(
            "bridge.callback.incomplete",
            has_user=exchange.user is not None,
            has_session=exchange.session is not None,
        )
        raise SessionIncomplete()

    session = exchange.session
    expires_in = session.expires_in
    if expires_in is None:
        expires_in = settings.default_expires_in

    expires_at = datetime.now(timezone.utc) + timedelta(seconds=expires_in)

    log = log.bind(user_id=exchange.user.id, expires_at=expires_at)

    try:
        record = await store.insert(
            user_id=exchange.user.id,
            access_token=session.access_token,
            refresh_token=session.refresh_token,
            expires_at=expires_at,
        )
    except StoreWriteFailed as e:
        await log.aerror(
            "bridge.callback.store_failed", error=e.message, cause=str(e.__cause__)
        )
        raise

    await log.ainfo("bridge.callback.stored", token_id=record.token_id)

    return with_query(redirect_uri, code=session.access_token, state=state)


async def resolve(
    code: str | None,
    store: TokenStore | None,
    log: FilteringBoundLogger,
) -> tuple[TokenRecord, datetime]:
    """
    Find the live token record for `code`, returning it along with the
    time the check was made.

    Raises
    ------
    MissingParameter
        If `code` is missing or empty.
    BackendUnavailable
        If no store is configured.
    InvalidToken
        If there is no such token, or the lookup failed. The two are
        deliberately indistinguishable to the caller.
    TokenExpired
        If the token's expiry has passed.
    """

    if not code:
        raise MissingParameter("Missing required parameter: code")

    if not isinstance(code, str):
        await log.ainfo("bridge.token.not_a_string", code_type=type(code).__name__)
        raise InvalidToken()

    if store is None:
        await log.aerror("bridge.token.no_store")
        raise BackendUnavailable()

    try:
        record = await store.find_by_access_token(code)
    except StoreReadFailed as e:
        await log.aerror("bridge.token.lookup_failed", error=str(e))
        raise InvalidToken()

    if record is None:
        await log.ainfo("bridge.token.not_found")
        raise InvalidToken()

    log = log.bind(user_id=record.user_id, token_id=record.token_id)

    now = datetime.now(timezone.utc)

    if record.expires_at is not None and record.expires_at < now:
        await log.ainfo("bridge.token.expired", expires_at=record.expires_at)
        raise TokenExpired()

    return record, now


def remaining_lifetime(record: TokenRecord, now: datetime, settings: Settings) -> int:
    """
    Whole seconds left on the token, recomputed on every read.
    """
    if record.expires_at is None:
        return settings.default_expires_in

    return floor((record.expires_at - now).total_seconds())


async def token(
    code: str | None,
    store: TokenStore | None,
    settings: Settings,
    log: FilteringBoundLogger,
) -> TokenResponse:
    """
    Exchange a code handed out by `callback` for the bearer token. Reads
    only; the same code may be exchanged again until it expires.
    """

    record, now = await resolve(code=code, store=store, log=log)

    expires_in = remaining_lifetime(record=record, now=now, settings=settings)

    await log.ainfo(
        "bridge.token.issued",
        user_id=record.user_id,
        token_id=record.token_id,
        expires_in=expires_in,
    )

    return TokenResponse(access_token=record.access_token, expires_in=expires_in)
