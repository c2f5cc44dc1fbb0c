"""
Delegated authorization flow - redirection to the identity backend, handling
of its callback, and exchange of codes for bearer tokens.
"""

from fastapi import APIRouter, Query, Response, status
from fastapi.responses import RedirectResponse

from oauthbridge.core.models import ErrorResponse, TokenRequest, TokenResponse
from oauthbridge.service import bridge as bridge_service

from .dependencies import (
    IdentityBackendDependency,
    LoggerDependency,
    SettingsDependency,
    TokenStoreDependency,
)

oauth_app = APIRouter(tags=["Delegated Authorization"])


@oauth_app.get(
    "/authorize",
    response_class=RedirectResponse,
    summary="Redirect user to the identity backend for login",
    description=(
        "Start of the authorization code flow. The user is sent to the identity "
        "backend to log in, and will eventually be redirected to `redirect_uri` "
        "with a `code` and your original `state`."
    ),
    responses={
        302: {"description": "Redirect to identity backend login"},
        400: {"model": ErrorResponse, "description": "Missing parameters"},
        500: {"model": ErrorResponse, "description": "Identity backend error"},
    },
)
async def authorize(
    settings: SettingsDependency,
    log: LoggerDependency,
    backend: IdentityBackendDependency,
    redirect_uri: str | None = Query(
        None, description="Where to deliver the authorization code."
    ),
    state: str | None = Query(
        None, description="Opaque value echoed back to you unmodified."
    ),
) -> RedirectResponse:
    url = await bridge_service.authorize(
        redirect_uri=redirect_uri,
        state=state,
        backend=backend,
        settings=settings,
        log=log,
    )

    return RedirectResponse(url, status_code=status.HTTP_302_FOUND)


@oauth_app.get(
    "/callback",
    response_class=RedirectResponse,
    summary="Handle the identity backend callback",
    description=(
        "Called by the identity backend once the user has logged in. Exchanges "
        "the backend's `code` for a session, stores the resulting token, and "
        "redirects to the client's `redirect_uri` with `code` and `state`.\n\n"
        "This should not be called directly by clients."
    ),
    responses={
        302: {"description": "Redirect back to the client"},
        400: {"model": ErrorResponse, "description": "Missing parameters"},
        500: {"model": ErrorResponse, "description": "Login could not be completed"},
    },
)
async def callback(
    settings: SettingsDependency,
    log: LoggerDependency,
    backend: IdentityBackendDependency,
    store: TokenStoreDependency,
    code: str | None = Query(None, description="The identity backend's code."),
    redirect_uri: str | None = Query(
        None, description="The client's redirect URI, carried from `/authorize`."
    ),
    state: str | None = Query(
        None, description="The client's state, carried from `/authorize`."
    ),
) -> RedirectResponse:
    url = await bridge_service.callback(
        code=code,
        redirect_uri=redirect_uri,
        state=state,
        backend=backend,
        store=store,
        settings=settings,
        log=log,
    )

    return RedirectResponse(url, status_code=status.HTTP_302_FOUND)


@oauth_app.post(
    "/token",
    response_model=TokenResponse,
    summary="Exchange a code for a bearer token",
    description=(
        "Exchange the `code` delivered to your `redirect_uri` for a bearer token "
        "and its remaining lifetime in seconds. The code remains valid until "
        "the token expires."
    ),
    responses={
        200: {"description": "Bearer token returned"},
        400: {"model": ErrorResponse, "description": "Missing code"},
        401: {"model": ErrorResponse, "description": "Invalid or expired code"},
    },
)
async def token(
    response: Response,
    settings: SettingsDependency,
    log: LoggerDependency,
    store: TokenStoreDependency,
    content: TokenRequest | None = None,
) -> TokenResponse:
    response.headers["Cache-Control"] = "no-store"

    return await bridge_service.token(
        code=content.code if content is not None else None,
        store=store,
        settings=settings,
        log=log,
    )
