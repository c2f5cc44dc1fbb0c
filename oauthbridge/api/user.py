"""
Bearer-token introspection for downstream tools.
"""

from fastapi import APIRouter, Header

from oauthbridge.core.errors import InvalidToken
from oauthbridge.core.models import ErrorResponse, UserInfoResponse
from oauthbridge.service import bridge as bridge_service

from .dependencies import LoggerDependency, SettingsDependency, TokenStoreDependency

user_app = APIRouter(tags=["User"])


def bearer_token(authorization: str | None) -> str:
    if authorization is None:
        raise InvalidToken()

    contents = authorization.split(" ")

    if len(contents) != 2 or contents[0].lower() != "bearer" or not contents[1]:
        raise InvalidToken()

    return contents[1]


@user_app.get(
    "/userinfo",
    response_model=UserInfoResponse,
    summary="Identify the owner of a bearer token",
    responses={
        200: {"description": "Owner of the token"},
        401: {"model": ErrorResponse, "description": "Invalid or expired token"},
    },
)
async def userinfo(
    settings: SettingsDependency,
    log: LoggerDependency,
    store: TokenStoreDependency,
    authorization: str | None = Header(None),
) -> UserInfoResponse:
    record, now = await bridge_service.resolve(
        code=bearer_token(authorization), store=store, log=log
    )

    await log.adebug("api.userinfo.resolved", user_id=record.user_id)

    return UserInfoResponse(
        user_id=record.user_id,
        expires_in=bridge_service.remaining_lifetime(
            record=record, now=now, settings=settings
        ),
    )
