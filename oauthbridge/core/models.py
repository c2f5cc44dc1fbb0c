"""
Pydantic models for request/responses to APIs, and for the identity
backend contract.
"""

from typing import Any, Literal

from pydantic import BaseModel


class BackendUser(BaseModel):
    id: str


class BackendSession(BaseModel):
    access_token: str
    refresh_token: str | None = None
    expires_in: int | None = None


class SessionExchange(BaseModel):
    """
    Result of exchanging an identity backend code. Either field may be
    missing if the backend misbehaves; callers must check.
    """

    user: BackendUser | None = None
    session: BackendSession | None = None


class TokenRequest(BaseModel):
    # Not narrowed to str: a non-string code is an invalid token, not a
    # malformed request.
    code: Any = None


class TokenResponse(BaseModel):
    access_token: str
    token_type: Literal["bearer"] = "bearer"
    expires_in: int


class UserInfoResponse(BaseModel):
    user_id: str
    expires_in: int


class ErrorResponse(BaseModel):
    error: str


class HealthResponse(BaseModel):
    status: Literal["ok"] = "ok"
    backend: str | None = None
