"""
ORM for issued access tokens.
"""

from datetime import datetime

from sqlalchemy import Column, DateTime
from sqlmodel import Field, SQLModel

from oauthbridge.core.uuid import UUID, uuid7


class TokenRecord(SQLModel, table=True):
    __tablename__ = "mcp_access_tokens"

    token_id: UUID = Field(primary_key=True, default_factory=uuid7)

    # Identity as assigned by the identity backend; opaque to us.
    user_id: str = Field(index=True)

    # Doubles as the code handed to the client in the callback redirect.
    access_token: str = Field(index=True)
    refresh_token: str | None = None

    created_at: datetime = Field(sa_column=Column(DateTime(timezone=True)))
    expires_at: datetime | None = Field(
        sa_column=Column(DateTime(timezone=True)), default=None
    )
