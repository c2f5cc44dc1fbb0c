"""
The token store: the persisted mapping from the code handed to clients
to the bearer token, its expiry, and its owner.

Rows are only ever inserted and read here; expiry is enforced by the
readers, not by eviction.
"""

import asyncio
from datetime import datetime, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from oauthbridge.config.managers import AsyncSessionManager
from oauthbridge.core.errors import StoreReadFailed, StoreWriteFailed
from oauthbridge.database.token import TokenRecord


def as_utc(value: datetime | None) -> datetime | None:
    """
    SQLite drops timezone information on the way back out; everything we
    write is UTC.
    """
    if value is None or value.tzinfo is not None:
        return value

    return value.replace(tzinfo=timezone.utc)


class TokenStore:
    manager: AsyncSessionManager
    timeout: timedelta

    def __init__(self, manager: AsyncSessionManager, timeout: timedelta):
        self.manager = manager
        self.timeout = timeout

    async def _insert(self, record: TokenRecord):
        async with self.manager.session() as conn:
            async with conn.begin():
                conn.add(record)

    async def _find(self, code: str) -> TokenRecord | None:
        async with self.manager.session() as conn:
            query = select(TokenRecord).filter(TokenRecord.access_token == code)
            return (await conn.execute(query)).scalar_one_or_none()

    async def insert(
        self,
        user_id: str,
        access_token: str,
        refresh_token: str | None,
        expires_at: datetime,
    ) -> TokenRecord:
        """
        Store a freshly issued token.

        Raises
        ------
        StoreWriteFailed
            If the insert errors or does not complete within the timeout.
        """

        record = TokenRecord(
            user_id=user_id,
            access_token=access_token,
            refresh_token=refresh_token,
            created_at=datetime.now(timezone.utc),
            expires_at=expires_at,
        )

        try:
            await asyncio.wait_for(
                self._insert(record), timeout=self.timeout.total_seconds()
            )
        except asyncio.TimeoutError:
            raise StoreWriteFailed("Timed out storing token")
        except SQLAlchemyError as e:
            raise StoreWriteFailed() from e

        return record

    async def find_by_access_token(self, code: str) -> TokenRecord | None:
        """
        Read the single token record matching `code`, or None if there is
        none.

        Raises
        ------
        StoreReadFailed
            If the lookup errors (including finding more than one match)
            or does not complete within the timeout.
        """

        try:
            record = await asyncio.wait_for(
                self._find(code), timeout=self.timeout.total_seconds()
            )
        except asyncio.TimeoutError:
            raise StoreReadFailed("Timed out reading token")
        except SQLAlchemyError as e:
            raise StoreReadFailed(str(e))

        if record is not None:
            record.created_at = as_utc(record.created_at)
            record.expires_at = as_utc(record.expires_at)

        return record
