"""
Database session management for the token store.
"""

from sqlalchemy import URL, Engine
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel, create_engine


class SyncSessionManager:
    """
    A manager for synchronous sessions, used by the command line tooling
    to set up the schema before the server starts:

    manager = SyncSessionManager(conn_url)
    manager.create_all()
    """

    connection_url: URL
    engine: Engine
    session: sessionmaker

    def __init__(self, connection_url: URL, echo: bool = False):
        self.connection_url = connection_url
        self.engine = create_engine(self.connection_url, echo=echo)
        self.session = sessionmaker(self.engine)

    def create_all(self):
        """
        Run the `SQLModel.metadata.create_all` migration tool. Required
        to set up the table schema.
        """
        from oauthbridge.database.meta import ALL_TABLES  # noqa: F401

        with self.engine.begin() as conn:
            SQLModel.metadata.create_all(conn)


class AsyncSessionManager:
    """
    A manager for asynchronous sessions. Expected usage of this class to interact:

    manager = AsyncSessionManager(conn_url)

    async with manager.session() as conn:
        async with conn.begin():
            conn.add(record)
    """

    connection_url: URL
    engine: AsyncEngine
    session: async_sessionmaker

    def __init__(self, connection_url: URL, echo: bool = False):
        self.connection_url = connection_url
        self.engine = create_async_engine(self.connection_url, echo=echo)
        self.session = async_sessionmaker(self.engine, expire_on_commit=False)

    async def create_all(self):
        """
        Run the `SQLModel.metadata.create_all` migration tool. Required
        to set up the table schema.
        """
        from oauthbridge.database.meta import ALL_TABLES  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)

    async def dispose(self):
        await self.engine.dispose()
