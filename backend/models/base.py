"""SQLAlchemy async connection pool and declarative base."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


class Database:
    """A bounded pool of connections to the file store.

    Created once at startup and torn down once at shutdown. Handlers never
    touch the engine directly; they get a session through ``get_db``, which
    checks a connection out on the first statement and returns it to the
    pool when the request finishes, whatever the outcome.
    """

    def __init__(
        self,
        url: str,
        pool_size: int = 10,
        max_overflow: int = 0,
        pool_timeout: int = 30,
    ):
        engine_kwargs = {}
        # In-memory SQLite gets a StaticPool, which rejects sizing args
        if not _is_memory_sqlite(url):
            engine_kwargs = {
                "pool_size": pool_size,
                "max_overflow": max_overflow,
                "pool_timeout": pool_timeout,
            }
        self.engine = create_async_engine(url, echo=False, **engine_kwargs)
        self.session_factory = async_sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False
        )
        event.listen(self.engine.sync_engine, "connect", _on_connect)
        event.listen(self.engine.sync_engine, "invalidate", _on_invalidate)

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Scoped acquisition: the connection is released when the block exits."""
        async with self.session_factory() as session:
            yield session

    async def shutdown(self) -> None:
        """Close every pooled connection. In-flight work is not drained."""
        await self.engine.dispose()
        logger.info("Database connection pool closed")


def _is_memory_sqlite(url: str) -> bool:
    parsed = make_url(url)
    return parsed.get_backend_name() == "sqlite" and parsed.database in (None, "", ":memory:")


def _on_connect(dbapi_connection, connection_record):
    logger.info("Connected to database")


def _on_invalidate(dbapi_connection, connection_record, exception):
    logger.warning(f"Database connection error: {exception}")


async def get_db(request: Request):
    """FastAPI dependency that yields a session from the app's pool."""
    database: Database = request.app.state.database
    async with database.session() as session:
        yield session
