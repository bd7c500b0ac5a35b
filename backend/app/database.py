"""
Forum Backend — Database Handle & Session Management
======================================================

What:  An explicitly constructed Database handle owning the async engine and
       session factory, plus the FastAPI dependency that opens one session
       per request.
How:   create_app() builds a Database from settings and stores it on
       app.state. The lifespan handler connects it at startup and disposes it
       at shutdown. Route handlers receive sessions through get_db_session();
       nothing in the codebase holds a module-level connection.

Session-per-request:
    1. A new AsyncSession is opened from the factory
    2. The handler and services run their queries (services only flush)
    3. On success the transaction is committed
    4. On any error it is rolled back and the error re-raised so the global
       exception handlers can render it
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, AsyncIterator, Optional

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Shares one metadata object between the models, Database.create_all()
    and Alembic's autogenerate.
    """
    pass


class Database:
    """
    Owns the engine and session factory for one database URL.

    The engine is created lazily by connect() so constructing a Database
    (at import time via create_app) never touches the network.
    """

    def __init__(
        self,
        url: str,
        *,
        pool_size: int = 10,
        max_overflow: int = 10,
        pool_pre_ping: bool = True,
        echo: bool = False,
    ):
        self.url = url
        self._pool_size = pool_size
        self._max_overflow = max_overflow
        self._pool_pre_ping = pool_pre_ping
        self._echo = echo
        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker[AsyncSession]] = None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("Database is not connected; call connect() first")
        return self._engine

    @property
    def is_connected(self) -> bool:
        return self._engine is not None

    def connect(self) -> None:
        """Create the engine and session factory. Safe to call twice."""
        if self._engine is not None:
            return

        engine_kwargs = {"echo": self._echo, "pool_pre_ping": self._pool_pre_ping}
        # SQLite picks its own pool class and rejects queue pool sizing
        if not self.url.startswith("sqlite"):
            engine_kwargs.update(
                pool_size=self._pool_size,
                max_overflow=self._max_overflow,
                pool_recycle=3600,
            )

        self._engine = create_async_engine(self.url, **engine_kwargs)
        # expire_on_commit=False: records stay readable after the commit in
        # get_db_session, when the response is serialized
        self._session_factory = async_sessionmaker(
            self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        logger.info("Database engine created for %s", self._engine.url.render_as_string(hide_password=True))

    async def create_all(self) -> None:
        """Create every table known to Base.metadata (tests and local dev)."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def ping(self) -> None:
        """Run SELECT 1; raises if the database is unreachable."""
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Yield a session that commits on success and rolls back on error."""
        if self._session_factory is None:
            raise RuntimeError("Database is not connected; call connect() first")
        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def dispose(self) -> None:
        """Close every pooled connection. The handle can be reconnected."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None
            logger.info("Database engine disposed")


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    Example usage in a route:
        @router.get("/all-questions")
        async def list_questions(db: AsyncSession = Depends(get_db_session)):
            ...
    """
    database: Database = request.app.state.database
    async with database.session() as session:
        yield session
