# hospitalms/db/session.py
from __future__ import annotations

import logging
from typing import AsyncIterator

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from hospitalms.core.config import Settings
from hospitalms.db.base import Base

logger = logging.getLogger(__name__)


def _engine_kwargs(cfg: Settings) -> dict:
    kwargs: dict = {"echo": cfg.DB_ECHO}
    if cfg.SQL_DSN.startswith("sqlite"):
        # in-memory SQLite must share one connection across sessions
        if ":memory:" in cfg.SQL_DSN or cfg.SQL_DSN.endswith("://"):
            kwargs["poolclass"] = StaticPool
        kwargs["connect_args"] = {"check_same_thread": False}
        return kwargs
    kwargs.update(
        pool_size=cfg.DB_POOL_SIZE,
        max_overflow=cfg.DB_MAX_OVERFLOW,
        pool_timeout=cfg.DB_POOL_TIMEOUT,
        pool_pre_ping=True,
    )
    return kwargs


class Database:
    """
    Owns the async engine and session factory for one application instance.

    Constructed by the app factory, opened in the lifespan startup hook and
    disposed at shutdown.
    """

    def __init__(self, cfg: Settings):
        self.cfg = cfg
        self.engine: AsyncEngine = create_async_engine(cfg.SQL_DSN, **_engine_kwargs(cfg))
        self.sessionmaker = async_sessionmaker(
            bind=self.engine,
            expire_on_commit=False,
            autoflush=False,
            class_=AsyncSession,
        )

    async def open(self) -> None:
        # Import all models so they are registered on Base.metadata
        from hospitalms.modules.appointments import models as _appointments  # noqa: F401
        from hospitalms.modules.departments import models as _departments  # noqa: F401
        from hospitalms.modules.users import models as _users  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database ready (%s)", self.engine.url.get_backend_name())

    async def close(self) -> None:
        await self.engine.dispose()
        logger.info("Database connections closed")

    async def ping(self) -> bool:
        async with self.sessionmaker() as session:
            await session.execute(text("SELECT 1"))
        return True


async def get_session(request: Request) -> AsyncIterator[AsyncSession]:
    """
    Provide a DB session for each request.
    Commits when the handler returns, rolls back if it raises.
    """
    db: Database = request.app.state.db
    async with db.sessionmaker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
