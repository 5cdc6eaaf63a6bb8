# pharmabook/db/sql.py
from __future__ import annotations

import logging
from typing import AsyncIterator

from fastapi import Request
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from pharmabook.core.config import settings
from pharmabook.db.base import Base

logger = logging.getLogger(__name__)


def build_engine(dsn: str) -> AsyncEngine:
    """
    Create the async engine. SQLite gets a NullPool (one connection per
    checkout), every other backend gets the configured QueuePool.
    """
    if dsn.startswith("sqlite"):
        return create_async_engine(dsn, echo=settings.DB_ECHO, poolclass=NullPool)
    return create_async_engine(
        dsn,
        echo=settings.DB_ECHO,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_pre_ping=True,
        pool_timeout=settings.DB_POOL_TIMEOUT,
    )


engine = build_engine(settings.SQL_DSN)

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    expire_on_commit=False,
    autoflush=False,
    class_=AsyncSession,
)


async def get_session(request: Request) -> AsyncIterator[AsyncSession]:
    """
    Provide a DB session for each request.
    Commit on success, rollback (and log) on any exception.
    """
    action = f"{request.method} {request.url.path}"

    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception as exc:
            await session.rollback()
            logger.info("%s ROLLBACK: %s", action, exc)
            raise



def _import_models() -> None:
    # Registers every table on Base.metadata
    from pharmabook.modules.pharmacies import models as _pharmacies  # noqa: F401
    from pharmabook.modules.services import models as _services  # noqa: F401
    from pharmabook.modules.availability import models as _availability  # noqa: F401
    from pharmabook.modules.bookings import models as _bookings  # noqa: F401


async def init_db(*, drop: bool = False) -> None:
    """
    Create database tables (optionally dropping them first).
    """
    _import_models()

    async with engine.begin() as conn:
        if drop:
            await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
