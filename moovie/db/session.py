# moovie/db/session.py
from __future__ import annotations

"""
Moovie — Database Engine & Session Dependencies

- The async engine is created lazily (first use), so importing this module
  never requires a database driver when `ADS_REPOSITORY=memory`.
- `session_scope()` is the transaction context manager the SQL repository
  uses; `db_healthcheck()` backs `/readyz`.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional
import logging

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from moovie.core.config import settings

logger = logging.getLogger(__name__)

# Pool knobs
_POOL_PRE_PING = True
_POOL_RECYCLE = 1800

_engine: Optional[AsyncEngine] = None
_session_maker: Optional[async_sessionmaker[AsyncSession]] = None


def get_async_engine() -> AsyncEngine:
    """Create the async engine on first use."""
    global _engine
    if _engine is None:
        _engine = create_async_engine(
            settings.database_url,
            pool_pre_ping=_POOL_PRE_PING,
            pool_recycle=_POOL_RECYCLE,
            echo=False,
        )
    return _engine


def get_session_maker() -> async_sessionmaker[AsyncSession]:
    global _session_maker
    if _session_maker is None:
        _session_maker = async_sessionmaker(
            bind=get_async_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
        )
    return _session_maker


@asynccontextmanager
async def session_scope(
    maker: Optional[async_sessionmaker[AsyncSession]] = None,
) -> AsyncGenerator[AsyncSession, None]:
    """Open a session and a transaction; commit on success, rollback on error."""
    async with (maker or get_session_maker())() as session:
        async with session.begin():
            yield session


async def db_healthcheck() -> bool:
    """Quick SELECT 1 to verify DB connectivity (used by /readyz)."""
    try:
        async with get_async_engine().connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception:
        logger.exception("DB healthcheck failed")
        return False


async def dispose_engine() -> None:
    global _engine, _session_maker
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_maker = None


__all__ = [
    "get_async_engine",
    "get_session_maker",
    "session_scope",
    "db_healthcheck",
    "dispose_engine",
]
