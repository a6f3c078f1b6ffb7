"""Async engine and Unit-of-Work session for the survey review service.

Provides:
- Base: DeclarativeBase for the review tables
- build_engine: async engine for a database URL (Postgres in deployment,
  SQLite for local demos and tests)
- async_session_factory: session maker bound to the configured engine
- get_async_session: FastAPI dependency; one transaction per request
- on_request_end: defer work until that transaction has ended

A review action updates a record and appends its audit entry through the
same session, so both commit together in get_async_session or neither does.
"""

import logging
from collections.abc import AsyncGenerator, Awaitable, Callable
from typing import Any

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from src.config.settings import get_settings

logger = logging.getLogger(__name__)

_REQUEST_END_KEY = "request_end_callbacks"


class Base(DeclarativeBase):
    """Declarative base shared by every review table."""


def build_engine(url: str, *, echo: bool = False) -> AsyncEngine:
    if url.startswith("sqlite"):
        return create_async_engine(url, echo=echo)
    return create_async_engine(url, echo=echo, pool_pre_ping=True)


_settings = get_settings()

engine = build_engine(_settings.DATABASE_URL, echo=_settings.DB_ECHO)

async_session_factory = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield a session; commit once after the endpoint returns.

    Any exception, including a workflow error turned into an HTTP error,
    rolls the whole request back. Callbacks registered with
    ``on_request_end`` run after the commit or rollback, once the
    connection no longer holds a write lock.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            logger.debug("Rolling back request transaction")
            await session.rollback()
            raise
        finally:
            await _run_request_end(session)


def on_request_end(
    session: AsyncSession,
    callback: Callable[[], Awaitable[Any]],
) -> None:
    """Run ``callback`` after the request transaction of ``session`` ends."""
    session.info.setdefault(_REQUEST_END_KEY, []).append(callback)


async def _run_request_end(session: AsyncSession) -> None:
    for callback in session.info.pop(_REQUEST_END_KEY, []):
        await callback()
