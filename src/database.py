"""
Async database setup.
Provides the declarative base, engine, session factory and FastAPI dependency.
"""

import logging
from typing import AsyncIterator

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from src.core.config import settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


def build_engine(database_url: str, echo: bool = False):
    """
    Create an async engine for the given URL.

    In-memory SQLite gets a StaticPool so every session sees the same database.
    """
    engine_kwargs = {"echo": echo}
    if database_url.startswith("sqlite"):
        engine_kwargs["connect_args"] = {"check_same_thread": False}
        if ":memory:" in database_url or database_url.rstrip("/").endswith("sqlite+aiosqlite:"):
            engine_kwargs["poolclass"] = StaticPool
    else:
        engine_kwargs["pool_pre_ping"] = True
    return create_async_engine(database_url, **engine_kwargs)


def build_session_factory(bind) -> async_sessionmaker:
    return async_sessionmaker(bind=bind, class_=AsyncSession, expire_on_commit=False)


engine = build_engine(settings.database_url, settings.database_echo)
SessionFactory = build_session_factory(engine)


async def get_db() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency yielding a request-scoped session."""
    async with SessionFactory() as session:
        yield session


async def init_db() -> None:
    """Create all tables known to the metadata."""
    # Register models on the metadata before create_all
    from src.models import analytics_models, content_models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database schema ensured")


async def close_db() -> None:
    await engine.dispose()


def get_session_factory(request: Request) -> async_sessionmaker:
    """Session factory registered on the application, or the module default."""
    return getattr(request.app.state, "session_factory", None) or SessionFactory
