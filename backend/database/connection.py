"""
PostgreSQL engine and session lifecycle for the requests backend
"""
from typing import AsyncGenerator, Optional
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool
from sqlalchemy.orm import declarative_base
import os
import logging

from .config import postgres_settings

logger = logging.getLogger(__name__)

Base = declarative_base()

# Serverless deployments cannot keep a pool between invocations
USE_NULL_POOL = os.environ.get("USE_NULL_POOL", "false").lower() == "true"

_engine: Optional[AsyncEngine] = None
_session_maker: Optional[async_sessionmaker] = None


def get_engine() -> AsyncEngine:
    """Engine built on first use so importing the app never opens a connection."""
    global _engine

    if _engine is None:
        if USE_NULL_POOL:
            pool_options = {"poolclass": NullPool}
        else:
            pool_options = {
                "pool_size": postgres_settings.pool_size,
                "max_overflow": postgres_settings.max_overflow,
                "pool_recycle": postgres_settings.pool_recycle,
            }
        _engine = create_async_engine(
            postgres_settings.database_url,
            pool_pre_ping=postgres_settings.pool_pre_ping,
            echo=False,
            **pool_options,
        )
        logger.info(f"Database engine ready (host={postgres_settings.postgres_host}, null_pool={USE_NULL_POOL})")

    return _engine


def get_session_maker() -> async_sessionmaker:
    global _session_maker

    if _session_maker is None:
        _session_maker = async_sessionmaker(
            get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    return _session_maker


async def init_postgres_db() -> None:
    """Create the users, requests and notifications tables when missing."""
    try:
        async with get_engine().begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    except Exception:
        logger.exception("❌ Failed to create request tables")
        raise
    logger.info("✅ Request tables ready")


async def get_postgres_session() -> AsyncGenerator[AsyncSession, None]:
    """Route dependency: one session per HTTP request, rolled back on error."""
    async with get_session_maker()() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def close_postgres_db() -> None:
    global _engine, _session_maker
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _session_maker = None
        logger.info("✅ PostgreSQL connection pool closed")
