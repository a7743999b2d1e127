"""
Async database session management.
Challenge: Connection pooling, scoped sessions, proper cleanup.
Design: One process-scoped engine; request-scoped sessions via dependency injection.
"""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from marketplace.config import Settings, get_settings
from marketplace.db.repositories.base_repository import store_guard

settings = get_settings()


def _connect_args(settings: Settings) -> dict:
    """Server-side statement timeout for PostgreSQL, matching the client-side bound."""
    if settings.database_url.startswith("postgresql+asyncpg"):
        timeout_ms = int(settings.store_timeout_seconds * 1000)
        return {
            "timeout": settings.store_timeout_seconds,
            "server_settings": {"statement_timeout": str(timeout_ms)},
        }
    return {}


def build_engine(settings: Settings, pooled: bool = True) -> AsyncEngine:
    """Engine with connection pool (scalability). Celery workers use pooled=False."""
    options = {
        "echo": settings.debug,
        "connect_args": _connect_args(settings),
    }
    if pooled:
        options.update(
            pool_pre_ping=True,  # Verify connections before use
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_timeout=settings.store_timeout_seconds,
        )
    else:
        options["poolclass"] = NullPool
    return create_async_engine(settings.database_url, **options)


engine = build_engine(settings)

# Session factory: one session per request
async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield a database session per request. Ensures rollback on error, close on exit."""
    async with async_session_maker() as session:
        try:
            yield session
            async with store_guard("commit", settings.store_timeout_seconds):
                await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def dispose_engine() -> None:
    """Drain the pool at shutdown."""
    await engine.dispose()


# Type alias for FastAPI dependency injection
DbSession = Annotated[AsyncSession, Depends(get_db)]
