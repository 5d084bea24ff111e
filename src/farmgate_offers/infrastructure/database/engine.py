"""Async database engine and session management.

Provides:
    - _get_engine: The SQLAlchemy async engine (lazy singleton).
    - _get_session_factory: A sessionmaker bound to the engine.
    - get_async_session: FastAPI dependency that yields a session per request.
    - init_db / close_db: Lifecycle hooks for FastAPI's lifespan.

Usage in FastAPI:
    @app.get("/offers")
    async def list_offers(session: AsyncSession = Depends(get_async_session)):
        ...
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from farmgate_offers.config import get_settings
from farmgate_offers.logging_config import get_logger

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from sqlalchemy.ext.asyncio import AsyncEngine

logger = get_logger(__name__)

# Module-level singletons (initialized lazily)
_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def _get_engine() -> AsyncEngine:
    """Get or create the async engine (lazy singleton)."""
    global _engine
    if _engine is None:
        settings = get_settings()
        options: dict = {"echo": settings.db_echo_sql}
        if not settings.database_url.startswith("sqlite"):
            options.update(
                pool_size=settings.db_pool_size,
                max_overflow=settings.db_max_overflow,
                pool_timeout=settings.db_pool_timeout,
                pool_pre_ping=True,
            )
        _engine = create_async_engine(settings.database_url, **options)
        logger.info(
            "database.engine_created",
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
        )
    return _engine


def _get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get or create the session factory (lazy singleton)."""
    global _session_factory
    if _session_factory is None:
        _session_factory = create_session_factory(_get_engine())
    return _session_factory


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Build a session factory with the settings every caller expects."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency that yields an async database session.

    The session is committed on success or rolled back on error.
    """
    factory = _get_session_factory()
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Initialize the database engine and create tables if they don't exist.

    Called during FastAPI's lifespan startup. Outside development the schema
    is expected to exist already.
    """
    from farmgate_offers.infrastructure.database.orm_models import Base

    engine = _get_engine()
    settings = get_settings()

    if settings.is_development:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
            logger.info("database.tables_created")
    else:
        logger.info("database.skipping_create_all", reason="not in development mode")


async def close_db() -> None:
    """Dispose of the database engine. Called during FastAPI's lifespan shutdown."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
        logger.info("database.engine_disposed")
        _engine = None
        _session_factory = None
