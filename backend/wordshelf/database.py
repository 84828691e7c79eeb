"""
WordShelf Backend: Database Engine & Session Factory
=====================================================

What:  Async SQLAlchemy engine construction, session factory and ORM base.
How:   `create_engine()` builds an engine from settings, `create_session_factory()`
       wraps it; the SQL record store opens one session per operation.
Who:   Used by `services/catalog.py` (store wiring), the ORM models and Alembic.

Nothing in this module is created at import time. The catalog owns the
engine it builds and disposes of it on shutdown, so tests can point a fresh
engine at a throwaway SQLite file.

Connection Pooling:
    pool_size / max_overflow:  applied for server databases (PostgreSQL)
    pool_pre_ping:             validates pooled connections before use
    pool_recycle=3600:         recycles connections every hour
    SQLite engines keep SQLAlchemy's default pool for the dialect.
"""

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from wordshelf.config import Settings


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    All row classes share its metadata, which Alembic and `init_models()`
    use to create the words and quotes tables.
    """
    pass


def create_engine(settings: Settings) -> AsyncEngine:
    """
    Build the async engine described by `settings.database_url`.

    Pool sizing only applies to server databases; SQLite's pool classes
    reject those arguments.
    """
    url = make_url(settings.database_url)
    engine_kwargs = {
        "echo": settings.log_level == "DEBUG",
        "pool_pre_ping": settings.db_pool_pre_ping,
    }
    if not url.drivername.startswith("sqlite"):
        engine_kwargs.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_recycle=3600,
        )
    return create_async_engine(settings.database_url, **engine_kwargs)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Session factory shared by every SQL record store.

    expire_on_commit=False keeps row attributes readable after the
    transaction closes, which the stores rely on when converting rows to
    records.
    """
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_models(engine: AsyncEngine) -> None:
    """Create any missing tables (development and tests; Alembic in production)."""
    # Registers WordRow / QuoteRow with Base.metadata
    from wordshelf.models import quote, word  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine(engine: AsyncEngine) -> None:
    """Close every pooled connection (application shutdown)."""
    await engine.dispose()
