# app/core/database.py

"""
Database connection and session management.

- Builds the async SQLAlchemy engine (asyncpg in production, aiosqlite in tests).
- Provides the AsyncSession factory and session helpers.
- Creates tables and read views for development and test databases.
"""

import logging
from typing import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy import event, text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine
from sqlalchemy.orm import sessionmaker

from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.config import settings
from app.core.views import create_view_statements, drop_view_statements

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(url: str, **kwargs) -> AsyncEngine:
    """
    Creates an async engine for `url`.

    Pool sizing only applies to server databases; SQLite connections get
    foreign-key enforcement switched on.
    """
    backend = make_url(url).get_backend_name()
    options = {"echo": settings.DEBUG_MODE, "future": True}
    if backend != "sqlite" and "poolclass" not in kwargs:
        options.update(
            pool_recycle=settings.DB_POOL_RECYCLE,
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_pre_ping=True,
        )
    options.update(kwargs)

    new_engine = create_async_engine(url, **options)
    if backend == "sqlite":
        event.listen(new_engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    return new_engine


def build_session_factory(bind: AsyncEngine) -> sessionmaker:
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=bind,
        class_=AsyncSession,
        expire_on_commit=False,
    )


engine: AsyncEngine = build_engine(settings.DATABASE_URL.get_secret_value())

# Session factory bound to the application engine
AsyncSessionLocal = build_session_factory(engine)

metadata = SQLModel.metadata


# =============================================================================
# Schema creation (development / tests; production uses Alembic)
# =============================================================================
async def create_db_and_tables(bind: AsyncEngine = None) -> None:
    """
    Creates every registered table and then the read views.
    Existing tables are left untouched.
    """
    # Every domain model must be registered on SQLModel.metadata first
    import app.domains.models  # noqa: F401

    bind = bind or engine
    async with bind.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
        for statement in create_view_statements(conn.dialect.name):
            await conn.execute(text(statement))
    logger.info("Database tables and views are in place (%s)", bind.dialect.name)


async def drop_db_and_tables(bind: AsyncEngine = None) -> None:
    import app.domains.models  # noqa: F401

    bind = bind or engine
    async with bind.begin() as conn:
        for statement in drop_view_statements():
            await conn.execute(text(statement))
        await conn.run_sync(SQLModel.metadata.drop_all)


# =============================================================================
# Session helpers
# =============================================================================
async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Request-scoped session for FastAPI dependency injection.
    """
    async with AsyncSessionLocal() as session:
        yield session


@asynccontextmanager
async def get_async_session_context() -> AsyncGenerator[AsyncSession, None]:
    """
    Standalone session for scripts and background jobs; commits on success
    and rolls back on any error.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
