"""Database engine and session configuration."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from qsys.core.settings import settings


class Base(DeclarativeBase):
    """Declarative base shared by all ORM models."""


def enable_sqlite_immediate_transactions(engine: AsyncEngine) -> None:
    """Make every SQLite transaction take the write lock up front.

    pysqlite/aiosqlite defer BEGIN until the first write, so two transactions
    can both read a counter before either writes it. ``BEGIN IMMEDIATE``
    serializes writers the way a row lock would on a server database.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_begin(dbapi_connection: Any, connection_record: Any) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin_immediate(conn: Any) -> None:
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def build_engine(url: str, **kwargs: Any) -> AsyncEngine:
    """Create an async engine, applying SQLite transaction semantics when needed."""
    engine = create_async_engine(url, echo=settings.sql_debug, **kwargs)
    if engine.dialect.name == "sqlite":
        enable_sqlite_immediate_transactions(engine)
    return engine


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Return a session factory whose objects stay readable after commit."""
    return async_sessionmaker(engine, expire_on_commit=False, autoflush=False)


# Ensure model modules are imported so that metadata is populated when create_all runs.
import qsys.models  # noqa: E402,F401

engine = build_engine(settings.effective_database_url, pool_pre_ping=True)

SessionLocal = build_session_factory(engine)


async def get_session() -> AsyncIterator[AsyncSession]:
    """Yield a database session for dependency injection."""
    async with SessionLocal() as session:
        yield session


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Return the factory services use to open their own transactions."""
    return SessionLocal


async def create_tables(bind: AsyncEngine | None = None) -> None:
    """Create all database tables."""
    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_tables(bind: AsyncEngine | None = None) -> None:
    """Drop all database tables."""
    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
