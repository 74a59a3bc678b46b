"""
Wishlist Backend — Database Engine & Session Factory
====================================================

What:  Builds the async SQLAlchemy engine and session factory, and declares
       the ORM base class.
How:   The app lifespan calls create_engine() and create_session_factory()
       once, stores them on app.state, and hands the factory to the services.
       Each service operation opens its own session and transaction:

           async with session_factory() as session, session.begin():
               ...

       so a transaction never outlives one operation and the row locks it
       takes are released as soon as the operation returns.

Connection pooling (PostgreSQL):
    pool_size=20, max_overflow=10 → at most 30 connections
    pool_pre_ping validates connections before use
    pool_recycle=3600 recycles connections hourly
"""

from typing import Optional

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from wishlist.config import Settings, settings as default_settings


class Base(DeclarativeBase):
    """Base class for all ORM models; Alembic reads Base.metadata."""


def create_engine(config: Optional[Settings] = None, url: Optional[str] = None) -> AsyncEngine:
    """
    Create the async engine for the configured database.

    Pool sizing options only apply to server databases; SQLite (used in
    tests and local experiments) gets the dialect's default pool.
    """
    config = config or default_settings
    url = url or config.database_url

    if make_url(url).get_backend_name() == "sqlite":
        return create_async_engine(url, echo=config.log_level == "DEBUG")

    return create_async_engine(
        url,
        pool_size=config.db_pool_size,
        max_overflow=config.db_max_overflow,
        pool_pre_ping=config.db_pool_pre_ping,
        pool_recycle=3600,
        echo=config.log_level == "DEBUG",
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Session factory bound to `engine`.

    expire_on_commit=False keeps loaded attributes readable after commit,
    which the services rely on when building responses from committed rows.
    """
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def dispose_engine(engine: AsyncEngine) -> None:
    """Close every pooled connection. Called on application shutdown."""
    await engine.dispose()
