"""Async SQLAlchemy engine and session factory for the orders record store.

Each repository call opens its own short-lived session; nothing holds a
transaction open across an optimistic mutation.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from config.settings import settings


class Base(DeclarativeBase):
    """Declarative base for the ORM reference models (queries use raw SQL)."""


engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_size=settings.DB_POOL_SIZE,
    max_overflow=settings.DB_MAX_OVERFLOW,
    pool_pre_ping=True,
)

async_session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def check_database() -> None:
    """Fail fast at startup if the record store is unreachable."""
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
