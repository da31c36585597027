import logging
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase
from typing import AsyncGenerator

from app.config import settings


logger = logging.getLogger(__name__)


def async_database_url(url: str) -> str:
    """
    Point plain PostgreSQL URLs (as handed out by hosting providers)
    at the asyncpg driver. Other URLs are returned unchanged.
    """
    for prefix in ("postgresql://", "postgres://"):
        if url.startswith(prefix):
            return "postgresql+asyncpg://" + url[len(prefix):]
    return url


def engine_options(url: str) -> dict:
    options = {
        "echo": settings.DEBUG and settings.LOG_LEVEL == "DEBUG",
        "pool_pre_ping": True,
    }
    # SQLite pools do not take size arguments
    if url.startswith("postgresql"):
        options.update(pool_size=5, max_overflow=10)
    return options


database_url = async_database_url(settings.DATABASE_URL)
engine = create_async_engine(database_url, **engine_options(database_url))

async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


class Base(DeclarativeBase):
    """Declarative base for profiles, likes, matches, chat and events."""


async def init_db():
    """Create missing tables."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database ready (%s)", engine.url.get_backend_name())


async def close_db():
    await engine.dispose()
    logger.info("Database connection closed")


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Request-scoped session. Commits when the handler returns,
    rolls back if it raised.
    """
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
