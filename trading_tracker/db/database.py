import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from trading_tracker.config import get_settings
from trading_tracker.errors import StoreError

logger = logging.getLogger(__name__)

_settings = get_settings()

# Create async engine
engine: AsyncEngine = create_async_engine(
    _settings.database_url,
    echo=_settings.sql_echo,
    future=True,
)

# Async session factory
AsyncSessionLocal: async_sessionmaker[AsyncSession] = async_sessionmaker(
    bind=engine,
    expire_on_commit=False,
)

# Export declarative Base for models and alembic
Base = declarative_base()


async def get_db() -> AsyncIterator[AsyncSession]:
    async with AsyncSessionLocal() as session:
        yield session


@asynccontextmanager
async def store_errors(session: AsyncSession, action: str) -> AsyncIterator[None]:
    """
    Convert driver / ORM failures into StoreError with the store's own message.
    The session is rolled back; earlier commits stay in place.
    """
    try:
        yield
    except SQLAlchemyError as exc:
        await session.rollback()
        message = str(getattr(exc, "orig", None) or exc)
        logger.error("store failure during %s: %s", action, message)
        raise StoreError(message) from exc
