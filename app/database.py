"""
Async SQLAlchemy engine and sessions for reader accounts, onboarding
preferences and stored explanations.
"""
import logging
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool

from app.config import settings

logger = logging.getLogger(__name__)

engine = create_async_engine(
    settings.DATABASE_URL,
    echo=False,
    pool_pre_ping=True,
    poolclass=NullPool,
)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)

Base = declarative_base()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Request-scoped session: committed when the handler returns, rolled back
    when it raises.

        @router.get("/check-personalization")
        async def check(db: AsyncSession = Depends(get_db)):
            prefs = await user_service.get_preferences(db, user_id)
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception as exc:
            await session.rollback()
            logger.error("Database session error: %s", exc)
            raise


async def init_db() -> None:
    """Create the users, user_preferences and explanations tables if missing."""
    # models must be imported so their tables are on Base.metadata
    from app.models import database_models  # noqa: F401

    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    except Exception as exc:
        logger.error("Database initialisation failed: %s", exc)
        raise
    logger.info("Database tables created/verified")


async def close_db() -> None:
    await engine.dispose()
    logger.info("Database connections closed")
