import logging
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from unimart.core.config import settings
from unimart.helpers.getters import isDebugMode

logger = logging.getLogger(__name__)

DATABASE_URL = settings.DATABASE_URL

if isDebugMode():
    logger.info("Using debug database engine with SQL echo")
    engine = create_async_engine(DATABASE_URL, future=True, echo=True)
else:
    engine = create_async_engine(DATABASE_URL, future=True, echo=False, pool_pre_ping=True)

SessionAsync = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@asynccontextmanager
async def unit_of_work(db: AsyncSession):
    """Commit the session when the block succeeds, roll it back when it raises."""
    try:
        yield
        await db.commit()
    except Exception:
        await db.rollback()
        raise
