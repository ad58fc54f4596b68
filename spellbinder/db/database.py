"""
Async engine and request-scoped sessions.

One engine per process, built from settings.database_url. Handlers receive
a session through get_session; the application lifespan calls init_db to
create missing tables.
"""

import logging
from collections.abc import AsyncGenerator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from spellbinder.config import settings
from spellbinder.models.db import Base

logger = logging.getLogger(__name__)

engine = create_async_engine(settings.database_url, echo=settings.debug, pool_pre_ping=True)

async_session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Session for one request: committed after the handler, rolled back on database errors."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except SQLAlchemyError as e:
            logger.warning("Rolling back request session: %s", e)
            await session.rollback()
            raise


async def init_db() -> None:
    """Create the containers, segments, plans and ownership_flags tables if missing."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Tables ready: %s", ", ".join(sorted(Base.metadata.tables)))
