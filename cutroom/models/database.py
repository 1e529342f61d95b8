import asyncio
import logging
from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from cutroom.config import get_settings
from cutroom.models.base import Base

logger = logging.getLogger(__name__)

settings = get_settings()


def engine_options(database_url: str) -> dict[str, Any]:
    """Connection pool options for the given database URL."""
    if "sqlite" in database_url:
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_size": 5,  # Strict 5 per instance
        "max_overflow": 0,  # Queue instead of exceeding the limit
        "pool_pre_ping": True,  # Check connection health before use
        "pool_recycle": 300,  # Recycle connections after 5 minutes
        "pool_timeout": 30,  # Surface pool exhaustion instead of hanging
    }


def make_engine(database_url: str, **kwargs: Any) -> AsyncEngine:
    options = engine_options(database_url)
    options.update(kwargs)
    return create_async_engine(
        database_url,
        echo=settings.database_echo,
        future=True,
        **options,
    )


def make_sessionmaker(target: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        target,
        class_=AsyncSession,
        expire_on_commit=False,
    )


engine = make_engine(settings.database_url)

async_session_maker = make_sessionmaker(engine)


async def init_db(target: AsyncEngine | None = None) -> None:
    """Create the schema, retrying while the database is still coming up."""
    target = target or engine
    max_retries = settings.database_init_retries
    retry_delay = settings.database_init_retry_delay_s

    for attempt in range(max_retries):
        try:
            async with target.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            logger.info("Project store schema is ready")
            return
        except Exception as e:
            if attempt < max_retries - 1:
                logger.warning(
                    f"DB connection attempt {attempt + 1}/{max_retries} failed: {e}. "
                    f"Retrying in {retry_delay} seconds..."
                )
                await asyncio.sleep(retry_delay)
                retry_delay *= 2  # Exponential backoff
            else:
                logger.error(f"Failed to connect to database after {max_retries} attempts")
                raise


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
