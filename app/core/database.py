"""
Async database setup for the console store.

Identities, addresses, sessions, verification codes, log events and the
tenant directory mirror all live in one SQLModel metadata.
"""

import logging
from typing import Any, AsyncGenerator, Dict

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlmodel import SQLModel

from app.core.config import get_settings
from app.models import AdminAddress, AdminIdentity, AdminSession, LogEvent, Tenant, VerificationCode  # noqa: F401

settings = get_settings()
logger = logging.getLogger(__name__)


def engine_options(database_url: str) -> Dict[str, Any]:
    """Engine keyword arguments for a database URL."""
    options: Dict[str, Any] = {"echo": settings.debug}
    if make_url(database_url).get_backend_name() == "sqlite":
        # Concurrent resolves and activity updates wait on the write lock
        options["connect_args"] = {"timeout": 30}
    else:
        options["pool_pre_ping"] = True
    return options


# Create async engine
engine = create_async_engine(settings.database_url, **engine_options(settings.database_url))


AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    expire_on_commit=False,
    class_=AsyncSession
)


async def init_db() -> None:
    """Create any missing tables."""
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    logger.info("Database ready at %s", make_url(settings.database_url).render_as_string(hide_password=True))


async def close_db() -> None:
    """Close database connections."""
    await engine.dispose()


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting async database session."""
    async with AsyncSessionLocal() as session:
        yield session
