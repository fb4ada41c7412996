"""Database initialization utilities."""

import logging

from app import models  # noqa: F401  registers every table on Base.metadata
from app.db.base import Base
from app.db.session import engine

logger = logging.getLogger(__name__)


async def create_tables() -> None:
    """Create all database tables."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables created")


async def init_db() -> None:
    """Create the schema for local development.

    Deployed environments apply Alembic migrations instead.
    """
    await create_tables()
    logger.info("Database initialization complete")
