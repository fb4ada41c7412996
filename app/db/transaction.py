"""Unit-of-work helper for multi-write operations."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.services.errors import CoreError, PersistenceFailure

logger = logging.getLogger(__name__)


@asynccontextmanager
async def atomic(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """Run a block of writes as one transaction.

    Commits when the block exits normally. Any exception rolls back every
    write made in the block; typed core errors are re-raised unchanged and
    database errors are reported as ``PersistenceFailure``.

    Usage:
        async with atomic(session):
            appointment.status = AppointmentStatus.MISSED
            await patients.increment_missed(patient_id)
    """
    try:
        yield session
        await session.commit()
    except CoreError:
        await session.rollback()
        raise
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.error(f"Transaction rolled back: {exc}")
        raise PersistenceFailure("The change could not be saved") from exc
    except BaseException:
        await session.rollback()
        raise


@asynccontextmanager
async def read_only(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """Run queries that write nothing, reporting database errors as ``PersistenceFailure``.

    Usage:
        async with read_only(session):
            listings = await service.list_requests()
    """
    try:
        yield session
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.error(f"Read failed: {exc}")
        raise PersistenceFailure("The data could not be loaded") from exc
