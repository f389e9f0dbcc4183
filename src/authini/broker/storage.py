"""Transaction scoping for the relational store.

Each request opens its own database session and transaction; nothing is shared in
memory between requests. Driver and SQLAlchemy failures leaving a transaction are
reported as `StorageError` so that a broken connection aborts only the current request.
"""
import asyncio
import contextlib
import logging
from typing import AsyncIterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from authini.broker.errors import StorageError

logger = logging.getLogger(__name__)


@contextlib.asynccontextmanager
async def transaction(
    database_session_maker: async_sessionmaker[AsyncSession], operation: str
) -> AsyncIterator[AsyncSession]:
    try:
        async with database_session_maker() as database_session:
            async with database_session.begin():
                yield database_session
    except (SQLAlchemyError, OSError, asyncio.TimeoutError) as e:
        logger.exception("transaction: %s failed", operation)
        raise StorageError.query(operation, e) from e
