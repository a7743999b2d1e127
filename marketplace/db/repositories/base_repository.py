"""
Base repository - generic data access plus the store-failure boundary.
Challenge: Consistent data access, bounded store calls, no driver detail leaking upward.
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any, Generic, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.config import get_settings
from marketplace.core.exceptions import StoreFailure
from marketplace.db.base import Base

logger = logging.getLogger(__name__)

ModelType = TypeVar("ModelType", bound=Base)


@asynccontextmanager
async def store_guard(operation: str, timeout: float) -> AsyncIterator[None]:
    """Bound a store call by `timeout` seconds and map failures to StoreFailure.

    IntegrityError passes through untouched; callers translate constraint
    violations into domain errors.
    """
    try:
        async with asyncio.timeout(timeout):
            yield
    except IntegrityError:
        raise
    except TimeoutError as exc:
        logger.error("Store timeout after %ss during %s", timeout, operation)
        raise StoreFailure() from exc
    except SQLAlchemyError as exc:
        logger.exception("Store failure during %s", operation)
        raise StoreFailure() from exc


class BaseRepository(Generic[ModelType]):
    """Generic async repository. Subclasses define model-specific methods."""

    def __init__(self, session: AsyncSession, model: type[ModelType], timeout: float | None = None):
        self.session = session
        self.model = model
        self.timeout = timeout if timeout is not None else get_settings().store_timeout_seconds

    def guarded(self, operation: str):
        """Store boundary for this repository's configured timeout."""
        return store_guard(operation, self.timeout)

    async def execute(self, statement: Any, operation: str):
        async with self.guarded(operation):
            return await self.session.execute(statement)

    async def get_by_id(self, id: int) -> ModelType | None:
        """Fetch single entity by primary key, refreshing any stale identity-map copy."""
        result = await self.execute(
            select(self.model).where(self.model.id == id).execution_options(populate_existing=True),
            f"get {self.model.__tablename__}",
        )
        return result.scalar_one_or_none()

    async def add(self, entity: ModelType) -> ModelType:
        """Persist new entity. Caller commits session."""
        async with self.guarded(f"insert {self.model.__tablename__}"):
            self.session.add(entity)
            await self.session.flush()  # Get ID without committing
            await self.session.refresh(entity)
        return entity
