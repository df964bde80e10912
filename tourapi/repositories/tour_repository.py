"""Tour storage interface and its SQLAlchemy implementation."""

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional, Sequence

from sqlalchemy import Select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import DuplicateTourError
from ..models.tour import Tour

logger = logging.getLogger(__name__)


class TourRepository(ABC):
    """
    Storage collaborator injected into the tour service.

    Statements are composed by the caller; implementations only execute them
    and persist entity changes.
    """

    @abstractmethod
    async def fetch_all(self, statement: Select) -> Sequence[Tour]:
        """Execute a statement selecting tours and return every match."""

    @abstractmethod
    async def fetch_one(self, statement: Select) -> Optional[Tour]:
        """Execute a statement selecting at most one tour."""

    @abstractmethod
    async def fetch_rows(self, statement: Select) -> Sequence[Any]:
        """Execute a column or aggregate statement and return plain rows."""

    @abstractmethod
    async def add(self, tour: Tour) -> Tour:
        """Persist a new tour."""

    @abstractmethod
    async def save(self, tour: Tour) -> Tour:
        """Persist changes made to a loaded tour."""

    @abstractmethod
    async def delete(self, tour: Tour) -> None:
        """Physically remove a tour."""


class SQLAlchemyTourRepository(TourRepository):
    """Tour repository bound to one async session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def fetch_all(self, statement: Select) -> Sequence[Tour]:
        result = await self.db.execute(statement)
        return result.scalars().all()

    async def fetch_one(self, statement: Select) -> Optional[Tour]:
        result = await self.db.execute(statement)
        return result.scalar_one_or_none()

    async def fetch_rows(self, statement: Select) -> Sequence[Any]:
        result = await self.db.execute(statement)
        return result.all()

    async def add(self, tour: Tour) -> Tour:
        self.db.add(tour)
        return await self._commit(tour)

    async def save(self, tour: Tour) -> Tour:
        return await self._commit(tour)

    async def delete(self, tour: Tour) -> None:
        await self.db.delete(tour)
        await self.db.commit()

    async def _commit(self, tour: Tour) -> Tour:
        # Rollback expires loaded attributes, read the name first
        name = tour.name
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            logger.warning(
                "Tour write rejected by integrity constraint",
                extra={"tour_name": name, "error": str(e.orig)}
            )
            raise DuplicateTourError(name) from e

        await self.db.refresh(tour)
        return tour
