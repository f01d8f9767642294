"""Criteria providers: where the industry and requirement lists come from."""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Optional

from fitscore.cache import TTLCache
from fitscore.models import Criteria
from fitscore.models.database import DBConfiguration, init_db

logger = logging.getLogger(__name__)

CRITERIA_CACHE_KEY = "criteria"
SECTIONS = ("industries", "requirements")


class CriteriaProvider(ABC):
    """Abstract interface for criteria storage."""

    @abstractmethod
    async def get(self) -> Criteria:
        """Return the current criteria snapshot."""
        pass

    @abstractmethod
    async def update(self, partial: dict) -> Criteria:
        """
        Replace some criteria lists and return the new snapshot.

        Args:
            partial: e.g. {"industries": {"whitelist": [...]}}

        Returns:
            The snapshot now in effect
        """
        pass


class InMemoryCriteriaProvider(CriteriaProvider):
    """Holds a single snapshot; updates swap the reference (last writer wins)."""

    def __init__(self, criteria: Optional[Criteria] = None):
        self._criteria = criteria or Criteria()

    async def get(self) -> Criteria:
        return self._criteria

    async def update(self, partial: dict) -> Criteria:
        self._criteria = self._criteria.merged(partial)
        return self._criteria


class SqlCriteriaProvider(CriteriaProvider):
    """Criteria stored in the `configuration` table, one row per section.

    A missing row means "no constraint": the section reads as empty lists.
    """

    def __init__(self, db_url: Optional[str] = None):
        self._session_factory = init_db(db_url)

    async def get(self) -> Criteria:
        return await asyncio.to_thread(self._load)

    async def update(self, partial: dict) -> Criteria:
        return await asyncio.to_thread(self._store, partial)

    def _load(self) -> Criteria:
        session = self._session_factory()
        try:
            data = {}
            for section in SECTIONS:
                row = session.get(DBConfiguration, section)
                if row is None:
                    logger.warning(f"No {section} criteria configured in database")
                    continue
                data[section] = row.get_data()
            return Criteria.model_validate(data)
        finally:
            session.close()

    def _store(self, partial: dict) -> Criteria:
        session = self._session_factory()
        try:
            updated = self._load().merged(partial)
            for section in SECTIONS:
                if section not in partial:
                    continue
                row = session.get(DBConfiguration, section)
                if row is None:
                    row = DBConfiguration(id=section)
                    session.add(row)
                row.set_data(getattr(updated, section).model_dump())
            session.commit()
            logger.info(f"Updated criteria sections: {', '.join(s for s in SECTIONS if s in partial)}")
            return updated
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


class CachedCriteriaProvider(CriteriaProvider):
    """Wraps another provider with a TTL cache; updates invalidate it."""

    def __init__(self, provider: CriteriaProvider, cache: TTLCache):
        self.provider = provider
        self.cache = cache

    async def get(self) -> Criteria:
        return await self.cache.get_or_load(CRITERIA_CACHE_KEY, self.provider.get)

    async def update(self, partial: dict) -> Criteria:
        updated = await self.provider.update(partial)
        self.cache.invalidate(CRITERIA_CACHE_KEY)
        return updated
