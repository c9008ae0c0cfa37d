"""Race repository."""

from datetime import date
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from paddock.models import Entry, Race
from paddock.repositories.base import BaseRepository, wrap_db_errors

RACE_IDENTITY = ("date", "track", "race_number")
# Only these change when a race is seen again.
RACE_REPLACED_FIELDS = ("distance_m", "going", "race_class")
RACE_FIELDS = (*RACE_IDENTITY, "country", "distance_m", "surface", "going", "race_class")


class RaceRepository(BaseRepository[Race]):
    """Repository for Race model."""

    def __init__(self, session: AsyncSession):
        super().__init__(Race, session)

    async def get_by_identity(self, race_date: date, track: str, race_number: int) -> Race | None:
        """Get race by its natural key."""
        result = await self.session.execute(
            select(Race)
            .where(
                Race.date == race_date,
                Race.track == track,
                Race.race_number == race_number,
            )
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def upsert(self, attrs: dict[str, Any]) -> Race:
        """
        Insert a race or replace distance/going/class of the existing one.

        Raises:
            ETLError: database_error on any persistence failure
        """
        values = {k: v for k, v in attrs.items() if k in RACE_FIELDS}

        async with wrap_db_errors("Failed to upsert race", race=values):
            stmt = self.upsert_insert().values(**values)
            stmt = stmt.on_conflict_do_update(
                index_elements=list(RACE_IDENTITY),
                set_={
                    **{field: stmt.excluded[field] for field in RACE_REPLACED_FIELDS},
                    "updated_at": func.now(),
                },
            )
            await self.session.execute(stmt)
            race = await self.get_by_identity(values["date"], values["track"], values["race_number"])

        return race

    async def get_with_entries(self, race_id: int) -> Race | None:
        """Get race with entries and their participants loaded."""
        result = await self.session.execute(
            select(Race)
            .options(
                selectinload(Race.entries).selectinload(Entry.horse),
                selectinload(Race.entries).selectinload(Entry.trainer),
                selectinload(Race.entries).selectinload(Entry.jockey),
            )
            .where(Race.id == race_id)
        )
        return result.scalar_one_or_none()

    async def get_by_date(self, race_date: date, track: str | None = None) -> list[Race]:
        """Get a day's races, optionally for one track."""
        query = select(Race).where(Race.date == race_date)
        if track:
            query = query.where(Race.track == track)

        query = query.order_by(Race.track, Race.race_number)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def get_by_date_range(self, start_date: date, end_date: date) -> list[Race]:
        """Get races within a date range."""
        query = (
            select(Race)
            .where(Race.date >= start_date, Race.date <= end_date)
            .order_by(Race.date, Race.track, Race.race_number)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def get_entries_count(self, race_id: int) -> int:
        """Get the number of entries for a race."""
        result = await self.session.execute(
            select(func.count()).select_from(Entry).where(Entry.race_id == race_id)
        )
        return result.scalar_one()
