"""Race entry repository."""

from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from paddock.models import Entry
from paddock.models.entry import MERGED_COLUMNS
from paddock.repositories.base import BaseRepository, wrap_db_errors

ENTRY_IDENTITY = ("race_id", "horse_id")


class EntryRepository(BaseRepository[Entry]):
    """Repository for Entry model."""

    def __init__(self, session: AsyncSession):
        super().__init__(Entry, session)

    async def get_by_race(self, race_id: int) -> list[Entry]:
        """Get all entries for a race."""
        result = await self.session.execute(
            select(Entry)
            .options(
                selectinload(Entry.horse),
                selectinload(Entry.trainer),
                selectinload(Entry.jockey),
            )
            .where(Entry.race_id == race_id)
            .order_by(Entry.finishing_pos.is_(None), Entry.finishing_pos, Entry.barrier)
        )
        return list(result.scalars().all())

    async def get_by_race_and_horse(self, race_id: int, horse_id: int) -> Entry | None:
        """Get entry by race and horse."""
        result = await self.session.execute(
            select(Entry)
            .where(Entry.race_id == race_id, Entry.horse_id == horse_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def upsert(self, attrs: dict[str, Any]) -> Entry:
        """
        Insert an entry or coalesce-merge it into the existing row.

        On conflict every column takes the incoming value only when that value
        is not NULL, so a partial payload never erases captured data.

        Raises:
            ETLError: database_error on any persistence failure
        """
        values = {k: v for k, v in attrs.items() if k in (*ENTRY_IDENTITY, *MERGED_COLUMNS)}

        async with wrap_db_errors("Failed to upsert entry", entry=values):
            stmt = self.upsert_insert().values(**values)
            stmt = stmt.on_conflict_do_update(
                index_elements=list(ENTRY_IDENTITY),
                set_={
                    **{
                        column: func.coalesce(stmt.excluded[column], getattr(Entry, column))
                        for column in MERGED_COLUMNS
                    },
                    "updated_at": func.now(),
                },
            )
            await self.session.execute(stmt)
            entry = await self.get_by_race_and_horse(values["race_id"], values["horse_id"])

        return entry
