"""Trainer and jockey repositories.

Participants are identified by case-insensitive name only and never change
after creation, so every write is an insert-or-ignore followed by a re-read.
"""

import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from paddock.models import Jockey, Trainer
from paddock.repositories.base import BaseRepository, name_key, wrap_db_errors
from paddock.transformers.runner import RunnerData

ParticipantType = TypeVar("ParticipantType", Trainer, Jockey)

NAME_PREFIXES = (
    "MR ", "MRS ", "MS ", "MISS ",
    "APPRENTICE ", "APP ", "A ",
    "CLAIMING ", "CLAIM ",
)
_WHITESPACE = re.compile(r"\s+")


def clean_participant_name(name: str | None) -> str | None:
    """
    Uppercase a participant name and drop honorific/apprentice prefixes.

    >>> clean_participant_name("MR J SMITH")
    'J SMITH'
    >>> clean_participant_name("apprentice s jones")
    'S JONES'
    """
    if name is None:
        return None
    cleaned = name.strip().upper()
    for prefix in NAME_PREFIXES:
        if cleaned.startswith(prefix):
            cleaned = cleaned[len(prefix):]
    cleaned = _WHITESPACE.sub(" ", cleaned).strip()
    return cleaned or None


class ParticipantRepository(BaseRepository[ParticipantType], Generic[ParticipantType]):
    """Name-keyed repository shared by trainers and jockeys."""

    kind = "participant"

    async def get_by_name(self, name: str) -> ParticipantType | None:
        """Get participant by name, ignoring case."""
        result = await self.session.execute(
            select(self.model).where(func.lower(self.model.name) == func.lower(name.strip()))
        )
        return result.scalar_one_or_none()

    async def search_by_name(self, name: str, limit: int = 20) -> list[ParticipantType]:
        """Search participants by name."""
        query = (
            select(self.model)
            .where(self.model.name.icontains(name))
            .order_by(self.model.name)
            .limit(limit)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def upsert(self, name: str | None) -> ParticipantType | None:
        """
        Insert a participant if new and return the stored row.

        None or blank names give None.

        Raises:
            ETLError: database_error on any persistence failure
        """
        normalized = (name or "").strip()
        if not normalized:
            return None

        async with wrap_db_errors(f"Failed to upsert {self.kind}", name=normalized, type=self.kind):
            stmt = self.upsert_insert().values(name=normalized).on_conflict_do_nothing()
            await self.session.execute(stmt)
            return await self.get_by_name(normalized)

    async def bulk_upsert(self, names: Iterable[str | None]) -> list[ParticipantType]:
        """Insert-or-ignore many names in one statement and return the stored rows."""
        unique: dict[str, str] = {}
        for name in names:
            normalized = (name or "").strip()
            if normalized:
                unique.setdefault(name_key(normalized), normalized)

        if not unique:
            return []

        async with wrap_db_errors(
            f"Failed to bulk upsert {self.kind}s", names_count=len(unique), type=self.kind
        ):
            stmt = (
                self.upsert_insert()
                .values([{"name": n} for n in unique.values()])
                .on_conflict_do_nothing()
            )
            await self.session.execute(stmt)

        found = await self.find_by_names(list(unique.values()))
        return list(found.values())

    async def find_by_names(self, names: list[str]) -> dict[str, ParticipantType]:
        """Map lowercased name -> participant for the given names."""
        keys = {name_key(n) for n in names if n and n.strip()}
        if not keys:
            return {}

        async with wrap_db_errors(
            f"Failed to find {self.kind}s by names", names=sorted(keys), type=self.kind
        ):
            result = await self.session.execute(
                select(self.model).where(func.lower(self.model.name).in_(keys))
            )
            return {name_key(p.name): p for p in result.scalars().all()}

    async def meaningful_count(self) -> int:
        """Participants whose name looks like a full name rather than initials."""
        result = await self.session.execute(
            select(func.count())
            .select_from(self.model)
            .where(func.length(self.model.name) > 3, self.model.name.contains(" "))
        )
        return result.scalar_one()


class TrainerRepository(ParticipantRepository[Trainer]):
    """Repository for Trainer model."""

    kind = "trainer"

    def __init__(self, session: AsyncSession):
        super().__init__(Trainer, session)


class JockeyRepository(ParticipantRepository[Jockey]):
    """Repository for Jockey model."""

    kind = "jockey"

    def __init__(self, session: AsyncSession):
        super().__init__(Jockey, session)


@dataclass
class ParticipantMaps:
    """Lowercased name -> row lookups built once per race."""

    trainers: dict[str, Trainer] = field(default_factory=dict)
    jockeys: dict[str, Jockey] = field(default_factory=dict)

    def trainer_id(self, name: str | None) -> int | None:
        trainer = self.trainers.get(name_key(name)) if name else None
        return trainer.id if trainer else None

    def jockey_id(self, name: str | None) -> int | None:
        jockey = self.jockeys.get(name_key(name)) if name else None
        return jockey.id if jockey else None


async def batch_upsert_from_runners(
    session: AsyncSession, runners: list[RunnerData]
) -> ParticipantMaps:
    """
    Upsert every distinct trainer and jockey named by ``runners`` once.

    Returns lookup maps so entry persistence needs no per-runner round trip.
    """
    trainers = await TrainerRepository(session).bulk_upsert(r.trainer_name for r in runners)
    jockeys = await JockeyRepository(session).bulk_upsert(r.jockey_name for r in runners)
    return ParticipantMaps(
        trainers={name_key(t.name): t for t in trainers},
        jockeys={name_key(j.name): j for j in jockeys},
    )


async def get_participant_stats(session: AsyncSession) -> dict[str, float | int]:
    """Counts of trainers/jockeys and the share with full names."""
    trainer_repo = TrainerRepository(session)
    jockey_repo = JockeyRepository(session)

    async with wrap_db_errors("Failed to get participant stats"):
        total_trainers = await trainer_repo.count()
        total_jockeys = await jockey_repo.count()
        meaningful_trainers = await trainer_repo.meaningful_count()
        meaningful_jockeys = await jockey_repo.meaningful_count()

    return {
        "total_trainers": total_trainers,
        "total_jockeys": total_jockeys,
        "meaningful_trainers": meaningful_trainers,
        "meaningful_jockeys": meaningful_jockeys,
        "trainer_completeness": meaningful_trainers / total_trainers if total_trainers else 0,
        "jockey_completeness": meaningful_jockeys / total_jockeys if total_jockeys else 0,
    }
