"""Horse repository.

Horses are keyed by case-insensitive name. Parents are resolved by upserting
their names first and then storing the resulting ids on the child row.
"""

from dataclasses import dataclass
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from paddock.errors import ETLError
from paddock.models import Horse
from paddock.repositories.base import BaseRepository, name_key, wrap_db_errors

HORSE_FIELDS = ("name", "country", "year_foaled", "sex")
# Replaced wholesale when a horse is seen again with bloodline data.
BLOODLINE_REPLACED_FIELDS = ("country", "year_foaled", "sex", "sire_id", "dam_id", "damsire_id")


@dataclass(frozen=True)
class Bloodline:
    """Parent names for a horse."""

    sire_name: str | None = None
    dam_name: str | None = None
    damsire_name: str | None = None


class HorseRepository(BaseRepository[Horse]):
    """Repository for Horse model."""

    def __init__(self, session: AsyncSession):
        super().__init__(Horse, session)

    def _by_name(self, name: str):
        return (
            select(Horse)
            .where(func.lower(Horse.name) == func.lower(name))
            .execution_options(populate_existing=True)
        )

    async def get_by_name(self, name: str) -> Horse | None:
        """Get horse by name, ignoring case."""
        result = await self.session.execute(self._by_name(name.strip()))
        return result.scalar_one_or_none()

    async def search_by_name(self, name: str, limit: int = 20) -> list[Horse]:
        """Search horses by name."""
        query = (
            select(Horse)
            .where(Horse.name.icontains(name))
            .order_by(Horse.name)
            .limit(limit)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def get_with_pedigree(self, horse_id: int) -> Horse | None:
        """Get horse with sire, dam and damsire loaded."""
        result = await self.session.execute(
            select(Horse)
            .options(
                selectinload(Horse.sire),
                selectinload(Horse.dam),
                selectinload(Horse.damsire),
            )
            .where(Horse.id == horse_id)
        )
        return result.scalar_one_or_none()

    async def _insert_ignore(self, attrs: dict[str, Any]) -> None:
        stmt = self.upsert_insert().values(**attrs).on_conflict_do_nothing()
        await self.session.execute(stmt)

    async def upsert_simple(self, attrs: dict[str, Any]) -> Horse:
        """
        Insert a horse if its name is new, then return the stored row.

        An existing row is left untouched.

        Raises:
            ETLError: database_error on any persistence failure
        """
        values = {k: v for k, v in attrs.items() if k in HORSE_FIELDS}
        values["name"] = values["name"].strip()

        async with wrap_db_errors("Failed to upsert horse", horse=values):
            await self._insert_ignore(values)
            result = await self.session.execute(self._by_name(values["name"]))
            return result.scalar_one()

    async def get_or_create_by_name(self, name: str | None) -> Horse:
        """Get or create a pedigree-less horse by name."""
        normalized = (name or "").strip()
        if not normalized:
            raise ETLError.validation_error("Horse name cannot be empty", {"name": name})
        return await self.upsert_simple({"name": normalized})

    async def _maybe_upsert_parent(self, name: str | None) -> Horse | None:
        if name is None or not name.strip():
            return None
        return await self.get_or_create_by_name(name)

    async def _resolve_parents(self, bloodline: Bloodline) -> dict[str, int | None]:
        sire = await self._maybe_upsert_parent(bloodline.sire_name)
        dam = await self._maybe_upsert_parent(bloodline.dam_name)
        damsire = await self._maybe_upsert_parent(bloodline.damsire_name)
        return {
            "sire_id": sire.id if sire else None,
            "dam_id": dam.id if dam else None,
            "damsire_id": damsire.id if damsire else None,
        }

    async def upsert_with_bloodline(self, attrs: dict[str, Any], bloodline: Bloodline) -> Horse:
        """
        Upsert a horse together with its parents.

        Parents are upserted by name first (pedigree-less when new). The
        subject horse is then inserted, or on conflict has its descriptive
        and pedigree fields replaced by the incoming values.

        Raises:
            ETLError: database_error on any persistence failure
        """
        values = {k: v for k, v in attrs.items() if k in HORSE_FIELDS}
        values["name"] = values["name"].strip()

        async with wrap_db_errors(
            "Failed to upsert horse with bloodline",
            horse=values,
            bloodline=bloodline.__dict__,
        ):
            values.update(await self._resolve_parents(bloodline))
            await self._insert_ignore(values)

            replaced = {field: values.get(field) for field in BLOODLINE_REPLACED_FIELDS}
            await self.session.execute(
                update(Horse)
                .where(func.lower(Horse.name) == func.lower(values["name"]))
                .values(**replaced, updated_at=func.now())
                .execution_options(synchronize_session=False)
            )

            result = await self.session.execute(self._by_name(values["name"]))
            return result.scalar_one()

    async def update_bloodline(self, horse: Horse, bloodline: Bloodline) -> Horse:
        """Point an existing horse at the given parents, creating them if needed."""
        async with wrap_db_errors(
            "Failed to update horse bloodline",
            horse_id=horse.id,
            bloodline=bloodline.__dict__,
        ):
            parents = await self._resolve_parents(bloodline)
            await self.session.execute(
                update(Horse)
                .where(Horse.id == horse.id)
                .values(**parents, updated_at=func.now())
                .execution_options(synchronize_session=False)
            )
            await self.session.refresh(horse)
            return horse

    async def bulk_upsert(self, horses: list[dict[str, Any]]) -> list[Horse]:
        """Insert-or-ignore many horses and return the stored rows."""
        if not horses:
            return []

        unique: dict[str, dict[str, Any]] = {}
        for attrs in horses:
            values = {k: v for k, v in attrs.items() if k in HORSE_FIELDS}
            values["name"] = values["name"].strip()
            unique.setdefault(name_key(values["name"]), values)

        async with wrap_db_errors("Failed to bulk upsert horses", horses_count=len(unique)):
            for values in unique.values():
                await self._insert_ignore(values)

        found = await self.find_by_names([v["name"] for v in unique.values()])
        return list(found.values())

    async def find_by_names(self, names: list[str]) -> dict[str, Horse]:
        """Map lowercased name -> Horse for the given names."""
        keys = {name_key(n) for n in names if n and n.strip()}
        if not keys:
            return {}

        async with wrap_db_errors("Failed to find horses by names", names=sorted(keys)):
            result = await self.session.execute(
                select(Horse)
                .where(func.lower(Horse.name).in_(keys))
                .execution_options(populate_existing=True)
            )
            return {name_key(h.name): h for h in result.scalars().all()}
