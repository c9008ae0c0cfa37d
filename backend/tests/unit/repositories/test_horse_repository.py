"""Tests for horse repository."""

import pytest
from sqlalchemy import func, select

from paddock.errors import ErrorKind, ETLError
from paddock.models import Horse
from paddock.repositories.horse_repository import Bloodline, HorseRepository


async def _horse_count(session) -> int:
    result = await session.execute(select(func.count()).select_from(Horse))
    return result.scalar_one()


class TestHorseRepository:
    """Tests for HorseRepository lookups."""

    @pytest.mark.asyncio
    async def test_get_by_name(self, db_session, test_horse):
        """Get horse by exact name."""
        repo = HorseRepository(db_session)

        horse = await repo.get_by_name("Prowess")

        assert horse is not None
        assert horse.name == "Prowess"

    @pytest.mark.asyncio
    async def test_get_by_name_ignores_case(self, db_session, test_horse):
        """Names are matched regardless of case."""
        repo = HorseRepository(db_session)

        horse = await repo.get_by_name("  PROWESS ")

        assert horse is not None
        assert horse.id == test_horse.id

    @pytest.mark.asyncio
    async def test_get_by_name_not_found(self, db_session, test_horse):
        """Get horse by name that doesn't exist returns None."""
        repo = HorseRepository(db_session)

        assert await repo.get_by_name("Nonexistent") is None

    @pytest.mark.asyncio
    async def test_search_by_name(self, db_session, test_horses):
        """Search horses by partial name."""
        repo = HorseRepository(db_session)

        horses = await repo.search_by_name("ll")

        assert {h.name for h in horses} == {"Mustang Valley", "Molly Bloom"}

    @pytest.mark.asyncio
    async def test_search_by_name_limit(self, db_session, test_horses):
        """Search respects limit parameter."""
        repo = HorseRepository(db_session)

        horses = await repo.search_by_name("", limit=5)

        assert len(horses) == 5


class TestHorseUpserts:
    """Tests for HorseRepository upserts."""

    @pytest.mark.asyncio
    async def test_upsert_simple_creates(self, db_session):
        repo = HorseRepository(db_session)

        horse = await repo.upsert_simple({"name": " Legarto ", "country": "NZ", "year_foaled": 2019})

        assert horse.id is not None
        assert horse.name == "Legarto"
        assert horse.year_foaled == 2019

    @pytest.mark.asyncio
    async def test_upsert_simple_leaves_existing_row(self, db_session, test_horse):
        """A second sighting with different case does not create or change anything."""
        repo = HorseRepository(db_session)

        horse = await repo.upsert_simple({"name": "prowess", "country": "AUS", "sex": "m"})

        assert horse.id == test_horse.id
        assert horse.name == "Prowess"
        assert horse.country == "NZ"
        assert await _horse_count(db_session) == 1

    @pytest.mark.asyncio
    async def test_get_or_create_rejects_blank_name(self, db_session):
        repo = HorseRepository(db_session)

        with pytest.raises(ETLError) as exc_info:
            await repo.get_or_create_by_name("   ")

        assert exc_info.value.kind is ErrorKind.VALIDATION

    @pytest.mark.asyncio
    async def test_upsert_with_bloodline_creates_parents(self, db_session):
        """Parents are created by name and linked by id."""
        repo = HorseRepository(db_session)

        horse = await repo.upsert_with_bloodline(
            {"name": "Winner", "country": "NZ", "year_foaled": 2022, "sex": "f"},
            Bloodline(sire_name="TIZ THE LAW", dam_name="CONQUEST STRATE UP"),
        )

        sire = await repo.get_by_name("TIZ THE LAW")
        dam = await repo.get_by_name("conquest strate up")
        assert sire is not None and dam is not None
        assert horse.sire_id == sire.id
        assert horse.dam_id == dam.id
        assert horse.damsire_id is None
        assert sire.sire_id is None
        assert await _horse_count(db_session) == 3

    @pytest.mark.asyncio
    async def test_upsert_with_bloodline_updates_existing(self, db_session, test_horse):
        """An existing horse has its descriptive and pedigree fields replaced."""
        repo = HorseRepository(db_session)

        horse = await repo.upsert_with_bloodline(
            {"name": "PROWESS", "country": "AUS", "year_foaled": 2020, "sex": "f"},
            Bloodline(sire_name="Savabeel", dam_name="Some Mare", damsire_name="Zabeel"),
        )

        assert horse.id == test_horse.id
        assert horse.name == "Prowess"
        assert horse.country == "AUS"
        assert horse.year_foaled == 2020
        assert horse.sire_id is not None
        assert horse.damsire_id is not None

    @pytest.mark.asyncio
    async def test_upsert_with_bloodline_reuses_existing_parent(self, db_session, test_horses):
        """A parent that already exists is referenced, not duplicated."""
        repo = HorseRepository(db_session)
        before = await _horse_count(db_session)

        horse = await repo.upsert_with_bloodline(
            {"name": "Foal"}, Bloodline(sire_name="legarto", dam_name="Pennyweka")
        )

        assert horse.sire_id == test_horses[1].id
        assert horse.dam_id == test_horses[2].id
        assert await _horse_count(db_session) == before + 1

    @pytest.mark.asyncio
    async def test_upsert_with_bloodline_is_idempotent(self, db_session):
        repo = HorseRepository(db_session)
        bloodline = Bloodline(sire_name="Sire", dam_name="Dam")

        first = await repo.upsert_with_bloodline({"name": "Foal"}, bloodline)
        second = await repo.upsert_with_bloodline({"name": "foal"}, bloodline)

        assert first.id == second.id
        assert await _horse_count(db_session) == 3

    @pytest.mark.asyncio
    async def test_get_with_pedigree(self, db_session):
        repo = HorseRepository(db_session)
        horse = await repo.upsert_with_bloodline(
            {"name": "Foal"}, Bloodline(sire_name="Sire", dam_name="Dam", damsire_name="Grandsire")
        )

        loaded = await repo.get_with_pedigree(horse.id)

        assert loaded.sire.name == "Sire"
        assert loaded.dam.name == "Dam"
        assert loaded.damsire.name == "Grandsire"

    @pytest.mark.asyncio
    async def test_update_bloodline(self, db_session, test_horse):
        repo = HorseRepository(db_session)

        horse = await repo.update_bloodline(test_horse, Bloodline(sire_name="Sire"))

        assert horse.sire_id is not None
        assert horse.dam_id is None

    @pytest.mark.asyncio
    async def test_bulk_upsert_and_find_by_names(self, db_session, test_horse):
        """Bulk upsert dedupes by lowercased name and keeps existing rows."""
        repo = HorseRepository(db_session)

        horses = await repo.bulk_upsert([
            {"name": "Alpha"},
            {"name": "ALPHA"},
            {"name": "Prowess"},
        ])
        found = await repo.find_by_names(["alpha", "prowess", "missing"])

        assert len(horses) == 2
        assert set(found) == {"alpha", "prowess"}
        assert found["prowess"].id == test_horse.id
        assert await _horse_count(db_session) == 2
