"""Shared fixtures for API integration tests."""

import sys
from datetime import date
from pathlib import Path
from typing import AsyncGenerator

import httpx
import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

# Add backend to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent.parent))

from paddock.api.backfill import get_backfill_handler, get_job_queue
from paddock.database import get_db
from paddock.fetchers.tab import TabClient
from paddock.jobs import BackfillDayJob, InMemoryJobQueue
from paddock.main import app
from paddock.models import Entry, Horse, Jockey, Race, Trainer

from tests.fixtures.factories import (
    create_entry,
    create_horse,
    create_jockey,
    create_race,
    create_trainer,
    make_meeting,
    make_schedule,
)


class FeedStub:
    """MockTransport handler: one Ellerslie meeting per day, no results yet."""

    def __init__(self):
        self.paths: list[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.paths.append(request.url.path)
        if request.url.path.startswith("/results/"):
            return httpx.Response(404)
        return httpx.Response(200, json=make_schedule(make_meeting(1, "Ellerslie")))


@pytest.fixture
def feed() -> FeedStub:
    return FeedStub()


@pytest.fixture
def job_queue(settings) -> InMemoryJobQueue:
    return InMemoryJobQueue(max_attempts=settings.job_max_attempts)


@pytest.fixture
def backfill_handler(session_factory, settings, rate_limiter, feed) -> BackfillDayJob:
    return BackfillDayJob(
        session_factory,
        client_factory=lambda: TabClient(
            settings,
            rate_limiter=rate_limiter,
            transport=httpx.MockTransport(feed),
            retry_wait=0,
        ),
        settings=settings,
    )


@pytest.fixture(scope="function")
async def client(session_factory, job_queue, backfill_handler) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client for API tests."""
    async def get_test_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = get_test_db
    app.dependency_overrides[get_job_queue] = lambda: job_queue
    app.dependency_overrides[get_backfill_handler] = lambda: backfill_handler

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
async def test_race(db_session: AsyncSession) -> Race:
    """Create a sample race for testing."""
    race = create_race(
        race_date=date(2025, 9, 6),
        track="Ellerslie",
        race_number=7,
        distance_m=2400,
        going="Soft6",
        race_class="Group 1",
    )
    db_session.add(race)
    await db_session.commit()
    await db_session.refresh(race)
    return race


@pytest.fixture
async def test_horse(db_session: AsyncSession) -> Horse:
    """Create a horse with a known sire and dam."""
    sire = create_horse(name="Savabeel", year_foaled=2001, sex="h")
    dam = create_horse(name="Lady Belle", year_foaled=2012, sex="f")
    db_session.add_all([sire, dam])
    await db_session.flush()

    horse = create_horse(name="Prowess", sex="f", sire_id=sire.id, dam_id=dam.id)
    db_session.add(horse)
    await db_session.commit()
    await db_session.refresh(horse)
    return horse


@pytest.fixture
async def test_trainer(db_session: AsyncSession) -> Trainer:
    trainer = create_trainer(name="J Richards")
    db_session.add(trainer)
    await db_session.commit()
    await db_session.refresh(trainer)
    return trainer


@pytest.fixture
async def test_jockey(db_session: AsyncSession) -> Jockey:
    jockey = create_jockey(name="O Bosson")
    db_session.add(jockey)
    await db_session.commit()
    await db_session.refresh(jockey)
    return jockey


@pytest.fixture
async def test_horses(db_session: AsyncSession) -> list[Horse]:
    """Create a field of horses."""
    horses = []
    horse_names = [
        "Legarto", "Pennyweka", "Desert Lightning", "Waitak",
        "Crocetti", "Mustang Valley", "Molly Bloom", "Bonny Lass",
    ]
    for i, name in enumerate(horse_names, 1):
        horse = create_horse(name=name, year_foaled=2018 + (i % 4))
        db_session.add(horse)
        horses.append(horse)
    await db_session.commit()
    for horse in horses:
        await db_session.refresh(horse)
    return horses


@pytest.fixture
async def test_entries(
    db_session: AsyncSession,
    test_race: Race,
    test_horses: list[Horse],
    test_trainer: Trainer,
    test_jockey: Jockey,
) -> list[Entry]:
    """Create a full field, the first three placed in reverse entry order."""
    entries = []
    for i, horse in enumerate(test_horses, 1):
        entry = create_entry(
            race_id=test_race.id,
            horse_id=horse.id,
            trainer_id=test_trainer.id,
            jockey_id=test_jockey.id if i == 1 else None,
            barrier=i,
            finishing_pos=4 - i if i <= 3 else None,
            sp_odds=2.5 * i,
        )
        db_session.add(entry)
        entries.append(entry)

    await db_session.commit()
    for entry in entries:
        await db_session.refresh(entry)
    return entries
