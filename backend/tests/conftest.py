"""Shared test fixtures."""

import sys
from datetime import date
from pathlib import Path
from typing import AsyncGenerator

import pytest
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.pool import StaticPool

# Add backend to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from paddock.config import Settings
from paddock.database import Base, create_engine_from_url, create_session_factory
from paddock.fetchers.rate_limit import RateLimiter
from paddock.models import Entry, Horse, Jockey, Race, Trainer

from tests.fixtures.factories import create_entry, create_horse, create_jockey, create_race, create_trainer

FEED_BASE_URL = "https://feed.test"


@pytest.fixture
async def db_engine():
    """Create in-memory SQLite engine for tests."""
    engine = create_engine_from_url(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    """Session factory bound to the test engine."""
    return create_session_factory(db_engine)


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create async session with transaction rollback."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def settings() -> Settings:
    """Settings pointing at a fake feed."""
    return Settings(
        database_url="sqlite:///:memory:",
        feed_base_url=FEED_BASE_URL,
        feed_rate_ms=0,
        feed_retries=2,
        job_max_attempts=3,
    )


@pytest.fixture
def rate_limiter() -> RateLimiter:
    """A limiter fast enough not to slow tests down."""
    return RateLimiter(rate_per_second=10_000, capacity=100, max_in_flight=10)


@pytest.fixture
async def test_race(db_session: AsyncSession) -> Race:
    """Create a sample race for testing."""
    race = create_race(race_date=date(2025, 9, 6), track="Ellerslie", race_number=1)
    db_session.add(race)
    await db_session.flush()
    return race


@pytest.fixture
async def test_horse(db_session: AsyncSession) -> Horse:
    """Create a sample horse for testing."""
    horse = create_horse(name="Prowess", sex="f")
    db_session.add(horse)
    await db_session.flush()
    return horse


@pytest.fixture
async def test_trainer(db_session: AsyncSession) -> Trainer:
    """Create a sample trainer for testing."""
    trainer = create_trainer(name="J Richards")
    db_session.add(trainer)
    await db_session.flush()
    return trainer


@pytest.fixture
async def test_jockey(db_session: AsyncSession) -> Jockey:
    """Create a sample jockey for testing."""
    jockey = create_jockey(name="O Bosson")
    db_session.add(jockey)
    await db_session.flush()
    return jockey


@pytest.fixture
async def test_horses(db_session: AsyncSession) -> list[Horse]:
    """Create a small field of horses."""
    horses = []
    horse_names = [
        "Prowess", "Legarto", "Pennyweka", "Desert Lightning",
        "Waitak", "Crocetti", "Mustang Valley", "Molly Bloom",
    ]
    for i, name in enumerate(horse_names, 1):
        horse = create_horse(name=name, year_foaled=2018 + (i % 4), sex="f" if i % 2 else "g")
        db_session.add(horse)
        horses.append(horse)
    await db_session.flush()
    return horses


@pytest.fixture
async def test_entries(
    db_session: AsyncSession,
    test_race: Race,
    test_horses: list[Horse],
    test_jockey: Jockey,
    test_trainer: Trainer,
) -> list[Entry]:
    """Create entries for every horse, the first four placed."""
    entries = []
    for i, horse in enumerate(test_horses, 1):
        entry = create_entry(
            race_id=test_race.id,
            horse_id=horse.id,
            trainer_id=test_trainer.id,
            jockey_id=test_jockey.id if i % 2 else None,
            barrier=len(test_horses) - i + 1,
            weight_kg=54.0 + (i % 3),
            finishing_pos=i if i <= 4 else None,
        )
        db_session.add(entry)
        entries.append(entry)
    await db_session.flush()
    return entries
