"""Tests for races API endpoints."""

from datetime import date

import pytest

from tests.fixtures.factories import create_race


class TestRacesAPI:
    """Tests for /api/races endpoints."""

    @pytest.mark.asyncio
    async def test_get_races(self, client, test_race, test_entries):
        """GET /api/races returns list of races with entry counts."""
        response = await client.get("/api/races")

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        item = data["items"][0]
        assert item["track"] == "Ellerslie"
        assert item["date"] == "2025-09-06"
        assert item["distance_m"] == 2400
        assert item["entries_count"] == len(test_entries)

    @pytest.mark.asyncio
    async def test_get_races_with_pagination(self, client, db_session):
        """GET /api/races respects skip and limit."""
        for i in range(5):
            db_session.add(create_race(race_date=date(2025, 9, i + 1)))
        await db_session.commit()

        response = await client.get("/api/races?skip=0&limit=2")

        assert response.status_code == 200
        data = response.json()
        assert len(data["items"]) == 2
        assert data["total"] == 5

    @pytest.mark.asyncio
    async def test_get_races_for_day(self, client, db_session):
        """GET /api/races?date= returns one day, optionally one track."""
        day = date(2025, 9, 6)
        db_session.add_all([
            create_race(race_date=day, track="Trentham", race_number=2),
            create_race(race_date=day, track="Trentham", race_number=1),
            create_race(race_date=day, track="Ellerslie", race_number=1),
            create_race(race_date=date(2025, 9, 7), track="Trentham"),
        ])
        await db_session.commit()

        response = await client.get("/api/races?date=2025-09-06")
        by_track = await client.get("/api/races?date=2025-09-06&track=Trentham")

        assert response.status_code == 200
        assert [(r["track"], r["race_number"]) for r in response.json()["items"]] == [
            ("Ellerslie", 1), ("Trentham", 1), ("Trentham", 2),
        ]
        assert by_track.json()["total"] == 2

    @pytest.mark.asyncio
    async def test_get_races_invalid_date(self, client):
        response = await client.get("/api/races?date=06-09-2025")

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_get_race(self, client, test_race, test_entries):
        """GET /api/races/{id} returns the race with entries in finishing order."""
        response = await client.get(f"/api/races/{test_race.id}")

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == test_race.id
        assert data["race_class"] == "Group 1"
        assert data["entries_count"] == len(test_entries)
        positions = [e["finishing_pos"] for e in data["entries"]]
        assert positions[:3] == [1, 2, 3]
        assert all(p is None for p in positions[3:])
        winner = data["entries"][0]
        assert winner["horse_name"] == "Desert Lightning"
        assert winner["trainer_name"] == "J Richards"
        assert winner["jockey_name"] is None

    @pytest.mark.asyncio
    async def test_get_race_not_found(self, client):
        """GET /api/races/{id} returns 404 for non-existent race."""
        response = await client.get("/api/races/99999")

        assert response.status_code == 404
        assert response.json()["detail"] == "Race not found"
