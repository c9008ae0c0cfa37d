"""Tests for backfill API endpoints."""

import pytest
from sqlalchemy import func, select

from paddock.models import Race


class TestBackfillAPI:
    """Tests for /api/backfill."""

    @pytest.mark.asyncio
    async def test_enqueues_and_runs_days(self, client, job_queue, feed, session_factory):
        """Each day becomes a job; background processing fills the database."""
        response = await client.post(
            "/api/backfill", json={"from_date": "2025-09-05", "to_date": "2025-09-06"}
        )

        assert response.status_code == 202
        assert response.json() == {"enqueued": 2, "dates": ["2025-09-05", "2025-09-06"]}
        assert "/schedule/2025-09-05" in feed.paths
        assert "/schedule/2025-09-06" in feed.paths
        assert job_queue.jobs == []
        async with session_factory() as session:
            result = await session.execute(select(func.count()).select_from(Race))
            assert result.scalar_one() == 2

    @pytest.mark.asyncio
    async def test_single_day(self, client, feed):
        response = await client.post("/api/backfill", json={"from_date": "2025-09-06"})

        assert response.status_code == 202
        assert response.json()["dates"] == ["2025-09-06"]
        assert [p for p in feed.paths if p.startswith("/schedule/")] == ["/schedule/2025-09-06"]

    @pytest.mark.asyncio
    async def test_finished_jobs_do_not_accumulate(self, client, job_queue):
        """Repeated backfills leave nothing behind in the process-wide queue."""
        for day in ("2025-09-05", "2025-09-06", "2025-09-05"):
            response = await client.post("/api/backfill", json={"from_date": day})
            assert response.status_code == 202

        assert job_queue.jobs == []

    @pytest.mark.asyncio
    async def test_reversed_range_rejected(self, client, job_queue):
        response = await client.post(
            "/api/backfill", json={"from_date": "2025-09-06", "to_date": "2025-09-01"}
        )

        assert response.status_code == 422
        assert job_queue.jobs == []

    @pytest.mark.asyncio
    async def test_invalid_date_rejected(self, client, job_queue):
        response = await client.post("/api/backfill", json={"from_date": "last tuesday"})

        assert response.status_code == 422
        assert job_queue.jobs == []
