"""Tests for the service endpoints."""

import pytest


class TestConfigAPI:
    """Tests for /api/config and health endpoints."""

    @pytest.mark.asyncio
    async def test_config_check(self, client):
        """The default configuration is valid and reports no secrets."""
        response = await client.get("/api/config/check")

        assert response.status_code == 200
        data = response.json()
        assert data["valid"] is True
        assert data["errors"] == []
        assert set(data["summary"]) == {"status", "database", "feed", "jobs", "debug"}
        assert data["summary"]["feed"]["rate_limit_ms"] >= 0

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    @pytest.mark.asyncio
    async def test_root(self, client):
        response = await client.get("/")

        assert response.status_code == 200
        assert response.json()["status"] == "running"
