"""Tests for health check and scheduler monitoring endpoints."""

from datetime import datetime, timedelta

import pytest
from httpx import AsyncClient

from vortex.models.job_run import JobRun

pytestmark = pytest.mark.asyncio


class TestHealthCheck:
    """Tests for GET /health."""

    async def test_health_check(self, client: AsyncClient):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}


class TestJobMonitoring:
    """Tests for /api/jobs/*."""

    async def test_no_schedules_when_scheduler_disabled(self, client: AsyncClient):
        response = await client.get("/api/jobs/schedules")

        assert response.status_code == 200
        assert response.json() == []

    async def test_no_runs_with_memory_backend(self, client: AsyncClient):
        """Job history is only kept in the database."""
        response = await client.get("/api/jobs/runs")

        assert response.status_code == 200
        assert response.json() == []

    async def test_runs_with_database_backend(
        self, client: AsyncClient, test_settings, db_session
    ):
        test_settings.storage_backend = "database"
        started = datetime(2026, 10, 19, 1, 0, 0)
        db_session.add_all(
            [
                JobRun(
                    job_id="digest_hourly",
                    scheduled_at=started,
                    started_at=started,
                    finished_at=started + timedelta(seconds=42),
                    outcome="success",
                ),
                JobRun(
                    job_id="digest_hourly",
                    scheduled_at=started + timedelta(hours=1),
                    started_at=started + timedelta(hours=1),
                    finished_at=started + timedelta(hours=1, seconds=3),
                    outcome="error",
                    error="upstream down",
                ),
            ]
        )
        await db_session.flush()

        response = await client.get("/api/jobs/runs", params={"job_id": "digest_hourly"})

        assert response.status_code == 200
        runs = response.json()
        assert [r["outcome"] for r in runs] == ["error", "success"]
        assert runs[1]["duration_seconds"] == 42.0
        assert runs[0]["error"] == "upstream down"
