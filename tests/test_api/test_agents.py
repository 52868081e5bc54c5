"""Tests for the agent API endpoints."""

from unittest.mock import AsyncMock, patch

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from app.config import get_settings
from app.core.errors import SchedulerError
from app.main import app
from app.models.agent_job import JobType
from app.models.notification import Notification
from tests.conftest import TestSettings

pytestmark = pytest.mark.asyncio


def _use_production_settings(secret: str = "s3cret") -> None:
    app.dependency_overrides[get_settings] = lambda: TestSettings(
        environment="production", cron_secret=secret
    )


class TestRunJobs:
    """Tests for /api/agents/run-jobs."""

    async def test_no_jobs_due(self, client: AsyncClient):
        """An empty pass reports zero jobs."""
        response = await client.post("/api/agents/run-jobs")

        assert response.status_code == 200
        data = response.json()
        assert data["jobs_run"] == 0
        assert data["results"] == []
        assert data["message"] == "No jobs due to run"

    async def test_runs_due_jobs(self, client: AsyncClient, workspace, job_factory, task_factory):
        """Due jobs run and each gets a summary."""
        await task_factory(workspace.id, due_in_days=-3)
        job = await job_factory(workspace.id, job_type=JobType.DEADLINE_MONITOR)

        response = await client.post("/api/agents/run-jobs")

        assert response.status_code == 200
        data = response.json()
        assert data["jobs_run"] == 1
        result = data["results"][0]
        assert result["job_id"] == job.id
        assert result["job_type"] == "deadline_monitor"
        assert result["success"] is True
        assert result["actions_taken"] == 1
        assert result["run_id"]

    async def test_get_also_triggers(self, client: AsyncClient, workspace, job_factory):
        """GET behaves like POST for GET-only cron services."""
        await job_factory(workspace.id, job_type=JobType.RELATIONSHIP_CHECK)

        response = await client.get("/api/agents/run-jobs")

        assert response.status_code == 200
        assert response.json()["jobs_run"] == 1

    async def test_failed_job_reported_not_raised(self, client: AsyncClient, workspace, job_factory):
        """A failing job is a 200 with success false, not an HTTP error."""
        await job_factory(workspace.id, job_type="grant_scan")

        response = await client.post("/api/agents/run-jobs")

        assert response.status_code == 200
        result = response.json()["results"][0]
        assert result["success"] is False
        assert result["error"] == "Unknown job type: grant_scan"

    async def test_scheduler_failure_is_500(self, client: AsyncClient):
        """If due jobs can't be loaded, the whole call fails loudly."""
        with patch(
            "app.api.agents.run_due_jobs",
            AsyncMock(side_effect=SchedulerError("Failed to fetch jobs: connection reset")),
        ):
            response = await client.post("/api/agents/run-jobs")

        assert response.status_code == 500
        data = response.json()
        assert data["jobs_run"] == 0
        assert data["results"] == []
        assert "Failed to fetch jobs" in data["error"]

    async def test_production_requires_bearer(self, client: AsyncClient):
        """In production, a missing or wrong secret is rejected."""
        _use_production_settings()

        missing = await client.post("/api/agents/run-jobs")
        wrong = await client.post(
            "/api/agents/run-jobs", headers={"Authorization": "Bearer nope"}
        )
        right = await client.post(
            "/api/agents/run-jobs", headers={"Authorization": "Bearer s3cret"}
        )

        assert missing.status_code == 401
        assert wrong.status_code == 401
        assert right.status_code == 200

    async def test_production_without_secret_is_open(self, client: AsyncClient):
        """With no secret configured the trigger stays open."""
        _use_production_settings(secret="")

        response = await client.post("/api/agents/run-jobs")

        assert response.status_code == 200


class TestSubmitActions:
    """Tests for POST /api/agents/actions."""

    async def test_mixed_batch(self, client: AsyncClient, db_session, workspace):
        """Unknown kinds fail per action; the request itself succeeds."""
        response = await client.post(
            "/api/agents/actions",
            json={
                "tenant_id": workspace.id,
                "source_label": "zapier",
                "actions": [
                    {
                        "type": "create_notification",
                        "params": {"title": "Hi", "message": "From outside"},
                        "reason": "Webhook",
                    },
                    {"type": "summon_demon", "params": {}},
                ],
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["executed"] == 1
        assert data["failed"] == 1
        assert [r["action"] for r in data["results"]] == ["create_notification", "summon_demon"]
        assert data["results"][1]["error_kind"] == "unknown_action"

        notes = (await db_session.execute(select(Notification))).scalars().all()
        assert len(notes) == 1
        assert notes[0].workspace_id == workspace.id

    async def test_malformed_body_is_422(self, client: AsyncClient):
        """Request-shape errors are rejected before dispatch."""
        response = await client.post("/api/agents/actions", json={"actions": "nope"})

        assert response.status_code == 422

    async def test_production_requires_bearer(self, client: AsyncClient, workspace):
        _use_production_settings()

        response = await client.post(
            "/api/agents/actions", json={"tenant_id": workspace.id, "actions": []}
        )

        assert response.status_code == 401


class TestActionKinds:
    """Tests for GET /api/agents/actions/kinds."""

    async def test_lists_kinds_with_params(self, client: AsyncClient):
        response = await client.get("/api/agents/actions/kinds")

        assert response.status_code == 200
        kinds = {k["kind"]: k for k in response.json()}
        assert "create_follow_up" in kinds
        assert kinds["create_follow_up"]["required"] == ["subject"]
        assert "days_from_now" in kinds["create_follow_up"]["optional"]
        assert kinds["update_contact_health"]["entity"] == "contact"


class TestAuditLog:
    """Tests for GET /api/agents/logs."""

    async def test_logs_scoped_and_filtered(self, client: AsyncClient, workspace, workspace_factory):
        """Logs are per workspace, newest first, filterable by source."""
        other = await workspace_factory("Other Co")
        for tenant, source in ((workspace.id, "zapier"), (workspace.id, "manual"), (other.id, "zapier")):
            await client.post(
                "/api/agents/actions",
                json={
                    "tenant_id": tenant,
                    "source_label": source,
                    "actions": [{"type": "create_task", "params": {"title": f"From {source}"}}],
                },
            )

        all_logs = await client.get("/api/agents/logs", params={"tenant_id": workspace.id})
        zapier_logs = await client.get(
            "/api/agents/logs", params={"tenant_id": workspace.id, "source": "zapier"}
        )

        assert all_logs.status_code == 200
        assert len(all_logs.json()) == 2
        assert {log["workspace_id"] for log in all_logs.json()} == {workspace.id}
        assert [log["source"] for log in zapier_logs.json()] == ["zapier"]
        assert zapier_logs.json()[0]["params"] == {"title": "From zapier"}
        assert zapier_logs.json()[0]["status"] == "success"

    async def test_tenant_required(self, client: AsyncClient):
        response = await client.get("/api/agents/logs")

        assert response.status_code == 422
