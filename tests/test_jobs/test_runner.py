"""Tests for the scheduler pass."""

from datetime import datetime, timedelta
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from app.core.errors import JobNotFoundError, SchedulerError
from app.jobs.runner import load_due_jobs, run_due_jobs, run_job_now
from app.models.agent_job import JobType
from app.models.job_run import AgentJobRun, JobRunStatus
from tests.conftest import NOW, make_llm_client

pytestmark = pytest.mark.asyncio


async def _runs(db, job_id: str) -> list[AgentJobRun]:
    result = await db.execute(
        select(AgentJobRun).where(AgentJobRun.job_id == job_id).order_by(AgentJobRun.started_at)
    )
    return list(result.scalars().all())


class TestLoadDueJobs:
    """Tests for due-job selection."""

    async def test_selects_due_and_never_run(self, db_session, workspace, job_factory):
        """Null next_run_at and past next_run_at are due; future and inactive are not."""
        never = await job_factory(workspace.id, next_run_at=None)
        past = await job_factory(workspace.id, next_run_at=NOW - timedelta(minutes=1))
        exact = await job_factory(workspace.id, next_run_at=NOW)
        await job_factory(workspace.id, next_run_at=NOW + timedelta(minutes=1))
        await job_factory(workspace.id, next_run_at=None, is_active=False)

        jobs = await load_due_jobs(db_session, NOW)

        assert {j.id for j in jobs} == {never.id, past.id, exact.id}

    async def test_load_failure_raises_scheduler_error(self, db_session):
        """A storage failure while loading aborts the whole pass."""
        error = OperationalError("SELECT", {}, Exception("database is locked"))
        with patch.object(db_session, "execute", AsyncMock(side_effect=error)):
            with pytest.raises(SchedulerError):
                await run_due_jobs(db_session, now=NOW)


class TestRunDueJobs:
    """Tests for run_due_jobs."""

    async def test_success_records_run_and_advances(
        self, db_session, workspace, job_factory, task_factory
    ):
        """A successful run is recorded and next_run_at moves to the next slot."""
        await task_factory(workspace.id, due_in_days=-1)
        job = await job_factory(workspace.id, job_type=JobType.DEADLINE_MONITOR, schedule="daily")

        summaries = await run_due_jobs(db_session, now=NOW)

        assert len(summaries) == 1
        summary = summaries[0]
        assert summary.success is True
        assert summary.job_id == job.id
        assert summary.actions_taken == 1

        runs = await _runs(db_session, job.id)
        assert len(runs) == 1
        run = runs[0]
        assert run.status == JobRunStatus.SUCCESS.value
        assert run.id == summary.run_id
        assert run.started_at == NOW
        assert run.completed_at is not None
        assert run.summary.startswith("Checked deadlines: 1 overdue")
        assert run.actions_taken[0]["type"] == "create_notification"

        await db_session.refresh(job)
        assert job.last_run_at == NOW
        assert job.last_run_status == "success"
        assert job.next_run_at == datetime(2024, 3, 7, 6, 0)

    async def test_failed_job_still_advances(self, db_session, workspace, job_factory):
        """A failing job is marked failed and is not retried on the next pass."""
        job = await job_factory(workspace.id, job_type="grant_scan", schedule="weekly")

        summaries = await run_due_jobs(db_session, now=NOW)

        assert summaries[0].success is False
        assert summaries[0].error == "Unknown job type: grant_scan"

        runs = await _runs(db_session, job.id)
        assert len(runs) == 1
        assert runs[0].status == JobRunStatus.FAILED.value
        assert runs[0].error_message == "Unknown job type: grant_scan"

        await db_session.refresh(job)
        assert job.last_run_status == "failed"
        assert job.next_run_at == datetime(2024, 3, 11, 6, 0)

        # Not due again a minute later
        assert await run_due_jobs(db_session, now=NOW + timedelta(minutes=1)) == []

    async def test_one_failure_does_not_stop_others(
        self, db_session, workspace, job_factory, contact_factory
    ):
        """Jobs run independently within a pass."""
        await contact_factory(workspace.id, days_since_contact=90)
        broken = await job_factory(workspace.id, job_type="grant_scan")
        healthy = await job_factory(workspace.id, job_type=JobType.RELATIONSHIP_CHECK)

        summaries = await run_due_jobs(db_session, now=NOW)

        by_job = {s.job_id: s for s in summaries}
        assert by_job[broken.id].success is False
        assert by_job[healthy.id].success is True
        assert by_job[healthy.id].summary == "Checked relationships: 1 contacts need attention"

    async def test_llm_failure_marks_run_failed(self, db_session, workspace, job_factory):
        """A missing API key fails only the generated job."""
        job = await job_factory(workspace.id, job_type=JobType.MORNING_BRIEFING)

        with patch("app.agents.proposer.get_llm_client", side_effect=Exception("no key")):
            summaries = await run_due_jobs(db_session, now=NOW)

        assert summaries[0].success is False
        runs = await _runs(db_session, job.id)
        assert runs[0].status == JobRunStatus.FAILED.value
        assert runs[0].error_message == "no key"

    async def test_repeated_runs_are_independent(self, db_session, workspace, job_factory):
        """Running a briefing twice yields two runs and two notifications."""
        job = await job_factory(workspace.id, job_type=JobType.MORNING_BRIEFING)
        client = make_llm_client("Morning! All calm.")

        first = await run_job_now(db_session, job.id, now=NOW, client=client)
        second = await run_job_now(db_session, job.id, now=NOW + timedelta(hours=1), client=client)

        assert first.success and second.success
        assert first.run_id != second.run_id
        runs = await _runs(db_session, job.id)
        assert [r.status for r in runs] == ["success", "success"]

    async def test_failed_final_commit_closes_run(self, db_session, workspace, job_factory):
        """A run whose outcome can't be committed is not left running."""
        job = await job_factory(workspace.id, job_type=JobType.DEADLINE_MONITOR)
        real_commit = db_session.commit
        commits = 0

        async def flaky_commit():
            nonlocal commits
            commits += 1
            if commits == 2:
                raise OperationalError("COMMIT", {}, Exception("disk I/O error"))
            await real_commit()

        with patch.object(db_session, "commit", flaky_commit):
            summaries = await run_due_jobs(db_session, now=NOW)

        assert summaries[0].success is False
        assert "disk I/O error" in summaries[0].error

        runs = await _runs(db_session, job.id)
        assert len(runs) == 1
        assert runs[0].status == JobRunStatus.FAILED.value
        assert runs[0].error_message.startswith("Run bookkeeping failed")
        assert runs[0].completed_at is not None

    async def test_no_jobs_due(self, db_session):
        """An empty pass returns no summaries."""
        assert await run_due_jobs(db_session, now=NOW) == []


class TestRunJobNow:
    """Tests for run_job_now."""

    async def test_unknown_job_id(self, db_session):
        with pytest.raises(JobNotFoundError):
            await run_job_now(db_session, "does-not-exist", now=NOW)

    async def test_runs_inactive_job(self, db_session, workspace, job_factory):
        """Manual runs ignore is_active and next_run_at."""
        job = await job_factory(
            workspace.id,
            job_type=JobType.DEADLINE_MONITOR,
            is_active=False,
            next_run_at=NOW + timedelta(days=5),
        )

        summary = await run_job_now(db_session, job.id, now=NOW)

        assert summary.success is True
        assert len(await _runs(db_session, job.id)) == 1
