"""
Job executor.

Maps a job type to its implementation and runs it against the job's own
workspace. Run bookkeeping (AgentJobRun rows, next_run_at) belongs to the
runner, not here.
"""

from collections.abc import Awaitable, Callable
from datetime import datetime

from openai import AsyncOpenAI
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import UnknownJobTypeError
from app.core.logging import get_logger
from app.jobs.briefing import run_morning_briefing, run_weekly_review
from app.jobs.deadline_monitor import run_deadline_monitor
from app.jobs.relationship_check import run_relationship_check
from app.jobs.utils import JobResult
from app.models.agent_job import AgentJob, JobType

logger = get_logger(__name__)

JobHandler = Callable[[AsyncSession, AgentJob, datetime, AsyncOpenAI | None], Awaitable[JobResult]]

JOB_HANDLERS: dict[str, JobHandler] = {
    JobType.MORNING_BRIEFING.value: run_morning_briefing,
    JobType.WEEKLY_REVIEW.value: run_weekly_review,
    JobType.DEADLINE_MONITOR.value: run_deadline_monitor,
    JobType.RELATIONSHIP_CHECK.value: run_relationship_check,
}


async def execute_job(
    db: AsyncSession,
    job: AgentJob,
    now: datetime,
    client: AsyncOpenAI | None = None,
) -> JobResult:
    """
    Run one job.

    Args:
        db: Database session
        job: Job definition; its workspace scopes every read and write
        now: Effective time for windows and timestamps
        client: OpenAI client for generated jobs (built lazily if needed)

    Raises:
        UnknownJobTypeError: If no handler is registered for job.job_type
    """
    handler = JOB_HANDLERS.get(job.job_type)
    if handler is None:
        raise UnknownJobTypeError(job.job_type)

    logger.bind(job_id=job.id, job_type=job.job_type, workspace_id=job.workspace_id).debug(
        "job_executing"
    )
    return await handler(db, job, now, client)
