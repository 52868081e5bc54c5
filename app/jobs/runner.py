"""
Scheduler pass.

Selects every active job that is due, runs them one at a time, and records the
outcome of each on an AgentJobRun. The run row is committed in the `running`
state before any job logic, so even a crash mid-job leaves a trace. If the
final commit fails, the run is moved to `failed` on a best-effort basis.

next_run_at advances after every attempt, successful or not, so a
persistently failing job retries at its normal cadence rather than on every
pass. Overlapping passes are not locked out: a job can run twice if two
triggers race (at-least-once).
"""

from datetime import datetime

from openai import AsyncOpenAI
from sqlalchemy import or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.actions import describe_actions
from app.core.datetime_utils import utc_now
from app.core.errors import JobNotFoundError, SchedulerError
from app.core.logging import get_logger
from app.jobs.executor import execute_job
from app.jobs.schedule import compute_next_run
from app.models.agent_job import AgentJob
from app.models.job_run import AgentJobRun, JobRunStatus
from app.schemas.jobs import JobRunSummary

logger = get_logger(__name__)


async def load_due_jobs(db: AsyncSession, now: datetime) -> list[AgentJob]:
    """Active jobs with no next_run_at or one at or before `now`."""
    try:
        result = await db.execute(
            select(AgentJob)
            .where(
                AgentJob.is_active.is_(True),
                or_(AgentJob.next_run_at.is_(None), AgentJob.next_run_at <= now),
            )
            .order_by(AgentJob.next_run_at.asc().nulls_first(), AgentJob.created_at.asc())
        )
    except SQLAlchemyError as e:
        logger.bind(error=str(e)).error("due_jobs_load_failed")
        raise SchedulerError(f"Failed to fetch jobs: {e}") from e
    return list(result.scalars().all())


async def run_job(
    db: AsyncSession,
    job: AgentJob,
    now: datetime,
    client: AsyncOpenAI | None = None,
) -> JobRunSummary:
    """
    Run one job and record it.

    The job body runs in a SAVEPOINT: if it raises, its partial writes are
    rolled back while the run row and the job's bookkeeping are kept.
    """
    run = AgentJobRun(
        workspace_id=job.workspace_id,
        job_id=job.id,
        job_type=job.job_type,
        status=JobRunStatus.RUNNING.value,
        started_at=now,
    )
    db.add(run)
    await db.commit()

    run_id = run.id
    log = logger.bind(job_id=job.id, run_id=run_id, job_type=job.job_type)
    log.info("job_run_started")

    try:
        async with db.begin_nested():
            result = await execute_job(db, job, now, client)
    except Exception as e:
        run.status = JobRunStatus.FAILED.value
        run.error_message = str(e)
        run.completed_at = utc_now()
        job.last_run_status = JobRunStatus.FAILED.value
        summary = JobRunSummary(
            job_id=job.id,
            job_type=job.job_type,
            run_id=run.id,
            success=False,
            error=str(e),
        )
        log.bind(error=str(e)).error("job_run_failed")
    else:
        run.status = JobRunStatus.SUCCESS.value
        run.actions_taken = describe_actions(result.actions)
        run.summary = result.summary
        run.tokens_used = result.tokens_used
        run.completed_at = utc_now()
        job.last_run_status = JobRunStatus.SUCCESS.value
        summary = JobRunSummary(
            job_id=job.id,
            job_type=job.job_type,
            run_id=run.id,
            success=True,
            actions_taken=len(result.actions),
            summary=result.summary,
        )
        failed = sum(1 for r in result.results if not r.success)
        log.bind(actions=len(result.actions), failed_actions=failed, tokens=result.tokens_used).info(
            "job_run_completed"
        )

    job.last_run_at = now
    job.next_run_at = compute_next_run(job.schedule, now)
    job.updated_at = now
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        await _close_orphaned_run(db, run_id, str(e))
        raise

    return summary


async def _close_orphaned_run(db: AsyncSession, run_id: str, error: str) -> None:
    """Best effort: move a run left in `running` by a failed commit to `failed`."""
    try:
        await db.execute(
            update(AgentJobRun)
            .where(AgentJobRun.id == run_id, AgentJobRun.status == JobRunStatus.RUNNING.value)
            .values(
                status=JobRunStatus.FAILED.value,
                error_message=f"Run bookkeeping failed: {error}",
                completed_at=utc_now(),
            )
            .execution_options(synchronize_session=False)
        )
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.bind(run_id=run_id, error=str(e)).error("job_run_close_failed")


async def run_due_jobs(
    db: AsyncSession,
    now: datetime | None = None,
    client: AsyncOpenAI | None = None,
) -> list[JobRunSummary]:
    """
    Run every job due at `now`.

    Returns:
        One JobRunSummary per job attempted, in execution order

    Raises:
        SchedulerError: If due jobs can't be loaded; nothing runs
    """
    now = now or utc_now()
    jobs = await load_due_jobs(db, now)

    if not jobs:
        logger.debug("no_jobs_due")
        return []

    logger.bind(count=len(jobs)).info("scheduler_pass_started")

    summaries: list[JobRunSummary] = []
    for job in jobs:
        job_id, job_type = job.id, job.job_type
        try:
            summaries.append(await run_job(db, job, now, client))
        except SQLAlchemyError as e:
            # Bookkeeping itself failed; keep going with the next job
            await db.rollback()
            logger.bind(job_id=job_id, error=str(e)).error("job_bookkeeping_failed")
            summaries.append(
                JobRunSummary(job_id=job_id, job_type=job_type, success=False, error=str(e))
            )

    succeeded = sum(1 for s in summaries if s.success)
    logger.bind(jobs_run=len(summaries), succeeded=succeeded, failed=len(summaries) - succeeded).info(
        "scheduler_pass_completed"
    )
    return summaries


async def run_job_now(
    db: AsyncSession,
    job_id: str,
    now: datetime | None = None,
    client: AsyncOpenAI | None = None,
) -> JobRunSummary:
    """Run a single job on demand, regardless of next_run_at or is_active."""
    job = await db.get(AgentJob, job_id)
    if job is None:
        raise JobNotFoundError(job_id)
    return await run_job(db, job, now or utc_now(), client)
