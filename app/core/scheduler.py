"""
APScheduler integration for FastAPI.

Optional in-process trigger for agent jobs. The external cron call to
/api/agents/run-jobs is the primary trigger; enable this with
SCHEDULER_ENABLED=true on deployments that have no external cron.

Jobs:
- Agent tick: runs every due agent job (every SCHEDULER_INTERVAL_MINUTES)
"""

from typing import Any

from apscheduler import AsyncScheduler, ConflictPolicy
from apscheduler.datastores.memory import MemoryDataStore
from apscheduler.triggers.interval import IntervalTrigger

from app.config import get_settings
from app.core.database import AsyncSessionLocal
from app.core.logging import get_logger

logger = get_logger(__name__)

AGENT_TICK_ID = "agent_tick"

# Global scheduler instance
scheduler: AsyncScheduler | None = None


async def agent_tick() -> None:
    """Run every agent job that is due now."""
    # Import here to avoid circular imports
    from app.jobs.runner import run_due_jobs

    logger.debug("scheduled_agent_tick_started")
    async with AsyncSessionLocal() as db:
        try:
            summaries = await run_due_jobs(db)
            if summaries:
                logger.bind(
                    jobs_run=len(summaries),
                    failed=sum(1 for s in summaries if not s.success),
                ).info("scheduled_agent_tick_completed")
        except Exception as e:
            logger.bind(error=str(e)).error("scheduled_agent_tick_failed")
            raise  # Re-raise so APScheduler records the failure


async def start_scheduler() -> AsyncScheduler | None:
    """Start the interval tick if enabled."""
    global scheduler

    settings = get_settings()
    if not settings.scheduler_enabled:
        logger.info("scheduler_disabled_by_config")
        return None

    # Schedules are rebuilt on startup; job state lives in agent_jobs
    scheduler = AsyncScheduler(data_store=MemoryDataStore())

    # Start the scheduler first (required before calling other methods in APScheduler 4.x)
    await scheduler.__aenter__()

    await scheduler.add_schedule(
        agent_tick,
        IntervalTrigger(minutes=settings.scheduler_interval_minutes),
        id=AGENT_TICK_ID,
        conflict_policy=ConflictPolicy.replace,
    )

    await scheduler.start_in_background()

    logger.bind(
        jobs=[AGENT_TICK_ID], interval_minutes=settings.scheduler_interval_minutes
    ).info("scheduler_started")

    return scheduler


async def stop_scheduler() -> None:
    """Gracefully stop the scheduler."""
    global scheduler
    if scheduler:
        await scheduler.__aexit__(None, None, None)
        logger.info("scheduler_stopped")
        scheduler = None


async def get_job_schedules() -> list[dict[str, Any]]:
    """Get all registered in-process schedules."""
    if not scheduler:
        return []

    schedules = await scheduler.get_schedules()
    return [
        {
            "id": s.id,
            "task_id": s.task_id,
            "trigger": str(s.trigger),
            "next_fire_time": s.next_fire_time.isoformat() if s.next_fire_time else None,
            "last_fire_time": s.last_fire_time.isoformat() if s.last_fire_time else None,
        }
        for s in schedules
    ]
