"""Job monitoring API endpoints."""

from datetime import datetime

from fastapi import APIRouter, Query
from pydantic import BaseModel
from sqlalchemy import case, func, select

from app.core.scheduler import get_job_schedules
from app.dependencies import DBSession
from app.models.agent_job import AgentJob
from app.models.job_run import AgentJobRun, JobRunStatus

router = APIRouter()


class ScheduleResponse(BaseModel):
    """Response model for an in-process schedule."""

    id: str
    task_id: str
    trigger: str
    next_fire_time: str | None
    last_fire_time: str | None


class AgentJobResponse(BaseModel):
    """Response model for a job definition."""

    id: str
    workspace_id: str
    job_type: str
    schedule: str
    config: dict
    is_active: bool
    last_run_at: datetime | None
    last_run_status: str | None
    next_run_at: datetime | None


class JobRunResponse(BaseModel):
    """Response model for a job run."""

    id: str
    job_id: str
    workspace_id: str
    job_type: str
    status: str
    summary: str | None
    error_message: str | None
    actions_taken: list
    tokens_used: int
    started_at: datetime
    completed_at: datetime | None
    duration_seconds: float | None


class JobStatsResponse(BaseModel):
    """Response model for per-job-type statistics."""

    job_type: str
    total_runs: int
    successful_runs: int
    failed_runs: int
    success_rate: float
    avg_tokens_used: float | None
    last_run: datetime | None


@router.get("/jobs", response_model=list[AgentJobResponse])
async def list_jobs(
    db: DBSession,
    tenant_id: str | None = Query(default=None, description="Filter by workspace ID"),
    active_only: bool = Query(default=False),
) -> list[AgentJobResponse]:
    """List job definitions with their next run time."""
    query = select(AgentJob).order_by(AgentJob.next_run_at.asc().nulls_first())
    if tenant_id:
        query = query.where(AgentJob.workspace_id == tenant_id)
    if active_only:
        query = query.where(AgentJob.is_active.is_(True))

    result = await db.execute(query)
    return [
        AgentJobResponse(
            id=job.id,
            workspace_id=job.workspace_id,
            job_type=job.job_type,
            schedule=job.schedule,
            config=job.config_json or {},
            is_active=job.is_active,
            last_run_at=job.last_run_at,
            last_run_status=job.last_run_status,
            next_run_at=job.next_run_at,
        )
        for job in result.scalars().all()
    ]


@router.get("/jobs/schedules", response_model=list[ScheduleResponse])
async def list_schedules() -> list[ScheduleResponse]:
    """List in-process schedules (empty unless SCHEDULER_ENABLED)."""
    schedules = await get_job_schedules()
    return [ScheduleResponse(**s) for s in schedules]


@router.get("/jobs/runs", response_model=list[JobRunResponse])
async def list_job_runs(
    db: DBSession,
    job_id: str | None = Query(default=None, description="Filter by job ID"),
    tenant_id: str | None = Query(default=None, description="Filter by workspace ID"),
    status: str | None = Query(default=None, description="running, success or failed"),
    limit: int = Query(default=50, le=200),
    offset: int = Query(default=0, ge=0),
) -> list[JobRunResponse]:
    """
    List job execution history.

    Returns recent runs, newest first, with optional filters.
    """
    query = select(AgentJobRun).order_by(AgentJobRun.started_at.desc())

    if job_id:
        query = query.where(AgentJobRun.job_id == job_id)
    if tenant_id:
        query = query.where(AgentJobRun.workspace_id == tenant_id)
    if status:
        query = query.where(AgentJobRun.status == status)

    query = query.offset(offset).limit(limit)
    result = await db.execute(query)
    runs = result.scalars().all()

    return [
        JobRunResponse(
            id=run.id,
            job_id=run.job_id,
            workspace_id=run.workspace_id,
            job_type=run.job_type,
            status=run.status,
            summary=run.summary,
            error_message=run.error_message,
            actions_taken=run.actions_taken or [],
            tokens_used=run.tokens_used or 0,
            started_at=run.started_at,
            completed_at=run.completed_at,
            duration_seconds=(
                (run.completed_at - run.started_at).total_seconds() if run.completed_at else None
            ),
        )
        for run in runs
    ]


@router.get("/jobs/stats", response_model=list[JobStatsResponse])
async def get_job_stats(
    db: DBSession,
    tenant_id: str | None = Query(default=None, description="Filter by workspace ID"),
) -> list[JobStatsResponse]:
    """Success rates, token usage and last run per job type."""
    success = JobRunStatus.SUCCESS.value
    failed = JobRunStatus.FAILED.value

    query = select(
        AgentJobRun.job_type,
        func.count(AgentJobRun.id),
        func.sum(case((AgentJobRun.status == success, 1), else_=0)),
        func.sum(case((AgentJobRun.status == failed, 1), else_=0)),
        func.avg(AgentJobRun.tokens_used),
        func.max(AgentJobRun.started_at),
    ).group_by(AgentJobRun.job_type)
    if tenant_id:
        query = query.where(AgentJobRun.workspace_id == tenant_id)

    result = await db.execute(query.order_by(AgentJobRun.job_type))

    stats = []
    for job_type, total, successful, failures, avg_tokens, last_run in result.all():
        total = total or 0
        successful = successful or 0
        stats.append(
            JobStatsResponse(
                job_type=job_type,
                total_runs=total,
                successful_runs=successful,
                failed_runs=failures or 0,
                success_rate=successful / total if total > 0 else 0.0,
                avg_tokens_used=float(avg_tokens) if avg_tokens is not None else None,
                last_run=last_run,
            )
        )

    return stats
