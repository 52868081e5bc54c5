"""Agent API endpoints: scheduler trigger, action submission and audit log."""

from fastapi import APIRouter, Header, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy import select

from app.actions import dispatch_actions, list_action_kinds, summarize_results
from app.core.errors import SchedulerError
from app.core.logging import get_logger
from app.core.rate_limit import ACTION_SUBMISSION_LIMIT, limiter
from app.core.security import verify_cron_authorization
from app.dependencies import AppSettings, DBSession
from app.jobs.runner import run_due_jobs
from app.models.agent_log import AgentLog
from app.schemas.actions import ActionBatchRequest, ActionBatchResponse, ActionKindResponse
from app.schemas.jobs import AgentLogResponse, RunJobsResponse

logger = get_logger(__name__)

router = APIRouter()


def _require_cron_auth(authorization: str | None, settings: AppSettings) -> None:
    if not verify_cron_authorization(authorization, settings):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )


async def _run_jobs(db: DBSession) -> RunJobsResponse | JSONResponse:
    try:
        summaries = await run_due_jobs(db)
    except SchedulerError as e:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=RunJobsResponse(jobs_run=0, results=[], error=str(e)).model_dump(),
        )

    if not summaries:
        return RunJobsResponse(jobs_run=0, results=[], message="No jobs due to run")
    return RunJobsResponse(jobs_run=len(summaries), results=summaries)


@router.post("/agents/run-jobs", response_model=RunJobsResponse)
async def run_jobs(
    db: DBSession,
    settings: AppSettings,
    authorization: str | None = Header(default=None),
) -> RunJobsResponse | JSONResponse:
    """
    Run every active agent job that is due.

    Meant to be hit by an external cron. In production, requires
    `Authorization: Bearer <CRON_SECRET>` when a secret is configured.
    """
    _require_cron_auth(authorization, settings)
    return await _run_jobs(db)


@router.get("/agents/run-jobs", response_model=RunJobsResponse)
async def run_jobs_get(
    db: DBSession,
    settings: AppSettings,
    authorization: str | None = Header(default=None),
) -> RunJobsResponse | JSONResponse:
    """Same as POST, for cron services that only issue GET requests."""
    _require_cron_auth(authorization, settings)
    return await _run_jobs(db)


@router.post("/agents/actions", response_model=ActionBatchResponse)
@limiter.limit(ACTION_SUBMISSION_LIMIT)
async def submit_actions(
    request: Request,
    body: ActionBatchRequest,
    db: DBSession,
    settings: AppSettings,
    authorization: str | None = Header(default=None),
) -> ActionBatchResponse:
    """
    Dispatch a batch of actions for a workspace.

    Actions run in order and independently. An unknown kind or bad
    parameters fail only that action; the response is still 200 with
    per-action results.
    """
    _require_cron_auth(authorization, settings)

    results = await dispatch_actions(db, body.tenant_id, body.actions, source=body.source_label)
    executed, failed = summarize_results(results)

    logger.bind(
        workspace_id=body.tenant_id,
        source=body.source_label,
        executed=executed,
        failed=failed,
    ).info("action_batch_submitted")

    return ActionBatchResponse(results=results, executed=executed, failed=failed)


@router.get("/agents/actions/kinds", response_model=list[ActionKindResponse])
async def list_kinds() -> list[ActionKindResponse]:
    """List registered action kinds with their required and optional parameters."""
    return [
        ActionKindResponse(
            kind=spec.kind,
            entity=spec.entity,
            required=list(spec.required),
            optional=list(spec.optional),
        )
        for spec in list_action_kinds()
    ]


@router.get("/agents/logs", response_model=list[AgentLogResponse])
async def list_logs(
    db: DBSession,
    tenant_id: str = Query(description="Workspace ID"),
    source: str | None = Query(default=None, description="Filter by job type or source label"),
    limit: int = Query(default=50, ge=1, le=200),
) -> list[AgentLogResponse]:
    """Audit log for a workspace, newest first."""
    query = select(AgentLog).where(AgentLog.workspace_id == tenant_id)
    if source:
        query = query.where(AgentLog.source == source)
    query = query.order_by(AgentLog.created_at.desc()).limit(limit)

    result = await db.execute(query)
    return [
        AgentLogResponse(
            id=log.id,
            workspace_id=log.workspace_id,
            source=log.source,
            action_kind=log.action_kind,
            reason=log.reason,
            status=log.status,
            error=log.error,
            params=log.params or {},
            created_at=log.created_at,
        )
        for log in result.scalars().all()
    ]
