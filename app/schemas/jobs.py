from datetime import datetime

from pydantic import BaseModel


class JobRunSummary(BaseModel):
    """Outcome of one job within a scheduler pass."""

    job_id: str
    job_type: str
    run_id: str | None = None
    success: bool
    actions_taken: int = 0
    summary: str | None = None
    error: str | None = None


class RunJobsResponse(BaseModel):
    """Response of the scheduler trigger."""

    jobs_run: int
    results: list[JobRunSummary]
    message: str | None = None
    error: str | None = None


class AgentLogResponse(BaseModel):
    """An audit log entry."""

    id: str
    workspace_id: str
    source: str
    action_kind: str
    reason: str | None
    status: str
    error: str | None
    params: dict
    created_at: datetime
