"""
Shared utilities for job modules.

Common pieces used by briefing.py, deadline_monitor.py and relationship_check.py.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.actions import dispatch_actions
from app.models.agent_job import AgentJob
from app.schemas.actions import Action, ActionResult


@dataclass
class JobResult:
    """What a job proposed, how each action went, and a one-line summary."""

    actions: list[Action]
    results: list[ActionResult] = field(default_factory=list)
    summary: str = ""
    tokens_used: int = 0


def job_option(job: AgentJob, key: str, default: Any) -> Any:
    """Per-job config override, falling back to `default` when unset."""
    value = (job.config_json or {}).get(key)
    return default if value is None else value


async def dispatch_for_job(
    db: AsyncSession,
    job: AgentJob,
    actions: Sequence[Action],
    now: datetime,
    summary: str,
    tokens_used: int = 0,
) -> JobResult:
    """Dispatch a job's actions under its own workspace and job type."""
    results = await dispatch_actions(db, job.workspace_id, actions, source=job.job_type, now=now)
    return JobResult(
        actions=list(actions),
        results=results,
        summary=summary,
        tokens_used=tokens_used,
    )
