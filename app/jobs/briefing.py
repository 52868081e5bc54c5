"""
LLM-backed jobs: morning briefing and weekly review.

Both gather workspace context, ask the proposer for a decision, and dispatch
whatever actions come back. A reply without usable JSON still produces one
notification, so a briefing is never silently dropped.
"""

from collections.abc import Callable
from datetime import datetime

from openai import AsyncOpenAI
from sqlalchemy.ext.asyncio import AsyncSession

from app.agents.context import gather_context
from app.agents.prompts import morning_briefing_prompt, weekly_review_prompt
from app.agents.proposer import propose_decision
from app.config import get_settings
from app.core.logging import get_logger
from app.jobs.utils import JobResult, dispatch_for_job, job_option
from app.models.agent_job import AgentJob
from app.schemas.llm import FallbackSpec

logger = get_logger(__name__)

WEEKLY_REVIEW_MAX_TOKENS = 3000

MORNING_BRIEFING_FALLBACK = FallbackSpec(
    title="Good Morning! Here's your briefing",
    notification_type="briefing",
    priority="medium",
    reason="Daily morning briefing",
    analysis="Generated morning briefing",
    summary="Morning briefing sent",
)

WEEKLY_REVIEW_FALLBACK = FallbackSpec(
    title="Weekly Review Ready",
    notification_type="weekly_review",
    priority="medium",
    reason="Weekly review summary",
    analysis="Generated weekly review",
    summary="Weekly review generated",
)


async def _run_generated_job(
    db: AsyncSession,
    job: AgentJob,
    now: datetime,
    client: AsyncOpenAI | None,
    build_prompt: Callable[[str, datetime], str],
    fallback: FallbackSpec,
    max_tokens: int,
) -> JobResult:
    context = await gather_context(
        db,
        job.workspace_id,
        now,
        task_lookahead_days=job_option(job, "task_lookahead_days", None),
        rfp_lookahead_days=job_option(job, "rfp_lookahead_days", None),
    )

    proposal = await propose_decision(
        build_prompt(context.render(), now),
        fallback,
        client=client,
        max_tokens=max_tokens,
    )
    if proposal.used_fallback:
        logger.bind(job_id=job.id, job_type=job.job_type).warning("decision_fallback_used")

    decision = proposal.decision
    return await dispatch_for_job(
        db,
        job,
        decision.actions,
        now,
        summary=decision.summary or fallback.summary,
        tokens_used=proposal.total_tokens,
    )


async def run_morning_briefing(
    db: AsyncSession, job: AgentJob, now: datetime, client: AsyncOpenAI | None = None
) -> JobResult:
    """Daily briefing: top priorities, urgent deadlines, flagged opportunities."""
    max_tokens = job_option(job, "max_tokens", get_settings().llm_max_tokens)
    return await _run_generated_job(
        db, job, now, client, morning_briefing_prompt, MORNING_BRIEFING_FALLBACK, max_tokens
    )


async def run_weekly_review(
    db: AsyncSession, job: AgentJob, now: datetime, client: AsyncOpenAI | None = None
) -> JobResult:
    """Weekly summary and planning for the week ahead."""
    max_tokens = job_option(job, "max_tokens", WEEKLY_REVIEW_MAX_TOKENS)
    return await _run_generated_job(
        db, job, now, client, weekly_review_prompt, WEEKLY_REVIEW_FALLBACK, max_tokens
    )
