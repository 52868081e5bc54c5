"""
Relationship check job.

Finds contacts without a recent interaction and, for the stalest few,
schedules a follow-up and marks the relationship cold. One low-priority
summary notification closes the batch.
"""

from datetime import datetime

from openai import AsyncOpenAI
from sqlalchemy.ext.asyncio import AsyncSession

from app.agents.context import find_stale_contacts
from app.config import get_config
from app.jobs.utils import JobResult, dispatch_for_job, job_option
from app.models.agent_job import AgentJob
from app.models.contact import Contact
from app.schemas.actions import Action


def build_relationship_actions(
    contacts: list[Contact],
    top_n: int = 3,
    follow_up_days: int = 2,
    stale_days: int = 30,
) -> list[Action]:
    if not contacts:
        return []

    actions: list[Action] = []
    for contact in contacts[:top_n]:
        name = contact.full_name
        actions.append(
            Action(
                type="create_follow_up",
                params={
                    "subject": name,
                    "context": (
                        f"It's been over {stale_days} days since your last interaction with "
                        f"{name}. Consider reaching out to maintain the relationship."
                    ),
                    "contact_name": name,
                    "contact_email": contact.email,
                    "days_from_now": follow_up_days,
                    "type": "relationship_maintenance",
                },
                reason=f"No interaction with {name} in {stale_days}+ days",
            )
        )
        actions.append(
            Action(
                type="update_contact_health",
                params={
                    "contact_id": contact.id,
                    "health": "cold",
                    "notes": f"Flagged by agent: No interaction in {stale_days}+ days",
                },
                reason="Marking contact as cold due to inactivity",
            )
        )

    actions.append(
        Action(
            type="create_notification",
            params={
                "title": "Relationship Check",
                "message": f"{len(contacts)} contact(s) may need attention. "
                "Follow-up tasks created for top priorities.",
                "priority": "low",
                "type": "relationship_alert",
            },
            reason="Summary of relationship check",
        )
    )
    return actions


async def run_relationship_check(
    db: AsyncSession, job: AgentJob, now: datetime, client: AsyncOpenAI | None = None
) -> JobResult:
    cfg = get_config().agents.relationship_check
    stale_days = int(job_option(job, "stale_days", cfg.stale_days))
    top_n = int(job_option(job, "top_n", cfg.top_n))
    follow_up_days = int(job_option(job, "follow_up_days", cfg.follow_up_days))
    max_contacts = int(job_option(job, "max_contacts", cfg.max_contacts))

    contacts = await find_stale_contacts(
        db, job.workspace_id, now.date(), stale_days, max_contacts
    )
    actions = build_relationship_actions(contacts, top_n, follow_up_days, stale_days)
    summary = f"Checked relationships: {len(contacts)} contacts need attention"
    return await dispatch_for_job(db, job, actions, now, summary=summary)
