"""
Deadline monitor job.

Deterministic threshold checks, no generation call: one notification per
non-empty category (overdue tasks, tasks due tomorrow, RFPs due soon).
"""

from datetime import datetime, timedelta

from openai import AsyncOpenAI
from sqlalchemy.ext.asyncio import AsyncSession

from app.agents.context import find_overdue_tasks, find_rfp_deadlines, find_tasks_due_between
from app.config import get_config
from app.jobs.utils import JobResult, dispatch_for_job, job_option
from app.models.agent_job import AgentJob
from app.models.rfp import Rfp
from app.models.task import Task
from app.schemas.actions import Action

DEADLINE_ALERT = "deadline_alert"


def build_deadline_actions(
    overdue: list[Task],
    due_tomorrow: list[Task],
    rfps: list[Rfp],
    rfp_lookahead_days: int = 3,
) -> list[Action]:
    """Notifications for each category that has at least one item."""
    actions: list[Action] = []

    if overdue:
        actions.append(
            Action(
                type="create_notification",
                params={
                    "title": f"{len(overdue)} Overdue Tasks!",
                    "message": f"You have {len(overdue)} overdue tasks: "
                    + ", ".join(t.title for t in overdue),
                    "priority": "high",
                    "type": DEADLINE_ALERT,
                },
                reason="Alerting about overdue tasks",
            )
        )

    if due_tomorrow:
        actions.append(
            Action(
                type="create_notification",
                params={
                    "title": f"{len(due_tomorrow)} Tasks Due Tomorrow",
                    "message": "Due tomorrow: " + ", ".join(t.title for t in due_tomorrow),
                    "priority": "medium",
                    "type": DEADLINE_ALERT,
                },
                reason="Reminder about upcoming deadlines",
            )
        )

    if rfps:
        actions.append(
            Action(
                type="create_notification",
                params={
                    "title": "RFP Deadlines Approaching!",
                    "message": f"{len(rfps)} RFP(s) due in the next {rfp_lookahead_days} days: "
                    + ", ".join(r.title for r in rfps),
                    "priority": "high",
                    "type": DEADLINE_ALERT,
                },
                reason="RFP deadline warning",
            )
        )

    return actions


async def run_deadline_monitor(
    db: AsyncSession, job: AgentJob, now: datetime, client: AsyncOpenAI | None = None
) -> JobResult:
    cfg = get_config().agents.deadline_monitor
    rfp_days = int(job_option(job, "rfp_lookahead_days", cfg.rfp_lookahead_days))
    max_items = int(job_option(job, "max_items", cfg.max_items))

    today = now.date()
    tomorrow = today + timedelta(days=1)

    overdue = await find_overdue_tasks(db, job.workspace_id, today, max_items)
    due_tomorrow = await find_tasks_due_between(db, job.workspace_id, tomorrow, tomorrow, max_items)
    rfps = await find_rfp_deadlines(db, job.workspace_id, today, rfp_days, max_items)

    actions = build_deadline_actions(overdue, due_tomorrow, rfps, rfp_days)
    summary = (
        f"Checked deadlines: {len(overdue)} overdue, {len(due_tomorrow)} due tomorrow, "
        f"{len(rfps)} RFPs approaching"
    )
    return await dispatch_for_job(db, job, actions, now, summary=summary)
