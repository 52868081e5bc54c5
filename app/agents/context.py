"""
Context aggregation for agent jobs.

Reads cross-entity state for one workspace (overdue and upcoming tasks, RFP
deadlines, active proposals, stale contacts) and renders it as a bounded text
block for the decision proposer. Read-only: nothing here writes, so it is safe
to call repeatedly.

Every query filters on workspace_id.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_config
from app.core.logging import get_logger
from app.models.contact import Contact
from app.models.proposal import ACTIVE_PROPOSAL_STATUSES, Proposal
from app.models.rfp import OPEN_RFP_STATUSES, Rfp
from app.models.task import OPEN_TASK_STATUSES, Task
from app.models.workspace import Workspace

logger = get_logger(__name__)

TRUNCATION_MARKER = "\n[context truncated]"
MAX_TITLE_CHARS = 200


# =============================================================================
# Queries
# =============================================================================


async def find_overdue_tasks(
    db: AsyncSession, workspace_id: str, today: date, limit: int = 10
) -> list[Task]:
    """Open tasks whose due date is before today, oldest first."""
    result = await db.execute(
        select(Task)
        .where(
            Task.workspace_id == workspace_id,
            Task.status.in_(OPEN_TASK_STATUSES),
            Task.due_date.is_not(None),
            Task.due_date < today,
        )
        .order_by(Task.due_date.asc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def find_tasks_due_between(
    db: AsyncSession, workspace_id: str, start: date, end: date, limit: int = 10
) -> list[Task]:
    """Open tasks due within [start, end], soonest first."""
    result = await db.execute(
        select(Task)
        .where(
            Task.workspace_id == workspace_id,
            Task.status.in_(OPEN_TASK_STATUSES),
            Task.due_date >= start,
            Task.due_date <= end,
        )
        .order_by(Task.due_date.asc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def find_rfp_deadlines(
    db: AsyncSession, workspace_id: str, today: date, days: int, limit: int = 10
) -> list[Rfp]:
    """Open RFPs with a response deadline between today and today + days."""
    result = await db.execute(
        select(Rfp)
        .where(
            Rfp.workspace_id == workspace_id,
            Rfp.status.in_(OPEN_RFP_STATUSES),
            Rfp.response_deadline >= today,
            Rfp.response_deadline <= today + timedelta(days=days),
        )
        .order_by(Rfp.response_deadline.asc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def find_active_proposals(
    db: AsyncSession, workspace_id: str, limit: int = 10
) -> list[Proposal]:
    """Proposals still being worked on, nearest deadline first."""
    result = await db.execute(
        select(Proposal)
        .where(
            Proposal.workspace_id == workspace_id,
            Proposal.status.in_(ACTIVE_PROPOSAL_STATUSES),
        )
        .order_by(Proposal.submission_deadline.asc().nulls_last())
        .limit(limit)
    )
    return list(result.scalars().all())


async def find_stale_contacts(
    db: AsyncSession, workspace_id: str, today: date, stale_days: int, limit: int = 10
) -> list[Contact]:
    """Contacts with no recorded interaction in `stale_days`, stalest first.

    Contacts never contacted at all count as the stalest.
    """
    cutoff = today - timedelta(days=stale_days)
    result = await db.execute(
        select(Contact)
        .where(
            Contact.workspace_id == workspace_id,
            or_(Contact.last_contact_date.is_(None), Contact.last_contact_date < cutoff),
        )
        .order_by(Contact.last_contact_date.asc().nulls_first(), Contact.full_name.asc())
        .limit(limit)
    )
    return list(result.scalars().all())


# =============================================================================
# Aggregate
# =============================================================================


def _clip(text: str | None, limit: int = MAX_TITLE_CHARS) -> str:
    text = (text or "").replace("\n", " ").strip()
    return text if len(text) <= limit else text[: limit - 1] + "…"


@dataclass
class TenantContext:
    """Snapshot of one workspace's state at a point in time."""

    workspace_id: str
    as_of: datetime
    workspace_name: str | None = None
    overdue_tasks: list[Task] = field(default_factory=list)
    upcoming_tasks: list[Task] = field(default_factory=list)
    due_tomorrow: list[Task] = field(default_factory=list)
    rfp_deadlines: list[Rfp] = field(default_factory=list)
    proposals: list[Proposal] = field(default_factory=list)
    stale_contacts: list[Contact] = field(default_factory=list)
    task_lookahead_days: int = 7
    rfp_lookahead_days: int = 7
    stale_contact_days: int = 30

    @property
    def is_empty(self) -> bool:
        return not (
            self.overdue_tasks
            or self.upcoming_tasks
            or self.due_tomorrow
            or self.rfp_deadlines
            or self.proposals
            or self.stale_contacts
        )

    def render(self, max_chars: int | None = None) -> str:
        """Render as a compact text block, cut to at most `max_chars`."""
        if max_chars is None:
            max_chars = get_config().agents.context.max_chars

        lines: list[str] = [f"Date: {self.as_of.date().isoformat()}"]
        if self.workspace_name:
            lines.append(f"Workspace: {self.workspace_name}")

        if self.overdue_tasks:
            lines.append("\nOVERDUE Tasks:")
            for task in self.overdue_tasks:
                lines.append(f"- {_clip(task.title)} (Was due: {task.due_date})")

        if self.due_tomorrow:
            lines.append("\nDue Tomorrow:")
            for task in self.due_tomorrow:
                lines.append(f"- [{task.priority or 'medium'}] {_clip(task.title)}")

        if self.upcoming_tasks:
            lines.append(f"\nUpcoming Tasks (next {self.task_lookahead_days} days):")
            for task in self.upcoming_tasks:
                lines.append(
                    f"- [{task.priority or 'medium'}] {_clip(task.title)} (Due: {task.due_date})"
                )

        if self.rfp_deadlines:
            lines.append(f"\nRFP Deadlines (next {self.rfp_lookahead_days} days):")
            for rfp in self.rfp_deadlines:
                score = f" [Score: {rfp.alignment_score}]" if rfp.alignment_score else ""
                lines.append(
                    f"- {_clip(rfp.title)} ({rfp.agency or 'Unknown'}) - "
                    f"Due: {rfp.response_deadline}{score}"
                )

        if self.proposals:
            lines.append("\nActive Proposals:")
            for proposal in self.proposals:
                lines.append(
                    f"- {_clip(proposal.title)} ({proposal.funder_name or 'Unknown'}) - "
                    f"Due: {proposal.submission_deadline or 'No deadline'} [{proposal.status}]"
                )

        if self.stale_contacts:
            lines.append(f"\nContacts with no interaction in {self.stale_contact_days}+ days:")
            for contact in self.stale_contacts:
                last = contact.last_contact_date or "never"
                lines.append(f"- {_clip(contact.full_name)} (Last contact: {last})")

        if self.is_empty:
            lines.append("\nNo open tasks, deadlines, proposals or stale contacts.")

        text = "\n".join(lines)
        if len(text) > max_chars:
            text = text[: max(0, max_chars - len(TRUNCATION_MARKER))] + TRUNCATION_MARKER
        return text


async def gather_context(
    db: AsyncSession,
    workspace_id: str,
    now: datetime,
    *,
    task_lookahead_days: int | None = None,
    rfp_lookahead_days: int | None = None,
    include_stale_contacts: bool = False,
    stale_contact_days: int | None = None,
    section_limit: int | None = None,
) -> TenantContext:
    """
    Aggregate a workspace's state as of `now`.

    Args:
        db: Database session (only read from)
        workspace_id: Tenant to aggregate; no other tenant's rows are read
        now: Point in time the windows are computed from
        task_lookahead_days: Window for upcoming tasks (default from config, 7)
        rfp_lookahead_days: Window for RFP deadlines (default from config, 7)
        include_stale_contacts: Also list contacts without recent interaction
        stale_contact_days: Staleness window (default from config, 30)
        section_limit: Max items per section

    Returns:
        TenantContext with structured lists and a `render()` for prompts
    """
    cfg = get_config().agents.context
    task_days = task_lookahead_days if task_lookahead_days is not None else cfg.task_lookahead_days
    rfp_days = rfp_lookahead_days if rfp_lookahead_days is not None else cfg.rfp_lookahead_days
    stale_days = stale_contact_days if stale_contact_days is not None else cfg.stale_contact_days
    limit = section_limit or cfg.section_limit
    today = now.date()
    tomorrow = today + timedelta(days=1)

    workspace = await db.get(Workspace, workspace_id)

    context = TenantContext(
        workspace_id=workspace_id,
        as_of=now,
        workspace_name=workspace.name if workspace else None,
        overdue_tasks=await find_overdue_tasks(db, workspace_id, today, limit),
        upcoming_tasks=await find_tasks_due_between(
            db, workspace_id, today, today + timedelta(days=task_days), limit
        ),
        due_tomorrow=await find_tasks_due_between(db, workspace_id, tomorrow, tomorrow, limit),
        rfp_deadlines=await find_rfp_deadlines(db, workspace_id, today, rfp_days, limit),
        proposals=await find_active_proposals(db, workspace_id, limit),
        task_lookahead_days=task_days,
        rfp_lookahead_days=rfp_days,
        stale_contact_days=stale_days,
    )
    if include_stale_contacts:
        context.stale_contacts = await find_stale_contacts(
            db, workspace_id, today, stale_days, limit
        )

    logger.bind(
        workspace_id=workspace_id,
        overdue=len(context.overdue_tasks),
        upcoming=len(context.upcoming_tasks),
        rfps=len(context.rfp_deadlines),
        proposals=len(context.proposals),
        stale_contacts=len(context.stale_contacts),
    ).debug("context_gathered")

    return context
