"""
Action handlers, one per kind, grouped by target entity.

Every handler is tenant-scoped: lookups filter on the acting workspace, so an
id from another workspace is reported as not found. Importing this module
registers all built-in kinds with the global registry.
"""

from datetime import date, timedelta
from typing import Any, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.actions.taxonomy import ActionContext, register_action
from app.config import get_config
from app.core.datetime_utils import parse_date
from app.core.errors import INVALID_PARAMS, NOT_FOUND, ActionError
from app.models.base import Base
from app.models.contact import RELATIONSHIP_HEALTH_VALUES, Contact, ContactInteraction
from app.models.draft import AgentDraft
from app.models.notification import NOTIFICATION_PRIORITIES, Notification
from app.models.research import ResearchFinding
from app.models.rfp import Rfp
from app.models.task import TASK_PRIORITIES, Task, TaskStatus

ModelT = TypeVar("ModelT", bound=Base)

TASK = "task"
NOTIFICATION = "notification"
RFP = "rfp"
PROPOSAL = "proposal"
DRAFT = "draft"
RESEARCH = "research"
CONTACT = "contact"


# =============================================================================
# Parameter helpers
# =============================================================================


def _date_param(params: dict[str, Any], name: str) -> date:
    try:
        return parse_date(params[name])
    except (KeyError, ValueError, TypeError) as e:
        raise ActionError(INVALID_PARAMS, f"Invalid date for {name}: {params.get(name)!r}") from e


def _optional_date(params: dict[str, Any], name: str) -> date | None:
    if params.get(name) in (None, ""):
        return None
    return _date_param(params, name)


def _choice(value: Any, allowed: tuple[str, ...], name: str) -> str:
    text = str(value).strip().lower()
    if text not in allowed:
        raise ActionError(
            INVALID_PARAMS,
            f"Invalid {name} {value!r}; expected one of {', '.join(allowed)}",
        )
    return text


def _int_param(params: dict[str, Any], name: str, default: int | None = None) -> int:
    value = params.get(name, default)
    if isinstance(value, bool):
        raise ActionError(INVALID_PARAMS, f"Invalid integer for {name}: {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ActionError(INVALID_PARAMS, f"Invalid integer for {name}: {value!r}") from e


def _string_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, list):
        return [str(v) for v in value]
    raise ActionError(INVALID_PARAMS, f"Expected a list of strings, got {type(value).__name__}")


async def _get_scoped(
    db: AsyncSession,
    model: type[ModelT],
    row_id: Any,
    workspace_id: str,
    label: str,
) -> ModelT:
    """Load a row owned by the workspace or raise not_found."""
    result = await db.execute(
        select(model).where(
            model.id == str(row_id),  # type: ignore[attr-defined]
            model.workspace_id == workspace_id,  # type: ignore[attr-defined]
        )
    )
    row = result.scalar_one_or_none()
    if row is None:
        raise ActionError(NOT_FOUND, f"{label} {row_id} not found")
    return row


async def _add(db: AsyncSession, row: ModelT) -> ModelT:
    db.add(row)
    await db.flush()
    return row


# =============================================================================
# Task actions
# =============================================================================


@register_action(
    "create_task",
    entity=TASK,
    required=("title",),
    optional=("description", "priority", "due_date", "tags"),
)
async def create_task(db: AsyncSession, ctx: ActionContext, params: dict[str, Any]) -> Task:
    return await _add(
        db,
        Task(
            workspace_id=ctx.workspace_id,
            title=str(params["title"]),
            description=params.get("description"),
            priority=_choice(params.get("priority") or "medium", TASK_PRIORITIES, "priority"),
            status=TaskStatus.TODO.value,
            due_date=_optional_date(params, "due_date"),
            tags=_string_list(params.get("tags")),
            source="agent",
            metadata_json={
                "created_by_agent": True,
                "agent_source": ctx.source,
                "agent_reason": ctx.reason,
            },
            created_at=ctx.now,
            updated_at=ctx.now,
        ),
    )


@register_action("update_task_priority", entity=TASK, required=("task_id", "priority"))
async def update_task_priority(
    db: AsyncSession, ctx: ActionContext, params: dict[str, Any]
) -> Task:
    priority = _choice(params["priority"], TASK_PRIORITIES, "priority")
    task = await _get_scoped(db, Task, params["task_id"], ctx.workspace_id, "Task")
    task.priority = priority
    task.updated_at = ctx.now
    await db.flush()
    return task


@register_action(
    "reschedule_task",
    entity=TASK,
    required=("task_id", "new_due_date"),
    optional=("original_due_date",),
)
async def reschedule_task(db: AsyncSession, ctx: ActionContext, params: dict[str, Any]) -> Task:
    new_due = _date_param(params, "new_due_date")
    task = await _get_scoped(db, Task, params["task_id"], ctx.workspace_id, "Task")
    original = task.due_date.isoformat() if task.due_date else params.get("original_due_date")
    task.due_date = new_due
    task.metadata_json = {
        **(task.metadata_json or {}),
        "rescheduled_by_agent": True,
        "original_due_date": original,
        "reschedule_reason": ctx.reason,
    }
    task.updated_at = ctx.now
    await db.flush()
    return task


@register_action("complete_task", entity=TASK, required=("task_id",))
async def complete_task(db: AsyncSession, ctx: ActionContext, params: dict[str, Any]) -> Task:
    task = await _get_scoped(db, Task, params["task_id"], ctx.workspace_id, "Task")
    task.status = TaskStatus.DONE.value
    task.completed_at = ctx.now
    task.updated_at = ctx.now
    await db.flush()
    return task


# =============================================================================
# Notification actions
# =============================================================================


@register_action(
    "create_notification",
    entity=NOTIFICATION,
    required=("title", "message"),
    optional=("priority", "type", "user_id", "action_url"),
)
async def create_notification(
    db: AsyncSession, ctx: ActionContext, params: dict[str, Any]
) -> Notification:
    return await _add(
        db,
        Notification(
            workspace_id=ctx.workspace_id,
            user_id=params.get("user_id"),
            title=str(params["title"]),
            message=str(params["message"]),
            type=str(params.get("type") or "agent_alert"),
            priority=_choice(
                params.get("priority") or "medium", NOTIFICATION_PRIORITIES, "priority"
            ),
            action_url=params.get("action_url"),
            metadata_json={"created_by_agent": True, "agent_source": ctx.source},
            created_at=ctx.now,
        ),
    )


# =============================================================================
# Follow-up actions
# =============================================================================


@register_action(
    "create_follow_up",
    entity=TASK,
    required=("subject",),
    optional=(
        "context",
        "days_from_now",
        "follow_up_date",
        "tags",
        "type",
        "contact_name",
        "contact_email",
        "related_to",
    ),
)
async def create_follow_up(db: AsyncSession, ctx: ActionContext, params: dict[str, Any]) -> Task:
    """Tagged follow-up task; due on follow_up_date or now + days_from_now."""
    if params.get("follow_up_date"):
        due = _date_param(params, "follow_up_date")
    elif params.get("days_from_now") is None:
        days = get_config().agents.follow_up_default_days
        due = (ctx.now + timedelta(days=days)).date()
    else:
        due = (ctx.now + timedelta(days=_int_param(params, "days_from_now"))).date()

    return await _add(
        db,
        Task(
            workspace_id=ctx.workspace_id,
            title=f"Follow up: {params['subject']}",
            description=params.get("context"),
            priority="medium",
            status=TaskStatus.TODO.value,
            due_date=due,
            tags=["follow-up", *_string_list(params.get("tags"))],
            source="agent",
            metadata_json={
                "created_by_agent": True,
                "agent_reason": ctx.reason,
                "follow_up_type": params.get("type") or "general",
                "related_to": params.get("related_to"),
                "contact_name": params.get("contact_name"),
                "contact_email": params.get("contact_email"),
            },
            created_at=ctx.now,
            updated_at=ctx.now,
        ),
    )


# =============================================================================
# RFP actions
# =============================================================================


@register_action("update_rfp_status", entity=RFP, required=("rfp_id", "status"))
async def update_rfp_status(db: AsyncSession, ctx: ActionContext, params: dict[str, Any]) -> Rfp:
    rfp = await _get_scoped(db, Rfp, params["rfp_id"], ctx.workspace_id, "RFP")
    rfp.status = str(params["status"])
    await db.flush()
    return rfp


@register_action(
    "flag_rfp_opportunity",
    entity=NOTIFICATION,
    required=("rfp_id", "rfp_title", "reason"),
    optional=("alignment_score",),
)
async def flag_rfp_opportunity(
    db: AsyncSession, ctx: ActionContext, params: dict[str, Any]
) -> Notification:
    """Notify about a promising RFP. The RFP row itself is left untouched."""
    return await _add(
        db,
        Notification(
            workspace_id=ctx.workspace_id,
            title=f"High-potential RFP: {params['rfp_title']}",
            message=str(params["reason"]),
            type="opportunity",
            priority="high",
            action_url=f"/workspace/{ctx.workspace_id}/rfp-radar",
            metadata_json={
                "created_by_agent": True,
                "rfp_id": params["rfp_id"],
                "alignment_score": params.get("alignment_score"),
            },
            created_at=ctx.now,
        ),
    )


# =============================================================================
# Proposal actions
# =============================================================================


@register_action(
    "create_proposal_task",
    entity=PROPOSAL,
    required=("proposal_id", "title", "due_date"),
    optional=("description", "priority", "milestone_type"),
)
async def create_proposal_task(
    db: AsyncSession, ctx: ActionContext, params: dict[str, Any]
) -> Task:
    proposal_id = str(params["proposal_id"])
    return await _add(
        db,
        Task(
            workspace_id=ctx.workspace_id,
            title=str(params["title"]),
            description=params.get("description"),
            priority=_choice(params.get("priority") or "high", TASK_PRIORITIES, "priority"),
            status=TaskStatus.TODO.value,
            due_date=_date_param(params, "due_date"),
            tags=["proposal", proposal_id],
            source="agent",
            metadata_json={
                "created_by_agent": True,
                "agent_reason": ctx.reason,
                "proposal_id": proposal_id,
                "milestone_type": params.get("milestone_type"),
            },
            created_at=ctx.now,
            updated_at=ctx.now,
        ),
    )


# =============================================================================
# Draft actions
# =============================================================================


@register_action(
    "save_draft",
    entity=DRAFT,
    required=("type", "title", "content"),
    optional=("metadata", "related_to"),
)
async def save_draft(db: AsyncSession, ctx: ActionContext, params: dict[str, Any]) -> AgentDraft:
    metadata = params.get("metadata") or {}
    if not isinstance(metadata, dict):
        raise ActionError(INVALID_PARAMS, "metadata must be an object")
    return await _add(
        db,
        AgentDraft(
            workspace_id=ctx.workspace_id,
            draft_type=str(params["type"]),
            title=str(params["title"]),
            content=str(params["content"]),
            metadata_json=metadata,
            status="pending_review",
            agent_type=ctx.source,
            context_json={"reason": ctx.reason, "related_to": params.get("related_to")},
            created_at=ctx.now,
        ),
    )


@register_action(
    "suggest_time_block",
    entity=DRAFT,
    required=("title", "suggested_date", "duration_minutes", "block_type"),
    optional=("description", "start_time", "end_time"),
)
async def suggest_time_block(
    db: AsyncSession, ctx: ActionContext, params: dict[str, Any]
) -> AgentDraft:
    suggested_date = _date_param(params, "suggested_date")
    duration = _int_param(params, "duration_minutes")
    if duration <= 0:
        raise ActionError(INVALID_PARAMS, "duration_minutes must be positive")

    return await _add(
        db,
        AgentDraft(
            workspace_id=ctx.workspace_id,
            draft_type="calendar_block",
            title=str(params["title"]),
            content=str(params.get("description") or ""),
            metadata_json={
                "suggested_date": suggested_date.isoformat(),
                "suggested_start": params.get("start_time"),
                "suggested_end": params.get("end_time"),
                "duration_minutes": duration,
                "block_type": str(params["block_type"]),
            },
            status="pending_review",
            agent_type=ctx.source,
            context_json={"reason": ctx.reason},
            created_at=ctx.now,
        ),
    )


# =============================================================================
# Research actions
# =============================================================================


@register_action(
    "save_research_finding",
    entity=RESEARCH,
    required=("topic", "type", "title", "summary"),
    optional=("source_url", "relevance_score", "data"),
)
async def save_research_finding(
    db: AsyncSession, ctx: ActionContext, params: dict[str, Any]
) -> ResearchFinding:
    score = params.get("relevance_score")
    if score is not None:
        try:
            score = float(score)
        except (TypeError, ValueError) as e:
            raise ActionError(INVALID_PARAMS, f"Invalid relevance_score: {score!r}") from e

    return await _add(
        db,
        ResearchFinding(
            workspace_id=ctx.workspace_id,
            topic=str(params["topic"]),
            finding_type=str(params["type"]),
            title=str(params["title"]),
            summary=str(params["summary"]),
            source_url=params.get("source_url"),
            relevance_score=score,
            data_json=params.get("data") or {},
            status="new",
            created_at=ctx.now,
        ),
    )


# =============================================================================
# Relationship actions
# =============================================================================


@register_action(
    "log_interaction",
    entity=CONTACT,
    required=("contact_id", "type", "summary"),
    optional=("sentiment", "follow_up_needed", "follow_up_date"),
)
async def log_interaction(
    db: AsyncSession, ctx: ActionContext, params: dict[str, Any]
) -> ContactInteraction:
    contact = await _get_scoped(db, Contact, params["contact_id"], ctx.workspace_id, "Contact")
    interaction = await _add(
        db,
        ContactInteraction(
            workspace_id=ctx.workspace_id,
            contact_id=contact.id,
            interaction_type=str(params["type"]),
            summary=str(params["summary"]),
            sentiment=str(params.get("sentiment") or "neutral"),
            follow_up_needed=bool(params.get("follow_up_needed", False)),
            follow_up_date=_optional_date(params, "follow_up_date"),
            logged_by="agent",
            created_at=ctx.now,
        ),
    )
    today = ctx.now.date()
    if contact.last_contact_date is None or contact.last_contact_date < today:
        contact.last_contact_date = today
        await db.flush()
    return interaction


@register_action(
    "update_contact_health",
    entity=CONTACT,
    required=("contact_id", "health"),
    optional=("notes",),
)
async def update_contact_health(
    db: AsyncSession, ctx: ActionContext, params: dict[str, Any]
) -> Contact:
    health = _choice(params["health"], RELATIONSHIP_HEALTH_VALUES, "health")
    contact = await _get_scoped(db, Contact, params["contact_id"], ctx.workspace_id, "Contact")
    contact.relationship_health = health
    contact.last_health_check = ctx.now
    contact.health_notes = params.get("notes")
    await db.flush()
    return contact
