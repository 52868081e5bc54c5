"""
Action dispatcher.

Executes a batch of actions for one workspace, sequentially and in order.
Per-action isolation is the core guarantee: each action runs in its own
SAVEPOINT, so a validation or storage failure on one action is recorded as a
failed ActionResult and the batch continues. Every action, successful or not,
is appended to the audit log.
"""

from collections.abc import Sequence
from datetime import datetime
from typing import Any

from fastapi.encoders import jsonable_encoder
from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.actions.taxonomy import ActionContext, ActionRegistry, validate_action
from app.core.datetime_utils import utc_now
from app.core.errors import EXECUTION_ERROR, STORAGE_ERROR, ActionError
from app.core.logging import get_logger
from app.models.agent_log import AgentLog
from app.models.base import Base
from app.schemas.actions import Action, ActionResult

logger = get_logger(__name__)


def serialize_result(value: Any) -> dict[str, Any] | None:
    """Turn a handler's return value into a JSON-safe dict."""
    if value is None:
        return None
    if isinstance(value, Base):
        mapper = inspect(value).mapper
        data = {attr.key: getattr(value, attr.key) for attr in mapper.column_attrs}
        return jsonable_encoder(data)
    if isinstance(value, dict):
        return jsonable_encoder(value)
    return {"value": jsonable_encoder(value)}


def _audit_params(params: dict[str, Any]) -> dict[str, Any]:
    try:
        return jsonable_encoder(params)
    except (TypeError, ValueError):
        return {k: str(v) for k, v in params.items()}


async def _run_one(
    db: AsyncSession,
    ctx: ActionContext,
    action: Action,
    registry: ActionRegistry | None,
) -> ActionResult:
    """Validate and execute one action inside a savepoint."""
    try:
        spec = validate_action(action, registry)
        async with db.begin_nested():
            row = await spec.handler(db, ctx, action.params)
            payload = serialize_result(row)
        return ActionResult(success=True, action=action.type, result=payload)
    except ActionError as e:
        return ActionResult(
            success=False, action=action.type, error=e.message, error_kind=e.kind
        )
    except SQLAlchemyError as e:
        return ActionResult(
            success=False,
            action=action.type,
            error=f"Failed to execute {action.type}: {e}",
            error_kind=STORAGE_ERROR,
        )
    except Exception as e:
        logger.bind(action=action.type, error=str(e)).exception("action_handler_crashed")
        return ActionResult(
            success=False,
            action=action.type,
            error=f"Unexpected error in {action.type}: {e}",
            error_kind=EXECUTION_ERROR,
        )


async def _append_audit(
    db: AsyncSession,
    ctx: ActionContext,
    action: Action,
    result: ActionResult,
) -> None:
    db.add(
        AgentLog(
            workspace_id=ctx.workspace_id,
            source=ctx.source,
            action_kind=action.type,
            reason=action.reason,
            status="success" if result.success else "failed",
            error=result.error,
            params=_audit_params(action.params),
            created_at=ctx.now,
        )
    )
    await db.flush()


async def dispatch_actions(
    db: AsyncSession,
    workspace_id: str,
    actions: Sequence[Action],
    source: str,
    now: datetime | None = None,
    registry: ActionRegistry | None = None,
) -> list[ActionResult]:
    """
    Dispatch actions for a workspace.

    Args:
        db: Database session (the caller owns the outer transaction)
        workspace_id: Tenant the actions act on
        actions: Actions in submission order
        source: Job type or source label, recorded in the audit log
        now: Effective time for timestamps and relative dates
        registry: Action registry, defaults to the global one

    Returns:
        One ActionResult per action, in the same order.
    """
    now = now or utc_now()
    results: list[ActionResult] = []

    for index, action in enumerate(actions):
        ctx = ActionContext(
            workspace_id=workspace_id,
            source=source,
            reason=action.reason,
            now=now,
        )
        result = await _run_one(db, ctx, action, registry)
        results.append(result)

        if result.success:
            logger.bind(
                workspace_id=workspace_id, source=source, action=action.type, index=index
            ).info("action_dispatched")
        else:
            logger.bind(
                workspace_id=workspace_id,
                source=source,
                action=action.type,
                index=index,
                error_kind=result.error_kind,
                error=result.error,
            ).warning("action_failed")

        await _append_audit(db, ctx, action, result)

    return results


def summarize_results(results: Sequence[ActionResult]) -> tuple[int, int]:
    """Count (executed, failed) results."""
    executed = sum(1 for r in results if r.success)
    return executed, len(results) - executed


def describe_actions(actions: Sequence[Action]) -> list[dict[str, Any]]:
    """JSON-safe snapshot of an action batch, for persisting on a job run."""
    return [
        {"type": a.type, "params": _audit_params(a.params), "reason": a.reason} for a in actions
    ]

