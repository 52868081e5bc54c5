"""
Action taxonomy: the closed, additive set of action kinds.

Each kind is an `ActionSpec` naming its target entity, required and optional
parameters, and the handler that produces its single persisted effect.
Handlers register themselves with `@register_action`, so a new kind never
touches the dispatcher's control flow.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import INVALID_PARAMS, UNKNOWN_ACTION, ActionError
from app.schemas.actions import Action


@dataclass(frozen=True)
class ActionContext:
    """Who is acting, why, and at what time."""

    workspace_id: str
    source: str
    reason: str
    now: datetime


# Handlers return the persisted row (or a plain dict) and raise ActionError on failure
ActionHandler = Callable[[AsyncSession, ActionContext, dict[str, Any]], Awaitable[Any]]


@dataclass(frozen=True)
class ActionSpec:
    """Parameter shape and effect of one action kind."""

    kind: str
    entity: str
    handler: ActionHandler
    required: tuple[str, ...] = ()
    optional: tuple[str, ...] = ()

    def missing_params(self, params: dict[str, Any]) -> list[str]:
        """Required parameters that are absent, null or blank."""
        return [name for name in self.required if _is_missing(params.get(name))]


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str) and not value.strip():
        return True
    return False


class ActionRegistry:
    """Registry mapping action kind to its spec."""

    def __init__(self) -> None:
        self._specs: dict[str, ActionSpec] = {}

    def register(self, spec: ActionSpec) -> None:
        """Register (or replace) an action kind."""
        self._specs[spec.kind] = spec

    def get(self, kind: str) -> ActionSpec | None:
        """Get a spec by kind."""
        return self._specs.get(kind)

    def list_available(self) -> list[str]:
        """List all registered kinds."""
        return list(self._specs.keys())

    def specs(self) -> list[ActionSpec]:
        return list(self._specs.values())


# Global registry; populated when app.actions.handlers is imported
_registry = ActionRegistry()


def get_registry() -> ActionRegistry:
    """Get the global action registry."""
    return _registry


def register_action(
    kind: str,
    *,
    entity: str,
    required: tuple[str, ...] = (),
    optional: tuple[str, ...] = (),
    registry: ActionRegistry | None = None,
) -> Callable[[ActionHandler], ActionHandler]:
    """Decorator registering a handler as the implementation of `kind`."""

    def decorator(handler: ActionHandler) -> ActionHandler:
        (registry or _registry).register(
            ActionSpec(
                kind=kind,
                entity=entity,
                handler=handler,
                required=required,
                optional=optional,
            )
        )
        return handler

    return decorator


def validate_action(action: Action, registry: ActionRegistry | None = None) -> ActionSpec:
    """
    Resolve an action's spec and check its required parameters.

    Nothing is written to the store before this passes.

    Raises:
        ActionError: `unknown_action` if the kind isn't registered,
            `invalid_params` if a required parameter is missing
    """
    registry = registry or get_registry()
    spec = registry.get(action.type)
    if spec is None:
        raise ActionError(UNKNOWN_ACTION, f"Unknown action type: {action.type}")

    missing = spec.missing_params(action.params)
    if missing:
        raise ActionError(
            INVALID_PARAMS,
            f"Missing required parameter(s) for {action.type}: {', '.join(missing)}",
        )
    return spec


def list_action_kinds(registry: ActionRegistry | None = None) -> list[ActionSpec]:
    """All registered specs, sorted by entity then kind."""
    registry = registry or get_registry()
    return sorted(registry.specs(), key=lambda s: (s.entity, s.kind))
