"""
Agent actions: taxonomy, handlers and the dispatcher.

Importing this package registers the built-in action kinds.
"""

from app.actions import handlers  # noqa: F401
from app.actions.dispatcher import (
    describe_actions,
    dispatch_actions,
    serialize_result,
    summarize_results,
)
from app.actions.taxonomy import (
    ActionContext,
    ActionRegistry,
    ActionSpec,
    get_registry,
    list_action_kinds,
    register_action,
    validate_action,
)

__all__ = [
    "ActionContext",
    "ActionRegistry",
    "ActionSpec",
    "get_registry",
    "list_action_kinds",
    "register_action",
    "validate_action",
    "dispatch_actions",
    "summarize_results",
    "describe_actions",
    "serialize_result",
]
