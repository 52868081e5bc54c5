from typing import Any

from pydantic import BaseModel, Field, field_validator


class Action(BaseModel):
    """An ephemeral, typed intent to mutate one entity or emit one notification/draft.

    `type` must name a registered action kind; the dispatcher turns unknown kinds
    into a failed ActionResult rather than rejecting the request.
    """

    type: str = Field(max_length=100)
    params: dict[str, Any] = Field(default_factory=dict)
    reason: str = ""

    @field_validator("params", mode="before")
    @classmethod
    def default_params(cls, v: Any) -> Any:
        return {} if v is None else v

    @field_validator("reason", mode="before")
    @classmethod
    def default_reason(cls, v: Any) -> Any:
        return "" if v is None else str(v)


class ActionResult(BaseModel):
    """Outcome of dispatching a single action."""

    success: bool
    action: str
    result: dict[str, Any] | None = None
    error: str | None = None
    error_kind: str | None = None


class ActionBatchRequest(BaseModel):
    """Request body for the action submission endpoint."""

    tenant_id: str = Field(min_length=1, max_length=36)
    source_label: str = Field(default="api", max_length=100)
    actions: list[Action]


class ActionBatchResponse(BaseModel):
    """Per-action results plus executed/failed counts."""

    results: list[ActionResult]
    executed: int
    failed: int


class ActionKindResponse(BaseModel):
    """A registered action kind and its parameter shape."""

    kind: str
    entity: str
    required: list[str]
    optional: list[str]
