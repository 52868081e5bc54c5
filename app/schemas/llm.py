from pydantic import BaseModel, Field

from app.schemas.actions import Action


class Decision(BaseModel):
    """
    Structured decision extracted from the generation service's free text.

    Every field is optional in the raw output; missing ones take defaults.
    """

    analysis: str = ""
    actions: list[Action] = Field(default_factory=list)
    summary: str = ""


class FallbackSpec(BaseModel):
    """How to build the default notification when the output can't be parsed."""

    title: str
    notification_type: str = "agent_alert"
    priority: str = "medium"
    reason: str = "Unparseable agent output"
    analysis: str = "Generated without structured output"
    summary: str = "Notification sent"


class ProposalResult(BaseModel):
    """Decision plus the raw response and token usage."""

    decision: Decision
    raw_text: str
    used_fallback: bool = False
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0
