"""Agent-authored content awaiting human review."""

from sqlalchemy import JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, IdMixin, TimestampMixin, WorkspaceScopedMixin


class AgentDraft(Base, IdMixin, WorkspaceScopedMixin, TimestampMixin):
    """Email, post, report or calendar block drafted by an agent."""

    __tablename__ = "agent_drafts"

    draft_type: Mapped[str] = mapped_column(String(50))
    title: Mapped[str] = mapped_column(String(500))
    content: Mapped[str] = mapped_column(Text, default="")
    metadata_json: Mapped[dict] = mapped_column("metadata", JSON, default=dict)
    status: Mapped[str] = mapped_column(String(20), default="pending_review", index=True)
    agent_type: Mapped[str] = mapped_column(String(50))
    context_json: Mapped[dict] = mapped_column("context", JSON, default=dict)
