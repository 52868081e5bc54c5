"""Append-only audit log of dispatched actions."""

from sqlalchemy import JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, IdMixin, TimestampMixin, WorkspaceScopedMixin


class AgentLog(Base, IdMixin, WorkspaceScopedMixin, TimestampMixin):
    """One row per dispatched action, successful or not. Never updated."""

    __tablename__ = "agent_logs"

    source: Mapped[str] = mapped_column(String(100), index=True)  # job type or source label
    action_kind: Mapped[str] = mapped_column(String(100), index=True)
    reason: Mapped[str | None] = mapped_column(Text)
    status: Mapped[str] = mapped_column(String(20))
    error: Mapped[str | None] = mapped_column(Text)
    params: Mapped[dict] = mapped_column(JSON, default=dict)
