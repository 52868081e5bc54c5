"""In-app notification model."""

from datetime import datetime

from sqlalchemy import JSON, Boolean, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, IdMixin, TimestampMixin, WorkspaceScopedMixin

NOTIFICATION_PRIORITIES = ("low", "medium", "high", "critical")


class Notification(Base, IdMixin, WorkspaceScopedMixin, TimestampMixin):
    """Alert shown to workspace members. `user_id=None` means workspace-wide."""

    __tablename__ = "notifications"

    user_id: Mapped[str | None] = mapped_column(String(36))
    title: Mapped[str] = mapped_column(String(500))
    message: Mapped[str | None] = mapped_column(Text)
    type: Mapped[str] = mapped_column(String(50), default="info")
    priority: Mapped[str] = mapped_column(String(20), default="medium")
    action_url: Mapped[str | None] = mapped_column(String(512))
    is_read: Mapped[bool] = mapped_column(Boolean, default=False)
    read_at: Mapped[datetime | None] = mapped_column(default=None)
    metadata_json: Mapped[dict] = mapped_column("metadata", JSON, default=dict)

    def __repr__(self) -> str:
        return f"<Notification [{self.priority}] {self.title[:40]}>"
