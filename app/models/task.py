"""Task model."""

import enum
from datetime import date, datetime

from sqlalchemy import JSON, Date, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.core.datetime_utils import utc_now
from app.models.base import Base, IdMixin, TimestampMixin, WorkspaceScopedMixin


class TaskStatus(str, enum.Enum):
    """Task workflow status."""

    TODO = "todo"
    IN_PROGRESS = "in_progress"
    DONE = "done"


OPEN_TASK_STATUSES = (TaskStatus.TODO.value, TaskStatus.IN_PROGRESS.value)

TASK_PRIORITIES = ("low", "medium", "high", "urgent")


class Task(Base, IdMixin, WorkspaceScopedMixin, TimestampMixin):
    """A unit of work. `source` distinguishes agent-created tasks from user ones."""

    __tablename__ = "tasks"

    title: Mapped[str] = mapped_column(String(500))
    description: Mapped[str | None] = mapped_column(Text)
    status: Mapped[str] = mapped_column(String(20), default=TaskStatus.TODO.value, index=True)
    priority: Mapped[str] = mapped_column(String(20), default="medium")
    due_date: Mapped[date | None] = mapped_column(Date, index=True)
    tags: Mapped[list] = mapped_column(JSON, default=list)
    source: Mapped[str] = mapped_column(String(20), default="user")
    metadata_json: Mapped[dict] = mapped_column("metadata", JSON, default=dict)
    completed_at: Mapped[datetime | None] = mapped_column(default=None)
    updated_at: Mapped[datetime] = mapped_column(default=utc_now, onupdate=utc_now)

    def __repr__(self) -> str:
        return f"<Task {self.title[:40]} ({self.status})>"
