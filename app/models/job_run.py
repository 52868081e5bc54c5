"""Job execution history model."""

import enum
from datetime import datetime

from sqlalchemy import JSON, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.core.datetime_utils import utc_now
from app.models.base import Base, IdMixin, WorkspaceScopedMixin


class JobRunStatus(str, enum.Enum):
    """Run lifecycle: running -> success | failed (both terminal)."""

    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"


class AgentJobRun(Base, IdMixin, WorkspaceScopedMixin):
    """Records each execution attempt of an agent job.

    Created in the `running` state before any job logic executes, so a run
    record survives even when the attempt fails.
    """

    __tablename__ = "agent_job_runs"

    job_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("agent_jobs.id", ondelete="CASCADE"), index=True
    )
    job_type: Mapped[str] = mapped_column(String(50), index=True)
    status: Mapped[str] = mapped_column(String(20), default=JobRunStatus.RUNNING.value)
    actions_taken: Mapped[list] = mapped_column(JSON, default=list)
    summary: Mapped[str | None] = mapped_column(Text)
    error_message: Mapped[str | None] = mapped_column(Text)
    tokens_used: Mapped[int] = mapped_column(Integer, default=0)
    started_at: Mapped[datetime] = mapped_column(default=utc_now, index=True)
    completed_at: Mapped[datetime | None] = mapped_column(default=None)

    @property
    def is_terminal(self) -> bool:
        return self.status != JobRunStatus.RUNNING.value
