"""Recurring agent job definitions."""

import enum
from datetime import datetime

from sqlalchemy import JSON, Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from app.core.datetime_utils import utc_now
from app.models.base import Base, IdMixin, TimestampMixin, WorkspaceScopedMixin


class JobType(str, enum.Enum):
    """Job types with a registered executor."""

    MORNING_BRIEFING = "morning_briefing"
    WEEKLY_REVIEW = "weekly_review"
    DEADLINE_MONITOR = "deadline_monitor"
    RELATIONSHIP_CHECK = "relationship_check"


class AgentJob(Base, IdMixin, WorkspaceScopedMixin, TimestampMixin):
    """A recurring, tenant-scoped directive.

    Created by workspace configuration; only the scheduler mutates the
    run bookkeeping columns (last_run_*, next_run_at). A null next_run_at
    means the job is due immediately.
    """

    __tablename__ = "agent_jobs"

    # Stored as text so rows with a retired type still load and fail loudly at run time
    job_type: Mapped[str] = mapped_column(String(50), index=True)
    schedule: Mapped[str] = mapped_column(String(100))  # hourly, daily, weekly or a cron string
    config_json: Mapped[dict] = mapped_column("config", JSON, default=dict)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    last_run_at: Mapped[datetime | None] = mapped_column(default=None)
    last_run_status: Mapped[str | None] = mapped_column(String(20), default=None)
    next_run_at: Mapped[datetime | None] = mapped_column(default=None, index=True)
    updated_at: Mapped[datetime] = mapped_column(default=utc_now, onupdate=utc_now)

    def __repr__(self) -> str:
        return f"<AgentJob {self.job_type} ({self.schedule})>"
