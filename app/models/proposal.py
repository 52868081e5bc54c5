"""Proposal model."""

from datetime import date

from sqlalchemy import Date, String
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, IdMixin, TimestampMixin, WorkspaceScopedMixin

ACTIVE_PROPOSAL_STATUSES = ("draft", "in_progress", "review")


class Proposal(Base, IdMixin, WorkspaceScopedMixin, TimestampMixin):
    """A proposal being prepared for a funder."""

    __tablename__ = "proposals"

    title: Mapped[str] = mapped_column(String(500))
    funder_name: Mapped[str | None] = mapped_column(String(255))
    status: Mapped[str] = mapped_column(String(20), default="draft", index=True)
    submission_deadline: Mapped[date | None] = mapped_column(Date)

    def __repr__(self) -> str:
        return f"<Proposal {self.title[:40]} ({self.status})>"
