"""RFP (tracked funding opportunity) model."""

from datetime import date

from sqlalchemy import Date, Float, String
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, IdMixin, TimestampMixin, WorkspaceScopedMixin

# Statuses that still have a live response deadline
OPEN_RFP_STATUSES = ("new", "reviewing", "pursuing")


class Rfp(Base, IdMixin, WorkspaceScopedMixin, TimestampMixin):
    """An opportunity the workspace may respond to."""

    __tablename__ = "rfps"

    title: Mapped[str] = mapped_column(String(500))
    agency: Mapped[str | None] = mapped_column(String(255))
    status: Mapped[str] = mapped_column(String(20), default="new", index=True)
    response_deadline: Mapped[date | None] = mapped_column(Date, index=True)
    alignment_score: Mapped[float | None] = mapped_column(Float)

    def __repr__(self) -> str:
        return f"<Rfp {self.title[:40]} ({self.status})>"
