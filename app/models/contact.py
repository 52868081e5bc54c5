"""Contact and relationship tracking models."""

from datetime import date, datetime

from sqlalchemy import Boolean, Date, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, IdMixin, TimestampMixin, WorkspaceScopedMixin

RELATIONSHIP_HEALTH_VALUES = ("hot", "warm", "cold", "at_risk")


class Contact(Base, IdMixin, WorkspaceScopedMixin, TimestampMixin):
    """A person the workspace keeps a relationship with."""

    __tablename__ = "contacts"

    full_name: Mapped[str] = mapped_column(String(255))
    email: Mapped[str | None] = mapped_column(String(255))
    organization: Mapped[str | None] = mapped_column(String(255))
    last_contact_date: Mapped[date | None] = mapped_column(Date, index=True)
    relationship_health: Mapped[str] = mapped_column(String(20), default="warm")
    last_health_check: Mapped[datetime | None] = mapped_column(default=None)
    health_notes: Mapped[str | None] = mapped_column(Text)

    def __repr__(self) -> str:
        return f"<Contact {self.full_name}>"


class ContactInteraction(Base, IdMixin, WorkspaceScopedMixin, TimestampMixin):
    """A logged touchpoint with a contact (email, call, meeting, note)."""

    __tablename__ = "contact_interactions"

    contact_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("contacts.id", ondelete="CASCADE"), index=True
    )
    interaction_type: Mapped[str] = mapped_column(String(50))
    summary: Mapped[str | None] = mapped_column(Text)
    sentiment: Mapped[str] = mapped_column(String(20), default="neutral")
    follow_up_needed: Mapped[bool] = mapped_column(Boolean, default=False)
    follow_up_date: Mapped[date | None] = mapped_column(Date)
    logged_by: Mapped[str] = mapped_column(String(36))
