"""Research findings saved by agents."""

from sqlalchemy import JSON, Float, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, IdMixin, TimestampMixin, WorkspaceScopedMixin


class ResearchFinding(Base, IdMixin, WorkspaceScopedMixin, TimestampMixin):
    """A grant opportunity, funder intel, market insight, etc."""

    __tablename__ = "agent_research"

    topic: Mapped[str] = mapped_column(String(255))
    finding_type: Mapped[str] = mapped_column(String(50))
    title: Mapped[str] = mapped_column(String(500))
    summary: Mapped[str | None] = mapped_column(Text)
    source_url: Mapped[str | None] = mapped_column(String(1024))
    relevance_score: Mapped[float | None] = mapped_column(Float)
    data_json: Mapped[dict] = mapped_column("data", JSON, default=dict)
    status: Mapped[str] = mapped_column(String(20), default="new")
