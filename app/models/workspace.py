"""Workspace (tenant) model."""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, IdMixin, TimestampMixin


class Workspace(Base, IdMixin, TimestampMixin):
    """A tenant. Every business entity and job is scoped to one workspace."""

    __tablename__ = "workspaces"

    name: Mapped[str] = mapped_column(String(255))

    def __repr__(self) -> str:
        return f"<Workspace {self.name}>"
