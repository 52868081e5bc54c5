from datetime import datetime
from typing import Any
from uuid import uuid4

from sqlalchemy import String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from app.core.datetime_utils import utc_now


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    type_annotation_map: dict[type, Any] = {}


def new_id() -> str:
    """Generate a string UUID primary key."""
    return str(uuid4())


class IdMixin:
    """Mixin that adds a string UUID primary key."""

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)


class WorkspaceScopedMixin:
    """Mixin for rows owned by a single workspace (tenant)."""

    workspace_id: Mapped[str] = mapped_column(String(36), index=True)


class TimestampMixin:
    """Mixin that adds created_at timestamp to models."""

    created_at: Mapped[datetime] = mapped_column(default=utc_now)
