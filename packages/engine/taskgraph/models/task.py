"""Task model (owned by the task store; the dependency engine only reads it)."""

from datetime import datetime
from typing import Optional

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class Task(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "tasks"

    title: str = Field(nullable=False)
    description: Optional[str] = None
    status: str = Field(nullable=False, default="pending", index=True)  # pending | in-progress | completed
    created_by: Optional[str] = None
    completed_at: Optional[datetime] = Field(default=None, sa_type=sa.DateTime(timezone=True))
