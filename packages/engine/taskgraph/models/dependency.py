"""Task dependency edge: dependent_task_id cannot start until blocking_task_id completes."""

import uuid
from typing import Optional

from sqlalchemy import CheckConstraint, Index
from sqlmodel import Field, SQLModel

from .base import CreatedAtMixin, UUIDMixin


class TaskDependency(UUIDMixin, CreatedAtMixin, SQLModel, table=True):
    __tablename__ = "task_dependencies"
    __table_args__ = (
        CheckConstraint("dependent_task_id != blocking_task_id", name="no_self_dependency"),
        Index("uq_task_dependencies_pair", "dependent_task_id", "blocking_task_id", unique=True),
    )

    # No foreign keys: tasks are owned elsewhere and an orphan edge must stay readable.
    dependent_task_id: uuid.UUID = Field(nullable=False, index=True)
    blocking_task_id: uuid.UUID = Field(nullable=False, index=True)
    created_by: Optional[str] = None
