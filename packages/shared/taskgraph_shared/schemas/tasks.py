"""Task and dependency Pydantic schemas shared by the engine and its callers."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic import UUID4

from .common import DependencyErrorCode, DependencyStatus, TaskStatus


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------

class TaskCreate(BaseModel):
    title: str = Field(min_length=1)
    description: Optional[str] = None
    status: TaskStatus = TaskStatus.PENDING
    created_by: Optional[str] = None


class TaskRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID4
    title: str
    status: TaskStatus


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------

class DependencyRead(BaseModel):
    """A persisted dependent -> blocker edge."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID4
    dependent_task_id: UUID4
    blocking_task_id: UUID4
    created_by: Optional[str] = None
    created_at: datetime


class DependencyInfo(BaseModel):
    """Blocking state of one task, derived from live edges and live statuses."""
    is_blocked: bool = False
    blocked_by: List[TaskRead] = Field(default_factory=list)
    blocked_by_ids: List[UUID4] = Field(default_factory=list)
    blocks: List[TaskRead] = Field(default_factory=list)
    blocks_ids: List[UUID4] = Field(default_factory=list)
    dependency_status: Optional[DependencyStatus] = None
    dependency_count: int = 0


class DependencyCheck(BaseModel):
    """Result of a non-mutating "can this dependency be added?" check."""
    valid: bool
    reason: Optional[DependencyErrorCode] = None
    message: Optional[str] = None
    cycle_path: List[TaskRead] = Field(default_factory=list)


class DependencyChainEntry(BaseModel):
    task: TaskRead
    depth: int
    dependency_id: UUID4


class BlockedTaskSummary(BaseModel):
    task_id: UUID4
    title: str
    blocked_by_count: int


# ---------------------------------------------------------------------------
# Bulk actions
# ---------------------------------------------------------------------------

class BulkResult(BaseModel):
    affected_count: int = 0
    skipped_count: int = 0
    skipped_task_ids: List[UUID4] = Field(default_factory=list)
