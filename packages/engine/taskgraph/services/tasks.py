"""
Task service layer: the minimal task store the dependency engine reads from.

Handles:
- Task CRUD
- Status changes (complete / reopen); these never touch dependency rows
- Bulk status changes and bulk deletion
- Deletion hooks, run in the deleting transaction right before the row goes
"""

from __future__ import annotations

import asyncio
import uuid
from datetime import datetime, timezone
from typing import Awaitable, Callable, List, Optional, Sequence

import structlog
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlmodel import select

from taskgraph.core.database import session_scope
from taskgraph.models.task import Task
from taskgraph.services import blocking, dependency_store
from taskgraph_shared.schemas.common import TaskStatus
from taskgraph_shared.schemas.tasks import BulkResult, TaskCreate

log = structlog.get_logger()

DeletionHook = Callable[[AsyncSession, uuid.UUID], Awaitable[object]]


# ---------------------------------------------------------------------------
# Session-level helpers
# ---------------------------------------------------------------------------


async def get_task(session: AsyncSession, task_id: uuid.UUID) -> Optional[Task]:
    return await session.get(Task, task_id)


async def list_tasks(session: AsyncSession) -> list[Task]:
    result = await session.execute(select(Task).order_by(Task.created_at))
    return list(result.scalars().all())


async def tasks_exist(session: AsyncSession, *task_ids: uuid.UUID) -> bool:
    result = await session.execute(select(Task.id).where(Task.id.in_(task_ids)))
    return len(set(result.scalars().all())) == len(set(task_ids))


def _apply_status(task: Task, status: TaskStatus) -> None:
    old_status = task.status
    task.status = status.value
    if status == TaskStatus.COMPLETED:
        task.completed_at = datetime.now(timezone.utc)
    elif old_status == TaskStatus.COMPLETED.value:
        task.completed_at = None  # reopen


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class TaskStore:
    """Owns Task rows. Each call runs in its own transaction."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        write_lock: Optional[asyncio.Lock] = None,
    ):
        self._session_factory = session_factory
        self._write_lock = write_lock or asyncio.Lock()
        self._deletion_hooks: List[DeletionHook] = []

    def share_write_lock(self, lock: asyncio.Lock) -> None:
        """Serialize deletions with another writer, e.g. the dependency facade."""
        self._write_lock = lock

    def add_deletion_hook(self, hook: DeletionHook) -> None:
        """Register a coroutine function called as ``hook(session, task_id)``."""
        self._deletion_hooks.append(hook)

    async def create_task(self, task_in: TaskCreate) -> Task:
        task = Task(
            title=task_in.title,
            description=task_in.description,
            status=task_in.status.value,
            created_by=task_in.created_by,
        )
        if task_in.status == TaskStatus.COMPLETED:
            task.completed_at = datetime.now(timezone.utc)

        async with session_scope(self._session_factory) as session:
            session.add(task)
            await session.flush()

        log.info("task.created", task_id=str(task.id), status=task.status)
        return task

    async def get_task(self, task_id: uuid.UUID) -> Optional[Task]:
        async with session_scope(self._session_factory) as session:
            return await get_task(session, task_id)

    async def get_all_tasks(self) -> list[Task]:
        async with session_scope(self._session_factory) as session:
            return await list_tasks(session)

    async def set_status(self, task_id: uuid.UUID, status: TaskStatus) -> Optional[Task]:
        async with session_scope(self._session_factory) as session:
            task = await get_task(session, task_id)
            if task is None:
                return None

            old_status = task.status
            _apply_status(task, status)
            session.add(task)
            await session.flush()

        log.info(
            "task.status_changed",
            task_id=str(task_id),
            from_status=old_status,
            to_status=status.value,
        )
        return task

    async def complete_task(self, task_id: uuid.UUID) -> Optional[Task]:
        return await self.set_status(task_id, TaskStatus.COMPLETED)

    async def reopen_task(self, task_id: uuid.UUID) -> Optional[Task]:
        return await self.set_status(task_id, TaskStatus.PENDING)

    async def delete_task(self, task_id: uuid.UUID) -> bool:
        """Run deletion hooks, then delete the task. Returns False if it did not exist."""
        async with self._write_lock:
            async with session_scope(self._session_factory) as session:
                task = await get_task(session, task_id)
                if task is None:
                    return False
                for hook in self._deletion_hooks:
                    await hook(session, task_id)
                await session.delete(task)
                await session.flush()

        log.info("task.deleted", task_id=str(task_id))
        return True

    # ------------------------------------------------------------------
    # Bulk actions
    # ------------------------------------------------------------------

    async def bulk_update_status(
        self,
        task_ids: Sequence[uuid.UUID],
        status: TaskStatus,
        *,
        skip_blocked: bool = False,
    ) -> BulkResult:
        """
        Set ``status`` on every listed task in one transaction.

        With ``skip_blocked``, a move to in-progress leaves tasks that still
        have an open blocker untouched and reports them as skipped.
        """
        if not task_ids:
            return BulkResult()

        async with session_scope(self._session_factory) as session:
            tasks = await list_tasks(session)
            blocked: set[uuid.UUID] = set()
            if skip_blocked and status == TaskStatus.IN_PROGRESS:
                edges = await dependency_store.list_all(session)
                blocked = blocking.blocked_task_ids(task_ids, tasks, edges)

            by_id = {t.id: t for t in tasks}
            affected = 0
            skipped: list[uuid.UUID] = []
            for tid in dict.fromkeys(task_ids):
                if tid in blocked:
                    skipped.append(tid)
                    continue
                task = by_id.get(tid)
                if task is None:
                    continue
                _apply_status(task, status)
                session.add(task)
                affected += 1
            await session.flush()

        log.info(
            "task.bulk_status_changed",
            to_status=status.value,
            affected=affected,
            skipped=len(skipped),
        )
        return BulkResult(affected_count=affected, skipped_count=len(skipped), skipped_task_ids=skipped)

    async def bulk_delete(self, task_ids: Sequence[uuid.UUID]) -> BulkResult:
        """Delete the listed tasks and run their deletion hooks, all in one transaction."""
        ids = list(dict.fromkeys(task_ids))
        if not ids:
            return BulkResult()

        async with self._write_lock:
            async with session_scope(self._session_factory) as session:
                for tid in ids:
                    for hook in self._deletion_hooks:
                        await hook(session, tid)
                result = await session.execute(delete(Task).where(Task.id.in_(ids)))
                affected = int(result.rowcount or 0)

        log.info("task.bulk_deleted", requested=len(ids), affected=affected)
        return BulkResult(affected_count=affected)
